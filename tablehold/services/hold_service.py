"""Hold service: time-boxed table holds ahead of confirmation."""

import logging
from datetime import date, timedelta

import redis.asyncio as redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tablehold.clock import Clock, system_clock
from tablehold.config import Settings, get_settings
from tablehold.distributed_lock import (
    DistributedLockError,
    distributed_lock,
    occupancy_lock_key,
)
from tablehold.exceptions import ConflictError, InvalidInputError, NotFoundError
from tablehold.models.region import Region
from tablehold.models.reservation import Hold
from tablehold.notifier import ChangeNotifier, get_notifier
from tablehold.services.availability_service import AvailabilityService
from tablehold.time_grid import TimeGrid

logger = logging.getLogger(__name__)


class HoldService:
    """Service granting and releasing table holds.

    A session may hold several tables at once; ``release`` drops all of them.
    """

    def __init__(
        self,
        db: AsyncSession,
        redis_client: redis.Redis,
        notifier: ChangeNotifier | None = None,
        settings: Settings | None = None,
        clock: Clock | None = None,
    ):
        self.db = db
        self.redis = redis_client
        self.notifier = notifier or get_notifier()
        self.settings = settings or get_settings()
        self.grid = TimeGrid.from_settings(self.settings)
        self.clock = clock or system_clock
        self.availability = AvailabilityService(db, self.settings, self.clock)

    async def acquire_hold(
        self,
        day: date,
        time_slot: str,
        region_id: str,
        session_token: str,
    ) -> Hold:
        """
        Hold one table of ``region_id`` for ``time_slot`` on ``day``.

        Counting occupancy and inserting the hold happen inside the
        region/day occupancy lock and a single transaction that also locks
        the region row, so concurrent callers cannot both take the last table.

        Raises:
            InvalidInputError: Bad date, slot, session token or region.
            ConflictError: No table left in the overlap window.
        """
        self.grid.validate(day, time_slot)
        if not session_token:
            raise InvalidInputError("Session token is required")

        try:
            async with distributed_lock(
                self.redis, occupancy_lock_key(region_id, day)
            ):
                hold = await self._do_acquire_hold(
                    day, time_slot, region_id, session_token
                )
        except DistributedLockError:
            raise ConflictError(
                "Slot is busy with another request. Please try again."
            ) from None

        self.notifier.publish_availability_changed(day, time_slot, region_id)
        logger.info(
            "Hold %s created: %s %s region %s for session %s",
            hold.id,
            day,
            time_slot,
            region_id,
            session_token,
        )
        return hold

    async def _do_acquire_hold(
        self,
        day: date,
        time_slot: str,
        region_id: str,
        session_token: str,
    ) -> Hold:
        """
        Internal method performing the check-then-insert.
        Should be called within the occupancy lock.
        """
        result = await self.db.execute(
            select(Region).where(Region.id == region_id).with_for_update()
        )
        region = result.scalar_one_or_none()
        if region is None:
            await self.db.rollback()
            raise InvalidInputError("Invalid region")

        occupied = await self.availability.occupied_count(day, time_slot, region_id)
        if occupied >= region.table_count:
            await self.db.rollback()
            raise ConflictError(
                "No tables available in this region for the selected time slot"
            )

        hold = Hold(
            reservation_date=day,
            time_slot=time_slot,
            region_id=region_id,
            hold_token=session_token,
            hold_expires_at=self.clock.now()
            + timedelta(minutes=self.settings.HOLD_DURATION_MINUTES),
        )
        self.db.add(hold)
        await self.db.commit()
        return hold

    async def get_active_holds(self, session_token: str) -> list[Hold]:
        """Unexpired holds owned by a session."""
        result = await self.db.execute(
            select(Hold)
            .where(
                Hold.hold_token == session_token,
                Hold.hold_expires_at > self.clock.now(),
            )
            .order_by(Hold.hold_expires_at)
        )
        return list(result.scalars().all())

    async def release(self, session_token: str) -> int:
        """
        Delete every hold owned by ``session_token``.

        Returns:
            Number of holds released

        Raises:
            NotFoundError: The session holds nothing.
        """
        result = await self.db.execute(
            select(Hold).where(Hold.hold_token == session_token)
        )
        holds = list(result.scalars().all())
        if not holds:
            raise NotFoundError("No hold found for this session")

        for hold in holds:
            await self.db.delete(hold)
        await self.db.commit()

        for hold in holds:
            self.notifier.publish_availability_changed(
                hold.reservation_date, hold.time_slot, hold.region_id
            )

        logger.info("Released %d hold(s) for session %s", len(holds), session_token)
        return len(holds)
