"""Background tasks: reaping expired holds."""

import asyncio
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tablehold.clock import Clock, system_clock
from tablehold.config import get_settings
from tablehold.models.reservation import Hold, Reservation, ReservationStatus
from tablehold.notifier import ChangeNotifier, get_notifier

logger = logging.getLogger(__name__)

reservations_table = Reservation.__table__

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class ExpirySweeper:
    """
    Deletes holds past their expiry and tells observers about it.

    Occupancy checks already ignore expired holds, so a late or failed sweep
    only delays cleanup; it never lets a table be booked twice.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        notifier: ChangeNotifier | None = None,
        clock: Clock | None = None,
        interval_seconds: float | None = None,
    ):
        self.session_factory = session_factory
        self.notifier = notifier or get_notifier()
        self.clock = clock or system_clock
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else get_settings().SWEEP_INTERVAL_SECONDS
        )

    async def sweep_expired_holds(self) -> int:
        """
        Run one sweep.

        Returns:
            Number of holds deleted
        """
        now = self.clock.now()

        async with self.session_factory() as db:
            expired = await self._find_expired(db, now)
            if not expired:
                return 0

            deleted = await self._delete_expired(db, expired, now)
            await db.commit()

        for hold in deleted:
            self.notifier.publish_availability_changed(
                hold.reservation_date, hold.time_slot, hold.region_id
            )
            if hold.hold_token:
                self.notifier.publish_lock_expired(hold.hold_token)

        logger.info(f"Cleaned up {len(deleted)} expired hold(s)")
        return len(deleted)

    async def _find_expired(self, db: AsyncSession, now: datetime) -> list[Hold]:
        result = await db.execute(select(Hold).where(Hold.hold_expires_at <= now))
        return list(result.scalars().all())

    async def _delete_expired(
        self, db: AsyncSession, expired: list[Hold], now: datetime
    ) -> list[Hold]:
        """
        Delete the given holds one by one.

        Returns only the holds this sweep removed; a hold released or
        confirmed after it was found matches no row and is skipped.
        """
        deleted = []
        for hold in expired:
            result = await db.execute(
                delete(reservations_table).where(
                    reservations_table.c.id == hold.id,
                    reservations_table.c.status == ReservationStatus.HELD,
                    reservations_table.c.hold_expires_at <= now,
                )
            )
            if result.rowcount == 1:
                deleted.append(hold)
        return deleted

    async def run(self) -> None:
        """Sweep forever, once per interval."""
        logger.info("Starting expired hold cleanup task")

        while True:
            try:
                await self.sweep_expired_holds()
            except Exception as e:
                logger.error(f"Error in cleanup task: {e}", exc_info=True)

            await asyncio.sleep(self.interval_seconds)


class BackgroundTaskManager:
    """Manager for background tasks."""

    def __init__(self):
        self.tasks: list[asyncio.Task] = []

    async def start(self, sweeper: ExpirySweeper) -> None:
        """Start all background tasks."""
        self.tasks.append(asyncio.create_task(sweeper.run()))
        logger.info("Background tasks started")

    async def stop(self) -> None:
        """Stop all background tasks."""
        for task in self.tasks:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.tasks.clear()
        logger.info("Background tasks stopped")


# Global instance
background_tasks = BackgroundTaskManager()
