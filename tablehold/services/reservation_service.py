"""Reservation service: confirmation, cancellation and lookups."""

import logging
from datetime import date

import redis.asyncio as redis
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tablehold.clock import Clock, system_clock
from tablehold.config import Settings, get_settings
from tablehold.distributed_lock import (
    DistributedLockError,
    distributed_lock,
    occupancy_lock_key,
)
from tablehold.exceptions import (
    ConflictError,
    IneligibleError,
    InvalidInputError,
    NotFoundError,
)
from tablehold.models.region import Region
from tablehold.models.reservation import (
    ConfirmedReservation,
    Hold,
    Reservation,
    ReservationStatus,
)
from tablehold.notifier import ChangeNotifier, get_notifier
from tablehold.schemas.reservation import CustomerDetails
from tablehold.services.region_service import eligibility_reason
from tablehold.time_grid import TimeGrid
from tablehold.validators import normalize_email, normalize_phone, validate_party

logger = logging.getLogger(__name__)

reservations_table = Reservation.__table__


class ReservationService:
    """Service turning holds into confirmed reservations."""

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

    async def confirm(
        self,
        day: date,
        time_slot: str,
        region_id: str,
        session_token: str,
        customer: CustomerDetails,
    ) -> ConfirmedReservation:
        """
        Confirm the session's hold with the customer's details.

        Every business rule is checked again here; the context in which the
        hold was granted is not trusted.

        Raises:
            InvalidInputError: Malformed input or no valid hold for the session.
            IneligibleError: The party does not fit the region's policy.
        """
        self.grid.validate(day, time_slot)
        email = normalize_email(customer.email)
        phone = normalize_phone(customer.phone)
        customer_name = customer.customer_name.strip()
        if not customer_name:
            raise InvalidInputError("Customer name is required")
        validate_party(
            customer.party_size,
            customer.children_count,
            self.settings.MIN_PARTY_SIZE,
            self.settings.MAX_PARTY_SIZE,
        )
        if customer.celebration_flag and not (customer.celebration_name or "").strip():
            raise InvalidInputError(
                "Celebration name is required when celebration flag is set"
            )

        region = await self.db.get(Region, region_id)
        if region is None:
            raise InvalidInputError("Invalid region")

        reason = eligibility_reason(
            region,
            customer.party_size,
            customer.children_count,
            customer.smoking_requested,
        )
        if reason is not None:
            raise IneligibleError(reason)

        values = {
            "status": ReservationStatus.CONFIRMED,
            "hold_token": None,
            "hold_expires_at": None,
            "customer_name": customer_name,
            "email": email,
            "phone": phone,
            "party_size": customer.party_size,
            "children_count": customer.children_count,
            "smoking_requested": customer.smoking_requested,
            "celebration_flag": customer.celebration_flag,
            "celebration_name": (
                customer.celebration_name.strip() if customer.celebration_flag else None
            ),
        }

        try:
            async with distributed_lock(
                self.redis, occupancy_lock_key(region_id, day)
            ):
                reservation = await self._do_confirm(
                    day, time_slot, region_id, session_token, values
                )
        except DistributedLockError:
            raise ConflictError(
                "Slot is busy with another request. Please try again."
            ) from None

        self.notifier.publish_availability_changed(day, time_slot, region_id)
        logger.info("Reservation confirmed: %s", reservation.id)
        return reservation

    async def _do_confirm(
        self,
        day: date,
        time_slot: str,
        region_id: str,
        session_token: str,
        values: dict,
    ) -> ConfirmedReservation:
        """
        Switch the matching hold to CONFIRMED in place.
        Should be called within the occupancy lock.
        """
        now = self.clock.now()
        result = await self.db.execute(
            select(Hold)
            .where(
                Hold.reservation_date == day,
                Hold.time_slot == time_slot,
                Hold.region_id == region_id,
                Hold.hold_token == session_token,
                Hold.hold_expires_at > now,
            )
            .limit(1)
        )
        hold = result.scalar_one_or_none()
        if hold is None:
            await self.db.rollback()
            raise InvalidInputError(
                "No valid hold found for this session. Please hold the slot first."
            )

        # Guarded on the hold still being live, so an expiry between the
        # lookup and the write leaves the row untouched.
        updated = await self.db.execute(
            update(reservations_table)
            .where(
                reservations_table.c.id == hold.id,
                reservations_table.c.status == ReservationStatus.HELD,
                reservations_table.c.hold_token == session_token,
                reservations_table.c.hold_expires_at > now,
            )
            .values(**values)
        )
        if updated.rowcount != 1:
            await self.db.rollback()
            raise InvalidInputError(
                "No valid hold found for this session. Please hold the slot first."
            )
        await self.db.commit()

        # The row changed phase; drop the stale Hold instance and reload.
        self.db.expunge(hold)
        result = await self.db.execute(
            select(ConfirmedReservation).where(ConfirmedReservation.id == hold.id)
        )
        return result.scalar_one()

    async def cancel(self, reservation_id: str) -> None:
        """Delete a reservation in either phase."""
        reservation = await self.db.get(Reservation, reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation not found")

        await self.db.delete(reservation)
        await self.db.commit()

        self.notifier.publish_availability_changed(
            reservation.reservation_date,
            reservation.time_slot,
            reservation.region_id,
        )
        logger.info("Reservation cancelled: %s", reservation_id)

    async def get_reservation(self, reservation_id: str) -> Reservation:
        """Get reservation by ID."""
        reservation = await self.db.get(Reservation, reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation not found")
        return reservation

    async def list_confirmed(self) -> list[ConfirmedReservation]:
        """All confirmed reservations, newest first."""
        result = await self.db.execute(
            select(ConfirmedReservation).order_by(
                ConfirmedReservation.created_at.desc()
            )
        )
        return list(result.scalars().all())

    async def list_confirmed_by_email(self, email: str) -> list[ConfirmedReservation]:
        """Confirmed reservations of one customer, latest date first."""
        result = await self.db.execute(
            select(ConfirmedReservation)
            .where(ConfirmedReservation.email == normalize_email(email))
            .order_by(
                ConfirmedReservation.reservation_date.desc(),
                ConfirmedReservation.time_slot.desc(),
            )
        )
        return list(result.scalars().all())
