"""Availability service: overlap-aware table occupancy."""

import logging
from collections import Counter
from datetime import date, datetime

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tablehold.clock import Clock, system_clock
from tablehold.config import Settings, get_settings
from tablehold.models.region import Region
from tablehold.models.reservation import Reservation, ReservationStatus
from tablehold.schemas.availability import (
    AlternativeSlot,
    AvailabilityCheckResponse,
    AvailableSlot,
    RegionAvailability,
)
from tablehold.schemas.region import RegionResponse
from tablehold.services.region_service import RegionService, eligibility_reason
from tablehold.time_grid import TimeGrid
from tablehold.validators import validate_party

logger = logging.getLogger(__name__)

_hold_expires_at = Reservation.__table__.c.hold_expires_at


def active_reservation_clause(now: datetime):
    """Rows that occupy a table: confirmed, or held and not yet expired."""
    return or_(
        Reservation.status == ReservationStatus.CONFIRMED,
        and_(
            Reservation.status == ReservationStatus.HELD,
            _hold_expires_at > now,
        ),
    )


class AvailabilityService:
    """Service computing free tables per region and slot."""

    def __init__(
        self,
        db: AsyncSession,
        settings: Settings | None = None,
        clock: Clock | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.grid = TimeGrid.from_settings(self.settings)
        self.clock = clock or system_clock
        self.regions = RegionService(db)

    async def occupied_count(self, day: date, time_slot: str, region_id: str) -> int:
        """
        Tables of ``region_id`` in use by reservations overlapping ``time_slot``.
        """
        overlapping = self.grid.overlapping_slots(time_slot)
        result = await self.db.execute(
            select(func.count())
            .select_from(Reservation)
            .where(
                Reservation.region_id == region_id,
                Reservation.reservation_date == day,
                Reservation.time_slot.in_(overlapping),
                active_reservation_clause(self.clock.now()),
            )
        )
        return result.scalar_one()

    async def available_tables(
        self, day: date, time_slot: str, region: Region
    ) -> int:
        occupied = await self.occupied_count(day, time_slot, region.id)
        return max(0, region.table_count - occupied)

    async def list_available_slots(self, day: date) -> list[AvailableSlot]:
        """
        Every grid slot of ``day`` with the regions that still have tables.
        """
        self.grid.validate_date(day)
        regions = await self.regions.list_active()

        result = await self.db.execute(
            select(Reservation.time_slot, Reservation.region_id).where(
                Reservation.reservation_date == day,
                active_reservation_clause(self.clock.now()),
            )
        )
        per_slot = Counter((row.time_slot, row.region_id) for row in result)

        slots = []
        for time_slot in self.grid.time_slots:
            overlapping = self.grid.overlapping_slots(time_slot)
            available = []
            for region in regions:
                occupied = sum(per_slot[(s, region.id)] for s in overlapping)
                free = max(0, region.table_count - occupied)
                if free > 0:
                    available.append(
                        RegionAvailability(
                            region=RegionResponse.model_validate(region),
                            available_tables=free,
                        )
                    )
            slots.append(AvailableSlot(time_slot=time_slot, regions=available))

        return slots

    async def check_slot(
        self,
        day: date,
        time_slot: str,
        region_id: str,
        party_size: int,
        children_count: int,
        wants_smoking: bool,
    ) -> AvailabilityCheckResponse:
        """Check eligibility first, then free tables."""
        self.grid.validate(day, time_slot)
        self._validate_party(party_size, children_count)
        region = await self.regions.get_by_id(region_id)
        return await self._check_region(
            day, time_slot, region, party_size, children_count, wants_smoking
        )

    async def suggest_alternatives(
        self,
        day: date,
        time_slot: str,
        party_size: int,
        children_count: int,
        wants_smoking: bool,
    ) -> list[AlternativeSlot]:
        """
        Candidates near the requested slot, available ones first.

        Covers the same slot in every eligible region, every other slot of
        the same day, and the same slot on the neighbouring days that fall
        inside the bookable range.
        """
        self.grid.validate(day, time_slot)
        self._validate_party(party_size, children_count)

        eligible = await self.regions.filter_eligible(
            party_size, children_count > 0, wants_smoking
        )

        candidates: list[tuple[date, str]] = [(day, time_slot)]
        candidates.extend(
            (day, other) for other in self.grid.time_slots if other != time_slot
        )
        candidates.extend(
            (adjacent, time_slot)
            for adjacent in self.grid.adjacent_dates(day)
            if self.grid.is_date_in_range(adjacent)
        )

        alternatives = []
        for candidate_day, candidate_slot in candidates:
            for region in eligible:
                check = await self._check_region(
                    candidate_day,
                    candidate_slot,
                    region,
                    party_size,
                    children_count,
                    wants_smoking,
                )
                alternatives.append(
                    AlternativeSlot(
                        date=candidate_day,
                        time_slot=candidate_slot,
                        region=RegionResponse.model_validate(region),
                        available=check.available,
                        available_tables=check.available_tables,
                        reason=check.reason,
                    )
                )

        logger.info(
            "Built %d alternatives for %s %s", len(alternatives), day, time_slot
        )
        # Zero-padded HH:MM strings sort in time order.
        return sorted(
            alternatives, key=lambda a: (not a.available, a.date, a.time_slot)
        )

    async def _check_region(
        self,
        day: date,
        time_slot: str,
        region: Region,
        party_size: int,
        children_count: int,
        wants_smoking: bool,
    ) -> AvailabilityCheckResponse:
        reason = eligibility_reason(region, party_size, children_count, wants_smoking)
        if reason is not None:
            return AvailabilityCheckResponse(available=False, reason=reason)

        free = await self.available_tables(day, time_slot, region)
        if free == 0:
            return AvailabilityCheckResponse(
                available=False,
                reason=f"No tables available in {region.display_name} for this time slot",
            )
        return AvailabilityCheckResponse(available=True, available_tables=free)

    def _validate_party(self, party_size: int, children_count: int) -> None:
        validate_party(
            party_size,
            children_count,
            self.settings.MIN_PARTY_SIZE,
            self.settings.MAX_PARTY_SIZE,
        )
