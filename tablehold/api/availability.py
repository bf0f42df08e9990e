"""Availability API endpoints."""

import datetime as dt
from typing import Annotated

from fastapi import APIRouter, Query

from tablehold.api.dependencies import AvailabilityServiceDep
from tablehold.schemas.availability import (
    AlternativeSlot,
    AlternativesQuery,
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
    AvailableSlot,
)

router = APIRouter()


@router.get(
    "/slots",
    response_model=list[AvailableSlot],
    summary="Get available time slots for a date",
)
async def get_available_slots(
    date: dt.date,
    availability_service: AvailabilityServiceDep,
) -> list[AvailableSlot]:
    """
    Every time slot of the day with the regions that still have free tables.

    This is typically the first call a client makes.
    """
    return await availability_service.list_available_slots(date)


@router.post(
    "/check",
    response_model=AvailabilityCheckResponse,
    summary="Check a specific slot",
)
async def check_availability(
    check: AvailabilityCheckRequest,
    availability_service: AvailabilityServiceDep,
) -> AvailabilityCheckResponse:
    """
    Check region policy (capacity, children, smoking) and then free tables.

    An ineligible party gets ``available=false`` with the reason.
    """
    return await availability_service.check_slot(
        check.date,
        check.time_slot,
        check.region_id,
        check.party_size,
        check.children_count,
        check.wants_smoking,
    )


@router.get(
    "/alternatives",
    response_model=list[AlternativeSlot],
    summary="Get alternative time slots",
)
async def get_alternatives(
    query: Annotated[AlternativesQuery, Query()],
    availability_service: AvailabilityServiceDep,
) -> list[AlternativeSlot]:
    """
    Suggestions for the same time in other regions, other times on the same
    day, and the same time on adjacent days. Available slots come first.
    """
    return await availability_service.suggest_alternatives(
        query.date,
        query.time_slot,
        query.party_size,
        query.children_count,
        query.wants_smoking,
    )
