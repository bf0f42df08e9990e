"""Availability schemas."""

import datetime as dt

from pydantic import Field

from tablehold.schemas.common import BaseSchema
from tablehold.schemas.region import RegionResponse


class PartyQuery(BaseSchema):
    """Party composition used for eligibility checks."""

    party_size: int = Field(..., ge=1)
    children_count: int = Field(default=0, ge=0)
    wants_smoking: bool = False


class AlternativesQuery(PartyQuery):
    """Query string of an alternatives lookup."""

    date: dt.date
    time_slot: str = Field(..., min_length=5, max_length=5)


class AvailabilityCheckRequest(PartyQuery):
    """Schema for checking a single slot in a region."""

    date: dt.date
    time_slot: str = Field(..., min_length=5, max_length=5)
    region_id: str


class AvailabilityCheckResponse(BaseSchema):
    """Result of a slot check.

    ``reason`` is set whenever ``available`` is False.
    """

    available: bool
    reason: str | None = None
    available_tables: int | None = None


class RegionAvailability(BaseSchema):
    """Free tables of one region."""

    region: RegionResponse
    available_tables: int


class AvailableSlot(BaseSchema):
    """Regions with free tables at one grid slot."""

    time_slot: str
    regions: list[RegionAvailability] = []


class AlternativeSlot(BaseSchema):
    """A candidate date/slot/region suggested instead of the requested one."""

    date: dt.date
    time_slot: str
    region: RegionResponse
    available: bool
    available_tables: int | None = None
    reason: str | None = None
