"""Pydantic schemas for API request/response."""

from tablehold.schemas.availability import (
    AlternativeSlot,
    AlternativesQuery,
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
    AvailableSlot,
    RegionAvailability,
)
from tablehold.schemas.events import AvailabilityChanged, LockExpired
from tablehold.schemas.region import RegionResponse
from tablehold.schemas.reservation import (
    CustomerDetails,
    HoldCreate,
    HoldCreatedResponse,
    HoldResponse,
    ReservationCreate,
    ReservationResponse,
)

__all__ = [
    "RegionResponse",
    "AvailabilityCheckRequest",
    "AvailabilityCheckResponse",
    "AvailableSlot",
    "RegionAvailability",
    "AlternativeSlot",
    "AlternativesQuery",
    "HoldCreate",
    "HoldCreatedResponse",
    "HoldResponse",
    "CustomerDetails",
    "ReservationCreate",
    "ReservationResponse",
    "AvailabilityChanged",
    "LockExpired",
]
