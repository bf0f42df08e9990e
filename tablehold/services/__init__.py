"""Services package."""

from tablehold.services.availability_service import AvailabilityService
from tablehold.services.hold_service import HoldService
from tablehold.services.region_service import RegionService
from tablehold.services.reservation_service import ReservationService

__all__ = [
    "RegionService",
    "AvailabilityService",
    "HoldService",
    "ReservationService",
]
