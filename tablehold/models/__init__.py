"""SQLAlchemy models."""

from tablehold.models.base import Base
from tablehold.models.region import Region
from tablehold.models.reservation import (
    ConfirmedReservation,
    Hold,
    Reservation,
    ReservationStatus,
)

__all__ = [
    "Base",
    "Region",
    "Reservation",
    "ReservationStatus",
    "Hold",
    "ConfirmedReservation",
]
