"""Reservation schemas."""

import datetime as dt
from typing import Annotated, Literal

from pydantic import Field

from tablehold.models.reservation import ConfirmedReservation, Hold, Reservation
from tablehold.schemas.common import BaseSchema


class HoldCreate(BaseSchema):
    """Schema for holding a table."""

    date: dt.date
    time_slot: str = Field(..., min_length=5, max_length=5)
    region_id: str
    session_token: str = Field(..., min_length=1, max_length=100)


class HoldCreatedResponse(BaseSchema):
    """Schema returned when a hold is granted."""

    hold_id: str
    expires_at: dt.datetime


class CustomerDetails(BaseSchema):
    """Customer data attached to a reservation on confirmation."""

    customer_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255)
    phone: str = Field(..., max_length=30)
    party_size: int
    children_count: int = 0
    smoking_requested: bool = False
    celebration_flag: bool = False
    celebration_name: str | None = Field(None, max_length=100)


class ReservationCreate(CustomerDetails):
    """Schema for confirming a held table."""

    date: dt.date
    time_slot: str = Field(..., min_length=5, max_length=5)
    region_id: str
    session_token: str = Field(..., min_length=1, max_length=100)


class HoldResponse(BaseSchema):
    """A reservation still in its HELD phase."""

    status: Literal["HELD"] = "HELD"
    id: str
    date: dt.date
    time_slot: str
    region_id: str
    session_token: str
    expires_at: dt.datetime


class ReservationResponse(BaseSchema):
    """A confirmed reservation."""

    status: Literal["CONFIRMED"] = "CONFIRMED"
    id: str
    date: dt.date
    time_slot: str
    end_time: str | None = None
    region_id: str
    customer_name: str
    email: str
    phone: str
    party_size: int
    children_count: int
    smoking_requested: bool
    celebration_flag: bool
    celebration_name: str | None = None


AnyReservationResponse = Annotated[
    HoldResponse | ReservationResponse, Field(discriminator="status")
]


def to_response(
    reservation: Reservation, end_time: str | None = None
) -> HoldResponse | ReservationResponse:
    """Build the response shape matching the reservation's phase."""
    if isinstance(reservation, Hold):
        return HoldResponse(
            id=reservation.id,
            date=reservation.reservation_date,
            time_slot=reservation.time_slot,
            region_id=reservation.region_id,
            session_token=reservation.hold_token,
            expires_at=reservation.hold_expires_at,
        )
    if isinstance(reservation, ConfirmedReservation):
        return ReservationResponse(
            id=reservation.id,
            date=reservation.reservation_date,
            time_slot=reservation.time_slot,
            end_time=end_time,
            region_id=reservation.region_id,
            customer_name=reservation.customer_name,
            email=reservation.email,
            phone=reservation.phone,
            party_size=reservation.party_size,
            children_count=reservation.children_count,
            smoking_requested=reservation.smoking_requested,
            celebration_flag=reservation.celebration_flag,
            celebration_name=reservation.celebration_name,
        )
    raise TypeError(f"Unknown reservation type: {type(reservation).__name__}")
