"""Reservations API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from tablehold.api.dependencies import (
    AppClock,
    HoldServiceDep,
    Notifier,
    ReservationServiceDep,
    TimeGridDep,
)
from tablehold.database import get_db_context
from tablehold.schemas.common import SuccessResponse
from tablehold.schemas.reservation import (
    AnyReservationResponse,
    HoldCreate,
    HoldCreatedResponse,
    HoldResponse,
    ReservationCreate,
    ReservationResponse,
    to_response,
)
from tablehold.tasks import ExpirySweeper, SessionFactory

router = APIRouter()


def get_session_factory() -> SessionFactory:
    """Get the session factory used outside request-scoped sessions."""
    return get_db_context


@router.post(
    "/hold",
    response_model=HoldCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Hold a table",
)
async def acquire_hold(
    hold_data: HoldCreate,
    hold_service: HoldServiceDep,
) -> HoldCreatedResponse:
    """
    Hold one table for a short time so the session can confirm it.

    Returns 409 when every table in the region is taken for an overlapping
    time. Observers of the date receive an ``availability_changed`` event.
    """
    hold = await hold_service.acquire_hold(
        hold_data.date,
        hold_data.time_slot,
        hold_data.region_id,
        hold_data.session_token,
    )
    return HoldCreatedResponse(hold_id=hold.id, expires_at=hold.hold_expires_at)


@router.get(
    "/hold/{session_token}",
    response_model=list[HoldResponse],
    summary="Get active holds of a session",
)
async def get_active_holds(
    session_token: str,
    hold_service: HoldServiceDep,
) -> list[HoldResponse]:
    holds = await hold_service.get_active_holds(session_token)
    return [to_response(h) for h in holds]


@router.delete(
    "/hold/{session_token}",
    response_model=SuccessResponse,
    summary="Release held tables",
)
async def release_hold(
    session_token: str,
    hold_service: HoldServiceDep,
) -> SuccessResponse:
    """Release every hold of the session before confirming."""
    released = await hold_service.release(session_token)
    return SuccessResponse(message=f"Released {released} hold(s)")


@router.post(
    "",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Confirm a held table",
)
async def confirm_reservation(
    reservation_data: ReservationCreate,
    reservation_service: ReservationServiceDep,
    grid: TimeGridDep,
) -> ReservationResponse:
    """
    Confirm the session's unexpired hold with the customer's details.

    Region policy and contact details are validated again here.
    """
    reservation = await reservation_service.confirm(
        reservation_data.date,
        reservation_data.time_slot,
        reservation_data.region_id,
        reservation_data.session_token,
        reservation_data,
    )
    return to_response(reservation, grid.end_time(reservation.time_slot))


@router.get(
    "",
    response_model=list[ReservationResponse],
    summary="List confirmed reservations",
)
async def list_confirmed(
    reservation_service: ReservationServiceDep,
    grid: TimeGridDep,
) -> list[ReservationResponse]:
    reservations = await reservation_service.list_confirmed()
    return [to_response(r, grid.end_time(r.time_slot)) for r in reservations]


@router.get(
    "/by-email/{email}",
    response_model=list[ReservationResponse],
    summary="List confirmed reservations of a customer",
)
async def list_confirmed_by_email(
    email: str,
    reservation_service: ReservationServiceDep,
    grid: TimeGridDep,
) -> list[ReservationResponse]:
    reservations = await reservation_service.list_confirmed_by_email(email)
    return [to_response(r, grid.end_time(r.time_slot)) for r in reservations]


@router.post(
    "/sweep",
    response_model=dict,
    summary="Reap expired holds now",
)
async def sweep_expired_holds(
    session_factory: Annotated[SessionFactory, Depends(get_session_factory)],
    notifier: Notifier,
    clock: AppClock,
) -> dict:
    """Run one expiry sweep without waiting for the background task."""
    sweeper = ExpirySweeper(session_factory, notifier, clock)
    return {"expired": await sweeper.sweep_expired_holds()}


@router.get(
    "/{reservation_id}",
    response_model=AnyReservationResponse,
    summary="Get reservation details",
)
async def get_reservation(
    reservation_id: str,
    reservation_service: ReservationServiceDep,
    grid: TimeGridDep,
) -> AnyReservationResponse:
    reservation = await reservation_service.get_reservation(reservation_id)
    return to_response(reservation, grid.end_time(reservation.time_slot))


@router.delete(
    "/{reservation_id}",
    response_model=SuccessResponse,
    summary="Cancel reservation",
)
async def cancel_reservation(
    reservation_id: str,
    reservation_service: ReservationServiceDep,
) -> SuccessResponse:
    """Cancel a reservation and free its table."""
    await reservation_service.cancel(reservation_id)
    return SuccessResponse(message="Reservation cancelled successfully")
