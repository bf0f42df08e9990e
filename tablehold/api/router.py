"""API v1 main router."""

from fastapi import APIRouter

from tablehold.api.availability import router as availability_router
from tablehold.api.regions import router as regions_router
from tablehold.api.reservations import router as reservations_router
from tablehold.api.websocket import router as ws_router

router = APIRouter(prefix="/v1")

router.include_router(regions_router, prefix="/regions", tags=["Regions"])
router.include_router(availability_router, prefix="/availability", tags=["Availability"])
router.include_router(reservations_router, prefix="/reservations", tags=["Reservations"])
router.include_router(ws_router, prefix="/ws", tags=["WebSocket"])
