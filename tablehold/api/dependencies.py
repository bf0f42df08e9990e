"""API dependencies."""

from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tablehold.clock import Clock, system_clock
from tablehold.config import Settings, get_settings
from tablehold.database import get_db
from tablehold.notifier import ChangeNotifier, get_notifier
from tablehold.redis_client import get_redis
from tablehold.services.availability_service import AvailabilityService
from tablehold.services.hold_service import HoldService
from tablehold.services.region_service import RegionService
from tablehold.services.reservation_service import ReservationService
from tablehold.time_grid import TimeGrid


def get_clock() -> Clock:
    """Get the clock used for expiry checks."""
    return system_clock


# Type aliases
DBSession = Annotated[AsyncSession, Depends(get_db)]
RedisClient = Annotated[redis.Redis, Depends(get_redis)]
AppSettings = Annotated[Settings, Depends(get_settings)]
AppClock = Annotated[Clock, Depends(get_clock)]
Notifier = Annotated[ChangeNotifier, Depends(get_notifier)]


def get_time_grid(settings: AppSettings) -> TimeGrid:
    """Get the grid for the configured service window."""
    return TimeGrid.from_settings(settings)


def get_region_service(db: DBSession) -> RegionService:
    """Get region service."""
    return RegionService(db)


def get_availability_service(
    db: DBSession,
    settings: AppSettings,
    clock: AppClock,
) -> AvailabilityService:
    """Get availability service."""
    return AvailabilityService(db, settings, clock)


def get_hold_service(
    db: DBSession,
    redis_client: RedisClient,
    notifier: Notifier,
    settings: AppSettings,
    clock: AppClock,
) -> HoldService:
    """Get hold service."""
    return HoldService(db, redis_client, notifier, settings, clock)


def get_reservation_service(
    db: DBSession,
    redis_client: RedisClient,
    notifier: Notifier,
    settings: AppSettings,
    clock: AppClock,
) -> ReservationService:
    """Get reservation service."""
    return ReservationService(db, redis_client, notifier, settings, clock)


# Annotated dependencies
TimeGridDep = Annotated[TimeGrid, Depends(get_time_grid)]
RegionServiceDep = Annotated[RegionService, Depends(get_region_service)]
AvailabilityServiceDep = Annotated[AvailabilityService, Depends(get_availability_service)]
HoldServiceDep = Annotated[HoldService, Depends(get_hold_service)]
ReservationServiceDep = Annotated[ReservationService, Depends(get_reservation_service)]
