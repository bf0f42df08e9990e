"""Notification payloads pushed to availability observers."""

import datetime as dt
from enum import Enum
from typing import Literal

from tablehold.schemas.common import BaseSchema


class EventType(str, Enum):
    """Notification event types."""

    AVAILABILITY_CHANGED = "availability_changed"
    LOCK_EXPIRED = "lock_expired"


class AvailabilityChanged(BaseSchema):
    """Occupancy of a region changed around a slot on a date."""

    type: Literal[EventType.AVAILABILITY_CHANGED] = EventType.AVAILABILITY_CHANGED
    date: dt.date
    time_slot: str
    region_id: str
    timestamp: dt.datetime


class LockExpired(BaseSchema):
    """A session's hold was reaped by the expiry sweeper."""

    type: Literal[EventType.LOCK_EXPIRED] = EventType.LOCK_EXPIRED
    session_token: str
    timestamp: dt.datetime


NotificationEvent = AvailabilityChanged | LockExpired


class ClientMessageType(str, Enum):
    """Messages an observer may send over the socket."""

    SUBSCRIBE = "subscribe"
    UNSUBSCRIBE = "unsubscribe"
    PING = "ping"


class ClientMessage(BaseSchema):
    """Message received from an observer."""

    type: ClientMessageType
    date: dt.date | None = None
