"""In-process fan-out of availability notifications.

Observers register a :class:`Subscriber` and join per-date groups. Every
subscriber owns a FIFO queue, so events published for one date reach each
member of that date's group in publish order. Nothing is persisted: an
observer that reconnects must refetch availability to resynchronize.
"""

import asyncio
import logging
import threading
import uuid
from datetime import date

from tablehold.clock import Clock, system_clock
from tablehold.schemas.events import AvailabilityChanged, LockExpired, NotificationEvent

logger = logging.getLogger(__name__)


class Subscriber:
    """One connected observer and its pending events."""

    def __init__(self, subscriber_id: str | None = None):
        self.id = subscriber_id or str(uuid.uuid4())
        self.queue: asyncio.Queue[NotificationEvent] = asyncio.Queue()

    def deliver(self, event: NotificationEvent) -> None:
        self.queue.put_nowait(event)

    async def next_event(self) -> NotificationEvent:
        return await self.queue.get()

    def pending(self) -> list[NotificationEvent]:
        """Drain and return everything queued so far."""
        events = []
        while not self.queue.empty():
            events.append(self.queue.get_nowait())
        return events

    def __repr__(self) -> str:
        return f"Subscriber({self.id!r})"


class ChangeNotifier:
    """Registry of date-keyed subscriber groups."""

    def __init__(self, clock: Clock = system_clock):
        self.clock = clock
        self._lock = threading.Lock()
        self._connected: dict[str, Subscriber] = {}
        self._groups: dict[date, dict[str, Subscriber]] = {}

    def connect(self, subscriber: Subscriber | None = None) -> Subscriber:
        """Register an observer for broadcasts."""
        subscriber = subscriber or Subscriber()
        with self._lock:
            self._connected[subscriber.id] = subscriber
        return subscriber

    def disconnect(self, subscriber: Subscriber) -> None:
        """Remove an observer from broadcasts and every date group."""
        with self._lock:
            self._connected.pop(subscriber.id, None)
            for day in list(self._groups):
                members = self._groups[day]
                members.pop(subscriber.id, None)
                if not members:
                    del self._groups[day]

    def subscribe(self, subscriber: Subscriber, day: date) -> None:
        with self._lock:
            self._connected.setdefault(subscriber.id, subscriber)
            self._groups.setdefault(day, {})[subscriber.id] = subscriber
        logger.debug("%r subscribed to availability for %s", subscriber, day)

    def unsubscribe(self, subscriber: Subscriber, day: date) -> None:
        with self._lock:
            members = self._groups.get(day)
            if members is None:
                return
            members.pop(subscriber.id, None)
            if not members:
                del self._groups[day]
        logger.debug("%r unsubscribed from availability for %s", subscriber, day)

    def subscribers_for(self, day: date) -> list[Subscriber]:
        with self._lock:
            return list(self._groups.get(day, {}).values())

    def connected(self) -> list[Subscriber]:
        with self._lock:
            return list(self._connected.values())

    def publish_availability_changed(
        self, day: date, time_slot: str, region_id: str
    ) -> AvailabilityChanged:
        """Deliver an availability change to every observer of ``day``."""
        event = AvailabilityChanged(
            date=day,
            time_slot=time_slot,
            region_id=region_id,
            timestamp=self.clock.now(),
        )
        # Deliver from a snapshot; membership may change while we iterate.
        for subscriber in self.subscribers_for(day):
            subscriber.deliver(event)
        logger.info(
            "Published availability_changed for %s %s region %s",
            day,
            time_slot,
            region_id,
        )
        return event

    def publish_lock_expired(self, session_token: str) -> LockExpired:
        """Broadcast a hold expiry to every connected observer."""
        event = LockExpired(session_token=session_token, timestamp=self.clock.now())
        for subscriber in self.connected():
            subscriber.deliver(event)
        logger.info("Published lock_expired for session %s", session_token)
        return event


# Global notifier
notifier = ChangeNotifier()


def get_notifier() -> ChangeNotifier:
    """Get the process-wide notifier."""
    return notifier
