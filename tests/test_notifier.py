import asyncio
from datetime import date

from tablehold.notifier import ChangeNotifier, Subscriber
from tablehold.schemas.events import AvailabilityChanged, EventType, LockExpired
from tests.conftest import BAR, DAY, MAIN_HALL

OTHER_DAY = date(2025, 7, 26)


def test_events_arrive_in_publish_order(notifier):
    subscriber = notifier.connect()
    notifier.subscribe(subscriber, DAY)

    for time_slot in ["18:00", "19:00", "20:00"]:
        notifier.publish_availability_changed(DAY, time_slot, BAR)

    assert [e.time_slot for e in subscriber.pending()] == ["18:00", "19:00", "20:00"]


def test_only_subscribers_of_the_date_receive_changes(notifier):
    today = notifier.connect()
    tomorrow = notifier.connect()
    notifier.subscribe(today, DAY)
    notifier.subscribe(tomorrow, OTHER_DAY)

    notifier.publish_availability_changed(DAY, "19:00", MAIN_HALL)

    assert len(today.pending()) == 1
    assert tomorrow.pending() == []


def test_event_payload(notifier, clock):
    event = notifier.publish_availability_changed(DAY, "19:00", MAIN_HALL)

    assert isinstance(event, AvailabilityChanged)
    assert event.type == EventType.AVAILABILITY_CHANGED
    assert event.timestamp == clock.now()
    assert event.model_dump(mode="json")["type"] == "availability_changed"


def test_lock_expired_is_broadcast(notifier):
    subscribed = notifier.connect()
    notifier.subscribe(subscribed, DAY)
    idle = notifier.connect()

    notifier.publish_lock_expired("session-a")

    for subscriber in (subscribed, idle):
        events = subscriber.pending()
        assert len(events) == 1
        assert isinstance(events[0], LockExpired)
        assert events[0].session_token == "session-a"


def test_unsubscribe_stops_delivery(notifier):
    subscriber = notifier.connect()
    notifier.subscribe(subscriber, DAY)
    notifier.unsubscribe(subscriber, DAY)

    notifier.publish_availability_changed(DAY, "19:00", BAR)

    assert subscriber.pending() == []
    assert notifier.subscribers_for(DAY) == []


def test_unsubscribe_unknown_date_is_harmless(notifier):
    subscriber = notifier.connect()
    notifier.unsubscribe(subscriber, OTHER_DAY)
    assert notifier.connected() == [subscriber]


def test_disconnect_leaves_every_group(notifier):
    subscriber = notifier.connect()
    notifier.subscribe(subscriber, DAY)
    notifier.subscribe(subscriber, OTHER_DAY)

    notifier.disconnect(subscriber)

    assert notifier.subscribers_for(DAY) == []
    assert notifier.subscribers_for(OTHER_DAY) == []
    assert notifier.connected() == []
    notifier.publish_lock_expired("session-a")
    assert subscriber.pending() == []


def test_membership_change_during_publish(notifier):
    leaving = Subscriber()
    staying = notifier.connect()

    class Unsubscribing(Subscriber):
        def deliver(self, event):
            super().deliver(event)
            notifier.disconnect(leaving)

    first = notifier.connect(Unsubscribing())
    notifier.connect(leaving)
    for subscriber in (first, leaving, staying):
        notifier.subscribe(subscriber, DAY)

    notifier.publish_availability_changed(DAY, "19:00", BAR)

    assert len(first.pending()) == 1
    assert len(staying.pending()) == 1
    assert notifier.subscribers_for(DAY) == [first, staying]


async def test_next_event_waits_for_delivery():
    notifier = ChangeNotifier()
    subscriber = notifier.connect()
    notifier.subscribe(subscriber, DAY)

    waiter = asyncio.create_task(subscriber.next_event())
    await asyncio.sleep(0)
    notifier.publish_availability_changed(DAY, "21:00", BAR)

    event = await asyncio.wait_for(waiter, timeout=1)
    assert event.time_slot == "21:00"
