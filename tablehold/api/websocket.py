"""WebSocket API for live availability updates."""

import asyncio
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from tablehold.clock import system_clock
from tablehold.notifier import ChangeNotifier, Subscriber, get_notifier
from tablehold.schemas.events import ClientMessage, ClientMessageType

router = APIRouter()
logger = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 30.0


async def _forward_events(websocket: WebSocket, subscriber: Subscriber) -> None:
    """Push queued notifications to the socket in delivery order."""
    while True:
        event = await subscriber.next_event()
        try:
            await websocket.send_text(event.model_dump_json())
        except Exception as e:
            logger.error(f"Error sending to websocket: {e}")
            return


async def _handle_client_message(
    websocket: WebSocket,
    notifier: ChangeNotifier,
    subscriber: Subscriber,
    data: str,
) -> None:
    try:
        message = ClientMessage.model_validate_json(data)
    except ValidationError as e:
        await websocket.send_text(
            json.dumps({"type": "error", "detail": e.errors(include_url=False)[0]["msg"]})
        )
        return

    if message.type == ClientMessageType.PING:
        await websocket.send_text(
            json.dumps({"type": "pong", "timestamp": system_clock.now().isoformat()})
        )
        return

    if message.date is None:
        await websocket.send_text(
            json.dumps({"type": "error", "detail": "date is required"})
        )
        return

    if message.type == ClientMessageType.SUBSCRIBE:
        notifier.subscribe(subscriber, message.date)
        reply = {"type": "subscribed", "date": message.date.isoformat()}
    else:
        notifier.unsubscribe(subscriber, message.date)
        reply = {"type": "unsubscribed", "date": message.date.isoformat()}
    await websocket.send_text(json.dumps(reply))


@router.websocket("/availability")
async def websocket_availability(websocket: WebSocket):
    """
    WebSocket endpoint for availability updates.

    Client messages:
    - {"type": "subscribe", "date": "YYYY-MM-DD"}
    - {"type": "unsubscribe", "date": "YYYY-MM-DD"}
    - {"type": "ping"}

    Server messages:
    - availability_changed: tables changed for a subscribed date
    - lock_expired: a session's hold was reaped (sent to everyone)

    Events missed while disconnected are not replayed; refetch the slots
    after reconnecting.
    """
    notifier = get_notifier()
    await websocket.accept()
    subscriber = notifier.connect()
    forwarder = asyncio.create_task(_forward_events(websocket, subscriber))

    try:
        while True:
            try:
                data = await asyncio.wait_for(
                    websocket.receive_text(),
                    timeout=KEEPALIVE_SECONDS,
                )
            except asyncio.TimeoutError:
                await websocket.send_text(
                    json.dumps(
                        {"type": "keepalive", "timestamp": system_clock.now().isoformat()}
                    )
                )
                continue

            await _handle_client_message(websocket, notifier, subscriber, data)

    except WebSocketDisconnect:
        pass
    finally:
        forwarder.cancel()
        notifier.disconnect(subscriber)
