# app/routers/realtime.py
"""
Socket.IO handlers for dashboards, served at /socket.io by app.main:socket_app.

Client → server events:
  subscribe:dashboard     {parkingId?}  → subscription:confirmed
  unsubscribe:dashboard   {parkingId?}  → unsubscription:confirmed
  request:parking:status  {parkingId}   → parking:status
Malformed payloads are answered with an `error` event.
Server → client: lifecycle events broadcast by app/services/notifier.py.
"""

from datetime import datetime

from app.services.notifier import (
    GENERAL_ROOM, client_connected, client_disconnected, emit_safely, parking_room, sio,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)


class InvalidPayload(ValueError):
    pass


def _parking_id(data):
    """parkingId from an event payload, None when absent."""
    if data is None:
        return None
    if not isinstance(data, dict):
        raise InvalidPayload("Payload must be an object")
    parking_id = data.get("parkingId")
    if parking_id is None or parking_id == "":
        return None
    if isinstance(parking_id, bool):
        raise InvalidPayload("parkingId must be an integer")
    try:
        return int(parking_id)
    except (TypeError, ValueError):
        raise InvalidPayload("parkingId must be an integer")


async def _reject(sid: str, event: str, exc: InvalidPayload):
    logger.warning(f"[WS] {sid} sent a malformed {event}: {exc}")
    await emit_safely("error", {"success": False, "message": str(exc)}, to=sid)


@sio.on("connect")
async def connect(sid, environ, auth=None):
    client_connected(sid)


@sio.on("disconnect")
async def disconnect(sid, reason=None):
    client_disconnected(sid)


@sio.on("subscribe:dashboard")
async def subscribe_dashboard(sid, data=None):
    try:
        parking_id = _parking_id(data)
    except InvalidPayload as e:
        await _reject(sid, "subscribe:dashboard", e)
        return

    room = GENERAL_ROOM if parking_id is None else parking_room(parking_id)
    await sio.enter_room(sid, room)
    logger.info(f"[WS] Client {sid} subscribed to {room}")
    await emit_safely("subscription:confirmed", {
        "success": True, "message": "Subscribed",
        "parkingId": "general" if parking_id is None else parking_id,
    }, to=sid)


@sio.on("unsubscribe:dashboard")
async def unsubscribe_dashboard(sid, data=None):
    try:
        parking_id = _parking_id(data)
    except InvalidPayload as e:
        await _reject(sid, "unsubscribe:dashboard", e)
        return

    room = GENERAL_ROOM if parking_id is None else parking_room(parking_id)
    await sio.leave_room(sid, room)
    logger.info(f"[WS] Client {sid} unsubscribed from {room}")
    await emit_safely("unsubscription:confirmed", {"success": True, "message": "Unsubscribed"}, to=sid)


@sio.on("request:parking:status")
async def request_parking_status(sid, data=None):
    try:
        parking_id = _parking_id(data)
    except InvalidPayload as e:
        await _reject(sid, "request:parking:status", e)
        return

    await emit_safely("parking:status", {
        "success": True, "parkingId": parking_id,
        "timestamp": datetime.utcnow().isoformat(),
    }, to=sid)
