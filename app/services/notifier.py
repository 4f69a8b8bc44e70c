# app/services/notifier.py
"""
Real-time fan-out of lifecycle events to dashboard Socket.IO clients.

Topics (broadcast to every connected client):
  parking:update   {parkingId, availableSpaces}
  entry:created    {...entry}
  entry:completed  {...entry}
  capacity:alert   {parkingId, message}

Delivery is at-most-once and fire-and-forget: emit_safely() never raises.
Publishing always happens after the DB commit, so a lost message never
affects the lifecycle result.

Dashboard rooms (general, parking:<id>) are joined on top of the broadcast;
see app/routers/realtime.py for the client-side events.
"""

from typing import Optional

import socketio

from app.utils.logger import get_logger

logger = get_logger(__name__)

sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins="*")

GENERAL_ROOM = "dashboard:general"

# sids of currently connected clients
_connected: set[str] = set()


def parking_room(parking_id) -> str:
    return f"parking:{parking_id}"


def client_connected(sid: str):
    _connected.add(sid)
    logger.info(f"[WS] Client connected: {sid} ({len(_connected)} total)")


def client_disconnected(sid: str):
    _connected.discard(sid)
    logger.info(f"[WS] Client disconnected: {sid} ({len(_connected)} total)")


def connected_clients() -> int:
    return len(_connected)


async def emit_safely(topic: str, data: dict, to: Optional[str] = None) -> bool:
    """Emit one event, to a single sid or to everybody. Returns False if the transport failed."""
    try:
        await sio.emit(topic, data, to=to)
    except Exception as e:
        logger.warning(f"[WS] Failed to emit {topic}: {e}")
        return False
    logger.debug(f"[WS] {topic} → {to or 'all clients'}")
    return True


async def publish_parking_update(parking_id: int, available_spaces: int):
    await emit_safely("parking:update", {"parkingId": parking_id, "availableSpaces": available_spaces})


async def publish_entry_event(topic: str, entry_payload: dict):
    await emit_safely(topic, entry_payload)


async def publish_capacity_alert(parking_id: int, message: str):
    await emit_safely("capacity:alert", {"parkingId": parking_id, "message": message})
