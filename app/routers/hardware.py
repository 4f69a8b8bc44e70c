# app/routers/hardware.py
"""
Hardware lane: RFID readers and barrier controllers.
Authenticated by the shared X-API-Key (HARDWARE_API_KEY), not by a staff session.

Always answers with a HardwareDecision. Any refusal or failure is a DENY, so the
barrier stays closed unless the lifecycle operation actually committed.
"""

import secrets
from datetime import datetime
from typing import Awaitable, Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.errors import ParkingServiceError
from app.schemas.hardware import DENY, HardwareDecision, HardwareSignal, HeartbeatIn
from app.services import entry_service
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


def deny(status_code: int, message: str, data: Optional[dict] = None) -> JSONResponse:
    decision = HardwareDecision(success=False, action=DENY, duration_ms=0, message=message, data=data)
    return JSONResponse(status_code=status_code, content=decision.model_dump())


def key_is_valid(api_key: Optional[str]) -> bool:
    return api_key is not None and secrets.compare_digest(api_key, settings.HARDWARE_API_KEY)


async def _decide(lane: str, signal: HardwareSignal, operation: Awaitable[HardwareDecision]):
    try:
        return await operation
    except ParkingServiceError as e:
        logger.warning(f"[HW][{lane}] DENY card={signal.card_number} parking={signal.parking_id} "
                       f"sensor={signal.sensor_id}: {e.kind}: {e.message}")
        return deny(e.status_code, e.message, {"error": e.kind})
    except Exception as e:
        logger.error(f"[HW][{lane}] DENY after unexpected error for card {signal.card_number}: {e}",
                     exc_info=True)
        return deny(500, "Server error")


@router.post("/hardware/entry", response_model=HardwareDecision, summary="RFID reader: entry gate")
async def hardware_entry(signal: HardwareSignal, x_api_key: Optional[str] = Header(None),
                         db: Session = Depends(get_db)):
    if not key_is_valid(x_api_key):
        logger.warning(f"[HW][entry] Rejected signal with invalid API key (sensor={signal.sensor_id})")
        return deny(401, "Invalid API key")
    return await _decide("entry", signal, entry_service.create_auto_entry(
        db, signal.card_number, signal.parking_id, signal.sensor_id, signal.timestamp))


@router.post("/hardware/exit", response_model=HardwareDecision, summary="RFID reader: exit gate")
async def hardware_exit(signal: HardwareSignal, x_api_key: Optional[str] = Header(None),
                        db: Session = Depends(get_db)):
    if not key_is_valid(x_api_key):
        logger.warning(f"[HW][exit] Rejected signal with invalid API key (sensor={signal.sensor_id})")
        return deny(401, "Invalid API key")
    return await _decide("exit", signal, entry_service.create_auto_exit(
        db, signal.card_number, signal.parking_id, signal.sensor_id, signal.timestamp))


@router.post("/hardware/heartbeat", summary="Reader liveness ping")
def hardware_heartbeat(body: Optional[HeartbeatIn] = None, x_api_key: Optional[str] = Header(None)):
    if not key_is_valid(x_api_key):
        return deny(401, "Invalid API key")
    body = body or HeartbeatIn()
    logger.debug(f"[HW] Heartbeat sensor={body.sensor_id} parking={body.parking_id}")
    return {"success": True, "message": "heartbeat", "serverTime": datetime.utcnow().isoformat()}
