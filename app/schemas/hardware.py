# app/schemas/hardware.py
"""
Hardware lane contract (RFID readers, barrier controllers).
The boards only act on `action` and `duration_ms`; everything else is for their logs.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Literal, Optional

OPEN_BARRIER = "OPEN_BARRIER"
DENY = "DENY"


class HardwareSignal(BaseModel):
    card_number: str = Field(alias="cardNumber", min_length=1)
    parking_id: int = Field(alias="parkingId")
    sensor_id: Optional[str] = Field(default=None, alias="sensorId")
    timestamp: Optional[datetime] = None

    class Config:
        populate_by_name = True


class HardwareDecision(BaseModel):
    success: bool
    action: Literal["OPEN_BARRIER", "DENY"]
    duration_ms: int = 0
    message: str
    data: Optional[dict[str, Any]] = None


class HeartbeatIn(BaseModel):
    sensor_id: Optional[str] = Field(default=None, alias="sensorId")
    parking_id: Optional[int] = Field(default=None, alias="parkingId")

    class Config:
        populate_by_name = True
