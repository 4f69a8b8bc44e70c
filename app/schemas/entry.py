# app/schemas/entry.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from app.schemas.card import CardOut
from app.schemas.common import Pagination
from app.schemas.parking import ParkingSummary
from app.schemas.vehicle import VehicleOut


class EntryCreate(BaseModel):
    parking_id: int = Field(alias="parkingId")
    vehicle_id: int = Field(alias="vehicleId")
    card_id: Optional[int] = Field(default=None, alias="cardId")

    class Config:
        populate_by_name = True


class EntryExit(BaseModel):
    exit_time: Optional[datetime] = Field(default=None, alias="exitTime")
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod", max_length=50)

    class Config:
        populate_by_name = True


class EntryOut(BaseModel):
    id: int
    parking_id: int
    vehicle_id: int
    card_id: Optional[int]
    entry_time: datetime
    exit_time: Optional[datetime]
    duration: Optional[int]        # minutes
    amount: Optional[float]
    status: str
    payment_method: Optional[str]
    parking: Optional[ParkingSummary] = None
    vehicle: Optional[VehicleOut] = None
    card: Optional[CardOut] = None

    class Config:
        from_attributes = True


class EntryPage(BaseModel):
    entries: list[EntryOut]
    pagination: Pagination
