# app/schemas/card.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from app.schemas.vehicle import VehicleOut


class CardCreate(BaseModel):
    card_number: str = Field(alias="cardNumber", pattern=r"^[A-Za-z0-9]{6,16}$")
    vehicle_id: int = Field(alias="vehicleId")
    is_active: bool = Field(default=True, alias="isActive")

    class Config:
        populate_by_name = True


class CardOut(BaseModel):
    id: int
    card_number: str
    vehicle_id: int
    is_active: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class CardWithVehicleOut(CardOut):
    vehicle: Optional[VehicleOut] = None
