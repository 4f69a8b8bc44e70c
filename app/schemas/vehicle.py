# app/schemas/vehicle.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from app.models.vehicle import VehicleType


class VehicleCreate(BaseModel):
    plate_number: str = Field(alias="plateNumber", pattern=r"^[A-Za-z0-9-]{2,15}$")
    vehicle_type: VehicleType = Field(alias="vehicleType")
    brand: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None

    class Config:
        populate_by_name = True


class VehicleUpdate(BaseModel):
    plate_number: Optional[str] = Field(default=None, alias="plateNumber", pattern=r"^[A-Za-z0-9-]{2,15}$")
    vehicle_type: Optional[VehicleType] = Field(default=None, alias="vehicleType")
    brand: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None

    class Config:
        populate_by_name = True


class VehicleOut(BaseModel):
    id: int
    plate_number: str
    vehicle_type: str
    brand: Optional[str]
    model: Optional[str]
    color: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
