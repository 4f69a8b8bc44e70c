# app/schemas/parking.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from app.models.vehicle import VehicleType


class TariffCreate(BaseModel):
    parking_id: int = Field(alias="parkingId")
    vehicle_type: VehicleType = Field(alias="vehicleType")
    price_per_hour: float = Field(alias="pricePerHour", ge=0)

    class Config:
        populate_by_name = True


class TariffUpdate(BaseModel):
    price_per_hour: float = Field(alias="pricePerHour", ge=0)

    class Config:
        populate_by_name = True


class TariffOut(BaseModel):
    id: int
    parking_id: int
    vehicle_type: str
    price_per_hour: float

    class Config:
        from_attributes = True


class ParkingCreate(BaseModel):
    name: str = Field(min_length=1)
    total_capacity: int = Field(alias="totalCapacity", gt=0)
    location: Optional[str] = None
    description: Optional[str] = None

    class Config:
        populate_by_name = True


class ParkingUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    total_capacity: Optional[int] = Field(default=None, alias="totalCapacity", gt=0)
    location: Optional[str] = None
    description: Optional[str] = None

    class Config:
        populate_by_name = True


class ParkingSummary(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class ParkingOut(BaseModel):
    id: int
    name: str
    total_capacity: int
    available_spaces: int
    occupied_spaces: int
    location: Optional[str]
    description: Optional[str]
    tariffs: list[TariffOut] = []
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class AvailabilityOut(BaseModel):
    id: int
    name: str
    total_capacity: int
    available_spaces: int
    occupied_spaces: int
    occupancy_rate: float      # percent, 2 decimals
    is_full: bool


class LedgerAuditOut(BaseModel):
    parking_id: int
    total_capacity: int
    available_spaces: int
    active_entries: int
    expected_available: int
    drift: int                 # available_spaces - expected_available
    consistent: bool
