# app/schemas/billing.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from app.schemas.common import Pagination


class BillingParking(BaseModel):
    id: int
    name: str
    location: Optional[str]

    class Config:
        from_attributes = True


class BillingVehicle(BaseModel):
    plate_number: str
    vehicle_type: str
    brand: Optional[str]
    model: Optional[str]

    class Config:
        from_attributes = True


class BillingOut(BaseModel):
    id: int
    parking: BillingParking
    vehicle: BillingVehicle
    entry_time: datetime
    exit_time: datetime
    duration: int                  # minutes
    amount: float
    payment_method: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class BillingSummary(BaseModel):
    total_amount: float
    average_amount: float
    min_amount: float
    max_amount: float
    count: int


class BillingHistory(BaseModel):
    entries: list[BillingOut]
    pagination: Pagination
    summary: BillingSummary


class BillingDetails(BaseModel):
    """Stored billing for a closed entry, or a running estimate while the vehicle is still inside."""
    entry_id: int
    status: str
    entry_time: datetime
    exit_time: Optional[datetime]
    duration: Optional[int]
    amount: Optional[float]
    is_estimate: bool
