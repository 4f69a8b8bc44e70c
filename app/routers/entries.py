# app/routers/entries.py
"""Staff lane: entries list/detail, manual entry, exit and cancellation."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.models.entry import EntryStatus
from app.models.vehicle import VehicleType
from app.schemas.common import Envelope, paginate
from app.schemas.entry import EntryCreate, EntryExit, EntryOut, EntryPage
from app.services import entry_service

router = APIRouter()


@router.get("/entries", response_model=Envelope[EntryPage], summary="List entries, paginated and filterable")
def list_entries(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    status_: Optional[EntryStatus] = Query(None, alias="status"),
    parking_id: Optional[int] = Query(None, alias="parkingId"),
    vehicle_type: Optional[VehicleType] = Query(None, alias="vehicleType"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
):
    entries, total = entry_service.list_entries(
        db, page=page, limit=limit,
        status=status_.value if status_ else None,
        parking_id=parking_id,
        vehicle_type=vehicle_type.value if vehicle_type else None,
        start_date=start_date, end_date=end_date,
    )
    return {"success": True, "data": {"entries": entries, "pagination": paginate(total, page, limit)}}


@router.get("/entries/active", response_model=Envelope[list[EntryOut]], summary="Vehicles currently parked")
def list_active_entries(parking_id: Optional[int] = Query(None, alias="parkingId"),
                        db: Session = Depends(get_db)):
    return {"success": True, "data": entry_service.list_active_entries(db, parking_id)}


@router.get("/entries/{entry_id}", response_model=Envelope[EntryOut])
def get_entry(entry_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": entry_service.get_entry(db, entry_id)}


@router.get("/vehicles/{vehicle_id}/entries", response_model=Envelope[EntryPage],
            summary="Parking history of one vehicle")
def vehicle_history(
    vehicle_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    entries, total = entry_service.vehicle_history(db, vehicle_id, page, limit)
    return {"success": True, "data": {"entries": entries, "pagination": paginate(total, page, limit)}}


@router.post("/entries", response_model=Envelope[EntryOut], status_code=status.HTTP_201_CREATED,
             summary="Record a vehicle entering a parking")
async def create_entry(body: EntryCreate, db: Session = Depends(get_db)):
    entry = await entry_service.create_entry(db, body.parking_id, body.vehicle_id, body.card_id)
    return {"success": True, "message": "Entry recorded", "data": entry}


@router.put("/entries/{entry_id}/exit", response_model=Envelope[EntryOut],
            summary="Record the exit and bill the stay")
async def exit_entry(entry_id: int, body: Optional[EntryExit] = None, db: Session = Depends(get_db)):
    body = body or EntryExit()
    entry = await entry_service.exit_entry(db, entry_id, body.exit_time, body.payment_method)
    return {"success": True, "message": "Exit recorded", "data": entry}


@router.put("/entries/{entry_id}/cancel", response_model=Envelope[EntryOut],
            summary="Cancel an erroneous entry (no billing)")
async def cancel_entry(entry_id: int, db: Session = Depends(get_db)):
    entry = await entry_service.cancel_entry(db, entry_id)
    return {"success": True, "message": "Entry cancelled", "data": entry}
