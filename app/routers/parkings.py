# app/routers/parkings.py
"""Parkings, availability, tariffs and the capacity ledger audit."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.common import Envelope
from app.schemas.parking import (
    AvailabilityOut, LedgerAuditOut, ParkingCreate, ParkingOut, ParkingUpdate,
    TariffCreate, TariffOut, TariffUpdate,
)
from app.services import capacity_ledger, parking_service, tariff_service
from app.services.alert_service import raise_alert, LEDGER_DRIFT

router = APIRouter()


@router.get("/parkings", response_model=Envelope[list[ParkingOut]])
def list_parkings(db: Session = Depends(get_db)):
    return {"success": True, "data": parking_service.list_parkings(db)}


@router.get("/parkings/ledger/audit", response_model=Envelope[list[LedgerAuditOut]],
            summary="Compare available_spaces with the vehicles actually inside")
def audit_ledger(parking_id: Optional[int] = Query(None, alias="parkingId"), db: Session = Depends(get_db)):
    report = capacity_ledger.audit(db, parking_id)
    return {"success": True, "data": [item.as_dict() for item in report]}


@router.get("/parkings/{parking_id}", response_model=Envelope[ParkingOut])
def get_parking(parking_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": parking_service.get_parking(db, parking_id)}


@router.post("/parkings", response_model=Envelope[ParkingOut], status_code=status.HTTP_201_CREATED)
def create_parking(body: ParkingCreate, db: Session = Depends(get_db)):
    parking = parking_service.create_parking(db, body.name, body.total_capacity, body.location, body.description)
    return {"success": True, "message": "Parking created", "data": parking}


@router.put("/parkings/{parking_id}", response_model=Envelope[ParkingOut],
            summary="Edit a parking; capacity cannot go below the occupied places")
def update_parking(parking_id: int, body: ParkingUpdate, db: Session = Depends(get_db)):
    parking = parking_service.update_parking(
        db, parking_id, name=body.name, total_capacity=body.total_capacity,
        location=body.location, description=body.description,
    )
    return {"success": True, "message": "Parking updated", "data": parking}


@router.delete("/parkings/{parking_id}", response_model=Envelope[None])
def delete_parking(parking_id: int, db: Session = Depends(get_db)):
    parking_service.delete_parking(db, parking_id)
    return {"success": True, "message": "Parking deleted"}


@router.get("/parkings/{parking_id}/availability", response_model=Envelope[AvailabilityOut])
def get_availability(parking_id: int, db: Session = Depends(get_db)):
    parking = parking_service.get_parking(db, parking_id)
    return {"success": True, "data": parking_service.availability(parking)}


@router.post("/parkings/{parking_id}/ledger/reconcile", response_model=Envelope[LedgerAuditOut],
             summary="Reset available_spaces from the count of vehicles inside")
async def reconcile_ledger(parking_id: int, db: Session = Depends(get_db)):
    before, after = capacity_ledger.reconcile(db, parking_id)
    if not before.consistent:
        await raise_alert(db, LEDGER_DRIFT, parking_id,
                          f"Ledger drift of {before.drift} corrected on parking {parking_id}")
        message = f"available_spaces corrected from {before.available_spaces} to {after.available_spaces}"
    else:
        message = "Ledger already consistent"
    return {"success": True, "message": message, "data": after.as_dict()}


# ── Tariffs ──────────────────────────────────────────────────────────────────

@router.get("/parkings/{parking_id}/tariffs", response_model=Envelope[list[TariffOut]])
def list_tariffs(parking_id: int, db: Session = Depends(get_db)):
    parking_service.get_parking(db, parking_id)
    return {"success": True, "data": tariff_service.list_tariffs(db, parking_id)}


@router.post("/tariffs", response_model=Envelope[TariffOut], status_code=status.HTTP_201_CREATED)
def create_tariff(body: TariffCreate, db: Session = Depends(get_db)):
    tariff = tariff_service.create_tariff(db, body.parking_id, body.vehicle_type, body.price_per_hour)
    return {"success": True, "message": "Tariff created", "data": tariff}


@router.put("/tariffs/{tariff_id}", response_model=Envelope[TariffOut])
def update_tariff(tariff_id: int, body: TariffUpdate, db: Session = Depends(get_db)):
    tariff = tariff_service.update_tariff(db, tariff_id, body.price_per_hour)
    return {"success": True, "message": "Tariff updated", "data": tariff}


@router.delete("/tariffs/{tariff_id}", response_model=Envelope[None])
def delete_tariff(tariff_id: int, db: Session = Depends(get_db)):
    tariff_service.delete_tariff(db, tariff_id)
    return {"success": True, "message": "Tariff deleted"}
