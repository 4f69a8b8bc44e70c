# app/routers/vehicles.py
"""Registered vehicles and their RFID cards."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.models.vehicle import VehicleType
from app.schemas.card import CardCreate, CardOut, CardWithVehicleOut
from app.schemas.common import Envelope, Pagination, paginate
from app.schemas.vehicle import VehicleCreate, VehicleOut, VehicleUpdate
from app.services import vehicle_service

router = APIRouter()


class VehiclePage(BaseModel):
    vehicles: list[VehicleOut]
    pagination: Pagination


class CardPage(BaseModel):
    cards: list[CardWithVehicleOut]
    pagination: Pagination


@router.get("/vehicles", response_model=Envelope[VehiclePage], summary="List registered vehicles")
def list_vehicles(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    vehicle_type: Optional[VehicleType] = Query(None, alias="vehicleType"),
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    vehicles, total = vehicle_service.list_vehicles(
        db, page, limit, vehicle_type.value if vehicle_type else None, search)
    return {"success": True, "data": {"vehicles": vehicles, "pagination": paginate(total, page, limit)}}


@router.get("/vehicles/lookup/{plate}", summary="Look up a plate number")
def lookup_vehicle(plate: str, db: Session = Depends(get_db)):
    vehicle = vehicle_service.lookup_vehicle_by_plate(db, plate)
    if not vehicle:
        return {"success": True, "data": {"plate": plate, "registered": False}}
    return {"success": True, "data": {"plate": vehicle.plate_number, "registered": True,
                                      "id": vehicle.id, "type": vehicle.vehicle_type}}


@router.get("/vehicles/{vehicle_id}", response_model=Envelope[VehicleOut])
def get_vehicle(vehicle_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": vehicle_service.get_vehicle(db, vehicle_id)}


@router.post("/vehicles", response_model=Envelope[VehicleOut], status_code=status.HTTP_201_CREATED,
             summary="Register a vehicle")
def register_vehicle(body: VehicleCreate, db: Session = Depends(get_db)):
    vehicle = vehicle_service.create_vehicle(db, body.plate_number, body.vehicle_type,
                                             body.brand, body.model, body.color)
    return {"success": True, "message": "Vehicle registered", "data": vehicle}


@router.put("/vehicles/{vehicle_id}", response_model=Envelope[VehicleOut])
def update_vehicle(vehicle_id: int, body: VehicleUpdate, db: Session = Depends(get_db)):
    vehicle = vehicle_service.update_vehicle(db, vehicle_id, **body.model_dump(exclude_unset=True))
    return {"success": True, "message": "Vehicle updated", "data": vehicle}


@router.delete("/vehicles/{vehicle_id}", response_model=Envelope[None], summary="Remove a vehicle")
def remove_vehicle(vehicle_id: int, db: Session = Depends(get_db)):
    vehicle_service.delete_vehicle(db, vehicle_id)
    return {"success": True, "message": "Vehicle deleted"}


# ── Cards ────────────────────────────────────────────────────────────────────

@router.get("/cards", response_model=Envelope[CardPage])
def list_cards(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    vehicle_id: Optional[int] = Query(None, alias="vehicleId"),
    db: Session = Depends(get_db),
):
    cards, total = vehicle_service.list_cards(db, page, limit, is_active, vehicle_id)
    return {"success": True, "data": {"cards": cards, "pagination": paginate(total, page, limit)}}


@router.post("/cards", response_model=Envelope[CardOut], status_code=status.HTTP_201_CREATED,
             summary="Issue an RFID card to a vehicle")
def create_card(body: CardCreate, db: Session = Depends(get_db)):
    card = vehicle_service.create_card(db, body.card_number, body.vehicle_id, body.is_active)
    return {"success": True, "message": "Card created", "data": card}


@router.put("/cards/{card_id}/activate", response_model=Envelope[CardOut])
def activate_card(card_id: int, db: Session = Depends(get_db)):
    return {"success": True, "message": "Card activated",
            "data": vehicle_service.set_card_active(db, card_id, True)}


@router.put("/cards/{card_id}/deactivate", response_model=Envelope[CardOut])
def deactivate_card(card_id: int, db: Session = Depends(get_db)):
    return {"success": True, "message": "Card deactivated",
            "data": vehicle_service.set_card_active(db, card_id, False)}


@router.delete("/cards/{card_id}", response_model=Envelope[None])
def delete_card(card_id: int, db: Session = Depends(get_db)):
    vehicle_service.delete_card(db, card_id)
    return {"success": True, "message": "Card deleted"}
