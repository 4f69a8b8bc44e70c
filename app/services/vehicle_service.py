# app/services/vehicle_service.py
"""
Vehicle and RFID card management.
Used by the vehicles/cards routers; the entry lifecycle reads the same rows.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import DuplicateCard, DuplicateVehicle, NotFound, VehicleInParking
from app.models.card import Card
from app.models.entry import Entry, EntryStatus
from app.models.vehicle import Vehicle
from app.utils.logger import get_logger

logger = get_logger(__name__)


def lookup_vehicle_by_plate(db: Session, plate_number: str):
    """Find a registered vehicle by plate number. Returns None if not found."""
    return db.query(Vehicle).filter(Vehicle.plate_number == plate_number.upper()).first()


def get_vehicle(db: Session, vehicle_id: int) -> Vehicle:
    vehicle = db.get(Vehicle, vehicle_id)
    if not vehicle:
        raise NotFound(f"Vehicle {vehicle_id} not found")
    return vehicle


def active_entry_count(db: Session, vehicle_id: int) -> int:
    return (
        db.query(Entry)
        .filter(Entry.vehicle_id == vehicle_id, Entry.status == EntryStatus.IN_PROGRESS.value)
        .count()
    )


def list_vehicles(db: Session, page: int = 1, limit: int = 10, vehicle_type: Optional[str] = None,
                  search: Optional[str] = None) -> tuple[list[Vehicle], int]:
    q = db.query(Vehicle)
    if vehicle_type:
        q = q.filter(Vehicle.vehicle_type == vehicle_type)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(Vehicle.plate_number.ilike(pattern),
                         Vehicle.brand.ilike(pattern),
                         Vehicle.model.ilike(pattern)))
    total = q.count()
    vehicles = q.order_by(Vehicle.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return vehicles, total


def create_vehicle(db: Session, plate_number: str, vehicle_type, brand=None, model=None, color=None) -> Vehicle:
    plate = plate_number.upper()
    if lookup_vehicle_by_plate(db, plate):
        raise DuplicateVehicle(f"Plate {plate} already registered")
    vehicle = Vehicle(
        plate_number=plate,
        vehicle_type=getattr(vehicle_type, "value", vehicle_type),
        brand=brand,
        model=model,
        color=color,
        created_at=datetime.utcnow(),
    )
    db.add(vehicle)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateVehicle(f"Plate {plate} already registered")
    db.refresh(vehicle)
    logger.info(f"Vehicle registered: {plate} ({vehicle.vehicle_type})")
    return vehicle


def update_vehicle(db: Session, vehicle_id: int, **changes) -> Vehicle:
    vehicle = get_vehicle(db, vehicle_id)
    plate = changes.get("plate_number")
    if plate:
        plate = plate.upper()
        if plate != vehicle.plate_number and lookup_vehicle_by_plate(db, plate):
            raise DuplicateVehicle(f"Plate {plate} already registered")
        changes["plate_number"] = plate
    for field, value in changes.items():
        if value is not None:
            setattr(vehicle, field, getattr(value, "value", value))
    db.commit()
    db.refresh(vehicle)
    logger.info(f"Vehicle {vehicle_id} updated")
    return vehicle


def delete_vehicle(db: Session, vehicle_id: int):
    """Refused while the vehicle is inside a parking."""
    vehicle = get_vehicle(db, vehicle_id)
    if active_entry_count(db, vehicle_id) > 0:
        raise VehicleInParking(f"Vehicle {vehicle.plate_number} is currently inside a parking")
    db.delete(vehicle)
    db.commit()
    logger.info(f"Vehicle {vehicle_id} deleted")


# ── Cards ────────────────────────────────────────────────────────────────────

def normalize_card_number(card_number: str) -> str:
    """Cards are stored upper-case; readers may send hex UIDs in either case."""
    return card_number.strip().upper()


def get_card(db: Session, card_id: int) -> Card:
    card = db.get(Card, card_id)
    if not card:
        raise NotFound(f"Card {card_id} not found")
    return card


def list_cards(db: Session, page: int = 1, limit: int = 10, is_active: Optional[bool] = None,
               vehicle_id: Optional[int] = None) -> tuple[list[Card], int]:
    q = db.query(Card)
    if is_active is not None:
        q = q.filter(Card.is_active == is_active)
    if vehicle_id is not None:
        q = q.filter(Card.vehicle_id == vehicle_id)
    total = q.count()
    cards = q.order_by(Card.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return cards, total


def create_card(db: Session, card_number: str, vehicle_id: int, is_active: bool = True) -> Card:
    number = normalize_card_number(card_number)
    if db.query(Card).filter(Card.card_number == number).first():
        raise DuplicateCard(f"Card {number} already exists")
    get_vehicle(db, vehicle_id)
    card = Card(card_number=number, vehicle_id=vehicle_id, is_active=is_active,
                created_at=datetime.utcnow())
    db.add(card)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateCard(f"Card {number} already exists")
    db.refresh(card)
    logger.info(f"Card {number} issued to vehicle {vehicle_id}")
    return card


def set_card_active(db: Session, card_id: int, is_active: bool) -> Card:
    card = get_card(db, card_id)
    card.is_active = is_active
    db.commit()
    db.refresh(card)
    logger.info(f"Card {card.card_number} {'activated' if is_active else 'deactivated'}")
    return card


def delete_card(db: Session, card_id: int):
    card = get_card(db, card_id)
    db.delete(card)
    db.commit()
    logger.info(f"Card {card_id} deleted")
