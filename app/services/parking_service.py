# app/services/parking_service.py
"""Parking administration. Capacity edits go through the capacity ledger."""

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import NotFound, ParkingOccupied, ParkingServiceError, TransactionFailure
from app.models.entry import Entry, EntryStatus
from app.models.parking import Parking
from app.services import capacity_ledger
from app.utils.logger import get_logger

logger = get_logger(__name__)


def get_parking(db: Session, parking_id: int) -> Parking:
    parking = db.get(Parking, parking_id)
    if not parking:
        raise NotFound(f"Parking {parking_id} not found")
    return parking


def list_parkings(db: Session) -> list[Parking]:
    return db.query(Parking).order_by(Parking.id).all()


def create_parking(db: Session, name: str, total_capacity: int,
                   location: Optional[str] = None, description: Optional[str] = None) -> Parking:
    now = datetime.utcnow()
    parking = Parking(name=name, total_capacity=total_capacity, available_spaces=total_capacity,
                      location=location, description=description, created_at=now, updated_at=now)
    db.add(parking)
    db.commit()
    db.refresh(parking)
    logger.info(f"Parking created: {name} ({total_capacity} places)")
    return parking


def update_parking(db: Session, parking_id: int, name: Optional[str] = None,
                   total_capacity: Optional[int] = None, location: Optional[str] = None,
                   description: Optional[str] = None) -> Parking:
    parking = get_parking(db, parking_id)
    try:
        if total_capacity is not None and total_capacity != parking.total_capacity:
            capacity_ledger.resize(db, parking, total_capacity)
        if name is not None:
            parking.name = name
        if location is not None:
            parking.location = location
        if description is not None:
            parking.description = description
        parking.updated_at = datetime.utcnow()
        db.commit()
    except ParkingServiceError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Updating parking {parking_id} failed: {e}", exc_info=True)
        raise TransactionFailure(f"Parking {parking_id} could not be updated, nothing was saved") from e
    db.refresh(parking)
    logger.info(f"Parking {parking_id} updated")
    return parking


def delete_parking(db: Session, parking_id: int):
    parking = get_parking(db, parking_id)
    inside = (
        db.query(Entry)
        .filter(Entry.parking_id == parking_id, Entry.status == EntryStatus.IN_PROGRESS.value)
        .count()
    )
    if inside:
        raise ParkingOccupied(f"Parking {parking.name} still has {inside} vehicle(s) inside")
    db.delete(parking)
    db.commit()
    logger.info(f"Parking {parking_id} deleted")


def availability(parking: Parking) -> dict:
    occupied = parking.occupied_spaces
    return {
        "id": parking.id,
        "name": parking.name,
        "total_capacity": parking.total_capacity,
        "available_spaces": parking.available_spaces,
        "occupied_spaces": occupied,
        "occupancy_rate": round(occupied / parking.total_capacity * 100, 2),
        "is_full": parking.available_spaces == 0,
    }
