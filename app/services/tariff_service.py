# app/services/tariff_service.py
"""
Tariff lookup and administration.
There is no default price: a missing (parking, vehicle type) tariff blocks billing.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import DuplicateTariff, NotFound, TariffNotFound
from app.models.parking import Parking, Tariff
from app.utils.logger import get_logger

logger = get_logger(__name__)


def _type_value(vehicle_type) -> str:
    return getattr(vehicle_type, "value", vehicle_type)


def find_tariff(tariffs: Iterable[Tariff], vehicle_type, parking_id=None) -> Tariff:
    """Pick the tariff for vehicle_type from an already loaded list."""
    wanted = _type_value(vehicle_type)
    for tariff in tariffs:
        if tariff.vehicle_type == wanted:
            return tariff
    raise TariffNotFound(f"No tariff defined for vehicle type {wanted} in parking {parking_id}")


def resolve_tariff(db: Session, parking_id: int, vehicle_type) -> Tariff:
    wanted = _type_value(vehicle_type)
    tariff = (
        db.query(Tariff)
        .filter(Tariff.parking_id == parking_id, Tariff.vehicle_type == wanted)
        .first()
    )
    if not tariff:
        raise TariffNotFound(f"No tariff defined for vehicle type {wanted} in parking {parking_id}")
    return tariff


def list_tariffs(db: Session, parking_id: int) -> list[Tariff]:
    return db.query(Tariff).filter(Tariff.parking_id == parking_id).order_by(Tariff.vehicle_type).all()


def get_tariff(db: Session, tariff_id: int) -> Tariff:
    tariff = db.get(Tariff, tariff_id)
    if not tariff:
        raise NotFound(f"Tariff {tariff_id} not found")
    return tariff


def create_tariff(db: Session, parking_id: int, vehicle_type, price_per_hour) -> Tariff:
    if not db.get(Parking, parking_id):
        raise NotFound(f"Parking {parking_id} not found")
    wanted = _type_value(vehicle_type)
    existing = (
        db.query(Tariff)
        .filter(Tariff.parking_id == parking_id, Tariff.vehicle_type == wanted)
        .first()
    )
    if existing:
        raise DuplicateTariff(f"A {wanted} tariff already exists for parking {parking_id}")

    tariff = Tariff(parking_id=parking_id, vehicle_type=wanted,
                    price_per_hour=Decimal(str(price_per_hour)), created_at=datetime.utcnow())
    db.add(tariff)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateTariff(f"A {wanted} tariff already exists for parking {parking_id}")
    db.refresh(tariff)
    logger.info(f"Tariff created: {wanted}={price_per_hour}/h for parking {parking_id}")
    return tariff


def update_tariff(db: Session, tariff_id: int, price_per_hour) -> Tariff:
    tariff = get_tariff(db, tariff_id)
    tariff.price_per_hour = Decimal(str(price_per_hour))
    db.commit()
    db.refresh(tariff)
    logger.info(f"Tariff {tariff_id} updated: {tariff.vehicle_type}={price_per_hour}/h")
    return tariff


def delete_tariff(db: Session, tariff_id: int):
    tariff = get_tariff(db, tariff_id)
    db.delete(tariff)
    db.commit()
    logger.info(f"Tariff {tariff_id} deleted")
