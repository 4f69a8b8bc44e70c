# app/services/entry_service.py
"""
Entry lifecycle: vehicle arrival, departure and operator cancellation.

  (no active entry) ──create──▶ IN_PROGRESS ──exit────▶ COMPLETED
                                            └─cancel──▶ CANCELLED

Two lanes reach it:
  - staff UI      create_entry / exit_entry / cancel_entry (by ids)
  - hardware lane create_auto_entry / create_auto_exit (by RFID card number),
                  answered with an OPEN_BARRIER / DENY decision

Every rule is checked before the first write. The Entry write and the capacity
ledger move are committed together or not at all; the partial unique index on
entries(vehicle_id) WHERE status='IN_PROGRESS' and the conditional ledger
updates catch what a concurrent request slipped in after the checks.
Notifications go out only after commit and can never fail the operation.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import (
    AlreadyCompleted, AlreadyFinalized, CardInactive, CardVehicleMismatch,
    DuplicateActiveEntry, NotFound, ParkingFull, ParkingServiceError, TariffNotFound, TransactionFailure,
)
from app.models.card import Card
from app.models.entry import Entry, EntryStatus
from app.models.parking import Parking
from app.models.vehicle import Vehicle
from app.schemas.entry import EntryOut
from app.schemas.hardware import HardwareDecision, OPEN_BARRIER
from app.services import capacity_ledger
from app.services.alert_service import raise_alert, CAPACITY_FULL, TARIFF_MISSING
from app.services.notifier import publish_capacity_alert, publish_entry_event, publish_parking_update
from app.services.tariff_service import find_tariff
from app.services.vehicle_service import normalize_card_number
from app.utils.billing import calculate_amount, calculate_duration, to_naive_utc
from app.utils.logger import get_logger

logger = get_logger(__name__)

IN_PROGRESS = EntryStatus.IN_PROGRESS.value
COMPLETED = EntryStatus.COMPLETED.value
CANCELLED = EntryStatus.CANCELLED.value

ACTIVE_ENTRY_INDEX = "uq_entries_vehicle_in_progress"


# ── Lookups ──────────────────────────────────────────────────────────────────

def get_parking(db: Session, parking_id: int) -> Parking:
    parking = db.get(Parking, parking_id)
    if not parking:
        raise NotFound(f"Parking {parking_id} not found")
    return parking


def get_vehicle(db: Session, vehicle_id: int) -> Vehicle:
    vehicle = db.get(Vehicle, vehicle_id)
    if not vehicle:
        raise NotFound(f"Vehicle {vehicle_id} not found")
    return vehicle


def get_entry(db: Session, entry_id: int) -> Entry:
    entry = db.get(Entry, entry_id)
    if not entry:
        raise NotFound(f"Entry {entry_id} not found")
    return entry


def find_active_entry(db: Session, vehicle_id: int, parking_id: Optional[int] = None) -> Optional[Entry]:
    q = db.query(Entry).filter(Entry.vehicle_id == vehicle_id, Entry.status == IN_PROGRESS)
    if parking_id is not None:
        q = q.filter(Entry.parking_id == parking_id)
    return q.first()


def _ensure_no_active_entry(db: Session, vehicle: Vehicle):
    if find_active_entry(db, vehicle.id):
        raise DuplicateActiveEntry(f"Vehicle {vehicle.plate_number} is already inside a parking")


def _ensure_card_usable(card: Card):
    if not card.is_active:
        raise CardInactive(f"Card {card.card_number} is deactivated")


def _validate_card(db: Session, card_id: int, vehicle_id: int) -> Card:
    card = db.get(Card, card_id)
    if not card:
        raise NotFound(f"Card {card_id} not found")
    _ensure_card_usable(card)
    if card.vehicle_id != vehicle_id:
        raise CardVehicleMismatch(f"Card {card.card_number} is not associated with vehicle {vehicle_id}")
    return card


def _card_by_number(db: Session, card_number: str) -> Card:
    card = db.query(Card).filter(Card.card_number == normalize_card_number(card_number)).first()
    if not card:
        raise NotFound(f"Card {card_number} not recognised")
    return card


def entry_payload(entry: Entry) -> dict:
    return EntryOut.model_validate(entry).model_dump(mode="json")


# ── Transactional writes ─────────────────────────────────────────────────────

def _is_active_entry_conflict(exc: IntegrityError) -> bool:
    text = str(exc.orig)
    return ACTIVE_ENTRY_INDEX in text or "entries.vehicle_id" in text


def _open_entry(db: Session, parking: Parking, vehicle: Vehicle, card: Optional[Card],
                entry_time: datetime, sensor_id: Optional[str] = None) -> tuple[Entry, int]:
    """INSERT entry + take one place, one commit."""
    entry = Entry(
        parking_id=parking.id,
        vehicle_id=vehicle.id,
        card_id=card.id if card else None,
        entry_time=entry_time,
        status=IN_PROGRESS,
        sensor_id=sensor_id,
        created_at=datetime.utcnow(),
    )
    try:
        available = capacity_ledger.decrement(db, parking.id)
        db.add(entry)
        db.flush()
        db.commit()
    except ParkingServiceError:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        if _is_active_entry_conflict(e):
            raise DuplicateActiveEntry(f"Vehicle {vehicle.plate_number} is already inside a parking")
        logger.error(f"Entry creation failed for vehicle {vehicle.id}: {e}", exc_info=True)
        raise TransactionFailure("Entry could not be recorded, nothing was saved") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Entry creation failed for vehicle {vehicle.id}: {e}", exc_info=True)
        raise TransactionFailure("Entry could not be recorded, nothing was saved") from e

    db.refresh(entry)
    return entry, available


def _finish_entry(db: Session, entry: Entry, values: dict, already_done: ParkingServiceError) -> int:
    """UPDATE entry (only if still IN_PROGRESS) + give one place back, one commit."""
    parking_id = entry.parking_id
    try:
        result = db.execute(
            update(Entry)
            .where(Entry.id == entry.id, Entry.status == IN_PROGRESS)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise already_done
        available = capacity_ledger.increment(db, parking_id)
        db.commit()
    except ParkingServiceError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Closing entry {entry.id} failed: {e}", exc_info=True)
        raise TransactionFailure(f"Entry {entry.id} could not be closed, nothing was saved") from e

    db.refresh(entry)
    return available


async def _announce_entry(db: Session, entry: Entry, available: int):
    await publish_parking_update(entry.parking_id, available)
    await publish_entry_event("entry:created", entry_payload(entry))
    if available == 0:
        message = f"Parking {entry.parking.name} is full"
        await publish_capacity_alert(entry.parking_id, message)
        await raise_alert(db, CAPACITY_FULL, entry.parking_id, message)


async def _bill(db: Session, entry: Entry, exit_time: datetime):
    """Duration, tariff and amount for closing entry at exit_time. Leaves the entry untouched."""
    duration = calculate_duration(entry.entry_time, exit_time)
    try:
        tariff = find_tariff(entry.parking.tariffs, entry.vehicle.vehicle_type, entry.parking_id)
    except TariffNotFound as e:
        await raise_alert(db, TARIFF_MISSING, entry.parking_id, e.message)
        raise
    amount = calculate_amount(duration, tariff.price_per_hour, settings.MINIMUM_BILLABLE_HOURS)
    return duration, amount


async def _close_entry(db: Session, entry: Entry, exit_time: datetime,
                       payment_method: Optional[str]) -> tuple[Entry, int]:
    duration, amount = await _bill(db, entry, exit_time)
    available = _finish_entry(
        db, entry,
        {"exit_time": exit_time, "duration": duration, "amount": amount,
         "status": COMPLETED, "payment_method": payment_method},
        AlreadyCompleted(f"Entry {entry.id} is already closed"),
    )
    logger.info(
        f"Exit recorded: vehicle {entry.vehicle.plate_number} left parking {entry.parking_id} "
        f"after {duration} min. Amount: {amount}"
    )
    await publish_parking_update(entry.parking_id, available)
    await publish_entry_event("entry:completed", entry_payload(entry))
    return entry, available


# ── Staff lane ───────────────────────────────────────────────────────────────

async def create_entry(db: Session, parking_id: int, vehicle_id: int,
                       card_id: Optional[int] = None) -> Entry:
    parking = get_parking(db, parking_id)
    if parking.available_spaces <= 0:
        raise ParkingFull(f"Parking {parking.name} is full. No space available")
    vehicle = get_vehicle(db, vehicle_id)
    _ensure_no_active_entry(db, vehicle)
    card = _validate_card(db, card_id, vehicle_id) if card_id is not None else None

    entry, available = _open_entry(db, parking, vehicle, card, datetime.utcnow())
    logger.info(f"Entry created for vehicle {vehicle.plate_number} in parking {parking.name} "
                f"({available}/{parking.total_capacity} free)")
    await _announce_entry(db, entry, available)
    return entry


async def exit_entry(db: Session, entry_id: int, exit_time: Optional[datetime] = None,
                     payment_method: Optional[str] = None) -> Entry:
    entry = get_entry(db, entry_id)
    if entry.status != IN_PROGRESS:
        raise AlreadyCompleted(f"Entry {entry_id} is already closed")

    exit_at = to_naive_utc(exit_time) or datetime.utcnow()
    entry, _ = await _close_entry(db, entry, exit_at, payment_method)
    return entry


async def cancel_entry(db: Session, entry_id: int) -> Entry:
    """Operator correction of an erroneous entry: frees the place, bills nothing."""
    entry = get_entry(db, entry_id)
    if entry.status != IN_PROGRESS:
        raise AlreadyFinalized(f"Only entries in progress can be cancelled (entry {entry_id} is {entry.status})")

    available = _finish_entry(
        db, entry, {"status": CANCELLED},
        AlreadyFinalized(f"Only entries in progress can be cancelled (entry {entry_id})"),
    )
    logger.info(f"Entry {entry_id} cancelled")
    await publish_parking_update(entry.parking_id, available)
    return entry


# ── Hardware lane ────────────────────────────────────────────────────────────

async def create_auto_entry(db: Session, card_number: str, parking_id: int,
                            sensor_id: Optional[str] = None,
                            timestamp: Optional[datetime] = None) -> HardwareDecision:
    card = _card_by_number(db, card_number)
    _ensure_card_usable(card)
    parking = get_parking(db, parking_id)
    if parking.available_spaces <= 0:
        raise ParkingFull(f"Parking {parking.name} is full")
    vehicle = card.vehicle
    _ensure_no_active_entry(db, vehicle)

    entry_time = to_naive_utc(timestamp) or datetime.utcnow()
    entry, available = _open_entry(db, parking, vehicle, card, entry_time, sensor_id)
    logger.info(f"Automatic entry: {vehicle.plate_number} via card {card_number} "
                f"(sensor={sensor_id}, {available} free)")
    await _announce_entry(db, entry, available)

    return HardwareDecision(
        success=True,
        action=OPEN_BARRIER,
        duration_ms=settings.BARRIER_OPEN_MS,
        message="Entry authorised",
        data={
            "entryId": entry.id,
            "vehicleType": vehicle.vehicle_type,
            "plateNumber": vehicle.plate_number,
            "availableSpaces": available,
        },
    )


async def create_auto_exit(db: Session, card_number: str, parking_id: int,
                           sensor_id: Optional[str] = None,
                           timestamp: Optional[datetime] = None) -> HardwareDecision:
    card = _card_by_number(db, card_number)
    _ensure_card_usable(card)
    vehicle = card.vehicle
    entry = find_active_entry(db, vehicle.id, parking_id)
    if not entry:
        raise NotFound(f"No active entry for vehicle {vehicle.plate_number} in parking {parking_id}")

    exit_at = to_naive_utc(timestamp) or datetime.utcnow()
    entry, available = await _close_entry(db, entry, exit_at, settings.AUTO_PAYMENT_METHOD)
    logger.info(f"Automatic exit: {vehicle.plate_number} via card {card_number} (sensor={sensor_id})")

    return HardwareDecision(
        success=True,
        action=OPEN_BARRIER,
        duration_ms=settings.BARRIER_OPEN_MS,
        message="Exit authorised",
        data={
            "entryId": entry.id,
            "billing": {
                "amount": float(entry.amount),
                "duration": entry.duration,
                "vehicleType": vehicle.vehicle_type,
                "plateNumber": vehicle.plate_number,
            },
            "availableSpaces": available,
        },
    )


# ── Reads ────────────────────────────────────────────────────────────────────

def list_entries(db: Session, page: int = 1, limit: int = 10, status: Optional[str] = None,
                 parking_id: Optional[int] = None, vehicle_id: Optional[int] = None,
                 vehicle_type: Optional[str] = None,
                 start_date: Optional[datetime] = None,
                 end_date: Optional[datetime] = None) -> tuple[list[Entry], int]:
    q = db.query(Entry)
    if status:
        q = q.filter(Entry.status == status)
    if parking_id is not None:
        q = q.filter(Entry.parking_id == parking_id)
    if vehicle_id is not None:
        q = q.filter(Entry.vehicle_id == vehicle_id)
    if vehicle_type:
        q = q.join(Entry.vehicle).filter(Vehicle.vehicle_type == vehicle_type)
    if start_date:
        q = q.filter(Entry.entry_time >= to_naive_utc(start_date))
    if end_date:
        q = q.filter(Entry.entry_time <= to_naive_utc(end_date))

    total = q.count()
    entries = q.order_by(Entry.entry_time.desc()).offset((page - 1) * limit).limit(limit).all()
    return entries, total


def list_active_entries(db: Session, parking_id: Optional[int] = None) -> list[Entry]:
    q = db.query(Entry).filter(Entry.status == IN_PROGRESS)
    if parking_id is not None:
        q = q.filter(Entry.parking_id == parking_id)
    return q.order_by(Entry.entry_time.desc()).all()


def vehicle_history(db: Session, vehicle_id: int, page: int = 1, limit: int = 10) -> tuple[list[Entry], int]:
    get_vehicle(db, vehicle_id)
    return list_entries(db, page=page, limit=limit, vehicle_id=vehicle_id)
