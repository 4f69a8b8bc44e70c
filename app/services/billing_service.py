# app/services/billing_service.py
"""
Billing reads over closed entries.
Amounts are only ever written by the exit path in entry_service; this module
reads them back, checks them, and aggregates them for reports.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import EntryNotBillable, NotFound
from app.models.entry import Entry, EntryStatus
from app.services.tariff_service import find_tariff
from app.utils.billing import calculate_amount, calculate_duration, to_naive_utc
from app.utils.logger import get_logger

logger = get_logger(__name__)


def validate_billing(entry: Entry) -> Entry:
    """Raise EntryNotBillable unless entry is COMPLETED with exit time, duration and amount set."""
    if entry.status != EntryStatus.COMPLETED.value:
        raise EntryNotBillable(f"Entry {entry.id} is {entry.status}, only completed entries are billed")
    if entry.exit_time is None:
        raise EntryNotBillable(f"Entry {entry.id} has no exit time")
    if entry.duration is None or entry.duration < 0:
        raise EntryNotBillable(f"Entry {entry.id} has an invalid duration")
    if entry.amount is None or entry.amount < 0:
        raise EntryNotBillable(f"Entry {entry.id} has an invalid amount")
    return entry


def get_billing(db: Session, entry_id: int) -> Entry:
    entry = db.get(Entry, entry_id)
    if not entry:
        raise NotFound(f"Entry {entry_id} not found")
    return validate_billing(entry)


def billing_details(entry: Entry, now: Optional[datetime] = None) -> dict:
    """
    Stored duration and amount for a closed entry. For an IN_PROGRESS entry,
    what the vehicle would pay if it left at `now` (server clock by default).
    """
    if entry.status != EntryStatus.IN_PROGRESS.value:
        return {
            "entry_id": entry.id,
            "status": entry.status,
            "entry_time": entry.entry_time,
            "exit_time": entry.exit_time,
            "duration": entry.duration,
            "amount": entry.amount,
            "is_estimate": False,
        }

    now = to_naive_utc(now) or datetime.utcnow()
    # reader clocks may run ahead of the server's
    duration = calculate_duration(entry.entry_time, max(now, entry.entry_time))
    tariff = find_tariff(entry.parking.tariffs, entry.vehicle.vehicle_type, entry.parking_id)
    amount = calculate_amount(duration, tariff.price_per_hour, settings.MINIMUM_BILLABLE_HOURS)
    return {
        "entry_id": entry.id,
        "status": entry.status,
        "entry_time": entry.entry_time,
        "exit_time": None,
        "duration": duration,
        "amount": amount,
        "is_estimate": True,
    }


def _as_float(value) -> float:
    return float(value) if value is not None else 0.0


def billing_history(db: Session, page: int = 1, limit: int = 10,
                    start_date: Optional[datetime] = None,
                    end_date: Optional[datetime] = None,
                    parking_id: Optional[int] = None,
                    min_amount: Optional[float] = None,
                    max_amount: Optional[float] = None) -> tuple[list[Entry], int, dict]:
    """Completed entries, newest exit first, with totals over the whole filtered set."""
    q = db.query(Entry).filter(Entry.status == EntryStatus.COMPLETED.value)
    if start_date:
        q = q.filter(Entry.exit_time >= to_naive_utc(start_date))
    if end_date:
        q = q.filter(Entry.exit_time <= to_naive_utc(end_date))
    if parking_id is not None:
        q = q.filter(Entry.parking_id == parking_id)
    if min_amount is not None:
        q = q.filter(Entry.amount >= Decimal(str(min_amount)))
    if max_amount is not None:
        q = q.filter(Entry.amount <= Decimal(str(max_amount)))

    total = q.count()
    entries = q.order_by(Entry.exit_time.desc()).offset((page - 1) * limit).limit(limit).all()

    count, amount_sum, amount_avg, amount_min, amount_max = q.with_entities(
        func.count(Entry.id),
        func.sum(Entry.amount),
        func.avg(Entry.amount),
        func.min(Entry.amount),
        func.max(Entry.amount),
    ).one()
    summary = {
        "total_amount": _as_float(amount_sum),
        "average_amount": round(_as_float(amount_avg), 2),
        "min_amount": _as_float(amount_min),
        "max_amount": _as_float(amount_max),
        "count": count,
    }
    logger.debug(f"Billing history: {count} completed entries, total {summary['total_amount']}")
    return entries, total, summary
