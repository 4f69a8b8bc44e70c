# app/services/capacity_ledger.py
"""
Capacity ledger: Parking.available_spaces and the only code allowed to move it.

  decrement()  on entry creation        UPDATE ... WHERE available_spaces > 0
  increment()  on exit / cancellation   UPDATE ... WHERE available_spaces < total_capacity
  resize()     admin capacity edit      UPDATE ... WHERE occupied <= new capacity

Each statement is conditional, so two requests racing for the last place cannot
both win, and none of them commits: the caller commits the counter change
together with the Entry write.

audit()/reconcile() recompute total_capacity - count(IN_PROGRESS). reconcile()
is the one path that overwrites the counter instead of moving it by one.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.errors import CapacityBelowOccupancy, NotFound, ParkingFull
from app.models.entry import Entry, EntryStatus
from app.models.parking import Parking
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class LedgerAudit:
    parking_id: int
    total_capacity: int
    available_spaces: int
    active_entries: int

    @property
    def expected_available(self) -> int:
        return self.total_capacity - self.active_entries

    @property
    def drift(self) -> int:
        return self.available_spaces - self.expected_available

    @property
    def consistent(self) -> bool:
        return self.drift == 0

    def as_dict(self) -> dict:
        return {
            "parking_id": self.parking_id,
            "total_capacity": self.total_capacity,
            "available_spaces": self.available_spaces,
            "active_entries": self.active_entries,
            "expected_available": self.expected_available,
            "drift": self.drift,
            "consistent": self.consistent,
        }


def _current_available(db: Session, parking_id: int) -> int:
    return db.execute(
        select(Parking.available_spaces).where(Parking.id == parking_id)
    ).scalar_one()


def decrement(db: Session, parking_id: int) -> int:
    """Take one place. Raises ParkingFull when none is left. Returns the new count."""
    result = db.execute(
        update(Parking)
        .where(Parking.id == parking_id, Parking.available_spaces > 0)
        .values(available_spaces=Parking.available_spaces - 1, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise ParkingFull(f"Parking {parking_id} is full. No space available")
    return _current_available(db, parking_id)


def increment(db: Session, parking_id: int) -> int:
    """Give one place back, never above total_capacity. Returns the new count."""
    result = db.execute(
        update(Parking)
        .where(Parking.id == parking_id, Parking.available_spaces < Parking.total_capacity)
        .values(available_spaces=Parking.available_spaces + 1, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.warning(
            f"[LEDGER] Parking {parking_id} already has every place free; increment clamped. "
            f"Run the ledger audit."
        )
    return _current_available(db, parking_id)


def resize(db: Session, parking: Parking, new_total_capacity: int) -> int:
    """
    Change total_capacity keeping occupied places occupied:
    available = new_total - (old_total - old_available).
    Raises CapacityBelowOccupancy when more vehicles are inside than the new capacity.
    Does not commit.
    """
    occupied = parking.total_capacity - parking.available_spaces
    if new_total_capacity < occupied:
        raise CapacityBelowOccupancy(
            f"Cannot reduce capacity to {new_total_capacity}: {occupied} places are currently occupied"
        )

    result = db.execute(
        update(Parking)
        .where(
            Parking.id == parking.id,
            Parking.total_capacity - Parking.available_spaces <= new_total_capacity,
        )
        .values(
            available_spaces=new_total_capacity - (Parking.total_capacity - Parking.available_spaces),
            total_capacity=new_total_capacity,
            updated_at=datetime.utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        # A vehicle entered between the read above and this statement
        db.refresh(parking)
        raise CapacityBelowOccupancy(
            f"Cannot reduce capacity to {new_total_capacity}: "
            f"{parking.total_capacity - parking.available_spaces} places are currently occupied"
        )
    db.expire(parking, ["total_capacity", "available_spaces", "updated_at"])
    logger.info(f"[LEDGER] Parking {parking.id} resized to {new_total_capacity} ({occupied} occupied)")
    return _current_available(db, parking.id)


def audit(db: Session, parking_id: Optional[int] = None) -> list[LedgerAudit]:
    active = (
        select(Entry.parking_id, func.count(Entry.id).label("active"))
        .where(Entry.status == EntryStatus.IN_PROGRESS.value)
        .group_by(Entry.parking_id)
        .subquery()
    )
    q = (
        select(Parking.id, Parking.total_capacity, Parking.available_spaces,
               func.coalesce(active.c.active, 0))
        .outerjoin(active, active.c.parking_id == Parking.id)
        .order_by(Parking.id)
    )
    if parking_id is not None:
        q = q.where(Parking.id == parking_id)

    rows = db.execute(q).all()
    if parking_id is not None and not rows:
        raise NotFound(f"Parking {parking_id} not found")

    report = [LedgerAudit(pid, total, available, int(count)) for pid, total, available, count in rows]
    for item in report:
        if not item.consistent:
            logger.warning(
                f"[LEDGER] Drift on parking {item.parking_id}: available={item.available_spaces} "
                f"expected={item.expected_available} ({item.active_entries} vehicles inside)"
            )
    return report


def reconcile(db: Session, parking_id: int) -> tuple[LedgerAudit, LedgerAudit]:
    """Overwrite available_spaces with the recomputed value. Commits. Returns (before, after)."""
    before = audit(db, parking_id)[0]
    if before.consistent:
        return before, before

    expected = max(0, min(before.total_capacity, before.expected_available))
    db.execute(
        update(Parking)
        .where(Parking.id == parking_id)
        .values(available_spaces=expected, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    db.commit()
    after = audit(db, parking_id)[0]
    logger.warning(
        f"[LEDGER] Parking {parking_id} reconciled: {before.available_spaces} -> {after.available_spaces}"
    )
    return before, after
