# app/models/entry.py
"""
Entries table: one parking session per row.
IN_PROGRESS -> COMPLETED (exit) | CANCELLED (operator correction), both terminal.

uq_entries_vehicle_in_progress is a partial unique index: at most one
IN_PROGRESS row per vehicle, whatever the application-side check saw.
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from app.database import Base


class EntryStatus(str, enum.Enum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Entry(Base):
    __tablename__ = "entries"
    __table_args__ = (
        Index(
            "uq_entries_vehicle_in_progress",
            "vehicle_id",
            unique=True,
            postgresql_where=text("status = 'IN_PROGRESS'"),
            sqlite_where=text("status = 'IN_PROGRESS'"),
        ),
        Index("ix_entries_parking_status", "parking_id", "status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    parking_id = Column(Integer, ForeignKey("parkings.id", ondelete="CASCADE"), nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    card_id = Column(Integer, ForeignKey("cards.id", ondelete="SET NULL"))
    entry_time = Column(DateTime, nullable=False, index=True)
    exit_time = Column(DateTime)
    duration = Column(Integer)                 # minutes, set on exit
    amount = Column(Numeric(12, 2))            # set on exit, never on cancel
    status = Column(String(20), nullable=False, default=EntryStatus.IN_PROGRESS.value)
    payment_method = Column(String(50))
    sensor_id = Column(String(100))            # hardware lane only
    created_at = Column(DateTime)

    parking = relationship("Parking", back_populates="entries")
    vehicle = relationship("Vehicle", back_populates="entries")
    card = relationship("Card")

    def __repr__(self):
        return f"<Entry {self.id} vehicle={self.vehicle_id} parking={self.parking_id} {self.status}>"
