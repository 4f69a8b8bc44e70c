# app/models/parking.py
"""
Parkings and their per-vehicle-type tariffs.
available_spaces is a denormalised counter of free places; only
app/services/capacity_ledger.py writes it.
"""

from sqlalchemy import (Column, Integer, String, DateTime, Text, Numeric, ForeignKey,
                        CheckConstraint, UniqueConstraint)
from sqlalchemy.orm import relationship
from app.database import Base


class Parking(Base):
    __tablename__ = "parkings"
    __table_args__ = (
        CheckConstraint("total_capacity > 0", name="ck_parkings_capacity_positive"),
        CheckConstraint("available_spaces >= 0", name="ck_parkings_available_non_negative"),
        CheckConstraint("available_spaces <= total_capacity", name="ck_parkings_available_le_capacity"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    total_capacity = Column(Integer, nullable=False)
    available_spaces = Column(Integer, nullable=False)
    location = Column(String(255))
    description = Column(Text)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    tariffs = relationship("Tariff", back_populates="parking", cascade="all, delete-orphan",
                           lazy="selectin")
    entries = relationship("Entry", back_populates="parking", cascade="all, delete")

    @property
    def occupied_spaces(self) -> int:
        return self.total_capacity - self.available_spaces

    def __repr__(self):
        return f"<Parking {self.id} {self.name} {self.available_spaces}/{self.total_capacity}>"


class Tariff(Base):
    __tablename__ = "tariffs"
    __table_args__ = (
        UniqueConstraint("parking_id", "vehicle_type", name="uq_tariffs_parking_vehicle_type"),
        CheckConstraint("price_per_hour >= 0", name="ck_tariffs_price_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    parking_id = Column(Integer, ForeignKey("parkings.id", ondelete="CASCADE"), nullable=False, index=True)
    vehicle_type = Column(String(20), nullable=False)   # MOTO | VOITURE | CAMION | AUTRE
    price_per_hour = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime)

    parking = relationship("Parking", back_populates="tariffs")

    def __repr__(self):
        return f"<Tariff parking={self.parking_id} {self.vehicle_type}={self.price_per_hour}/h>"
