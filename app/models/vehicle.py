# app/models/vehicle.py
"""
Registered vehicles table.
A vehicle can hold several RFID cards; deletion is refused while it is parked.
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from app.database import Base


class VehicleType(str, enum.Enum):
    MOTO = "MOTO"
    VOITURE = "VOITURE"
    CAMION = "CAMION"
    AUTRE = "AUTRE"


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plate_number = Column(String(50), unique=True, nullable=False, index=True)
    vehicle_type = Column(String(20), nullable=False)
    brand = Column(String(100))
    model = Column(String(100))
    color = Column(String(50))
    created_at = Column(DateTime)

    cards = relationship("Card", back_populates="vehicle", cascade="all, delete-orphan")
    entries = relationship("Entry", back_populates="vehicle", cascade="all, delete")

    def __repr__(self):
        return f"<Vehicle {self.plate_number} type={self.vehicle_type}>"
