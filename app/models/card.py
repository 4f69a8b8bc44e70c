# app/models/card.py
"""RFID cards. A deactivated card authorises neither entry nor exit."""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base


class Card(Base):
    __tablename__ = "cards"

    id = Column(Integer, primary_key=True, autoincrement=True)
    card_number = Column(String(50), unique=True, nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime)

    vehicle = relationship("Vehicle", back_populates="cards")

    def __repr__(self):
        return f"<Card {self.card_number} vehicle={self.vehicle_id} active={self.is_active}>"
