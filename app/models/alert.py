# app/models/alert.py
"""
Alerts table: operator-facing record of capacity and billing problems
(parking full, missing tariff at exit, ledger drift found by the audit).
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from app.database import Base


class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    alert_type = Column(String(50), nullable=False, index=True)   # capacity_full | tariff_missing | ledger_drift
    parking_id = Column(Integer, ForeignKey("parkings.id", ondelete="CASCADE"), index=True)
    description = Column(Text)
    is_resolved = Column(Integer, default=0, nullable=False)
    triggered_at = Column(DateTime, nullable=False, index=True)
    resolved_at = Column(DateTime)

    def __repr__(self):
        return f"<Alert {self.id} type={self.alert_type} resolved={self.is_resolved}>"
