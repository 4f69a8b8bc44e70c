# app/services/alert_service.py
"""
Operator alerts: parking reached zero free places, exit blocked by a missing
tariff, ledger drift corrected by a reconciliation.

Alerts are written after the lifecycle transaction has committed, in their own
commit. raise_alert() swallows DB errors (logged) so a failed alert never
reaches the caller of a lifecycle operation.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.alert import Alert
from app.utils.logger import get_logger

logger = get_logger(__name__)

CAPACITY_FULL = "capacity_full"
TARIFF_MISSING = "tariff_missing"
LEDGER_DRIFT = "ledger_drift"


async def create_alert(db: Session, alert_type: str, parking_id: Optional[int], description: str) -> Alert:
    """Create and persist an alert record. Always commits immediately."""
    alert = Alert(alert_type=alert_type, parking_id=parking_id, description=description,
                  is_resolved=0, triggered_at=datetime.utcnow())
    db.add(alert)
    db.commit()
    logger.warning(f"[ALERT][{alert_type.upper()}] {description}")
    return alert


async def raise_alert(db: Session, alert_type: str, parking_id: Optional[int], description: str):
    try:
        await create_alert(db, alert_type, parking_id, description)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[ALERT] Could not persist {alert_type} alert for parking {parking_id}: {e}")


def resolve_alert(db: Session, alert: Alert) -> Alert:
    alert.is_resolved = 1
    alert.resolved_at = datetime.utcnow()
    db.commit()
    return alert
