# app/routers/alerts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.errors import NotFound
from app.models.alert import Alert
from app.schemas.alert import AlertOut
from app.schemas.common import Envelope
from app.services.alert_service import resolve_alert
from typing import Optional

router = APIRouter()


@router.get("/alerts", response_model=Envelope[list[AlertOut]], summary="All alerts, filterable by type")
def get_all_alerts(
    alert_type: Optional[str] = None,
    parking_id: Optional[int] = None,
    is_resolved: Optional[int] = None,
    limit: int = 50,
    db: Session = Depends(get_db)
):
    """Combined alerts endpoint. Filter by alert_type, parking_id or is_resolved."""
    q = db.query(Alert)
    if alert_type:
        q = q.filter(Alert.alert_type == alert_type)
    if parking_id is not None:
        q = q.filter(Alert.parking_id == parking_id)
    if is_resolved is not None:
        q = q.filter(Alert.is_resolved == is_resolved)
    return {"success": True, "data": q.order_by(Alert.triggered_at.desc()).limit(limit).all()}


@router.put("/alerts/{alert_id}/resolve", response_model=Envelope[AlertOut], summary="Mark an alert as handled")
def resolve(alert_id: int, db: Session = Depends(get_db)):
    alert = db.get(Alert, alert_id)
    if not alert:
        raise NotFound(f"Alert {alert_id} not found")
    return {"success": True, "message": "Alert resolved", "data": resolve_alert(db, alert)}
