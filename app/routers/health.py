# app/routers/health.py
"""
System health check endpoint.
Reports the database, the capacity ledger and the connected dashboards.
A ledger drift degrades the status but does not fail the check.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from app.database import get_db
from app.services import capacity_ledger
from app.services import notifier
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "ledger": {"parkings": 0, "drifting": []},
        "realtime_clients": notifier.connected_clients(),
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
        report = capacity_ledger.audit(db)
    except SQLAlchemyError as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"
        return result

    drifting = [item.parking_id for item in report if not item.consistent]
    result["ledger"] = {"parkings": len(report), "drifting": drifting}
    if drifting:
        result["status"] = "degraded"
    return result
