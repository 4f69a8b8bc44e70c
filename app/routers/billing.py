# app/routers/billing.py
"""Billing reads: one completed entry, running estimate, and the paginated history with totals."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.schemas.billing import BillingDetails, BillingHistory, BillingOut
from app.schemas.common import Envelope, paginate
from app.services import billing_service, entry_service

router = APIRouter()


# Declared before /billing/{entry_id} so "history" is not parsed as an id
@router.get("/billing/history", response_model=Envelope[BillingHistory],
            summary="Completed entries with amount totals")
def billing_history(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    parking_id: Optional[int] = Query(None, alias="parkingId"),
    min_amount: Optional[float] = Query(None, alias="minAmount", ge=0),
    max_amount: Optional[float] = Query(None, alias="maxAmount", ge=0),
    db: Session = Depends(get_db),
):
    entries, total, summary = billing_service.billing_history(
        db, page=page, limit=limit, start_date=start_date, end_date=end_date,
        parking_id=parking_id, min_amount=min_amount, max_amount=max_amount,
    )
    return {"success": True, "data": {
        "entries": entries, "pagination": paginate(total, page, limit), "summary": summary}}


@router.get("/billing/{entry_id}", response_model=Envelope[BillingOut],
            summary="Billing of a completed entry")
def get_billing(entry_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": billing_service.get_billing(db, entry_id)}


@router.get("/billing/{entry_id}/details", response_model=Envelope[BillingDetails],
            summary="Stored billing, or the amount due so far for a vehicle still inside")
def billing_details(entry_id: int, db: Session = Depends(get_db)):
    entry = entry_service.get_entry(db, entry_id)
    return {"success": True, "data": billing_service.billing_details(entry)}
