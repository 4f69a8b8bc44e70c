"""Billing reads: single completed entry, running estimate, history with totals."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from app.errors import EntryNotBillable
from app.models.entry import Entry
from app.services import billing_service
from conftest import make_parking, make_vehicle


def _completed(db, parking, vehicle, exit_time, minutes, amount, payment_method="CASH"):
    entry = Entry(parking_id=parking.id, vehicle_id=vehicle.id,
                  entry_time=exit_time - timedelta(minutes=minutes), exit_time=exit_time,
                  duration=minutes, amount=Decimal(str(amount)), status="COMPLETED",
                  payment_method=payment_method, created_at=exit_time - timedelta(minutes=minutes))
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def _in_progress(db, parking, vehicle, entry_time):
    entry = Entry(parking_id=parking.id, vehicle_id=vehicle.id, entry_time=entry_time,
                  status="IN_PROGRESS", created_at=entry_time)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


class TestGetBilling:
    def test_completed_entry(self, client, db):
        parking = make_parking(db)
        vehicle = make_vehicle(db)
        entry = _completed(db, parking, vehicle, datetime(2024, 3, 1, 10, 31), 91, 2000)

        resp = client.get(f"/api/v1/billing/{entry.id}")

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["id"] == entry.id
        assert data["duration"] == 91
        assert data["amount"] == 2000.0
        assert data["payment_method"] == "CASH"
        assert data["parking"]["name"] == "Central"
        assert data["vehicle"]["plate_number"] == "AB-123-CD"
        assert data["vehicle"]["vehicle_type"] == "VOITURE"

    def test_in_progress_entry_refused(self, client, db):
        parking = make_parking(db)
        entry = _in_progress(db, parking, make_vehicle(db), datetime(2024, 3, 1, 9, 0))

        resp = client.get(f"/api/v1/billing/{entry.id}")

        assert resp.status_code == 400
        assert resp.json()["error"] == "EntryNotBillable"

    def test_unknown_entry(self, client):
        resp = client.get("/api/v1/billing/999")
        assert resp.status_code == 404
        assert resp.json()["error"] == "NotFound"


class TestValidateBilling:
    @pytest.mark.parametrize("status", ["IN_PROGRESS", "CANCELLED"])
    def test_only_completed_is_billable(self, status):
        entry = Entry(id=1, status=status, exit_time=datetime(2024, 3, 1, 10, 0),
                      duration=60, amount=Decimal("1000"))
        with pytest.raises(EntryNotBillable):
            billing_service.validate_billing(entry)

    def test_completed_without_amount_refused(self):
        entry = Entry(id=1, status="COMPLETED", exit_time=datetime(2024, 3, 1, 10, 0), duration=60)
        with pytest.raises(EntryNotBillable):
            billing_service.validate_billing(entry)

    def test_completed_entry_passes(self):
        entry = Entry(id=1, status="COMPLETED", exit_time=datetime(2024, 3, 1, 10, 0),
                      duration=0, amount=Decimal("0"))
        assert billing_service.validate_billing(entry) is entry


class TestBillingDetails:
    def test_running_estimate_for_vehicle_inside(self, db):
        parking = make_parking(db, tariffs={"VOITURE": 1000})
        entry = _in_progress(db, parking, make_vehicle(db), datetime(2024, 3, 1, 9, 0))

        details = billing_service.billing_details(entry, now=datetime(2024, 3, 1, 10, 31))

        assert details["is_estimate"] is True
        assert details["duration"] == 91
        assert details["amount"] == Decimal("2000")
        assert details["exit_time"] is None

    def test_stored_values_for_completed_entry(self, client, db):
        parking = make_parking(db)
        entry = _completed(db, parking, make_vehicle(db), datetime(2024, 3, 1, 10, 0), 60, 1000)

        data = client.get(f"/api/v1/billing/{entry.id}/details").json()["data"]

        assert data["is_estimate"] is False
        assert data["amount"] == 1000.0
        assert data["duration"] == 60


class TestBillingHistory:
    def _seed(self, db):
        north = make_parking(db, name="North")
        south = make_parking(db, name="South")
        car = make_vehicle(db)
        _completed(db, north, car, datetime(2024, 3, 1, 12, 0), 60, 1000)
        _completed(db, north, car, datetime(2024, 3, 2, 12, 0), 120, 2000)
        _completed(db, south, car, datetime(2024, 3, 3, 12, 0), 180, 3000)
        _in_progress(db, south, car, datetime(2024, 3, 4, 8, 0))
        return north, south

    def test_history_with_summary(self, client, db):
        self._seed(db)

        resp = client.get("/api/v1/billing/history")

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert [e["amount"] for e in data["entries"]] == [3000.0, 2000.0, 1000.0]
        assert data["pagination"]["total"] == 3
        assert data["summary"] == {"total_amount": 6000.0, "average_amount": 2000.0,
                                   "min_amount": 1000.0, "max_amount": 3000.0, "count": 3}

    def test_summary_covers_all_pages(self, client, db):
        self._seed(db)

        data = client.get("/api/v1/billing/history", params={"page": 2, "limit": 2}).json()["data"]

        assert [e["amount"] for e in data["entries"]] == [1000.0]
        assert data["pagination"]["total_pages"] == 2
        assert data["summary"]["count"] == 3
        assert data["summary"]["total_amount"] == 6000.0

    def test_filters(self, client, db):
        north, _ = self._seed(db)

        by_parking = client.get("/api/v1/billing/history", params={"parkingId": north.id}).json()["data"]
        assert by_parking["summary"]["count"] == 2
        assert by_parking["summary"]["total_amount"] == 3000.0

        by_amount = client.get("/api/v1/billing/history",
                               params={"minAmount": 1500, "maxAmount": 2500}).json()["data"]
        assert [e["amount"] for e in by_amount["entries"]] == [2000.0]

        by_date = client.get("/api/v1/billing/history",
                             params={"startDate": "2024-03-02T00:00:00",
                                     "endDate": "2024-03-02T23:59:59"}).json()["data"]
        assert by_date["summary"]["count"] == 1
        assert by_date["entries"][0]["exit_time"].startswith("2024-03-02")

    def test_empty_history(self, client):
        data = client.get("/api/v1/billing/history").json()["data"]
        assert data["entries"] == []
        assert data["summary"] == {"total_amount": 0.0, "average_amount": 0.0,
                                   "min_amount": 0.0, "max_amount": 0.0, "count": 0}
