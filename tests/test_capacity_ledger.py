"""Capacity ledger against a real (SQLite) database."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime
from app.errors import CapacityBelowOccupancy, NotFound, ParkingFull
from app.models.entry import Entry
from app.models.parking import Parking
from app.services import capacity_ledger
from conftest import make_parking, make_vehicle


def _park(db, parking, vehicle):
    db.add(Entry(parking_id=parking.id, vehicle_id=vehicle.id, entry_time=datetime.utcnow(),
                 status="IN_PROGRESS", created_at=datetime.utcnow()))


class TestDecrement:
    def test_takes_one_place(self, db):
        parking = make_parking(db, total=10)
        assert capacity_ledger.decrement(db, parking.id) == 9
        db.commit()
        db.refresh(parking)
        assert parking.available_spaces == 9

    def test_full_parking_refused_and_unchanged(self, db):
        parking = make_parking(db, total=3, available=0)
        with pytest.raises(ParkingFull):
            capacity_ledger.decrement(db, parking.id)
        db.rollback()
        db.refresh(parking)
        assert parking.available_spaces == 0

    def test_last_place_only_once(self, db):
        parking = make_parking(db, total=5, available=1)
        assert capacity_ledger.decrement(db, parking.id) == 0
        with pytest.raises(ParkingFull):
            capacity_ledger.decrement(db, parking.id)

    def test_rollback_restores_counter(self, db):
        parking = make_parking(db, total=5)
        capacity_ledger.decrement(db, parking.id)
        db.rollback()
        db.refresh(parking)
        assert parking.available_spaces == 5


class TestIncrement:
    def test_gives_one_place_back(self, db):
        parking = make_parking(db, total=10, available=4)
        assert capacity_ledger.increment(db, parking.id) == 5

    def test_clamped_at_total_capacity(self, db):
        parking = make_parking(db, total=10)
        assert capacity_ledger.increment(db, parking.id) == 10
        db.commit()
        db.refresh(parking)
        assert parking.available_spaces == 10


class TestResize:
    def test_keeps_occupied_places(self, db):
        parking = make_parking(db, total=10, available=7)
        assert capacity_ledger.resize(db, parking, 20) == 17
        db.commit()
        assert parking.total_capacity == 20
        assert parking.available_spaces == 17

    def test_shrink_to_occupancy_allowed(self, db):
        parking = make_parking(db, total=10, available=7)
        assert capacity_ledger.resize(db, parking, 3) == 0

    def test_below_occupancy_rejected(self, db):
        parking = make_parking(db, total=10, available=7)
        with pytest.raises(CapacityBelowOccupancy):
            capacity_ledger.resize(db, parking, 2)
        db.rollback()
        db.refresh(parking)
        assert (parking.total_capacity, parking.available_spaces) == (10, 7)


class TestAudit:
    def test_consistent_parking(self, db):
        parking = make_parking(db, total=10, available=9)
        _park(db, parking, make_vehicle(db))
        db.commit()
        [report] = capacity_ledger.audit(db, parking.id)
        assert report.consistent
        assert report.active_entries == 1
        assert report.expected_available == 9

    def test_drift_detected(self, db):
        parking = make_parking(db, total=10, available=10)
        _park(db, parking, make_vehicle(db))
        db.commit()
        [report] = capacity_ledger.audit(db, parking.id)
        assert not report.consistent
        assert report.drift == 1

    def test_all_parkings(self, db):
        make_parking(db, name="A")
        make_parking(db, name="B", total=4, available=1)
        report = capacity_ledger.audit(db)
        assert [r.consistent for r in report] == [True, False]

    def test_unknown_parking(self, db):
        with pytest.raises(NotFound):
            capacity_ledger.audit(db, 999)

    def test_reconcile_overwrites_counter(self, db):
        parking = make_parking(db, total=10, available=2)
        _park(db, parking, make_vehicle(db))
        db.commit()
        before, after = capacity_ledger.reconcile(db, parking.id)
        assert before.drift == -7
        assert after.consistent
        assert db.get(Parking, parking.id).available_spaces == 9
