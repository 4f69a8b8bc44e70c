"""Shared fixtures: in-memory SQLite database, seeded parking, recorded Socket.IO emits."""

import sys
import os
import tempfile
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Must be set before app.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["HARDWARE_API_KEY"] = "test-hardware-key"
os.environ["API_KEY"] = ""
os.environ["MINIMUM_BILLABLE_HOURS"] = "0"
os.environ["LOG_DIR"] = os.path.join(tempfile.gettempdir(), "parking-test-logs")

import pytest
from unittest.mock import patch
from datetime import datetime
from decimal import Decimal
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, create_tables, get_db
from app.models.card import Card
from app.models.entry import Entry, EntryStatus
from app.models.parking import Parking, Tariff
from app.models.vehicle import Vehicle
from app.services.notifier import sio

HARDWARE_HEADERS = {"X-API-Key": "test-hardware-key"}


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    create_tables(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient
    from app.main import app

    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    # No context manager: the startup hook would create tables on the module engine
    yield TestClient(app)
    app.dependency_overrides.clear()


class EmitRecorder:
    """Stands in for sio.emit and keeps what would have gone out."""

    def __init__(self, fail=False):
        self.fail = fail
        self.messages = []

    async def __call__(self, event, data=None, to=None, room=None, **kwargs):
        if self.fail:
            raise RuntimeError("transport closed")
        self.messages.append({"event": event, "data": data, "to": to or room})

    def events(self):
        return [m["event"] for m in self.messages]


@pytest.fixture
def dashboard():
    recorder = EmitRecorder()
    with patch.object(sio, "emit", new=recorder):
        yield recorder


# ── Data builders ────────────────────────────────────────────────────────────

def make_parking(db, total=10, available=None, name="Central", tariffs=None):
    now = datetime.utcnow()
    parking = Parking(name=name, total_capacity=total,
                      available_spaces=total if available is None else available,
                      created_at=now, updated_at=now)
    db.add(parking)
    db.flush()
    for vehicle_type, price in (tariffs if tariffs is not None else {"VOITURE": 1000}).items():
        db.add(Tariff(parking_id=parking.id, vehicle_type=vehicle_type,
                      price_per_hour=Decimal(str(price)), created_at=now))
    db.commit()
    db.refresh(parking)
    return parking


def make_vehicle(db, plate="AB-123-CD", vehicle_type="VOITURE"):
    vehicle = Vehicle(plate_number=plate, vehicle_type=vehicle_type, created_at=datetime.utcnow())
    db.add(vehicle)
    db.commit()
    db.refresh(vehicle)
    return vehicle


def make_card(db, vehicle, number="CARD0001", active=True):
    card = Card(card_number=number, vehicle_id=vehicle.id, is_active=active, created_at=datetime.utcnow())
    db.add(card)
    db.commit()
    db.refresh(card)
    return card


def active_count(db, parking_id):
    return (
        db.query(Entry)
        .filter(Entry.parking_id == parking_id, Entry.status == EntryStatus.IN_PROGRESS.value)
        .count()
    )


def assert_ledger_consistent(db, parking_id):
    db.expire_all()
    parking = db.get(Parking, parking_id)
    assert parking.available_spaces + active_count(db, parking_id) == parking.total_capacity
