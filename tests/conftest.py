# tests/conftest.py
"""Shared fixtures: in-memory SQLite sessions and small builders for vehicles/bookings."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_fleet_pool.db")

import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fleetpool.database import create_tables
from fleetpool.models.booking import Booking
from fleetpool.models.vehicle import Vehicle

# Day 1 08:00, the "now" of every service test
NOW = datetime(2026, 3, 2, 8, 0)
SIGNATURE = "data:image/png;base64,iVBORw0KGgo="


def day(n, hour=0, minute=0):
    """Timestamp on day n of the test calendar (day 1 == NOW's date)."""
    return datetime(2026, 3, 1, hour, minute) + timedelta(days=n)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


def make_vehicle(vid=1, plate="AB123CD", km=10000, status="available", **extra):
    """Transient vehicle for the pure state-machine tests."""
    fields = dict(id=vid, model="Fiat Panda", plate=plate, km=km, fuel="Pieno", status=status,
                  maintenance_kind=None, driver=None, commessa=None, current_trip_id=None,
                  current_booking_id=None, expected_return=None,
                  damages=[], damage_photos=[], missing_checklist=[])
    fields.update(extra)
    return Vehicle(**fields)


def make_booking(bid, start, end, vehicle_id=1, driver="Rossi", commessa=None):
    return Booking(id=bid, vehicle_id=vehicle_id, driver=driver, commessa=commessa, start=start, end=end)


@pytest.fixture
def vehicle(db):
    """Persisted available vehicle, odometer 10000."""
    v = make_vehicle(vid=None)
    db.add(v)
    db.commit()
    return v


@pytest.fixture
def add_booking(db):
    def _add(vehicle_id, start, end, driver="Rossi", commessa=None):
        booking = Booking(vehicle_id=vehicle_id, driver=driver, commessa=commessa,
                          start=start, end=end, created_at=NOW, updated_at=NOW)
        db.add(booking)
        db.commit()
        return booking
    return _add
