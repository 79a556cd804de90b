# tests/test_sequence_service.py
"""Unit tests for the trip id sequence."""

import pytest
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from fleetpool.config import settings
from fleetpool.database import create_tables
from fleetpool.services.sequence_service import (
    current_value, format_trip_id, is_fallback_trip_id, next_trip_id,
)


class TestTripIdSequence:
    def test_fresh_counter_starts_at_one(self, db):
        assert next_trip_id(db) == "00001"

    def test_monotonic_zero_padded(self, db):
        ids = [next_trip_id(db) for _ in range(3)]
        assert ids == ["00001", "00002", "00003"]
        assert current_value(db) == 3

    def test_format_width(self):
        assert format_trip_id(7) == "00007"
        assert format_trip_id(123456) == "123456"

    def test_independent_counters(self, db):
        next_trip_id(db)
        assert next_trip_id(db, name="other") == "00001"

    def test_concurrent_calls_yield_contiguous_run(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'counter.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        create_tables(bind=engine)
        Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

        def mint(_):
            session = Session()
            try:
                return next_trip_id(session)
            finally:
                session.close()

        n = 20
        with ThreadPoolExecutor(max_workers=8) as pool:
            ids = list(pool.map(mint, range(n)))
        engine.dispose()

        assert not any(is_fallback_trip_id(i) for i in ids)
        assert sorted(int(i) for i in ids) == list(range(1, n + 1))


class TestFallback:
    def test_contention_retried_then_fallback(self):
        db = MagicMock()
        db.query.side_effect = OperationalError("UPDATE counters", {}, Exception("database is locked"))

        trip_id = next_trip_id(db)

        assert is_fallback_trip_id(trip_id)
        assert trip_id.startswith(settings.FALLBACK_TRIP_ID_PREFIX)
        assert db.rollback.call_count == settings.COUNTER_MAX_RETRIES
        db.commit.assert_not_called()

    def test_store_failure_falls_back_without_retry(self):
        db = MagicMock()
        db.query.side_effect = SQLAlchemyError("connection refused")

        assert is_fallback_trip_id(next_trip_id(db))
        assert db.rollback.call_count == 1

    @pytest.mark.parametrize("value,expected", [("00007", False), ("ERR-1712", True), (None, False)])
    def test_is_fallback(self, value, expected):
        assert is_fallback_trip_id(value) is expected
