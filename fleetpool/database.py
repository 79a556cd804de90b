# fleetpool/database.py
"""
Database connection, session management, and table creation.
Uses SQLAlchemy; PostgreSQL in production, SQLite for local runs and tests.
Every collection (vehicles, trip_logs, bookings, counters, alerts) is one table.
"""

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import Session, sessionmaker
from fleetpool.config import settings
from fleetpool.exceptions import StoreError
from fleetpool.utils.logger import get_logger

logger = get_logger(__name__)


def _engine_options() -> dict:
    if settings.is_sqlite:
        # SQLite connections are shared across FastAPI's threadpool
        return {"connect_args": {"check_same_thread": False}, "echo": False}
    return {
        "pool_pre_ping": True,       # Auto-reconnect if DB connection drops
        "pool_size": 10,
        "max_overflow": 20,
        "echo": False,               # Set True to log all SQL queries (debug only)
    }


engine = create_engine(settings.DATABASE_URL, **_engine_options())

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency — yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from fleetpool.models.vehicle import Vehicle      # noqa
    from fleetpool.models.booking import Booking      # noqa
    from fleetpool.models.trip_log import TripLog     # noqa
    from fleetpool.models.counter import Counter      # noqa
    from fleetpool.models.alert import Alert          # noqa

    Base.metadata.create_all(bind=bind or engine)


def commit(db: Session, action: str):
    """Commit one document-level write. Rolls back and raises StoreError on failure."""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[DB] {action} failed: {e}", exc_info=True)
        raise StoreError(f"Could not save {action}, please retry") from e
