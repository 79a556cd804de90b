# fleetpool/services/sequence_service.py
"""
Trip identifier sequence.

One counter row per sequence name. Each call increments it inside a single
transaction with UPDATE ... SET count = count + 1 and reads the new value back
before committing, so concurrent checkouts serialise on the row lock and never
see the same number. The row is created on first use (count starts at 0).

If the transaction keeps failing the caller still gets an identifier: a
clearly-marked, time-derived fallback ("ERR-<epoch ms>") that the operator must
reconcile by hand. Checkout is never blocked by the counter.
"""

import time
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from fleetpool.config import settings
from fleetpool.models.counter import Counter
from fleetpool.utils.logger import get_logger

logger = get_logger(__name__)


def format_trip_id(value: int) -> str:
    return str(value).zfill(settings.TRIP_ID_WIDTH)


def fallback_trip_id() -> str:
    return f"{settings.FALLBACK_TRIP_ID_PREFIX}{int(time.time() * 1000)}"


def is_fallback_trip_id(trip_id) -> bool:
    return bool(trip_id) and str(trip_id).startswith(settings.FALLBACK_TRIP_ID_PREFIX)


def _increment(db: Session, name: str) -> int:
    updated = (
        db.query(Counter)
        .filter(Counter.name == name)
        .update({Counter.count: Counter.count + 1}, synchronize_session=False)
    )
    if not updated:
        db.add(Counter(name=name, count=1))
        db.flush()
        return 1
    return db.query(Counter.count).filter(Counter.name == name).scalar()


def next_trip_id(db: Session, name: str = None) -> str:
    """Mint the next trip id, e.g. "00007". Falls back to ERR-<ms> if the store fails."""
    name = name or settings.TRIP_COUNTER_NAME
    for attempt in range(1, settings.COUNTER_MAX_RETRIES + 1):
        try:
            value = _increment(db, name)
            db.commit()
            trip_id = format_trip_id(value)
            logger.info(f"[TRIP-ID] minted #{trip_id}")
            return trip_id
        except (IntegrityError, OperationalError) as e:
            db.rollback()
            logger.warning(f"[TRIP-ID] counter contention on attempt {attempt}: {e}")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"[TRIP-ID] counter transaction failed: {e}", exc_info=True)
            break

    trip_id = fallback_trip_id()
    logger.error(f"[TRIP-ID] using fallback id {trip_id} — manual reconciliation needed")
    return trip_id


def current_value(db: Session, name: str = None) -> int:
    name = name or settings.TRIP_COUNTER_NAME
    return db.query(Counter.count).filter(Counter.name == name).scalar() or 0
