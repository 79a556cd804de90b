# fleetpool/utils/time_utils.py
"""
Timestamp helpers. All timestamps are stored and compared as naive UTC.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.utcnow()


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC. Naive values are assumed UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def fmt(value: Optional[datetime]) -> str:
    """Human-readable timestamp for operator messages."""
    return value.strftime("%d/%m/%Y %H:%M") if value else "n/a"
