# fleetpool/schemas/fields.py
"""Reusable input checks for request schemas. Raise ValueError so pydantic reports a 422."""

from datetime import datetime
from typing import Optional

from fleetpool.services.checklist import CHECKLIST_IDS, FUEL_LEVELS
from fleetpool.utils.time_utils import as_naive_utc


def required_text(value: Optional[str], label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{label} is required")
    return value


def optional_text(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def fuel_level(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in FUEL_LEVELS:
        raise ValueError(f"Fuel level must be one of {', '.join(FUEL_LEVELS)}")
    return value


def checklist(value: Optional[dict]) -> dict:
    value = value or {}
    unknown = sorted(set(value) - set(CHECKLIST_IDS))
    if unknown:
        raise ValueError(f"Unknown checklist items: {', '.join(unknown)}")
    return value


def timestamp(value: Optional[datetime]) -> Optional[datetime]:
    return as_naive_utc(value)
