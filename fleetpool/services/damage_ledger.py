# fleetpool/services/damage_ledger.py
"""
Per-vehicle persistent damage ledger.

Entries are appended at checkout/checkin and survive across trips. Nothing is
removed individually; clear() is called only when a repair is completed.
Lists are always reassigned (never mutated in place) so SQLAlchemy sees the
JSON column change.
"""

import copy
from typing import Optional

from fleetpool.utils.logger import get_logger

logger = get_logger(__name__)


def entries(vehicle) -> list:
    return list(vehicle.damages or [])


def append_damage(vehicle, trip_id: Optional[str], description: Optional[str],
                  photos: Optional[list] = None) -> bool:
    """
    Record a damage report. Empty description with no photos is not recorded.
    Returns True when the ledger changed.
    """
    text = (description or "").strip()
    photos = list(photos or [])
    if not text and not photos:
        return False

    vehicle.damages = entries(vehicle) + [{"trip_id": trip_id, "description": text}]
    if photos:
        vehicle.damage_photos = list(vehicle.damage_photos or []) + photos
    logger.info(f"[DAMAGE] {vehicle.plate} trip={trip_id}: {text or '(photos only)'} (+{len(photos)} photos)")
    return True


def replace_trip_damage(vehicle, trip_id: Optional[str], old: Optional[str], new: Optional[str]) -> bool:
    """
    Swap one record reported on a trip for its revised description (log entry revision).
    A non-empty old description that is no longer in the ledger is left out: the
    record was cleared by a repair and must not come back. Returns True when changed.
    """
    records = entries(vehicle)
    old_text = (old or "").strip()
    new_text = (new or "").strip()
    if old_text:
        for i, record in enumerate(records):
            if record.get("trip_id") == trip_id and record.get("description") == old_text:
                del records[i]
                break
        else:
            logger.info(f"[DAMAGE] {vehicle.plate} trip={trip_id}: '{old_text}' no longer in ledger, revision not applied")
            return False
    if new_text:
        records.append({"trip_id": trip_id, "description": new_text})
    vehicle.damages = records
    return True


def snapshot(vehicle) -> list:
    """Independent copy of the ledger, stored on every log entry."""
    return copy.deepcopy(entries(vehicle))


def clear(vehicle) -> None:
    cleared = len(entries(vehicle))
    vehicle.damages = []
    vehicle.damage_photos = []
    logger.info(f"[DAMAGE] {vehicle.plate} ledger cleared ({cleared} records)")
