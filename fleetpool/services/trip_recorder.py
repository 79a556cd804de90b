# fleetpool/services/trip_recorder.py
"""
Trip log recorder.

Every checkout and checkin appends one TripLog row. Rows are not edited after
the fact except through revise_log_entry(), which needs a fresh signature and,
when the row is the vehicle's most recent one, carries the correction over to
the vehicle's live odometer, fuel and damage ledger.

Deleting an entry or a whole trip is an administrative clean-up: the vehicle's
current state is left as it is.
"""

from collections import OrderedDict
from datetime import datetime
from typing import Optional
from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session
from fleetpool.database import commit
from fleetpool.exceptions import ConflictError, NotFoundError
from fleetpool.models.enums import Movement
from fleetpool.models.trip_log import TripLog
from fleetpool.models.vehicle import Vehicle
from fleetpool.schemas.trip_log import LogRevision
from fleetpool.services import damage_ledger
from fleetpool.services.checklist import missing_items, normalize_checklist
from fleetpool.utils.logger import get_logger
from fleetpool.utils.time_utils import utcnow

logger = get_logger(__name__)

LEGACY_TRIP = "LEGACY"


def build_log_entry(vehicle, movement: Movement, form, trip_id: str, driver: Optional[str],
                    commessa: Optional[str], now: datetime) -> TripLog:
    """Assemble a log row from the vehicle as it stands after the transition."""
    movement = Movement(movement)
    return TripLog(
        trip_id=trip_id,
        movement=movement.value,
        vehicle_id=vehicle.id,
        vehicle_model=vehicle.model,
        plate=vehicle.plate,
        driver=driver,
        commessa=commessa,
        event_time=now,
        km=vehicle.km,
        fuel=vehicle.fuel,
        notes=(form.notes or "").strip(),
        damages=(form.damages or "").strip(),
        checklist=normalize_checklist(form.checklist),
        damage_photos=list(form.damage_photos or []),
        photos=list(form.photos or []),
        damage_snapshot=damage_ledger.snapshot(vehicle),
        signature=form.signature,
        expected_return=getattr(form, "expected_return", None) if movement == Movement.CHECKOUT else None,
        created_at=now,
    )


def record_movement(db: Session, vehicle, movement: Movement, form, trip_id: str,
                    driver: Optional[str], commessa: Optional[str],
                    now: Optional[datetime] = None) -> TripLog:
    entry = build_log_entry(vehicle, movement, form, trip_id, driver, commessa, now or utcnow())
    db.add(entry)
    commit(db, f"{entry.movement} log")
    logger.info(f"[LOG] trip=#{trip_id} {entry.movement} {entry.plate} km={entry.km} driver={driver}")
    return entry


def get_log(db: Session, log_id: int) -> TripLog:
    entry = db.query(TripLog).filter(TripLog.id == log_id).first()
    if not entry:
        raise NotFoundError(f"Log entry {log_id} not found")
    return entry


def latest_entry_for_vehicle(db: Session, vehicle_id: int) -> Optional[TripLog]:
    return (
        db.query(TripLog)
        .filter(TripLog.vehicle_id == vehicle_id)
        .order_by(TripLog.event_time.desc(), TripLog.id.desc())
        .first()
    )


def _trip_entry(db: Session, trip_id: str, movement: Movement) -> Optional[TripLog]:
    return (
        db.query(TripLog)
        .filter(TripLog.trip_id == trip_id, TripLog.movement == movement.value)
        .first()
    )


def _previous_checkin_km(db: Session, entry: TripLog) -> Optional[int]:
    """Highest checkin reading recorded for the vehicle on an earlier trip."""
    q = db.query(func.max(TripLog.km)).filter(
        TripLog.vehicle_id == entry.vehicle_id,
        TripLog.movement == Movement.CHECKIN.value,
        TripLog.id != entry.id,
        or_(TripLog.event_time < entry.event_time,
            and_(TripLog.event_time == entry.event_time, TripLog.id < entry.id)),
    )
    if entry.trip_id is not None:
        q = q.filter(or_(TripLog.trip_id.is_(None), TripLog.trip_id != entry.trip_id))
    return q.scalar()


def _ensure_km_consistent(db: Session, entry: TripLog, km: int) -> None:
    floor = _previous_checkin_km(db, entry)
    if floor is not None and km < floor:
        raise ConflictError(f"Odometer {km} km is below the previous checkin reading of {floor} km")
    if entry.movement == Movement.CHECKIN.value:
        checkout = _trip_entry(db, entry.trip_id, Movement.CHECKOUT)
        if checkout and km < checkout.km:
            raise ConflictError(f"Odometer {km} km is below the checkout reading of {checkout.km} km")
    else:
        checkin = _trip_entry(db, entry.trip_id, Movement.CHECKIN)
        if checkin and km > checkin.km:
            raise ConflictError(f"Odometer {km} km is above the checkin reading of {checkin.km} km")


def revise_log_entry(db: Session, log_id: int, body: LogRevision,
                     now: Optional[datetime] = None) -> TripLog:
    now = now or utcnow()
    entry = get_log(db, log_id)
    if body.km is not None:
        _ensure_km_consistent(db, entry, body.km)

    old_damages = entry.damages
    if body.km is not None:
        entry.km = body.km
    if body.fuel is not None:
        entry.fuel = body.fuel
    if body.notes is not None:
        entry.notes = body.notes.strip()
    if body.damages is not None:
        entry.damages = body.damages.strip()
    if body.checklist is not None:
        entry.checklist = normalize_checklist(body.checklist)
    if body.commessa is not None:
        entry.commessa = body.commessa.strip() or None
    entry.signature = body.signature
    entry.revised_at = now

    vehicle = db.query(Vehicle).filter(Vehicle.id == entry.vehicle_id).first()
    latest = latest_entry_for_vehicle(db, entry.vehicle_id) if vehicle else None
    if latest is not None and latest.id == entry.id:
        _reconcile_vehicle(vehicle, entry, body, old_damages, now)

    commit(db, "log revision")
    logger.info(f"[LOG] entry {log_id} (trip=#{entry.trip_id}) revised")
    return entry


def _reconcile_vehicle(vehicle, entry: TripLog, body: LogRevision, old_damages, now) -> None:
    if body.km is not None:
        vehicle.km = body.km
    if body.fuel is not None:
        vehicle.fuel = body.fuel
    # A repair completed after this entry already settled its damages and missing items
    repaired_since = vehicle.repaired_at is not None and vehicle.repaired_at >= entry.event_time
    if body.damages is not None and not repaired_since:
        damage_ledger.replace_trip_damage(vehicle, entry.trip_id, old_damages, body.damages)
        entry.damage_snapshot = damage_ledger.snapshot(vehicle)
    if body.checklist is not None and entry.movement == Movement.CHECKIN.value and not repaired_since:
        vehicle.missing_checklist = missing_items(body.checklist)
    vehicle.updated_at = now
    logger.info(f"[LOG] {vehicle.plate} live state reconciled with revised entry {entry.id}")


def delete_log_entry(db: Session, log_id: int) -> TripLog:
    entry = get_log(db, log_id)
    db.delete(entry)
    commit(db, "log deletion")
    logger.warning(f"[LOG] entry {log_id} (trip=#{entry.trip_id} {entry.movement}) deleted")
    return entry


def delete_trip(db: Session, trip_id: str) -> int:
    entries = db.query(TripLog).filter(TripLog.trip_id == trip_id).all()
    if not entries:
        raise NotFoundError(f"Trip #{trip_id} not found")
    for entry in entries:
        db.delete(entry)
    commit(db, "trip deletion")
    logger.warning(f"[LOG] trip #{trip_id} deleted ({len(entries)} entries)")
    return len(entries)


def list_logs(db: Session, search: Optional[str] = None, vehicle_id: Optional[int] = None,
              limit: Optional[int] = None) -> list[TripLog]:
    q = db.query(TripLog)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(TripLog.driver.ilike(pattern), TripLog.plate.ilike(pattern)))
    if vehicle_id is not None:
        q = q.filter(TripLog.vehicle_id == vehicle_id)
    q = q.order_by(TripLog.event_time.desc(), TripLog.id.desc())
    if limit:
        q = q.limit(limit)
    return q.all()


def list_trips(db: Session, search: Optional[str] = None) -> list[dict]:
    """
    Group log entries by trip id, newest activity first.
    Entries recorded without a trip id are grouped under LEGACY.
    """
    groups: "OrderedDict[str, list[TripLog]]" = OrderedDict()
    for entry in list_logs(db, search=search):
        groups.setdefault(entry.trip_id or LEGACY_TRIP, []).append(entry)

    trips = []
    for trip_id, entries in groups.items():
        entries = sorted(entries, key=lambda e: (e.event_time, e.id))
        first = entries[0]
        trips.append({
            "trip_id": trip_id,
            "is_open": not any(e.movement == Movement.CHECKIN.value for e in entries),
            "plate": first.plate,
            "vehicle_model": first.vehicle_model,
            "driver": first.driver,
            "commessa": first.commessa,
            "started_at": first.event_time,
            "logs": entries,
        })
    return trips
