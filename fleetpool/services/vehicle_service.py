# fleetpool/services/vehicle_service.py
"""
Vehicle administration and lookup helpers.
Used by the vehicles router, movement_service and booking_service.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from fleetpool.database import commit
from fleetpool.exceptions import ConflictError, InputError, NotFoundError
from fleetpool.models.booking import Booking
from fleetpool.models.enums import MaintenanceKind, VehicleStatus
from fleetpool.models.vehicle import Vehicle
from fleetpool.schemas.vehicle import VehicleCreate, VehicleUpdate
from fleetpool.services import vehicle_state
from fleetpool.services.booking_service import bookings_for_vehicle, has_future_commitment
from fleetpool.services.checklist import checklist_defaults
from fleetpool.utils.logger import get_logger
from fleetpool.utils.time_utils import utcnow

logger = get_logger(__name__)


def normalize_plate(plate: str) -> str:
    return (plate or "").strip().upper()


def lookup_vehicle_by_plate(db: Session, plate: str):
    """Find a vehicle by plate, case-insensitively. Returns None if not found."""
    return db.query(Vehicle).filter(Vehicle.plate == normalize_plate(plate)).first()


def get_vehicle(db: Session, vehicle_id: int) -> Vehicle:
    vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
    if not vehicle:
        raise NotFoundError(f"Vehicle {vehicle_id} not found")
    return vehicle


def list_vehicles(db: Session, search: Optional[str] = None, status: Optional[str] = None) -> list[Vehicle]:
    q = db.query(Vehicle)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(Vehicle.plate.ilike(pattern), Vehicle.model.ilike(pattern)))
    if status:
        q = q.filter(Vehicle.status == status)
    return q.order_by(Vehicle.model, Vehicle.plate).all()


def annotate(vehicle: Vehicle, bookings: list, now: datetime) -> Vehicle:
    """Attach the display-only commitment flags used by VehicleOut."""
    vehicle.has_future_commitment = has_future_commitment(vehicle, bookings, now)
    vehicle.bookable = (
        vehicle.status != VehicleStatus.MAINTENANCE.value
        and not (vehicle.status == VehicleStatus.IN_USE.value and vehicle.expected_return is None)
    )
    return vehicle


def annotate_all(db: Session, vehicles: list[Vehicle], now: Optional[datetime] = None) -> list[Vehicle]:
    now = now or utcnow()
    upcoming = db.query(Booking).filter(Booking.end > now).all()
    for v in vehicles:
        annotate(v, upcoming, now)
    return vehicles


def add_vehicle(db: Session, body: VehicleCreate, now: Optional[datetime] = None) -> Vehicle:
    now = now or utcnow()
    plate = normalize_plate(body.plate)
    if lookup_vehicle_by_plate(db, plate):
        raise InputError(f"Plate {plate} already registered")
    vehicle = Vehicle(
        model=body.model.strip(),
        plate=plate,
        km=body.km,
        fuel=body.fuel,
        status=VehicleStatus.AVAILABLE.value,
        damages=[],
        damage_photos=[],
        missing_checklist=[],
        created_at=now,
        updated_at=now,
    )
    db.add(vehicle)
    commit(db, "vehicle")
    logger.info(f"[VEHICLE] added {plate} ({vehicle.model}) km={vehicle.km}")
    return vehicle


def update_vehicle(db: Session, vehicle_id: int, body: VehicleUpdate, now: Optional[datetime] = None) -> Vehicle:
    vehicle = get_vehicle(db, vehicle_id)
    if body.plate is not None:
        plate = normalize_plate(body.plate)
        other = lookup_vehicle_by_plate(db, plate)
        if other and other.id != vehicle.id:
            raise InputError(f"Plate {plate} already registered")
        vehicle.plate = plate
    if body.model is not None:
        vehicle.model = body.model.strip()
    if body.km is not None:
        vehicle.km = body.km
    vehicle.updated_at = now or utcnow()
    commit(db, "vehicle")
    logger.info(f"[VEHICLE] updated {vehicle.plate}")
    return vehicle


def delete_vehicle(db: Session, vehicle_id: int) -> Vehicle:
    """Remove a vehicle and its bookings. Refused while in use or under maintenance."""
    vehicle = get_vehicle(db, vehicle_id)
    status = vehicle_state.read_status(vehicle)
    if not isinstance(status, vehicle_state.Available):
        raise ConflictError(f"Vehicle {vehicle.plate} cannot be deleted: it is {vehicle_state.describe(status)}")
    bookings = bookings_for_vehicle(db, vehicle.id)
    for booking in bookings:
        db.delete(booking)
    db.delete(vehicle)
    commit(db, "vehicle deletion")
    logger.warning(f"[VEHICLE] deleted {vehicle.plate} with {len(bookings)} bookings")
    return vehicle


def checkout_form_defaults(db: Session, vehicle_id: int, now: Optional[datetime] = None) -> dict:
    """Pre-fill for the next checkout: odometer, fuel, checklist with missing items unticked."""
    now = now or utcnow()
    vehicle = get_vehicle(db, vehicle_id)
    upcoming = [b for b in bookings_for_vehicle(db, vehicle.id) if b.end > now]
    return {
        "vehicle_id": vehicle.id,
        "plate": vehicle.plate,
        "model": vehicle.model,
        "km": vehicle.km,
        "fuel": vehicle.fuel,
        "checklist": checklist_defaults(vehicle.missing_checklist),
        "missing_checklist": list(vehicle.missing_checklist or []),
        "damages": list(vehicle.damages or []),
        "damage_photo_count": len(vehicle.damage_photos or []),
        "expected_return_required": bool(upcoming),
        "next_booking_id": upcoming[0].id if upcoming else None,
    }


def start_maintenance(db: Session, vehicle_id: int, kind: MaintenanceKind,
                      now: Optional[datetime] = None) -> Vehicle:
    vehicle = get_vehicle(db, vehicle_id)
    vehicle_state.start_maintenance(vehicle, kind, now or utcnow())
    commit(db, "vehicle status")
    return vehicle


def end_maintenance(db: Session, vehicle_id: int, kind: MaintenanceKind,
                    now: Optional[datetime] = None) -> Vehicle:
    vehicle = get_vehicle(db, vehicle_id)
    vehicle_state.end_maintenance(vehicle, kind, now or utcnow())
    commit(db, "vehicle status")
    return vehicle


def fleet_summary(db: Session, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    vehicles = db.query(Vehicle).all()
    return {
        "total": len(vehicles),
        "available": sum(1 for v in vehicles if v.status == VehicleStatus.AVAILABLE.value),
        "in_use": sum(1 for v in vehicles if v.status == VehicleStatus.IN_USE.value),
        "under_repair": sum(1 for v in vehicles if v.is_under_repair),
        "under_maintenance": sum(1 for v in vehicles if v.is_under_maintenance),
        "overdue_returns": sum(
            1 for v in vehicles
            if v.status == VehicleStatus.IN_USE.value and v.expected_return is not None and v.expected_return < now
        ),
    }
