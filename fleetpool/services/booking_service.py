# fleetpool/services/booking_service.py
"""
Reservation store.

Bookings are created, edited (re-validated against every other booking and the
vehicle's current trip) and deleted here. checkin deletes the booking it
fulfils through delete_booking().

has_future_commitment() drives two things: whether a vehicle is shown as
bookable, and whether checkout must ask for an expected return.
"""

from datetime import datetime
from typing import Iterable, Optional
from sqlalchemy.orm import Session
from fleetpool.database import commit
from fleetpool.exceptions import ConflictError, InputError, NotFoundError
from fleetpool.models.booking import Booking
from fleetpool.models.enums import VehicleStatus
from fleetpool.models.vehicle import Vehicle
from fleetpool.schemas.booking import BookingCreate, BookingUpdate
from fleetpool.services.conflict_detector import INVALID_WINDOW, check_conflict
from fleetpool.utils.logger import get_logger
from fleetpool.utils.time_utils import fmt, utcnow

logger = get_logger(__name__)


def get_booking(db: Session, booking_id: int) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise NotFoundError(f"Booking {booking_id} not found")
    return booking


def bookings_for_vehicle(db: Session, vehicle_id: int) -> list[Booking]:
    """Snapshot of a vehicle's bookings, ordered by pickup."""
    return (
        db.query(Booking)
        .filter(Booking.vehicle_id == vehicle_id)
        .order_by(Booking.start, Booking.id)
        .all()
    )


def list_bookings(db: Session, vehicle_id: Optional[int] = None, upcoming_only: bool = False,
                  now: Optional[datetime] = None) -> list[Booking]:
    q = db.query(Booking)
    if vehicle_id is not None:
        q = q.filter(Booking.vehicle_id == vehicle_id)
    if upcoming_only:
        q = q.filter(Booking.end > (now or utcnow()))
    return q.order_by(Booking.start, Booking.id).all()


def has_future_commitment(vehicle, bookings: Iterable, now: datetime) -> bool:
    """True if any booking ends after now, or the vehicle is out and not yet due back."""
    if vehicle.status == VehicleStatus.IN_USE.value:
        if vehicle.expected_return is None or vehicle.expected_return > now:
            return True
    return any(b.vehicle_id == vehicle.id and b.end > now for b in bookings)


def find_conflict(vehicle, start: datetime, end: datetime, bookings: Iterable,
                  exclude_booking_id: Optional[int] = None):
    return check_conflict(
        vehicle.id, start, end, bookings,
        exclude_booking_id=exclude_booking_id,
        vehicle_status=vehicle.status,
        current_expected_return=vehicle.expected_return,
        bound_booking_id=vehicle.current_booking_id,
    )


def _ensure_free(vehicle, start, end, bookings, now, exclude_booking_id=None):
    if end <= now:
        raise InputError(f"Booking must end in the future (end {fmt(end)})")
    reason = find_conflict(vehicle, start, end, bookings, exclude_booking_id)
    if reason is None:
        return
    logger.warning(f"[BOOKING] rejected for {vehicle.plate}: {reason.message}")
    if reason.kind == INVALID_WINDOW:
        raise InputError(reason.message)
    raise ConflictError(reason.message, reason)


def _vehicle(db: Session, vehicle_id: int) -> Vehicle:
    vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
    if not vehicle:
        raise NotFoundError(f"Vehicle {vehicle_id} not found")
    return vehicle


def create_booking(db: Session, body: BookingCreate, now: Optional[datetime] = None) -> Booking:
    now = now or utcnow()
    vehicle = _vehicle(db, body.vehicle_id)
    _ensure_free(vehicle, body.start, body.end, bookings_for_vehicle(db, vehicle.id), now)

    booking = Booking(
        vehicle_id=vehicle.id,
        driver=body.driver,
        commessa=body.commessa,
        start=body.start,
        end=body.end,
        created_at=now,
        updated_at=now,
    )
    db.add(booking)
    commit(db, "booking")
    logger.info(f"[BOOKING] {vehicle.plate} booked by {body.driver} {fmt(body.start)} → {fmt(body.end)}")
    return booking


def update_booking(db: Session, booking_id: int, body: BookingUpdate,
                   now: Optional[datetime] = None) -> Booking:
    now = now or utcnow()
    booking = get_booking(db, booking_id)
    vehicle = _vehicle(db, booking.vehicle_id)
    start = body.start or booking.start
    end = body.end or booking.end
    _ensure_free(vehicle, start, end, bookings_for_vehicle(db, vehicle.id), now,
                 exclude_booking_id=booking.id)

    booking.start = start
    booking.end = end
    if body.driver is not None:
        booking.driver = body.driver
    if body.commessa is not None:
        booking.commessa = body.commessa.strip() or None
    booking.updated_at = now
    commit(db, "booking")
    logger.info(f"[BOOKING] {booking_id} for {vehicle.plate} moved to {fmt(start)} → {fmt(end)}")
    return booking


def delete_booking(db: Session, booking_id: int) -> None:
    booking = get_booking(db, booking_id)
    db.delete(booking)
    commit(db, "booking deletion")
    logger.info(f"[BOOKING] {booking_id} deleted (driver={booking.driver})")
