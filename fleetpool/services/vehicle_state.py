# fleetpool/services/vehicle_state.py
"""
Vehicle lifecycle state machine.

    available ──checkout──▶ in_use ──checkin──▶ available
    available ──start repair / start service──▶ maintenance{kind}
    maintenance{kind} ──end <same kind>──▶ available

The stored columns (status, maintenance_kind, driver, ...) are only read and
written through read_status() / write_status(), which map them to a tagged
variant: Available | InUse(...) | Maintenance(kind). A vehicle can therefore
never be in use and under maintenance at once, nor under repair and service.

Functions here touch only the Vehicle object passed in; committing is the
caller's job. ensure_* functions raise before anything is modified.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Union

from fleetpool.exceptions import ConflictError, InputError
from fleetpool.models.enums import MaintenanceKind, VehicleStatus
from fleetpool.services import damage_ledger
from fleetpool.services.checklist import missing_items
from fleetpool.services.conflict_detector import check_conflict
from fleetpool.utils.logger import get_logger
from fleetpool.utils.time_utils import fmt

logger = get_logger(__name__)

MAINTENANCE_LABELS = {
    MaintenanceKind.REPAIR: "repair",
    MaintenanceKind.SERVICE: "maintenance",
}


@dataclass(frozen=True)
class Available:
    pass


@dataclass(frozen=True)
class InUse:
    driver: str
    commessa: Optional[str] = None
    trip_id: Optional[str] = None
    expected_return: Optional[datetime] = None
    booking_id: Optional[int] = None


@dataclass(frozen=True)
class Maintenance:
    kind: MaintenanceKind

    @property
    def label(self) -> str:
        return MAINTENANCE_LABELS[self.kind]


Status = Union[Available, InUse, Maintenance]


def read_status(vehicle) -> Status:
    if vehicle.status == VehicleStatus.IN_USE.value:
        return InUse(
            driver=vehicle.driver,
            commessa=vehicle.commessa,
            trip_id=vehicle.current_trip_id,
            expected_return=vehicle.expected_return,
            booking_id=vehicle.current_booking_id,
        )
    if vehicle.status == VehicleStatus.MAINTENANCE.value:
        return Maintenance(MaintenanceKind(vehicle.maintenance_kind or MaintenanceKind.SERVICE.value))
    return Available()


def write_status(vehicle, status: Status, now: Optional[datetime] = None) -> None:
    in_use = status if isinstance(status, InUse) else None
    if isinstance(status, InUse):
        vehicle.status = VehicleStatus.IN_USE.value
    elif isinstance(status, Maintenance):
        vehicle.status = VehicleStatus.MAINTENANCE.value
    else:
        vehicle.status = VehicleStatus.AVAILABLE.value
    vehicle.maintenance_kind = status.kind.value if isinstance(status, Maintenance) else None
    vehicle.driver = in_use.driver if in_use else None
    vehicle.commessa = in_use.commessa if in_use else None
    vehicle.current_trip_id = in_use.trip_id if in_use else None
    vehicle.expected_return = in_use.expected_return if in_use else None
    vehicle.current_booking_id = in_use.booking_id if in_use else None
    if now is not None:
        vehicle.updated_at = now


def describe(status: Status) -> str:
    if isinstance(status, InUse):
        return f"checked out to {status.driver} (trip #{status.trip_id or 'N/A'})"
    if isinstance(status, Maintenance):
        return f"under {status.label}"
    return "available"


# ── Checkout ─────────────────────────────────────────────────────────────────

def ensure_can_checkout(vehicle, bookings: Iterable, now: datetime,
                        expected_return: Optional[datetime] = None,
                        booking_id: Optional[int] = None,
                        km: Optional[int] = None) -> None:
    status = read_status(vehicle)
    if not isinstance(status, Available):
        raise ConflictError(f"Vehicle {vehicle.plate} cannot be checked out: it is {describe(status)}")

    if km is not None and km < vehicle.km:
        raise ConflictError(f"Odometer {km} km is below the current reading of {vehicle.km} km")

    own = [b for b in bookings if b.vehicle_id == vehicle.id]
    if booking_id is not None and not any(b.id == booking_id for b in own):
        raise InputError(f"Booking {booking_id} is not a reservation for vehicle {vehicle.plate}")

    if expected_return is not None and expected_return <= now:
        raise InputError(f"Expected return {fmt(expected_return)} must be in the future")

    upcoming = sorted((b for b in own if b.end > now), key=lambda b: (b.start, b.id))
    if upcoming and upcoming[0].id != booking_id and upcoming[0].start <= now:
        overdue = upcoming[0]
        raise ConflictError(
            f"Booking for {overdue.driver} started on {fmt(overdue.start)} and has not been picked up: "
            f"edit or cancel it before checking out {vehicle.plate}"
        )

    others = [b for b in upcoming if b.id != booking_id]
    if not others:
        return
    if expected_return is None:
        nxt = others[0]
        raise ConflictError(
            f"Vehicle {vehicle.plate} is booked by {nxt.driver} from {fmt(nxt.start)}: "
            f"an expected return is required"
        )
    reason = check_conflict(vehicle.id, now, expected_return, others)
    if reason:
        raise ConflictError(reason.message, reason)


def apply_checkout(vehicle, driver: str, now: datetime, trip_id: Optional[str],
                   commessa: Optional[str] = None, expected_return: Optional[datetime] = None,
                   booking_id: Optional[int] = None, km: Optional[int] = None,
                   fuel: Optional[str] = None) -> None:
    write_status(vehicle, InUse(driver=driver, commessa=commessa, trip_id=trip_id,
                                expected_return=expected_return, booking_id=booking_id), now)
    if km is not None:
        vehicle.km = km
    if fuel:
        vehicle.fuel = fuel
    logger.info(f"[CHECKOUT] {vehicle.plate} → {driver} trip=#{trip_id} "
                f"return={fmt(expected_return)} booking={booking_id}")


# ── Checkin ──────────────────────────────────────────────────────────────────

def ensure_can_checkin(vehicle, km: int) -> None:
    status = read_status(vehicle)
    if not isinstance(status, InUse):
        raise ConflictError(f"Vehicle {vehicle.plate} cannot be checked in: it is {describe(status)}")
    if km < vehicle.km:
        raise ConflictError(f"Odometer {km} km is below the checkout reading of {vehicle.km} km")


def apply_checkin(vehicle, km: int, now: datetime, checklist: Optional[dict] = None,
                  fuel: Optional[str] = None) -> Optional[int]:
    """Return the vehicle to the pool. Returns the fulfilled booking id, if any."""
    status = read_status(vehicle)
    bound_booking_id = status.booking_id if isinstance(status, InUse) else None

    write_status(vehicle, Available(), now)
    vehicle.km = km
    if fuel:
        vehicle.fuel = fuel
    vehicle.missing_checklist = missing_items(checklist)
    logger.info(f"[CHECKIN] {vehicle.plate} km={km} missing={vehicle.missing_checklist}")
    return bound_booking_id


# ── Maintenance / repair ─────────────────────────────────────────────────────

def start_maintenance(vehicle, kind: MaintenanceKind, now: datetime) -> None:
    kind = MaintenanceKind(kind)
    status = read_status(vehicle)
    if not isinstance(status, Available):
        raise ConflictError(
            f"Vehicle {vehicle.plate} cannot start {MAINTENANCE_LABELS[kind]}: it is {describe(status)}"
        )
    write_status(vehicle, Maintenance(kind), now)
    logger.info(f"[MAINTENANCE] {vehicle.plate} start {MAINTENANCE_LABELS[kind]}")


def end_maintenance(vehicle, kind: MaintenanceKind, now: datetime) -> None:
    """End the active sub-flow. Completing a repair clears damages and missing equipment."""
    kind = MaintenanceKind(kind)
    status = read_status(vehicle)
    if not isinstance(status, Maintenance):
        raise ConflictError(f"Vehicle {vehicle.plate} is not under {MAINTENANCE_LABELS[kind]}: it is {describe(status)}")
    if status.kind != kind:
        raise ConflictError(
            f"Vehicle {vehicle.plate} is under {status.label}, not {MAINTENANCE_LABELS[kind]}: "
            f"end the {status.label} instead"
        )

    if kind == MaintenanceKind.REPAIR:
        damage_ledger.clear(vehicle)
        vehicle.missing_checklist = []
        vehicle.repaired_at = now
    write_status(vehicle, Available(), now)
    logger.info(f"[MAINTENANCE] {vehicle.plate} end {status.label}")
