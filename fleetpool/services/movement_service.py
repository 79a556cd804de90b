# fleetpool/services/movement_service.py
"""
Checkout and checkin flows.

Checkout:
  - load the vehicle and a snapshot of its bookings
  - vehicle_state.ensure_can_checkout (maintenance, overdue booking, conflicts)
  - mint the trip id (fallback id + alert if the counter is unavailable)
  - transition the vehicle, append any reported damage, commit
  - append the checkout log entry

Checkin:
  - vehicle_state.ensure_can_checkin (in use, odometer not going backwards)
  - append any reported damage, transition back to available, commit
  - append the checkin log entry
  - delete the booking the trip fulfilled

Vehicle, log and booking are separate writes. If a later write fails the
earlier ones stay; the operator gets a partial_completion alert.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from fleetpool.database import commit
from fleetpool.exceptions import FleetError, NotFoundError, StoreError
from fleetpool.models.enums import Movement
from fleetpool.schemas.trip_log import CheckinForm, CheckoutForm
from fleetpool.services import damage_ledger, vehicle_state
from fleetpool.services.alert_service import DEGRADED_TRIP_ID, PARTIAL_COMPLETION, create_alert
from fleetpool.services.booking_service import bookings_for_vehicle, delete_booking
from fleetpool.services.sequence_service import is_fallback_trip_id, next_trip_id
from fleetpool.services.trip_recorder import record_movement
from fleetpool.services.vehicle_service import annotate, get_vehicle
from fleetpool.utils.logger import get_logger
from fleetpool.utils.time_utils import utcnow

logger = get_logger(__name__)

NO_TRIP_ID = "N/A"


async def handle_checkout(db: Session, vehicle_id: int, form: CheckoutForm,
                          now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    vehicle = get_vehicle(db, vehicle_id)
    bookings = bookings_for_vehicle(db, vehicle.id)
    try:
        vehicle_state.ensure_can_checkout(
            vehicle, bookings, now,
            expected_return=form.expected_return,
            booking_id=form.booking_id,
            km=form.km,
        )
    except FleetError as e:
        logger.warning(f"[CHECKOUT] rejected for {vehicle.plate}: {e.message}")
        raise

    warnings = []
    trip_id = next_trip_id(db)
    degraded = is_fallback_trip_id(trip_id)
    if degraded:
        msg = f"Trip id counter unavailable: checkout of {vehicle.plate} recorded as #{trip_id}, renumber it by hand"
        warnings.append(msg)
        await create_alert(db, DEGRADED_TRIP_ID, msg, vehicle_id=vehicle.id, trip_id=trip_id)

    vehicle_state.apply_checkout(
        vehicle, form.driver, now, trip_id,
        commessa=form.commessa,
        expected_return=form.expected_return,
        booking_id=form.booking_id,
        km=form.km,
        fuel=form.fuel,
    )
    damage_ledger.append_damage(vehicle, trip_id, form.damages, form.damage_photos)
    commit(db, "vehicle checkout")

    entry = await _record(db, vehicle, Movement.CHECKOUT, form, trip_id, form.driver, form.commessa, now)
    return _result(trip_id, degraded, warnings, entry, annotate(vehicle, bookings, now))


async def handle_checkin(db: Session, vehicle_id: int, form: CheckinForm,
                         now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    vehicle = get_vehicle(db, vehicle_id)
    try:
        vehicle_state.ensure_can_checkin(vehicle, form.km)
    except FleetError as e:
        logger.warning(f"[CHECKIN] rejected for {vehicle.plate}: {e.message}")
        raise

    status = vehicle_state.read_status(vehicle)
    trip_id = status.trip_id or NO_TRIP_ID
    damage_ledger.append_damage(vehicle, trip_id, form.damages, form.damage_photos)
    bound_booking_id = vehicle_state.apply_checkin(vehicle, form.km, now, form.checklist, form.fuel)
    commit(db, "vehicle checkin")

    entry = await _record(db, vehicle, Movement.CHECKIN, form, trip_id, status.driver, status.commessa, now)

    warnings = []
    if bound_booking_id is not None:
        try:
            delete_booking(db, bound_booking_id)
        except NotFoundError:
            logger.info(f"[CHECKIN] fulfilled booking {bound_booking_id} already removed")
        except StoreError:
            msg = (f"Trip #{trip_id} closed but booking {bound_booking_id} for {vehicle.plate} "
                   f"was not removed: delete it by hand")
            warnings.append(msg)
            await create_alert(db, PARTIAL_COMPLETION, msg, vehicle_id=vehicle.id, trip_id=trip_id)

    bookings = bookings_for_vehicle(db, vehicle.id)
    return _result(trip_id, is_fallback_trip_id(trip_id), warnings, entry, annotate(vehicle, bookings, now))


async def _record(db: Session, vehicle, movement: Movement, form, trip_id, driver, commessa, now):
    try:
        return record_movement(db, vehicle, movement, form, trip_id, driver, commessa, now)
    except StoreError:
        await create_alert(
            db, PARTIAL_COMPLETION,
            f"{vehicle.plate} {movement.value} saved but its log entry for trip #{trip_id} was not written",
            vehicle_id=vehicle.id, trip_id=trip_id,
        )
        raise


def _result(trip_id, degraded, warnings, entry, vehicle) -> dict:
    return {
        "trip_id": trip_id,
        "degraded_trip_id": degraded,
        "warnings": warnings,
        "log": entry,
        "vehicle": vehicle,
    }
