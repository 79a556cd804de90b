# fleetpool/services/conflict_detector.py
"""
Reservation conflict detection.

check_conflict() decides whether [new_start, new_end) is free for a vehicle,
given a snapshot of bookings and the vehicle's current commitment. It is used
when a booking is created or edited and when a vehicle is checked out.

Pure: no database access, no clock. The caller loads the snapshot once and
passes it in, so the same inputs always give the same answer.

Rules, first match wins:
  1. new_start >= new_end                  → invalid window
  2. overlap with another booking          → new_start < b.end and new_end > b.start
                                             (touching endpoints are fine)
  3. vehicle in use                        → its expected return is an implicit
                                             booking ending then; with no expected
                                             return every window conflicts
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from fleetpool.models.enums import VehicleStatus
from fleetpool.utils.time_utils import fmt

INVALID_WINDOW = "invalid_window"
BOOKING_OVERLAP = "booking_overlap"
VEHICLE_IN_USE = "vehicle_in_use"


@dataclass(frozen=True)
class ConflictReason:
    kind: str
    message: str
    booking_id: Optional[int] = None
    driver: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval overlap."""
    return a_start < b_end and a_end > b_start


def check_conflict(
    vehicle_id: int,
    new_start: datetime,
    new_end: datetime,
    bookings: Iterable,
    exclude_booking_id: Optional[int] = None,
    vehicle_status: Optional[str] = None,
    current_expected_return: Optional[datetime] = None,
    bound_booking_id: Optional[int] = None,
) -> Optional[ConflictReason]:
    """
    Return the first reason [new_start, new_end) cannot be used, or None.

    bookings            — any objects with id, vehicle_id, driver, start, end
    exclude_booking_id  — the booking being edited or fulfilled
    bound_booking_id    — booking fulfilled by the vehicle's open trip; editing it
                          is not blocked by the trip's own commitment
    """
    if new_start >= new_end:
        return ConflictReason(
            kind=INVALID_WINDOW,
            message=f"Invalid window: start {fmt(new_start)} is not before end {fmt(new_end)}",
            start=new_start,
            end=new_end,
        )

    for booking in bookings:
        if booking.vehicle_id != vehicle_id:
            continue
        if exclude_booking_id is not None and booking.id == exclude_booking_id:
            continue
        if overlaps(new_start, new_end, booking.start, booking.end):
            return ConflictReason(
                kind=BOOKING_OVERLAP,
                message=(f"Vehicle already booked by {booking.driver} "
                         f"from {fmt(booking.start)} to {fmt(booking.end)}"),
                booking_id=booking.id,
                driver=booking.driver,
                start=booking.start,
                end=booking.end,
            )

    if _status_value(vehicle_status) == VehicleStatus.IN_USE.value:
        if exclude_booking_id is not None and exclude_booking_id == bound_booking_id:
            return None
        if current_expected_return is None:
            return ConflictReason(
                kind=VEHICLE_IN_USE,
                message="Vehicle is in use with no expected return: set a return date before booking it",
            )
        if current_expected_return > new_start:
            return ConflictReason(
                kind=VEHICLE_IN_USE,
                message=f"Vehicle is in use until {fmt(current_expected_return)}",
                end=current_expected_return,
            )

    return None


def _status_value(status) -> Optional[str]:
    return status.value if isinstance(status, VehicleStatus) else status
