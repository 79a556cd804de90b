# fleetpool/routers/bookings.py
"""Reservations — list, create, edit, cancel, and a dry-run conflict check."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from fleetpool.database import get_db
from fleetpool.schemas.booking import BookingCreate, BookingOut, BookingUpdate, ConflictOut, ConflictQuery
from fleetpool.services import booking_service
from fleetpool.services.vehicle_service import get_vehicle

router = APIRouter()


@router.get("/bookings", response_model=list[BookingOut], summary="List bookings")
def list_bookings(vehicle_id: Optional[int] = None, upcoming: bool = True, db: Session = Depends(get_db)):
    """By default only bookings that have not ended yet."""
    return booking_service.list_bookings(db, vehicle_id=vehicle_id, upcoming_only=upcoming)


@router.post("/bookings", response_model=BookingOut, status_code=201, summary="Book a vehicle")
def create_booking(body: BookingCreate, db: Session = Depends(get_db)):
    return booking_service.create_booking(db, body)


@router.post("/bookings/check", response_model=ConflictOut, summary="Check a window without booking")
def check_booking(body: ConflictQuery, db: Session = Depends(get_db)):
    vehicle = get_vehicle(db, body.vehicle_id)
    reason = booking_service.find_conflict(
        vehicle, body.start, body.end,
        booking_service.bookings_for_vehicle(db, vehicle.id),
        exclude_booking_id=body.exclude_booking_id,
    )
    if reason is None:
        return {"conflict": False}
    return {"conflict": True, "kind": reason.kind, "message": reason.message, "booking_id": reason.booking_id,
            "driver": reason.driver, "start": reason.start, "end": reason.end}


@router.get("/bookings/{booking_id}", response_model=BookingOut)
def get_booking(booking_id: int, db: Session = Depends(get_db)):
    return booking_service.get_booking(db, booking_id)


@router.put("/bookings/{booking_id}", response_model=BookingOut, summary="Edit a booking")
def update_booking(booking_id: int, body: BookingUpdate, db: Session = Depends(get_db)):
    return booking_service.update_booking(db, booking_id, body)


@router.delete("/bookings/{booking_id}", summary="Cancel a booking")
def cancel_booking(booking_id: int, db: Session = Depends(get_db)):
    booking_service.delete_booking(db, booking_id)
    return {"id": booking_id, "status": "cancelled"}
