# fleetpool/routers/movements.py
"""Checkout / checkin endpoints. Each call records one signed log entry."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from fleetpool.database import get_db
from fleetpool.schemas.trip_log import CheckinForm, CheckoutForm, MovementResult
from fleetpool.services.movement_service import handle_checkin, handle_checkout

router = APIRouter()


@router.post("/vehicles/{vehicle_id}/checkout", response_model=MovementResult, status_code=201,
             summary="Hand a vehicle out")
async def checkout(vehicle_id: int, body: CheckoutForm, db: Session = Depends(get_db)):
    """
    Rejected with 409 when the vehicle is not available, a booking is overdue,
    or the expected return collides with a booking.
    degraded_trip_id=true means the trip id is a fallback to be reconciled.
    """
    return await handle_checkout(db, vehicle_id, body)


@router.post("/vehicles/{vehicle_id}/checkin", response_model=MovementResult, status_code=201,
             summary="Take a vehicle back")
async def checkin(vehicle_id: int, body: CheckinForm, db: Session = Depends(get_db)):
    """Rejected with 409 when the odometer is below the checkout reading."""
    return await handle_checkin(db, vehicle_id, body)
