# fleetpool/routers/logs.py
"""Trip history — read-only for exports, plus signed revisions and admin deletions."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from fleetpool.database import get_db
from fleetpool.schemas.trip_log import LogRevision, TripLogOut, TripOut
from fleetpool.services import trip_recorder

router = APIRouter()


@router.get("/logs", response_model=list[TripLogOut], summary="Movement log, newest first")
def list_logs(search: Optional[str] = None, vehicle_id: Optional[int] = None, limit: int = 50,
              db: Session = Depends(get_db)):
    """search matches driver or plate."""
    return trip_recorder.list_logs(db, search=search, vehicle_id=vehicle_id, limit=limit)


@router.get("/logs/{log_id}", response_model=TripLogOut)
def get_log(log_id: int, db: Session = Depends(get_db)):
    return trip_recorder.get_log(db, log_id)


@router.put("/logs/{log_id}", response_model=TripLogOut, summary="Revise a log entry (signature required)")
def revise_log(log_id: int, body: LogRevision, db: Session = Depends(get_db)):
    return trip_recorder.revise_log_entry(db, log_id, body)


@router.delete("/logs/{log_id}", summary="Delete one log entry")
def delete_log(log_id: int, db: Session = Depends(get_db)):
    """Does not change the vehicle's current state."""
    entry = trip_recorder.delete_log_entry(db, log_id)
    return {"id": log_id, "trip_id": entry.trip_id, "status": "deleted"}


@router.get("/trips", response_model=list[TripOut], summary="Trips grouped from checkout/checkin pairs")
def list_trips(search: Optional[str] = None, db: Session = Depends(get_db)):
    return trip_recorder.list_trips(db, search=search)


@router.delete("/trips/{trip_id}", summary="Delete a whole trip")
def delete_trip(trip_id: str, db: Session = Depends(get_db)):
    """Removes both checkout and checkin entries. Does not change the vehicle's current state."""
    deleted = trip_recorder.delete_trip(db, trip_id)
    return {"trip_id": trip_id, "deleted_entries": deleted, "status": "deleted"}
