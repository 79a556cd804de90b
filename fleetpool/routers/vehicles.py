# fleetpool/routers/vehicles.py
"""Vehicle pool — CRUD, plate lookup, checkout form pre-fill, maintenance and repair."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from fleetpool.database import get_db
from fleetpool.schemas.vehicle import (
    CheckoutFormDefaults, FleetSummaryOut, MaintenanceAction, VehicleCreate, VehicleOut, VehicleUpdate,
)
from fleetpool.services import vehicle_service

router = APIRouter()


@router.get("/vehicles", response_model=list[VehicleOut], summary="List pool vehicles")
def list_vehicles(search: Optional[str] = None, status: Optional[str] = None, db: Session = Depends(get_db)):
    """Filter by plate/model substring or by status (available | in_use | maintenance)."""
    vehicles = vehicle_service.list_vehicles(db, search=search, status=status)
    return vehicle_service.annotate_all(db, vehicles)


@router.get("/vehicles/summary", response_model=FleetSummaryOut, summary="Dashboard counters")
def fleet_summary(db: Session = Depends(get_db)):
    return vehicle_service.fleet_summary(db)


@router.post("/vehicles", response_model=VehicleOut, status_code=201, summary="Add a vehicle to the pool")
def add_vehicle(body: VehicleCreate, db: Session = Depends(get_db)):
    vehicle = vehicle_service.add_vehicle(db, body)
    return vehicle_service.annotate_all(db, [vehicle])[0]


@router.get("/vehicles/lookup/{plate}", summary="Look up a plate number")
def lookup_vehicle(plate: str, db: Session = Depends(get_db)):
    vehicle = vehicle_service.lookup_vehicle_by_plate(db, plate)
    if not vehicle:
        return {"plate": vehicle_service.normalize_plate(plate), "registered": False}
    return {"plate": vehicle.plate, "registered": True, "id": vehicle.id,
            "model": vehicle.model, "status": vehicle.status}


@router.get("/vehicles/{vehicle_id}", response_model=VehicleOut)
def get_vehicle(vehicle_id: int, db: Session = Depends(get_db)):
    vehicle = vehicle_service.get_vehicle(db, vehicle_id)
    return vehicle_service.annotate_all(db, [vehicle])[0]


@router.put("/vehicles/{vehicle_id}", response_model=VehicleOut, summary="Edit model, plate or odometer")
def update_vehicle(vehicle_id: int, body: VehicleUpdate, db: Session = Depends(get_db)):
    vehicle = vehicle_service.update_vehicle(db, vehicle_id, body)
    return vehicle_service.annotate_all(db, [vehicle])[0]


@router.delete("/vehicles/{vehicle_id}", summary="Remove a vehicle")
def remove_vehicle(vehicle_id: int, db: Session = Depends(get_db)):
    vehicle = vehicle_service.delete_vehicle(db, vehicle_id)
    return {"status": "removed", "plate": vehicle.plate}


@router.get("/vehicles/{vehicle_id}/checkout-form", response_model=CheckoutFormDefaults,
            summary="Pre-fill for the next checkout")
def checkout_form(vehicle_id: int, db: Session = Depends(get_db)):
    """Checklist items missing at the last checkin come back unticked."""
    return vehicle_service.checkout_form_defaults(db, vehicle_id)


@router.post("/vehicles/{vehicle_id}/maintenance/start", response_model=VehicleOut,
             summary="Send an available vehicle to repair or routine service")
def start_maintenance(vehicle_id: int, body: MaintenanceAction, db: Session = Depends(get_db)):
    vehicle = vehicle_service.start_maintenance(db, vehicle_id, body.kind)
    return vehicle_service.annotate_all(db, [vehicle])[0]


@router.post("/vehicles/{vehicle_id}/maintenance/end", response_model=VehicleOut,
             summary="End repair (clears damages) or routine service")
def end_maintenance(vehicle_id: int, body: MaintenanceAction, db: Session = Depends(get_db)):
    vehicle = vehicle_service.end_maintenance(db, vehicle_id, body.kind)
    return vehicle_service.annotate_all(db, [vehicle])[0]
