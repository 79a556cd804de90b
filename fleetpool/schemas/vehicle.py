# fleetpool/schemas/vehicle.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional

from fleetpool.models.enums import MaintenanceKind
from fleetpool.schemas import fields


class VehicleCreate(BaseModel):
    model: str
    plate: str
    km: int = Field(0, ge=0)
    fuel: str = "Pieno"

    @field_validator("model")
    @classmethod
    def _model(cls, v):
        return fields.required_text(v, "Model")

    @field_validator("plate")
    @classmethod
    def _plate(cls, v):
        return fields.required_text(v, "Plate").upper()

    @field_validator("fuel")
    @classmethod
    def _fuel(cls, v):
        return fields.fuel_level(v)


class VehicleUpdate(BaseModel):
    model: Optional[str] = None
    plate: Optional[str] = None
    km: Optional[int] = Field(None, ge=0)

    @field_validator("model")
    @classmethod
    def _model(cls, v):
        return None if v is None else fields.required_text(v, "Model")

    @field_validator("plate")
    @classmethod
    def _plate(cls, v):
        return None if v is None else fields.required_text(v, "Plate").upper()


class DamageRecord(BaseModel):
    trip_id: Optional[str] = None
    description: str = ""


class VehicleOut(BaseModel):
    id: int
    model: str
    plate: str
    km: int
    fuel: str
    status: str
    maintenance_kind: Optional[str]
    is_under_repair: bool
    is_under_maintenance: bool
    driver: Optional[str]
    commessa: Optional[str]
    current_trip_id: Optional[str]
    current_booking_id: Optional[int]
    expected_return: Optional[datetime]
    damages: list[DamageRecord] = []
    damage_photos: list[str] = []
    missing_checklist: list[str] = []
    repaired_at: Optional[datetime] = None
    has_future_commitment: Optional[bool] = None
    bookable: Optional[bool] = None

    class Config:
        from_attributes = True


class MaintenanceAction(BaseModel):
    kind: MaintenanceKind


class CheckoutFormDefaults(BaseModel):
    vehicle_id: int
    plate: str
    model: str
    km: int
    fuel: str
    checklist: dict[str, bool]
    missing_checklist: list[str]
    damages: list[DamageRecord]
    damage_photo_count: int
    expected_return_required: bool
    next_booking_id: Optional[int] = None


class FleetSummaryOut(BaseModel):
    total: int
    available: int
    in_use: int
    under_repair: int
    under_maintenance: int
    overdue_returns: int
