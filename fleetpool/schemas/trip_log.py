# fleetpool/schemas/trip_log.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional

from fleetpool.schemas import fields
from fleetpool.schemas.vehicle import DamageRecord, VehicleOut


class _MovementForm(BaseModel):
    fuel: Optional[str] = None
    notes: str = ""
    damages: str = ""                       # new damage description
    checklist: dict[str, bool] = {}
    damage_photos: list[str] = []
    photos: list[str] = []
    signature: str

    @field_validator("fuel")
    @classmethod
    def _fuel(cls, v):
        return fields.fuel_level(v)

    @field_validator("checklist")
    @classmethod
    def _checklist(cls, v):
        return fields.checklist(v)

    @field_validator("signature")
    @classmethod
    def _signature(cls, v):
        return fields.required_text(v, "Signature")


class CheckoutForm(_MovementForm):
    driver: str
    commessa: Optional[str] = None
    km: Optional[int] = Field(None, ge=0)   # defaults to the vehicle's odometer
    expected_return: Optional[datetime] = None
    booking_id: Optional[int] = None        # reservation being fulfilled

    @field_validator("driver")
    @classmethod
    def _driver(cls, v):
        return fields.required_text(v, "Driver name")

    @field_validator("commessa")
    @classmethod
    def _commessa(cls, v):
        return fields.optional_text(v)

    @field_validator("expected_return")
    @classmethod
    def _utc(cls, v):
        return fields.timestamp(v)


class CheckinForm(_MovementForm):
    km: int = Field(..., ge=0)


class LogRevision(BaseModel):
    """Correction of a recorded movement. A fresh signature is mandatory."""
    signature: str
    km: Optional[int] = Field(None, ge=0)
    fuel: Optional[str] = None
    notes: Optional[str] = None
    damages: Optional[str] = None
    checklist: Optional[dict[str, bool]] = None
    commessa: Optional[str] = None

    @field_validator("signature")
    @classmethod
    def _signature(cls, v):
        return fields.required_text(v, "Signature")

    @field_validator("fuel")
    @classmethod
    def _fuel(cls, v):
        return fields.fuel_level(v)

    @field_validator("checklist")
    @classmethod
    def _checklist(cls, v):
        return None if v is None else fields.checklist(v)


class TripLogOut(BaseModel):
    id: int
    trip_id: Optional[str]
    movement: str
    vehicle_id: Optional[int]
    vehicle_model: Optional[str]
    plate: Optional[str]
    driver: Optional[str]
    commessa: Optional[str]
    event_time: datetime
    km: int
    fuel: Optional[str]
    notes: Optional[str]
    damages: Optional[str]
    checklist: dict[str, bool] = {}
    damage_photos: list[str] = []
    photos: list[str] = []
    damage_snapshot: list[DamageRecord] = []
    signature: Optional[str]
    expected_return: Optional[datetime]
    created_at: Optional[datetime]
    revised_at: Optional[datetime]

    class Config:
        from_attributes = True


class TripOut(BaseModel):
    trip_id: str
    is_open: bool
    plate: Optional[str]
    vehicle_model: Optional[str]
    driver: Optional[str]
    commessa: Optional[str]
    started_at: datetime
    logs: list[TripLogOut]


class MovementResult(BaseModel):
    trip_id: str
    degraded_trip_id: bool = False
    warnings: list[str] = []
    log: TripLogOut
    vehicle: VehicleOut
