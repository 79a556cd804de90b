# fleetpool/schemas/booking.py
from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional

from fleetpool.schemas import fields


class BookingCreate(BaseModel):
    vehicle_id: int
    driver: str
    commessa: Optional[str] = None
    start: datetime
    end: datetime

    @field_validator("driver")
    @classmethod
    def _driver(cls, v):
        return fields.required_text(v, "Driver name")

    @field_validator("commessa")
    @classmethod
    def _commessa(cls, v):
        return fields.optional_text(v)

    @field_validator("start", "end")
    @classmethod
    def _utc(cls, v):
        return fields.timestamp(v)


class BookingUpdate(BaseModel):
    driver: Optional[str] = None
    commessa: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator("driver")
    @classmethod
    def _driver(cls, v):
        return None if v is None else fields.required_text(v, "Driver name")

    @field_validator("start", "end")
    @classmethod
    def _utc(cls, v):
        return fields.timestamp(v)


class BookingOut(BaseModel):
    id: int
    vehicle_id: int
    driver: str
    commessa: Optional[str]
    start: datetime
    end: datetime
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class ConflictQuery(BaseModel):
    vehicle_id: int
    start: datetime
    end: datetime
    exclude_booking_id: Optional[int] = None

    @field_validator("start", "end")
    @classmethod
    def _utc(cls, v):
        return fields.timestamp(v)


class ConflictOut(BaseModel):
    conflict: bool
    kind: Optional[str] = None
    message: Optional[str] = None
    booking_id: Optional[int] = None
    driver: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
