# fleetpool/models/vehicle.py
"""
Pool vehicles table.
Holds the live state of each vehicle: status, current holder, odometer/fuel,
the persistent damage ledger and the checklist items missing since last checkin.
Status columns are read and written through services.vehicle_state only.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from fleetpool.database import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    model = Column(String(200), nullable=False)
    plate = Column(String(20), unique=True, nullable=False, index=True)
    km = Column(Integer, default=0, nullable=False)
    fuel = Column(String(20), default="Pieno", nullable=False)

    status = Column(String(20), default="available", nullable=False, index=True)  # available | in_use | maintenance
    maintenance_kind = Column(String(20))        # repair | service (only while in maintenance)

    # Set only while in_use
    driver = Column(String(200))
    commessa = Column(String(100))
    current_trip_id = Column(String(50))
    current_booking_id = Column(Integer)         # booking fulfilled by the open trip
    expected_return = Column(DateTime)           # NULL = no return estimate

    damages = Column(JSON, default=list, nullable=False)            # [{"trip_id", "description"}]
    damage_photos = Column(JSON, default=list, nullable=False)
    missing_checklist = Column(JSON, default=list, nullable=False)  # checklist ids
    repaired_at = Column(DateTime)               # last repair completion; older entries no longer touch the ledger

    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    @property
    def is_under_repair(self) -> bool:
        return self.status == "maintenance" and self.maintenance_kind == "repair"

    @property
    def is_under_maintenance(self) -> bool:
        return self.status == "maintenance" and self.maintenance_kind == "service"

    def __repr__(self):
        return f"<Vehicle {self.plate} model={self.model} status={self.status}>"
