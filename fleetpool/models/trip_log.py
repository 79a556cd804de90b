# fleetpool/models/trip_log.py
"""
Trip log table.
One immutable row per checkout or checkin. A checkout and its checkin share
trip_id; the pair forms a trip. Vehicle model/plate are copied so the record
survives later edits or deletion of the vehicle.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, JSON
from fleetpool.database import Base


class TripLog(Base):
    __tablename__ = "trip_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trip_id = Column(String(50), index=True)
    movement = Column(String(20), nullable=False)   # checkout | checkin
    vehicle_id = Column(Integer, index=True)
    vehicle_model = Column(String(200))
    plate = Column(String(20), index=True)
    driver = Column(String(200))
    commessa = Column(String(100))
    event_time = Column(DateTime, nullable=False, index=True)
    km = Column(Integer, nullable=False)
    fuel = Column(String(20))
    notes = Column(Text, default="")
    damages = Column(Text, default="")              # new damage reported on this movement
    checklist = Column(JSON, default=dict)          # item id -> present
    damage_photos = Column(JSON, default=list)
    photos = Column(JSON, default=list)             # generic signal photos
    damage_snapshot = Column(JSON, default=list)    # ledger as it stood at event_time
    signature = Column(Text)
    expected_return = Column(DateTime)              # checkout only
    created_at = Column(DateTime)
    revised_at = Column(DateTime)

    def __repr__(self):
        return f"<TripLog {self.id} trip={self.trip_id} {self.movement} plate={self.plate}>"
