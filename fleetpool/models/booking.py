# fleetpool/models/booking.py
"""
Reservations table.
A future-dated claim on a vehicle for [start, end). Deleted on cancellation
or by the checkin that fulfils it.
"""

from sqlalchemy import Column, Integer, String, DateTime
from fleetpool.database import Base


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, nullable=False, index=True)   # vehicles.id
    driver = Column(String(200), nullable=False)
    commessa = Column(String(100))
    start = Column(DateTime, nullable=False, index=True)       # pickup
    end = Column(DateTime, nullable=False)                     # expected return
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<Booking {self.id} vehicle={self.vehicle_id} driver={self.driver} {self.start}→{self.end}>"
