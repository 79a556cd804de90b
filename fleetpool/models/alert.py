# fleetpool/models/alert.py
"""
Alerts table — conditions the operator must reconcile by hand.
degraded_trip_id: a checkout got a time-derived fallback id.
partial_completion: a multi-row flow stopped after some writes landed.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text
from fleetpool.database import Base


class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    alert_type = Column(String(50), nullable=False, index=True)
    vehicle_id = Column(Integer)
    trip_id = Column(String(50))
    description = Column(Text)
    is_resolved = Column(Integer, default=0, nullable=False)
    triggered_at = Column(DateTime, nullable=False, index=True)
    resolved_at = Column(DateTime)

    def __repr__(self):
        return f"<Alert {self.id} type={self.alert_type} resolved={self.is_resolved}>"
