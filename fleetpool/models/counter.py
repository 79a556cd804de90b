# fleetpool/models/counter.py
"""Named monotonic counters. The "trips" row backs trip identifiers."""

from sqlalchemy import Column, Integer, String
from fleetpool.database import Base


class Counter(Base):
    __tablename__ = "counters"

    name = Column(String(50), primary_key=True)
    count = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<Counter {self.name}={self.count}>"
