# fleetpool/models/enums.py
"""Stored string values for vehicle status, maintenance flavour and movement type."""

from enum import Enum


class VehicleStatus(str, Enum):
    AVAILABLE = "available"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"


class MaintenanceKind(str, Enum):
    REPAIR = "repair"      # completion clears the damage ledger
    SERVICE = "service"    # routine service, damage state untouched


class Movement(str, Enum):
    CHECKOUT = "checkout"
    CHECKIN = "checkin"
