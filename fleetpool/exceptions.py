# fleetpool/exceptions.py
"""
Error taxonomy shared by services and routers.
main.py maps each class to an HTTP status; services raise them before any write.
"""


class FleetError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputError(FleetError):
    """Malformed or missing input (empty driver, bad window, unknown fuel level)."""
    status_code = 422


class NotFoundError(FleetError):
    status_code = 404


class ConflictError(FleetError):
    """Overlapping booking, overdue booking, maintenance, odometer regression."""
    status_code = 409

    def __init__(self, message: str, reason=None):
        super().__init__(message)
        self.reason = reason


class StoreError(FleetError):
    """A database write or transaction could not complete."""
    status_code = 503
