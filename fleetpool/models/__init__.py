# Fleet Pool — Database Models
# Import all models here for SQLAlchemy discovery

from fleetpool.models.vehicle import Vehicle      # noqa
from fleetpool.models.booking import Booking      # noqa
from fleetpool.models.trip_log import TripLog     # noqa
from fleetpool.models.counter import Counter      # noqa
from fleetpool.models.alert import Alert          # noqa
