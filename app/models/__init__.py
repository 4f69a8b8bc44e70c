# Parking service: Database Models
# Import all models here for SQLAlchemy discovery

from app.models.parking import Parking, Tariff          # noqa
from app.models.vehicle import Vehicle, VehicleType     # noqa
from app.models.card import Card                        # noqa
from app.models.entry import Entry, EntryStatus         # noqa
from app.models.alert import Alert                      # noqa
