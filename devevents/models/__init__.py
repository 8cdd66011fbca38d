# Import models so they are available from a single place
from devevents.models.event import EventMode
from devevents.models.booking import Booking
