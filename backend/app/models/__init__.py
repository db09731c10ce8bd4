# Re-export Beanie documents
from .activity import Activity
from .booking import Booking
