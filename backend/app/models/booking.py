from beanie import Document, Indexed
from beanie import PydanticObjectId as OID
from pydantic import Field
from datetime import datetime, timezone
from typing import Optional

from app.constants import BOOKING_CONFIRMED


class Booking(Document):
    """Tourist reservation of an activity for one day."""
    tourist_id: Indexed(str)  # subject of the booking user's token
    activity_id: Indexed(OID)
    # Mongo has no date type: stored as midnight UTC of the booked day
    preferred_date: Indexed(datetime)
    number_of_participants: int = Field(..., ge=1)
    request_tour_guide: bool = False
    status: Indexed(str) = BOOKING_CONFIRMED  # confirmed|cancelled
    tour_id: Optional[OID] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "bookings"
        indexes = [
            [("activity_id", 1), ("preferred_date", 1)],
        ]
