from beanie import Document, Indexed
from pydantic import Field, field_validator
from datetime import datetime, timezone
from typing import List, Literal, Optional

from app.schemas import ActivityRules


class Activity(Document):
    """Bookable park activity (safari, bird watching, ...) with its booking rules."""

    name: str
    description: str
    location: str
    duration: str  # e.g. "2 hours"
    activity_type: Literal["Safari", "Bird Watching", "Photography", "Accommodations", "Other"]
    price: float = Field(..., ge=0)
    image: str | None = None

    # Booking rules; None means "use the documented default"
    capacity: Optional[int] = Field(None, ge=0)
    status: Indexed(str) = "Active"
    required_role: Optional[str] = None
    max_bookings_per_user: Optional[int] = Field(None, ge=1)
    min_advance_booking_days: Optional[int] = Field(None, ge=0)
    max_advance_booking_days: Optional[int] = Field(None, ge=0)
    available_days: List[int] = Field(default_factory=list)  # 0=Sunday ... 6=Saturday
    tour_guide_available: Optional[bool] = None
    min_participants_for_guide: Optional[int] = Field(None, ge=1)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("available_days")
    @classmethod
    def validate_available_days(cls, v: List[int]) -> List[int]:
        if any(not (0 <= d <= 6) for d in v):
            raise ValueError("available_days entries must be between 0 and 6")
        return v

    def to_rules(self) -> ActivityRules:
        return ActivityRules(
            capacity=self.capacity,
            status=self.status,
            required_role=self.required_role,
            max_bookings_per_user=self.max_bookings_per_user,
            min_advance_booking_days=self.min_advance_booking_days,
            max_advance_booking_days=self.max_advance_booking_days,
            available_days=list(self.available_days),
            tour_guide_available=self.tour_guide_available,
            min_participants_for_guide=self.min_participants_for_guide,
        )

    class Settings:
        name = "activities"
