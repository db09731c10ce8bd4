from datetime import date, datetime
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Literal

from app.constants import AccessCode, Role

# -------------------- Identity / Access Schemas --------------------


class CurrentUser(BaseModel):
    """Identity decoded from a verified access token."""

    id: str
    role: Optional[Role] = None
    raw_role: Optional[str] = None  # exactly what the token carried
    email: Optional[str] = None
    name: Optional[str] = None


class RoleInfo(BaseModel):
    role: Role
    display_name: str
    description: str
    dashboard_route: str
    permissions: List[str] = []


class AccessDecision(BaseModel):
    allowed: bool
    code: AccessCode
    message: str


class AccessCheckIn(BaseModel):
    permissions: List[str] = []
    roles: List[str] = []
    require_all: bool = False


# -------------------- Booking rule inputs --------------------


class ActivityRules(BaseModel):
    """Booking constraints of one activity. Absent fields take documented defaults:
    capacity 50, min advance 1 day, max advance 365 days, min participants for guide 1.
    """

    # 0 or absent means "use the default", same as the other numeric rules
    capacity: Optional[int] = Field(None, ge=0)
    max_participants: Optional[int] = Field(None, ge=0)  # legacy alias of capacity
    status: Optional[str] = None
    required_role: Optional[str] = None
    max_bookings_per_user: Optional[int] = Field(None, ge=1)
    min_advance_booking_days: Optional[int] = Field(None, ge=0)
    max_advance_booking_days: Optional[int] = Field(None, ge=0)
    available_days: List[int] = Field(default_factory=list, description="0=Sunday ... 6=Saturday")
    tour_guide_available: Optional[bool] = None
    min_participants_for_guide: Optional[int] = Field(None, ge=1)

    @field_validator("available_days")
    @classmethod
    def validate_available_days(cls, v: List[int]) -> List[int]:
        for day in v:
            if not (0 <= day <= 6):
                raise ValueError("available_days entries must be between 0 and 6")
        return v


class BookingRequest(BaseModel):
    participants: int
    preferred_date: date
    request_tour_guide: bool = False


class BookingUser(BaseModel):
    """The submitting user as the permission rule sees it."""

    id: Optional[str] = None
    role: Optional[str] = None
    booking_count: int = 0


# -------------------- Booking rule outputs --------------------


class ValidationOutcome(BaseModel):
    rule: str
    success: bool
    message: str
    reason: Optional[str] = None  # e.g. "tooEarly", "pastDate", "roleRestricted"
    requires_auth: bool = False
    available_slots: Optional[int] = None
    capacity: Optional[int] = None


class AggregateValidationOutcome(BaseModel):
    success: bool
    validations: Dict[str, ValidationOutcome]
    errors: List[ValidationOutcome] = []
    warnings: List[ValidationOutcome] = []

    @property
    def requires_auth(self) -> bool:
        return any(e.requires_auth for e in self.errors)


class CapacityStatus(BaseModel):
    status: Literal["critical", "warning", "moderate", "good"]
    color: str
    message: str


# -------------------- Activity / Booking API Schemas --------------------


class BookingValidateIn(BaseModel):
    """Self-contained validation request (no database lookups)."""

    booking: BookingRequest
    activity: ActivityRules = Field(default_factory=ActivityRules)
    current_bookings: int = Field(0, ge=0)
    booking_count: int = Field(0, ge=0)


class ActivityCreate(ActivityRules):
    name: str
    description: str
    location: str
    duration: str
    activity_type: Literal["Safari", "Bird Watching", "Photography", "Accommodations", "Other"]
    price: float = Field(..., ge=0)
    image: Optional[str] = None
    status: str = "Active"


class ActivityOut(ActivityCreate):
    id: str


class BookingOut(BaseModel):
    id: str
    tourist_id: str
    activity_id: str
    preferred_date: date
    number_of_participants: int
    request_tour_guide: bool
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CapacityStatusOut(CapacityStatus):
    activity_id: str
    day: date
    capacity: int
    booked: int
    available_slots: int
