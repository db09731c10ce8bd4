"""Booking rule engine.

Four independent rules (capacity, permissions, date, tour guide) are pure
functions of their inputs. ``validate_complete_booking`` always runs all of
them so the caller gets every problem in one pass.
"""

from datetime import date, datetime, timedelta
from typing import Any, List, Mapping, Optional
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from app.config import get_settings
from app.constants import ACTIVITY_ACTIVE, DAY_NAMES, Role, canonical_role_key
from app.schemas import (
    ActivityRules,
    AggregateValidationOutcome,
    BookingRequest,
    BookingUser,
    CapacityStatus,
    ValidationOutcome,
)
from app.utils.logger import get_logger

logger = get_logger("booking_validation")

DEFAULT_CAPACITY = 50
DEFAULT_MIN_ADVANCE_DAYS = 1
DEFAULT_MAX_ADVANCE_DAYS = 365
DEFAULT_MIN_PARTICIPANTS_FOR_GUIDE = 1

PERMISSIONS_OK = "Booking permissions validated"
DATE_OK = "Booking date is valid"
NO_GUIDE_REQUESTED = "No tour guide requested"
GUIDE_OK = "Tour guide request is valid"

# Success messages that carry no information for the user
NOOP_MESSAGES = frozenset({PERMISSIONS_OK, NO_GUIDE_REQUESTED, DATE_OK})

# Fixed evaluation and reporting order
RULE_ORDER = ("capacity", "permissions", "date", "tourGuide")


class BookingInputError(ValueError):
    """Raised at the boundary when booking input has the wrong shape."""

    def __init__(self, errors: List[dict]):
        self.errors = errors
        super().__init__("Invalid booking input")


def parse_booking_request(data: Mapping[str, Any]) -> BookingRequest:
    try:
        return BookingRequest.model_validate(data)
    except ValidationError as e:
        raise BookingInputError(e.errors()) from e


def parse_activity_rules(data: Mapping[str, Any]) -> ActivityRules:
    try:
        return ActivityRules.model_validate(data)
    except ValidationError as e:
        raise BookingInputError(e.errors()) from e


def park_today() -> date:
    """Current calendar date in the park's timezone."""
    return datetime.now(ZoneInfo(get_settings().PARK_TIMEZONE)).date()


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def effective_capacity(activity: ActivityRules) -> int:
    return activity.capacity or activity.max_participants or DEFAULT_CAPACITY


# ------------------------ Individual rules ------------------------


def validate_booking_capacity(
    activity: ActivityRules, requested_participants: int, current_bookings: int = 0
) -> ValidationOutcome:
    capacity = effective_capacity(activity)
    available_slots = capacity - current_bookings

    def outcome(success: bool, message: str, reason: Optional[str] = None) -> ValidationOutcome:
        return ValidationOutcome(
            rule="capacity",
            success=success,
            message=message,
            reason=reason,
            available_slots=available_slots,
            capacity=capacity,
        )

    if requested_participants <= 0:
        return outcome(False, "Number of participants must be at least 1", "invalidParticipants")
    if requested_participants > capacity:
        return outcome(False, f"Maximum capacity is {capacity} participants", "exceedsCapacity")
    if requested_participants > available_slots:
        return outcome(
            False,
            f"Only {available_slots} slots available. "
            "Please reduce participants or choose another date.",
            "insufficientSlots",
        )
    return outcome(True, f"{available_slots - requested_participants} slots remaining after your booking")


def validate_booking_permissions(
    user: Optional[BookingUser], activity: ActivityRules
) -> ValidationOutcome:
    if user is None:
        return ValidationOutcome(
            rule="permissions",
            success=False,
            message="You must be logged in to make a booking",
            reason="requiresAuth",
            requires_auth=True,
        )

    if activity.status and activity.status != ACTIVITY_ACTIVE:
        return ValidationOutcome(
            rule="permissions",
            success=False,
            message="This activity is not currently available for booking",
            reason="activityInactive",
        )

    if activity.required_role and canonical_role_key(user.role) != canonical_role_key(activity.required_role):
        required = Role.parse(activity.required_role)
        return ValidationOutcome(
            rule="permissions",
            success=False,
            message=f"This activity requires {required.value if required else activity.required_role} role",
            reason="roleRestricted",
        )

    if activity.max_bookings_per_user and user.booking_count >= activity.max_bookings_per_user:
        return ValidationOutcome(
            rule="permissions",
            success=False,
            message=(
                "You have reached the maximum booking limit of "
                f"{activity.max_bookings_per_user} for this activity"
            ),
            reason="limitReached",
        )

    return ValidationOutcome(rule="permissions", success=True, message=PERMISSIONS_OK)


def validate_booking_date(
    booking_date, activity: ActivityRules, today: Optional[date] = None
) -> ValidationOutcome:
    selected = _as_date(booking_date)
    today = _as_date(today) if today is not None else park_today()

    if selected < today:
        return ValidationOutcome(
            rule="date",
            success=False,
            message="Cannot book activities for past dates",
            reason="pastDate",
        )

    min_days = activity.min_advance_booking_days or DEFAULT_MIN_ADVANCE_DAYS
    if selected < today + timedelta(days=min_days):
        return ValidationOutcome(
            rule="date",
            success=False,
            message=f"Booking must be made at least {min_days} day(s) in advance",
            reason="tooEarly",
        )

    max_days = activity.max_advance_booking_days or DEFAULT_MAX_ADVANCE_DAYS
    if selected > today + timedelta(days=max_days):
        return ValidationOutcome(
            rule="date",
            success=False,
            message=f"Booking cannot be made more than {max_days} days in advance",
            reason="tooLate",
        )

    if activity.available_days:
        # date.weekday() is Monday=0; activities use Sunday=0
        day_of_week = (selected.weekday() + 1) % 7
        if day_of_week not in activity.available_days:
            return ValidationOutcome(
                rule="date",
                success=False,
                message=f"This activity is not available on {DAY_NAMES[day_of_week]}s",
                reason="dayRestricted",
            )

    return ValidationOutcome(rule="date", success=True, message=DATE_OK)


def validate_tour_guide_request(
    request_tour_guide: bool, activity: ActivityRules, participants: int
) -> ValidationOutcome:
    if not request_tour_guide:
        return ValidationOutcome(rule="tourGuide", success=True, message=NO_GUIDE_REQUESTED)

    if activity.tour_guide_available is False:
        return ValidationOutcome(
            rule="tourGuide",
            success=False,
            message="Tour guide is not available for this activity",
            reason="tourGuideUnavailable",
        )

    minimum = activity.min_participants_for_guide or DEFAULT_MIN_PARTICIPANTS_FOR_GUIDE
    if participants < minimum:
        return ValidationOutcome(
            rule="tourGuide",
            success=False,
            message=f"Minimum {minimum} participants required for tour guide",
            reason="insufficientParticipants",
        )

    return ValidationOutcome(rule="tourGuide", success=True, message=GUIDE_OK)


# ------------------------ Aggregate ------------------------


def validate_complete_booking(
    booking: BookingRequest,
    activity: ActivityRules,
    user: Optional[BookingUser],
    current_bookings: int = 0,
    today: Optional[date] = None,
) -> AggregateValidationOutcome:
    """Run every rule (no short-circuit) and split the results into errors and warnings."""
    validations = {
        "capacity": validate_booking_capacity(activity, booking.participants, current_bookings),
        "permissions": validate_booking_permissions(user, activity),
        "date": validate_booking_date(booking.preferred_date, activity, today=today),
        "tourGuide": validate_tour_guide_request(
            booking.request_tour_guide, activity, booking.participants
        ),
    }
    ordered = [validations[name] for name in RULE_ORDER]
    errors = [v for v in ordered if not v.success]
    warnings = [v for v in ordered if v.success and v.message not in NOOP_MESSAGES]

    if errors:
        logger.info(f"Booking rejected by rules: {[e.rule for e in errors]}")

    return AggregateValidationOutcome(
        success=not errors,
        validations=validations,
        errors=errors,
        warnings=warnings,
    )


def format_validation_errors(errors: Optional[List[ValidationOutcome]]) -> str:
    if not errors:
        return ""
    return ". ".join(e.message for e in errors)


def get_capacity_status(available_slots: int, capacity: int) -> CapacityStatus:
    if capacity <= 0:
        percentage = 0.0
    else:
        percentage = available_slots / capacity * 100

    if percentage <= 10:
        return CapacityStatus(status="critical", color="red", message="Very few slots remaining!")
    if percentage <= 25:
        return CapacityStatus(status="warning", color="yellow", message="Limited slots available")
    if percentage <= 50:
        return CapacityStatus(status="moderate", color="blue", message="Good availability")
    return CapacityStatus(status="good", color="green", message="Plenty of slots available")
