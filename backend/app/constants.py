from enum import Enum
from typing import Optional


def canonical_role_key(value) -> str:
    """Single case-folded form used for every role comparison.

    "WildlifeOfficer", "wildlife_officer" and "WILDLIFE-OFFICER" all map to
    "wildlifeofficer". None and blank strings map to "".
    """
    if value is None:
        return ""
    if isinstance(value, Enum):
        value = value.value
    text = str(value).strip().lower()
    for sep in ("_", "-", " "):
        text = text.replace(sep, "")
    return text


class Role(str, Enum):
    """System roles for RBAC."""
    ADMIN = "admin"
    WILDLIFE_OFFICER = "wildlifeOfficer"
    TOURIST = "tourist"
    TOUR_GUIDE = "tourGuide"
    SAFARI_DRIVER = "safariDriver"
    VET = "vet"
    CALL_OPERATOR = "callOperator"
    EMERGENCY_OFFICER = "emergencyOfficer"

    @classmethod
    def parse(cls, value) -> Optional["Role"]:
        """Map an external role string to a Role, None when unrecognized."""
        if isinstance(value, Role):
            return value
        return _ROLES_BY_KEY.get(canonical_role_key(value))


_ROLES_BY_KEY = {canonical_role_key(r): r for r in Role}


class Permission(str, Enum):
    """Atomic capabilities. Admin's grant set is derived from this list."""

    # Activity Management
    VIEW_ACTIVITIES = "view_activities"
    CREATE_ACTIVITY = "create_activity"
    EDIT_ACTIVITY = "edit_activity"
    DELETE_ACTIVITY = "delete_activity"
    BOOK_ACTIVITY = "book_activity"

    # Event Management
    VIEW_EVENTS = "view_events"
    CREATE_EVENT = "create_event"
    EDIT_EVENT = "edit_event"
    DELETE_EVENT = "delete_event"
    REGISTER_EVENT = "register_event"

    # Booking Management
    VIEW_ALL_BOOKINGS = "view_all_bookings"
    VIEW_OWN_BOOKINGS = "view_own_bookings"
    ASSIGN_DRIVER = "assign_driver"
    ASSIGN_GUIDE = "assign_guide"
    CANCEL_BOOKING = "cancel_booking"

    # User Management
    VIEW_ALL_USERS = "view_all_users"
    CREATE_USER = "create_user"
    EDIT_USER = "edit_user"
    DELETE_USER = "delete_user"
    APPROVE_APPLICATION = "approve_application"

    # Animal Care
    VIEW_ANIMAL_CASES = "view_animal_cases"
    CREATE_ANIMAL_CASE = "create_animal_case"
    EDIT_ANIMAL_CASE = "edit_animal_case"
    DELETE_ANIMAL_CASE = "delete_animal_case"
    MANAGE_TREATMENTS = "manage_treatments"
    MANAGE_MEDICATION = "manage_medication"

    # Emergency Management
    VIEW_EMERGENCIES = "view_emergencies"
    CREATE_EMERGENCY = "create_emergency"
    HANDLE_EMERGENCY = "handle_emergency"
    FORWARD_EMERGENCY = "forward_emergency"

    # Complaint Management
    VIEW_COMPLAINTS = "view_complaints"
    CREATE_COMPLAINT = "create_complaint"
    REPLY_COMPLAINT = "reply_complaint"
    DELETE_COMPLAINT = "delete_complaint"

    # Financial Management
    VIEW_DONATIONS = "view_donations"
    MAKE_DONATION = "make_donation"
    VIEW_FUEL_CLAIMS = "view_fuel_claims"
    SUBMIT_FUEL_CLAIM = "submit_fuel_claim"
    APPROVE_FUEL_CLAIM = "approve_fuel_claim"

    # Reporting
    GENERATE_REPORTS = "generate_reports"
    VIEW_ANALYTICS = "view_analytics"


class AccessCode(str, Enum):
    """Reason codes returned by access decisions."""
    OK = "OK"
    AUTH_REQUIRED = "AUTH_REQUIRED"
    ROLE_UNDEFINED = "ROLE_UNDEFINED"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    OWNER_ACCESS_REQUIRED = "OWNER_ACCESS_REQUIRED"


ROLE_DISPLAY_NAMES = {
    Role.ADMIN: "Administrator",
    Role.WILDLIFE_OFFICER: "Wildlife Officer",
    Role.TOURIST: "Tourist",
    Role.TOUR_GUIDE: "Tour Guide",
    Role.SAFARI_DRIVER: "Safari Driver",
    Role.VET: "Veterinarian",
    Role.CALL_OPERATOR: "Call Operator",
    Role.EMERGENCY_OFFICER: "Emergency Officer",
}

ROLE_DESCRIPTIONS = {
    Role.ADMIN: "Full system access and management capabilities",
    Role.WILDLIFE_OFFICER: "Manage bookings, complaints, applications, and park operations",
    Role.TOURIST: "Book activities, register for events, make donations, and report issues",
    Role.TOUR_GUIDE: "Manage tour assignments, materials, and progress tracking",
    Role.SAFARI_DRIVER: "Handle tour assignments, odometer tracking, and fuel claims",
    Role.VET: "Animal care management, treatments, and medical records",
    Role.CALL_OPERATOR: "Emergency call handling and incident management",
    Role.EMERGENCY_OFFICER: "Emergency response and first-aid coordination",
}

DASHBOARD_ROUTES = {
    Role.ADMIN: "/dashboard/admin",
    Role.WILDLIFE_OFFICER: "/dashboard/wildlife-officer",
    Role.TOURIST: "/dashboard/tourist",
    Role.TOUR_GUIDE: "/dashboard/tour-guide",
    Role.SAFARI_DRIVER: "/dashboard/safari-driver",
    Role.VET: "/dashboard/vet",
    Role.CALL_OPERATOR: "/dashboard/call-operator",
    Role.EMERGENCY_OFFICER: "/dashboard/emergency-officer",
}
DEFAULT_DASHBOARD_ROUTE = "/dashboard"

ROLE_HIERARCHY = {
    Role.ADMIN: 10,
    Role.WILDLIFE_OFFICER: 8,
    Role.CALL_OPERATOR: 7,
    Role.EMERGENCY_OFFICER: 6,
    Role.VET: 5,
    Role.TOUR_GUIDE: 4,
    Role.SAFARI_DRIVER: 4,
    Role.TOURIST: 1,
}

# Booking statuses stored on Booking documents
BOOKING_CONFIRMED = "confirmed"
BOOKING_CANCELLED = "cancelled"

ACTIVITY_ACTIVE = "Active"

# 0=Sunday ... 6=Saturday
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
