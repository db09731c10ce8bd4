from fastapi import APIRouter, Depends, Request

from app.config import get_settings
from app.constants import Permission, Role
from app.rate_limit import limiter
from app.schemas import (
    AggregateValidationOutcome,
    BookingOut,
    BookingRequest,
    BookingUser,
    BookingValidateIn,
    CurrentUser,
)
from app.security import get_current_user, get_optional_user, require_permissions, require_roles
from app.services import booking_service
from app.services.access_control import AccessDecisionEngine, get_access_engine
from app.services.booking_validation import validate_complete_booking

settings = get_settings()

router = APIRouter(tags=["bookings"])


@router.post("/bookings/validate", response_model=AggregateValidationOutcome)
@limiter.limit(settings.BOOKING_VALIDATE_RATE_LIMIT)
async def validate_booking(
    request: Request,
    payload: BookingValidateIn,
    current: CurrentUser | None = Depends(get_optional_user),
):
    """Dry-run every booking rule against caller-supplied activity data.
    Anonymous callers get the full report with a requiresAuth permissions failure.
    """
    user = None
    if current is not None:
        user = BookingUser(id=current.id, role=current.raw_role, booking_count=payload.booking_count)
    return validate_complete_booking(
        payload.booking, payload.activity, user, current_bookings=payload.current_bookings
    )


@router.post(
    "/activities/{activity_id}/bookings/validate",
    response_model=AggregateValidationOutcome,
)
async def validate_activity_booking(
    activity_id: str,
    payload: BookingRequest,
    current: CurrentUser = Depends(get_current_user),
):
    """Validate against the stored activity and live booking counts."""
    return await booking_service.validate_booking_for_activity(activity_id, payload, current)


@router.post("/activities/{activity_id}/bookings", response_model=BookingOut, status_code=201)
async def book_activity(
    activity_id: str,
    payload: BookingRequest,
    current: CurrentUser = Depends(require_permissions([Permission.BOOK_ACTIVITY])),
):
    booking = await booking_service.create_booking(activity_id, payload, current)
    return booking_service.booking_out(booking)


@router.get("/bookings/mine", response_model=list[BookingOut])
async def my_bookings(
    skip: int = 0,
    limit: int = 50,
    current: CurrentUser = Depends(require_permissions([Permission.VIEW_OWN_BOOKINGS])),
):
    bookings = await booking_service.list_bookings(tourist_id=current.id, skip=skip, limit=limit)
    return [booking_service.booking_out(b) for b in bookings]


@router.get(
    "/bookings",
    response_model=list[BookingOut],
    dependencies=[
        Depends(require_roles([Role.WILDLIFE_OFFICER])),
        Depends(require_permissions([Permission.VIEW_ALL_BOOKINGS])),
    ],
)
async def all_bookings(skip: int = 0, limit: int = 50):
    """Park-wide booking list for managers (Wildlife Officers and Admin)."""
    bookings = await booking_service.list_bookings(skip=skip, limit=limit)
    return [booking_service.booking_out(b) for b in bookings]


@router.post("/bookings/{booking_id}/cancel", response_model=BookingOut)
async def cancel_booking(
    booking_id: str,
    current: CurrentUser = Depends(get_current_user),
    engine: AccessDecisionEngine = Depends(get_access_engine),
):
    booking = await booking_service.cancel_booking(booking_id, current, engine)
    return booking_service.booking_out(booking)
