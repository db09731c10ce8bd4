from datetime import date, datetime, time, timezone
from typing import List, Optional

from beanie import PydanticObjectId as OID
from fastapi import HTTPException

from app.constants import BOOKING_CANCELLED, BOOKING_CONFIRMED, Permission
from app.models import Activity, Booking
from app.schemas import (
    AggregateValidationOutcome,
    BookingOut,
    BookingRequest,
    BookingUser,
    CapacityStatusOut,
    CurrentUser,
)
from app.services.access_control import AccessDecisionEngine
from app.services.booking_validation import (
    effective_capacity,
    format_validation_errors,
    get_capacity_status,
    validate_complete_booking,
)
from app.utils.logger import get_logger

logger = get_logger("booking_service")


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _parse_oid(value: str, field: str) -> OID:
    try:
        return OID(value)
    except Exception:
        raise HTTPException(status_code=400, detail=f"Invalid {field}")


async def get_activity_or_404(activity_id: str) -> Activity:
    activity = await Activity.get(_parse_oid(activity_id, "activity_id"))
    if not activity:
        raise HTTPException(status_code=404, detail="Activity not found")
    return activity


async def current_bookings_for(activity_id: OID, day: date) -> int:
    """Participants already confirmed for an activity on a given day."""
    bookings = await Booking.find(
        Booking.activity_id == activity_id,
        Booking.preferred_date == _day_start(day),
        Booking.status == BOOKING_CONFIRMED,
    ).to_list()
    return sum(b.number_of_participants for b in bookings)


async def user_booking_count(activity_id: OID, user_id: str) -> int:
    return await Booking.find(
        Booking.activity_id == activity_id,
        Booking.tourist_id == user_id,
        Booking.status == BOOKING_CONFIRMED,
    ).count()


async def _validate(
    activity: Activity, payload: BookingRequest, user: Optional[CurrentUser]
) -> AggregateValidationOutcome:
    booked = await current_bookings_for(activity.id, payload.preferred_date)
    booking_user = None
    if user is not None:
        booking_user = BookingUser(
            id=user.id,
            role=user.raw_role,
            booking_count=await user_booking_count(activity.id, user.id),
        )
    return validate_complete_booking(
        payload, activity.to_rules(), booking_user, current_bookings=booked
    )


async def validate_booking_for_activity(
    activity_id: str, payload: BookingRequest, user: Optional[CurrentUser]
) -> AggregateValidationOutcome:
    activity = await get_activity_or_404(activity_id)
    return await _validate(activity, payload, user)


async def create_booking(
    activity_id: str, payload: BookingRequest, user: CurrentUser
) -> Booking:
    """Validate against live data, then persist. Rejections never reach the database."""
    activity = await get_activity_or_404(activity_id)
    result = await _validate(activity, payload, user)
    if not result.success:
        raise HTTPException(
            status_code=401 if result.requires_auth else 422,
            detail={
                "message": format_validation_errors(result.errors),
                "errors": [e.model_dump() for e in result.errors],
            },
        )

    booking = Booking(
        tourist_id=user.id,
        activity_id=activity.id,
        preferred_date=_day_start(payload.preferred_date),
        number_of_participants=payload.participants,
        request_tour_guide=payload.request_tour_guide,
    )
    await booking.insert()
    logger.info(
        f"Booking {booking.id} created: activity={activity.id} user={user.id} "
        f"participants={payload.participants} date={payload.preferred_date}"
    )
    return booking


async def list_bookings(
    tourist_id: Optional[str] = None, skip: int = 0, limit: int = 50
) -> List[Booking]:
    query = Booking.find()
    if tourist_id is not None:
        query = query.find(Booking.tourist_id == tourist_id)
    return await query.sort("-preferred_date").skip(skip).limit(limit).to_list()


async def cancel_booking(
    booking_id: str, user: CurrentUser, engine: AccessDecisionEngine
) -> Booking:
    """Owner, Admin, or holder of cancel_booking may cancel."""
    booking = await Booking.get(_parse_oid(booking_id, "booking_id"))
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")

    if not engine.has_permission(user.role, Permission.CANCEL_BOOKING):
        decision = engine.authorize_owner(user, booking.tourist_id)
        if not decision.allowed:
            raise HTTPException(
                status_code=403,
                detail={"message": decision.message, "code": decision.code.value},
            )

    if booking.status == BOOKING_CANCELLED:
        raise HTTPException(status_code=400, detail="Booking already cancelled")

    booking.status = BOOKING_CANCELLED
    booking.updated_at = datetime.now(timezone.utc)
    await booking.save()
    logger.info(f"Booking {booking.id} cancelled by user={user.id}")
    return booking


async def activity_capacity(activity_id: str, day: date) -> CapacityStatusOut:
    activity = await get_activity_or_404(activity_id)
    capacity = effective_capacity(activity.to_rules())
    booked = await current_bookings_for(activity.id, day)
    available = max(capacity - booked, 0)
    status = get_capacity_status(available, capacity)
    return CapacityStatusOut(
        activity_id=str(activity.id),
        day=day,
        capacity=capacity,
        booked=booked,
        available_slots=available,
        **status.model_dump(),
    )


def booking_out(b: Booking) -> BookingOut:
    return BookingOut(
        id=str(b.id),
        tourist_id=b.tourist_id,
        activity_id=str(b.activity_id),
        preferred_date=b.preferred_date.date(),
        number_of_participants=b.number_of_participants,
        request_tour_guide=b.request_tour_guide,
        status=b.status,
        created_at=b.created_at,
    )
