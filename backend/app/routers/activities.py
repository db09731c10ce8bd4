from datetime import date

from fastapi import APIRouter, Depends, Query

from app.constants import Permission
from app.models import Activity
from app.schemas import ActivityCreate, ActivityOut, CapacityStatusOut
from app.security import require_permissions
from app.services import booking_service
from app.utils.logger import get_logger

logger = get_logger("activities_router")

router = APIRouter(prefix="/activities", tags=["activities"])


def _activity_out(a: Activity) -> ActivityOut:
    return ActivityOut(id=str(a.id), **a.model_dump(exclude={"id", "revision_id", "created_at", "updated_at"}))


@router.get("", response_model=list[ActivityOut])
async def list_activities(
    status: str | None = "Active",
    skip: int = 0,
    limit: int = 50,
):
    query = Activity.find()
    if status is not None:
        query = query.find(Activity.status == status)
    activities = await query.skip(skip).limit(limit).to_list()
    return [_activity_out(a) for a in activities]


@router.post(
    "",
    response_model=ActivityOut,
    dependencies=[Depends(require_permissions([Permission.CREATE_ACTIVITY]))],
)
async def create_activity(payload: ActivityCreate):
    activity = Activity(**payload.model_dump(exclude={"max_participants"}))
    if activity.capacity is None and payload.max_participants is not None:
        activity.capacity = payload.max_participants
    await activity.insert()
    logger.info(f"Activity {activity.id} created: {activity.name}")
    return _activity_out(activity)


@router.get("/{activity_id}/capacity", response_model=CapacityStatusOut)
async def get_capacity(activity_id: str, day: date = Query(...)):
    """Remaining capacity for a day, classified for display."""
    return await booking_service.activity_capacity(activity_id, day)
