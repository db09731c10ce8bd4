from fastapi import APIRouter, Depends

from app.schemas import AccessCheckIn, AccessDecision, CurrentUser, RoleInfo
from app.security import get_current_user
from app.services.access_control import AccessDecisionEngine, get_access_engine
from app.services.permission_catalog import available_roles

router = APIRouter(prefix="/access", tags=["access"])


@router.get("/roles", response_model=list[RoleInfo])
async def list_roles(engine: AccessDecisionEngine = Depends(get_access_engine)):
    """All roles with their display data and granted permissions."""
    return [engine.role_info(role) for role in available_roles()]


@router.get("/me", response_model=RoleInfo | None)
async def my_access(
    current: CurrentUser = Depends(get_current_user),
    engine: AccessDecisionEngine = Depends(get_access_engine),
):
    """Role info of the caller; null when the token carries an unknown role."""
    return engine.role_info(current.role)


@router.post("/check", response_model=AccessDecision)
async def check_access(
    payload: AccessCheckIn,
    current: CurrentUser = Depends(get_current_user),
    engine: AccessDecisionEngine = Depends(get_access_engine),
):
    """Ask whether the caller satisfies a role/permission requirement (for UI gating)."""
    return engine.authorize(
        current,
        roles=payload.roles,
        permissions=payload.permissions,
        require_all=payload.require_all,
    )
