from typing import Callable, Iterable, List, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError

from app.config import get_settings
from app.constants import AccessCode, Permission, Role
from app.schemas import AccessDecision, CurrentUser
from app.services.access_control import AccessDecisionEngine, get_access_engine
from app.utils.logger import get_logger

logger = get_logger("security")
settings = get_settings()

# auto_error=False so missing credentials can be reported as AUTH_REQUIRED
bearer_scheme = HTTPBearer(auto_error=False)


# ------------------------ JWT helpers ------------------------


def decode_token(token: str) -> dict:
    """Verify signature, expiry and (when configured) audience of an access token."""
    options = {"verify_aud": bool(settings.JWT_AUDIENCE)}
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options=options,
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid or expired token", "code": AccessCode.AUTH_REQUIRED.value},
            headers={"WWW-Authenticate": "Bearer"},
        )


def user_from_claims(claims: dict) -> CurrentUser:
    """Build the request identity. The role is canonicalized once, here."""
    raw_role = claims.get(settings.JWT_ROLE_CLAIM)
    if raw_role is not None:
        raw_role = str(raw_role)
    return CurrentUser(
        id=str(claims["sub"]),
        role=Role.parse(raw_role),
        raw_role=raw_role,
        email=claims.get("email"),
        name=claims.get("name"),
    )


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[CurrentUser]:
    """Current user, or None when the request carries no token.
    A token that is present but invalid is still rejected with 401.
    """
    if credentials is None:
        return None
    claims = decode_token(credentials.credentials)
    if not claims.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Could not validate credentials", "code": AccessCode.AUTH_REQUIRED.value},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_from_claims(claims)


def raise_for_decision(decision: AccessDecision, user: Optional[CurrentUser] = None) -> None:
    """Translate a denied AccessDecision to 401 (no identity) or 403."""
    if decision.allowed:
        return
    detail = {"message": decision.message, "code": decision.code.value}
    if decision.code == AccessCode.AUTH_REQUIRED:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )
    logger.warning(
        f"Access denied ({decision.code.value}) for user={user.id if user else None} "
        f"role={user.raw_role if user else None}"
    )
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


async def get_current_user(
    user: Optional[CurrentUser] = Depends(get_optional_user),
) -> CurrentUser:
    """Authenticated user; 401 AUTH_REQUIRED otherwise."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Authentication required", "code": AccessCode.AUTH_REQUIRED.value},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


# ------------------------ RBAC helpers ------------------------


def require_roles(allowed: List[Role]) -> Callable:
    """FastAPI dependency factory to enforce role-based access (Admin always passes).
    Usage: Depends(require_roles([Role.WILDLIFE_OFFICER, Role.VET]))
    """

    async def checker(
        current_user: Optional[CurrentUser] = Depends(get_optional_user),
        engine: AccessDecisionEngine = Depends(get_access_engine),
    ) -> CurrentUser:
        decision = engine.authorize(current_user, roles=allowed)
        raise_for_decision(decision, current_user)
        return current_user

    return checker


def require_permissions(permissions: Iterable[Permission], require_all: bool = False) -> Callable:
    """FastAPI dependency factory to enforce permission-based access.
    Usage: Depends(require_permissions([Permission.BOOK_ACTIVITY]))
    """
    required = list(permissions)

    async def checker(
        current_user: Optional[CurrentUser] = Depends(get_optional_user),
        engine: AccessDecisionEngine = Depends(get_access_engine),
    ) -> CurrentUser:
        decision = engine.authorize(current_user, permissions=required, require_all=require_all)
        raise_for_decision(decision, current_user)
        return current_user

    return checker
