from functools import lru_cache
from typing import Iterable, List, Optional

from app.constants import AccessCode, Role, canonical_role_key
from app.schemas import AccessDecision, CurrentUser, RoleInfo
from app.services.permission_catalog import (
    PermissionCatalog,
    dashboard_route,
    get_catalog,
    role_description,
    role_display_name,
)


class AccessDecisionEngine:
    """Stateless RBAC queries over an injected PermissionCatalog.

    Every predicate is total: an absent or unknown role never raises and
    never grants anything, except the vacuous cases where nothing is required.
    """

    def __init__(self, catalog: PermissionCatalog):
        self.catalog = catalog

    # ------------------------ Permission checks ------------------------

    def has_permission(self, role, permission) -> bool:
        if not permission:
            return False
        parsed = Role.parse(role)
        if parsed is None:
            return False
        # Admin bypass is checked before the catalog
        if parsed == Role.ADMIN:
            return True
        value = permission.value if hasattr(permission, "value") else str(permission)
        return value in self.catalog.permissions_of(parsed)

    def has_any_permission(self, role, permissions: Optional[Iterable]) -> bool:
        """True when no permission is required or at least one is held."""
        required = _as_list(permissions)
        if not required:
            return True
        return any(self.has_permission(role, p) for p in required)

    def has_all_permissions(self, role, permissions: Optional[Iterable]) -> bool:
        return all(self.has_permission(role, p) for p in _as_list(permissions))

    def can_access_route(self, role, required_permissions: Optional[Iterable]) -> bool:
        """Routes without requirements are open to everyone."""
        return self.has_any_permission(role, required_permissions)

    def user_permissions(self, role) -> List[str]:
        return sorted(self.catalog.permissions_of(role))

    def role_info(self, role) -> Optional[RoleInfo]:
        parsed = Role.parse(role)
        if parsed is None:
            return None
        return RoleInfo(
            role=parsed,
            display_name=role_display_name(parsed),
            description=role_description(parsed),
            dashboard_route=dashboard_route(parsed),
            permissions=self.user_permissions(parsed),
        )

    # ------------------------ Role identity checks ------------------------

    @staticmethod
    def is_role(role, candidate) -> bool:
        key = canonical_role_key(role)
        return bool(key) and key == canonical_role_key(candidate)

    @staticmethod
    def is_any_role(role, candidates: Optional[Iterable]) -> bool:
        return any(AccessDecisionEngine.is_role(role, c) for c in _as_list(candidates))

    def is_admin(self, role) -> bool:
        return Role.parse(role) == Role.ADMIN

    def is_staff(self, role) -> bool:
        parsed = Role.parse(role)
        return parsed is not None and parsed != Role.TOURIST

    def is_manager(self, role) -> bool:
        return Role.parse(role) in (Role.ADMIN, Role.WILDLIFE_OFFICER)

    def is_emergency_personnel(self, role) -> bool:
        return Role.parse(role) in (Role.CALL_OPERATOR, Role.EMERGENCY_OFFICER)

    def is_field_personnel(self, role) -> bool:
        return Role.parse(role) in (
            Role.TOUR_GUIDE,
            Role.SAFARI_DRIVER,
            Role.VET,
            Role.EMERGENCY_OFFICER,
        )

    # ------------------------ Structured decisions ------------------------

    def authorize(
        self,
        user: Optional[CurrentUser],
        roles: Optional[Iterable] = None,
        permissions: Optional[Iterable] = None,
        require_all: bool = False,
    ) -> AccessDecision:
        """Route-guard decision with a reason code.

        Unauthenticated callers get AUTH_REQUIRED so they can be sent to
        login; everything else that is denied is INSUFFICIENT_PERMISSIONS.
        """
        if user is None:
            return _deny(AccessCode.AUTH_REQUIRED, "Authentication required")
        if user.role is None:
            if user.raw_role:
                # Unrecognized role string: authenticated but holds nothing
                return _deny(AccessCode.INSUFFICIENT_PERMISSIONS, "Insufficient permissions")
            return _deny(AccessCode.ROLE_UNDEFINED, "User role not defined")
        if user.role == Role.ADMIN:
            return _allow()

        allowed_roles = _as_list(roles)
        if allowed_roles and not self.is_any_role(user.role, allowed_roles):
            return _deny(AccessCode.INSUFFICIENT_PERMISSIONS, "Insufficient permissions")

        required = _as_list(permissions)
        if required:
            ok = (
                self.has_all_permissions(user.role, required)
                if require_all
                else self.has_any_permission(user.role, required)
            )
            if not ok:
                return _deny(AccessCode.INSUFFICIENT_PERMISSIONS, "Insufficient permissions")
        return _allow()

    def authorize_owner(self, user: Optional[CurrentUser], resource_user_id) -> AccessDecision:
        """Admin, or the user the resource belongs to."""
        if user is None:
            return _deny(AccessCode.AUTH_REQUIRED, "Authentication required")
        if user.role == Role.ADMIN:
            return _allow()
        if resource_user_id is not None and str(resource_user_id) != str(user.id):
            return _deny(
                AccessCode.OWNER_ACCESS_REQUIRED,
                "Access denied: You can only access your own resources",
            )
        return _allow()


def _as_list(values) -> list:
    # A single name (str, Role or Permission) is one entry, not a list of characters
    if not values:
        return []
    if isinstance(values, str):
        return [values]
    return list(values)


def _allow() -> AccessDecision:
    return AccessDecision(allowed=True, code=AccessCode.OK, message="Access granted")


def _deny(code: AccessCode, message: str) -> AccessDecision:
    return AccessDecision(allowed=False, code=code, message=message)


@lru_cache()
def get_access_engine() -> AccessDecisionEngine:
    """Cached engine over the process-wide catalog (FastAPI dependency)."""
    return AccessDecisionEngine(get_catalog())
