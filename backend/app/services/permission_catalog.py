from functools import lru_cache
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional

from app.constants import (
    DASHBOARD_ROUTES,
    DEFAULT_DASHBOARD_ROUTE,
    ROLE_DESCRIPTIONS,
    ROLE_DISPLAY_NAMES,
    ROLE_HIERARCHY,
    Permission as P,
    Role,
)

# Bump whenever DEFAULT_ROLE_GRANTS changes
CATALOG_VERSION = 1

# Admin is intentionally absent: its grant set is derived from the full catalog.
DEFAULT_ROLE_GRANTS: Dict[Role, List[str]] = {
    Role.WILDLIFE_OFFICER: [
        P.VIEW_ALL_BOOKINGS,
        P.ASSIGN_DRIVER,
        P.ASSIGN_GUIDE,
        P.VIEW_COMPLAINTS,
        P.REPLY_COMPLAINT,
        P.DELETE_COMPLAINT,
        P.APPROVE_APPLICATION,
        P.VIEW_FUEL_CLAIMS,
        P.APPROVE_FUEL_CLAIM,
        P.GENERATE_REPORTS,
        P.VIEW_ANALYTICS,
        P.VIEW_ALL_USERS,
    ],
    Role.TOURIST: [
        P.VIEW_ACTIVITIES,
        P.BOOK_ACTIVITY,
        P.VIEW_EVENTS,
        P.REGISTER_EVENT,
        P.VIEW_OWN_BOOKINGS,
        P.MAKE_DONATION,
        P.CREATE_COMPLAINT,
        P.CREATE_EMERGENCY,
    ],
    Role.TOUR_GUIDE: [
        P.VIEW_OWN_BOOKINGS,
        P.GENERATE_REPORTS,
    ],
    Role.SAFARI_DRIVER: [
        P.VIEW_OWN_BOOKINGS,
        P.SUBMIT_FUEL_CLAIM,
        P.VIEW_FUEL_CLAIMS,
        P.GENERATE_REPORTS,
    ],
    Role.VET: [
        P.VIEW_ANIMAL_CASES,
        P.CREATE_ANIMAL_CASE,
        P.EDIT_ANIMAL_CASE,
        P.DELETE_ANIMAL_CASE,
        P.MANAGE_TREATMENTS,
        P.MANAGE_MEDICATION,
        P.GENERATE_REPORTS,
    ],
    Role.CALL_OPERATOR: [
        P.VIEW_EMERGENCIES,
        P.HANDLE_EMERGENCY,
        P.FORWARD_EMERGENCY,
        P.VIEW_COMPLAINTS,
        P.REPLY_COMPLAINT,
        P.GENERATE_REPORTS,
    ],
    Role.EMERGENCY_OFFICER: [
        P.VIEW_EMERGENCIES,
        P.HANDLE_EMERGENCY,
        P.GENERATE_REPORTS,
    ],
}


def _perm_value(permission) -> str:
    return permission.value if isinstance(permission, P) else str(permission)


class PermissionCatalog:
    """Immutable role -> permission-set table.

    Built once at startup and injected into the access engine. Admin never has
    an explicit entry; ``permissions_of(Role.ADMIN)`` is always the whole
    catalog, so adding a permission never requires editing Admin.
    """

    def __init__(
        self,
        permissions: Iterable,
        grants: Mapping[Role, Iterable],
        version: int = CATALOG_VERSION,
    ):
        self._permissions: FrozenSet[str] = frozenset(_perm_value(p) for p in permissions)
        table: Dict[Role, FrozenSet[str]] = {}
        for role, perms in grants.items():
            role = Role.parse(role)
            if role is None:
                raise ValueError("Grant table contains an unknown role")
            if role == Role.ADMIN:
                raise ValueError("Admin grants are derived and cannot be declared")
            values = frozenset(_perm_value(p) for p in perms)
            unknown = values - self._permissions
            if unknown:
                raise ValueError(
                    f"Role {role.value} is granted unknown permissions: {sorted(unknown)}"
                )
            table[role] = values
        self._grants = MappingProxyType(table)
        self.version = version

    def all_permissions(self) -> FrozenSet[str]:
        return self._permissions

    def permissions_of(self, role) -> FrozenSet[str]:
        """Grant set for a role; empty for absent or unrecognized roles."""
        parsed = Role.parse(role)
        if parsed is None:
            return frozenset()
        if parsed == Role.ADMIN:
            return self._permissions
        return self._grants.get(parsed, frozenset())

    def extend(self, permissions: Iterable, grants: Optional[Mapping[Role, Iterable]] = None) -> "PermissionCatalog":
        """Return a new catalog with extra permissions (and optional extra grants)."""
        merged = {role: set(perms) for role, perms in self._grants.items()}
        for role, perms in (grants or {}).items():
            merged.setdefault(Role.parse(role), set()).update(_perm_value(p) for p in perms)
        return PermissionCatalog(
            permissions=set(self._permissions) | {_perm_value(p) for p in permissions},
            grants=merged,
            version=self.version,
        )


def default_catalog() -> PermissionCatalog:
    return PermissionCatalog(permissions=list(P), grants=DEFAULT_ROLE_GRANTS)


@lru_cache()
def get_catalog() -> PermissionCatalog:
    """Process-wide catalog, built once."""
    return default_catalog()


# ------------------------ Role metadata ------------------------


def is_valid_role(value) -> bool:
    return Role.parse(value) is not None


def available_roles() -> List[Role]:
    return list(Role)


def role_display_name(role) -> str:
    parsed = Role.parse(role)
    if parsed is None:
        return role
    return ROLE_DISPLAY_NAMES[parsed]


def role_description(role) -> str:
    parsed = Role.parse(role)
    if parsed is None:
        return "No description available"
    return ROLE_DESCRIPTIONS[parsed]


def dashboard_route(role) -> str:
    parsed = Role.parse(role)
    return DASHBOARD_ROUTES.get(parsed, DEFAULT_DASHBOARD_ROUTE)


def role_level(role) -> int:
    return ROLE_HIERARCHY.get(Role.parse(role), 0)


def can_manage_role(manager_role, target_role) -> bool:
    """A role may manage only strictly lower levels."""
    return role_level(manager_role) > role_level(target_role)
