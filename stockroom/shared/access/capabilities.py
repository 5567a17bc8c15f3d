"""Role-gated access control.

A capability is allowed for a role when the capability requires no
particular role, or when the role is one of those it lists. The same
table drives API enforcement (``require_capability``) and the client's
advisory navigation filter (``ClientSession.can``); the API check is the
security boundary, the client check only hides what would be refused.
"""

from collections.abc import Collection
from enum import StrEnum

from stockroom.features.user.models import UserRole


class Capability(StrEnum):
    """Navigable or operable capabilities of the application."""

    DASHBOARD = "dashboard"
    SETTINGS = "settings"
    SUPPORT = "support"
    ITEMS_VIEW = "items:view"
    ITEMS_MANAGE = "items:manage"
    MOVEMENTS_RECORD = "movements:record"
    MOVEMENTS_VIEW = "movements:view"
    REPORTS_VIEW = "reports:view"
    USERS_MANAGE = "users:manage"
    AUDIT_LOG_VIEW = "audit-log:view"
    ROLES_ASSIGN = "roles:assign"


# An empty set means "any authenticated role"
CAPABILITY_ROLES: dict[Capability, frozenset[UserRole]] = {
    Capability.DASHBOARD: frozenset(),
    Capability.SETTINGS: frozenset(),
    Capability.SUPPORT: frozenset(),
    Capability.ITEMS_VIEW: frozenset(),
    Capability.ITEMS_MANAGE: frozenset({UserRole.WAREHOUSE_MANAGER, UserRole.HR}),
    Capability.MOVEMENTS_RECORD: frozenset({UserRole.WAREHOUSE_MANAGER}),
    Capability.MOVEMENTS_VIEW: frozenset({UserRole.WAREHOUSE_MANAGER, UserRole.HR}),
    Capability.REPORTS_VIEW: frozenset({UserRole.HR}),
    Capability.USERS_MANAGE: frozenset({UserRole.HR}),
    Capability.AUDIT_LOG_VIEW: frozenset({UserRole.HR}),
    Capability.ROLES_ASSIGN: frozenset({UserRole.ADMIN}),
}

# Client navigation routes and the capability each one needs
ROUTE_CAPABILITIES: dict[str, Capability] = {
    "/": Capability.DASHBOARD,
    "/settings": Capability.SETTINGS,
    "/support": Capability.SUPPORT,
    "/items": Capability.ITEMS_MANAGE,
    "/items/{item_id}": Capability.ITEMS_MANAGE,
    "/epis": Capability.ITEMS_MANAGE,
    "/maintenance": Capability.ITEMS_MANAGE,
    "/suggestions": Capability.ITEMS_MANAGE,
    "/movements": Capability.MOVEMENTS_RECORD,
    "/reports": Capability.REPORTS_VIEW,
    "/users": Capability.USERS_MANAGE,
    "/users/{user_id}": Capability.USERS_MANAGE,
    "/audit-log": Capability.AUDIT_LOG_VIEW,
}


def is_allowed(role: UserRole | str | None, required_roles: Collection[UserRole | str]) -> bool:
    """Return True when ``role`` satisfies ``required_roles``.

    An empty requirement admits any role; otherwise the role must be listed.
    A missing role (unauthenticated) is only admitted by an empty requirement.

    >>> is_allowed(UserRole.HR, [])
    True
    >>> is_allowed(UserRole.EMPLOYEE, [UserRole.HR])
    False
    """
    if not required_roles:
        return True
    return role is not None and role in required_roles


def can(role: UserRole | str | None, capability: Capability) -> bool:
    """Check a role against the declared capability table."""
    return is_allowed(role, CAPABILITY_ROLES[capability])


def allowed_capabilities(role: UserRole | str | None) -> set[Capability]:
    """All capabilities a role may use."""
    return {capability for capability in Capability if can(role, capability)}


def allowed_routes(role: UserRole | str | None) -> list[str]:
    """Client routes visible to a role, in declaration order."""
    return [route for route, capability in ROUTE_CAPABILITIES.items() if can(role, capability)]
