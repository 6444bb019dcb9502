"""Role policy: which roles reach which areas, and where each role lands."""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from workhub.db.enums import Role


class Area(str, Enum):
    """Gated areas of the dashboard and their API surfaces."""

    DASHBOARD = "dashboard"  # analytics, SUPER_ADMIN only
    ADMIN = "admin"  # CRM pipeline, users, alerts
    EXECUTIVE = "executive"
    SALES = "sales"
    ACCOUNTS = "accounts"
    INSTALLATION = "installation"
    COMPLETED = "completed"  # archive
    OPERATIONAL = "operational"  # companies/registry


class AccessDecision(str, Enum):
    ALLOW = "allow"
    LOGIN = "login"  # not authenticated
    UNAUTHORIZED = "unauthorized"  # authenticated, wrong role


class HasRole(Protocol):
    role: str


ADMINS = frozenset({Role.SUPER_ADMIN, Role.ADMIN})

AREA_ROLES: dict[Area, frozenset[Role]] = {
    Area.DASHBOARD: frozenset({Role.SUPER_ADMIN}),
    Area.ADMIN: ADMINS,
    Area.EXECUTIVE: ADMINS | {Role.EXECUTIVE},
    Area.SALES: ADMINS | {Role.SALES_COORDINATOR},
    Area.ACCOUNTS: ADMINS | {Role.ACCOUNTS},
    Area.INSTALLATION: ADMINS | {Role.INSTALLATION},
    Area.COMPLETED: ADMINS
    | {Role.EXECUTIVE, Role.SALES_COORDINATOR, Role.ACCOUNTS, Role.INSTALLATION},
    Area.OPERATIONAL: frozenset(set(Role) - {Role.CLIENT}),
}

LOGIN_PATH = "/login"
UNAUTHORIZED_PATH = "/unauthorized"

LANDING_PATHS: dict[Role, str] = {
    Role.SUPER_ADMIN: "/dashboard",
    Role.ADMIN: "/crm",
    Role.EXECUTIVE: "/projects",
    Role.SALES_COORDINATOR: "/sales",
    Role.ACCOUNTS: "/accounts",
    Role.INSTALLATION: "/installation",
    Role.EMPLOYEE: "/companies",
    Role.CLIENT: UNAUTHORIZED_PATH,
}


def parse_role(value) -> Role | None:
    """Coerce a stored role string to Role, or None if unrecognized."""
    if isinstance(value, Role):
        return value
    if isinstance(value, str) and Role.has_value(value):
        return Role(value)
    return None


def evaluate_access(area: Area, user: HasRole | None) -> AccessDecision:
    """Single guard for every area. Pure and total."""
    if user is None:
        return AccessDecision.LOGIN
    role = parse_role(user.role)
    if role is not None and role in AREA_ROLES[area]:
        return AccessDecision.ALLOW
    return AccessDecision.UNAUTHORIZED


def can_access(area: Area, user: HasRole | None) -> bool:
    return evaluate_access(area, user) is AccessDecision.ALLOW


def accessible_areas(user: HasRole | None) -> list[Area]:
    return [area for area in Area if can_access(area, user)]


def default_landing_path(role) -> str:
    """
    Where "/" sends a signed-in user.

    Unrecognized roles go to the unauthorized page rather than any
    operational area.
    """
    parsed = parse_role(role)
    if parsed is None:
        return UNAUTHORIZED_PATH
    return LANDING_PATHS[parsed]


def landing_path_for(user: HasRole | None) -> str:
    if user is None:
        return LOGIN_PATH
    return default_landing_path(user.role)


def is_admin(role) -> bool:
    return parse_role(role) in ADMINS


@dataclass(frozen=True)
class Actor:
    """The user performing a mutation, as seen by the workflow rules."""

    name: str
    role: str
    user_id: int | None = None
