"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    User roles.

    Not a hierarchy: the two admin roles reach every gated area (the
    analytics dashboard is reserved for SUPER_ADMIN), each specialist role
    owns one stage group of the pipeline, and CLIENT reaches nothing
    operational.
    """

    SUPER_ADMIN = "ROLE_SUPER_ADMIN"
    ADMIN = "ROLE_ADMIN"
    EXECUTIVE = "ROLE_EXECUTIVE"
    SALES_COORDINATOR = "ROLE_SALES_COORDINATOR"
    ACCOUNTS = "ROLE_ACCOUNTS"
    INSTALLATION = "ROLE_INSTALLATION"
    EMPLOYEE = "ROLE_EMPLOYEE"
    CLIENT = "ROLE_CLIENT"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


# Name recorded as the actor for automatic transitions
SYSTEM_ACTOR = "SYSTEM"
