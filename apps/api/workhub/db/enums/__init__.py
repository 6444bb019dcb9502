"""Enum definitions for application constants."""

from workhub.db.enums.alerts import AlertSeverity, AlertType
from workhub.db.enums.auth import SYSTEM_ACTOR, Role
from workhub.db.enums.projects import (
    ActivityType,
    ExecutiveViewStatus,
    InstallationStatus,
    MutationKind,
    PaymentStatus,
    Region,
    Stage,
)

__all__ = [
    "ActivityType",
    "AlertSeverity",
    "AlertType",
    "ExecutiveViewStatus",
    "InstallationStatus",
    "MutationKind",
    "PaymentStatus",
    "Region",
    "Role",
    "Stage",
    "SYSTEM_ACTOR",
]
