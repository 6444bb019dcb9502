"""SQLAlchemy ORM models."""

from workhub.db.models.alerts import ProjectAlert
from workhub.db.models.projects import (
    PaymentTransaction,
    Project,
    ProjectActivityLog,
    ProjectStageHistory,
)
from workhub.db.models.users import User

__all__ = [
    "PaymentTransaction",
    "Project",
    "ProjectActivityLog",
    "ProjectAlert",
    "ProjectStageHistory",
    "User",
]
