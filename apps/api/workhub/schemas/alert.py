"""Pydantic schemas for project alerts."""

from datetime import datetime

from workhub.db.enums import AlertSeverity, AlertType
from workhub.schemas.common import CamelModel


class AlertRead(CamelModel):
    id: int
    project_id: int
    alert_type: AlertType
    severity: AlertSeverity
    message: str
    days_overdue: int | None = None
    is_active: bool
    created_at: datetime
    dismissed_at: datetime | None = None
    dismissed_by: str | None = None


class AlertSummary(CamelModel):
    """Active alert counts by severity."""

    total: int
    critical: int
    warning: int
    info: int


class AlertScanResult(CamelModel):
    created: int
