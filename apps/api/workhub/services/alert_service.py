"""
Project alerts service.

Delay alerts are produced by a periodic scan over stage timestamps; integrity
alerts (duplicate lead, unauthorized edit) are raised by the project service.
At most one active alert exists per (project, alert type).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from workhub.core.config import settings
from workhub.core.errors import NotFoundError
from workhub.db.enums import AlertSeverity, AlertType, Stage
from workhub.db.models import Project, ProjectAlert

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DelayRule:
    stage: Stage
    alert_type: AlertType
    severity: AlertSeverity
    threshold_days: int


def delay_rules() -> list[DelayRule]:
    """Current delay thresholds (read from settings on every scan)."""
    return [
        DelayRule(
            Stage.IN_REVIEW,
            AlertType.STAGE_INACTIVITY,
            AlertSeverity.WARNING,
            settings.STAGE_INACTIVITY_DAYS,
        ),
        DelayRule(
            Stage.ACCOUNTS,
            AlertType.PAYMENT_DELAY,
            AlertSeverity.CRITICAL,
            settings.PAYMENT_DELAY_DAYS,
        ),
        DelayRule(
            Stage.INSTALLATION,
            AlertType.INSTALLATION_DELAY,
            AlertSeverity.CRITICAL,
            settings.INSTALLATION_DELAY_DAYS,
        ),
    ]


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_in_stage(project: Project, now: datetime) -> int:
    entered = project.stage_change_timestamp or project.created_date
    return (now - _as_utc(entered)).days


def _delay_message(project: Project, rule: DelayRule, days: int) -> str:
    if rule.alert_type is AlertType.STAGE_INACTIVITY:
        return f"Project '{project.school}' has been in review for {days} days without progress"
    if rule.alert_type is AlertType.PAYMENT_DELAY:
        return f"Payment for '{project.school}' pending for {days} days"
    return f"Installation for '{project.school}' not completed for {days} days"


def find_active(db: Session, project_id: int, alert_type: AlertType) -> ProjectAlert | None:
    return (
        db.query(ProjectAlert)
        .filter(
            ProjectAlert.project_id == project_id,
            ProjectAlert.alert_type == alert_type.value,
            ProjectAlert.is_active.is_(True),
        )
        .first()
    )


def raise_alert(
    db: Session,
    project_id: int,
    alert_type: AlertType,
    severity: AlertSeverity,
    message: str,
    days_overdue: int | None = None,
) -> tuple[ProjectAlert, bool]:
    """
    Create an alert, or refresh the existing active one of the same type.

    Does not commit. Returns (alert, created).
    """
    existing = find_active(db, project_id, alert_type)
    if existing:
        existing.message = message[:500]
        existing.days_overdue = days_overdue
        return existing, False

    alert = ProjectAlert(
        project_id=project_id,
        alert_type=alert_type.value,
        severity=severity.value,
        message=message[:500],
        days_overdue=days_overdue,
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )
    db.add(alert)
    logger.info(
        "Alert raised: type=%s severity=%s project=%s",
        alert_type.value,
        severity.value,
        project_id,
    )
    return alert, True


def generate_delay_alerts(db: Session, now: datetime | None = None) -> int:
    """
    Scan stage timestamps and raise delay alerts for overdue projects.

    Returns the number of newly created alerts. Existing active alerts get
    their `days_overdue` refreshed.
    """
    now = now or datetime.now(timezone.utc)
    created = 0
    for rule in delay_rules():
        projects = db.query(Project).filter(Project.current_stage == rule.stage.value).all()
        for project in projects:
            days = days_in_stage(project, now)
            if days <= rule.threshold_days:
                continue
            _, is_new = raise_alert(
                db,
                project.id,
                rule.alert_type,
                rule.severity,
                _delay_message(project, rule, days),
                days_overdue=days - rule.threshold_days,
            )
            created += int(is_new)
    db.commit()
    logger.info("Delay alert scan complete: created=%s", created)
    return created


def auto_dismiss(db: Session, project_id: int, alert_type: AlertType, dismissed_by: str) -> int:
    """Dismiss active alerts of one type for a project. Does not commit."""
    alerts = (
        db.query(ProjectAlert)
        .filter(
            ProjectAlert.project_id == project_id,
            ProjectAlert.alert_type == alert_type.value,
            ProjectAlert.is_active.is_(True),
        )
        .all()
    )
    now = datetime.now(timezone.utc)
    for alert in alerts:
        alert.is_active = False
        alert.dismissed_at = now
        alert.dismissed_by = dismissed_by
    if alerts:
        logger.info(
            "Alerts auto-dismissed: type=%s project=%s count=%s",
            alert_type.value,
            project_id,
            len(alerts),
        )
    return len(alerts)


def list_active(db: Session) -> list[ProjectAlert]:
    return (
        db.query(ProjectAlert)
        .filter(ProjectAlert.is_active.is_(True))
        .order_by(ProjectAlert.created_at.desc(), ProjectAlert.id.desc())
        .all()
    )


def list_for_project(db: Session, project_id: int) -> list[ProjectAlert]:
    """Active alerts for one project."""
    return (
        db.query(ProjectAlert)
        .filter(
            ProjectAlert.project_id == project_id,
            ProjectAlert.is_active.is_(True),
        )
        .order_by(ProjectAlert.created_at.desc(), ProjectAlert.id.desc())
        .all()
    )


def summary(db: Session) -> dict[str, int]:
    """Active alert counts by severity."""
    rows = (
        db.query(ProjectAlert.severity, func.count(ProjectAlert.id))
        .filter(ProjectAlert.is_active.is_(True))
        .group_by(ProjectAlert.severity)
        .all()
    )
    counts = {severity: count for severity, count in rows}
    return {
        "total": sum(counts.values()),
        "critical": counts.get(AlertSeverity.CRITICAL.value, 0),
        "warning": counts.get(AlertSeverity.WARNING.value, 0),
        "info": counts.get(AlertSeverity.INFO.value, 0),
    }


def dismiss(db: Session, alert_id: int, dismissed_by: str) -> ProjectAlert:
    """
    Dismiss an alert.

    Dismissing an already-dismissed alert is a no-op: the first
    dismissal stamp is kept.

    Raises:
        NotFoundError: unknown alert id
    """
    alert = db.get(ProjectAlert, alert_id)
    if alert is None:
        raise NotFoundError(f"Alert not found with id: {alert_id}")
    if not alert.is_active:
        return alert

    alert.is_active = False
    alert.dismissed_at = datetime.now(timezone.utc)
    alert.dismissed_by = dismissed_by
    db.commit()
    db.refresh(alert)
    logger.info("Alert dismissed: id=%s project=%s", alert.id, alert.project_id)
    return alert
