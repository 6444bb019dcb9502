"""Project CRUD, role-scoped list views, and audit trail reads."""

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from workhub.core import stage_machine
from workhub.core.errors import AuthorizationError, ConflictError, NotFoundError, WorkHubError
from workhub.core.role_policy import Actor
from workhub.core.structured_logging import build_log_context
from workhub.db.enums import ActivityType, AlertSeverity, AlertType, Role, Stage
from workhub.db.models import Project, ProjectActivityLog, ProjectStageHistory
from workhub.schemas.project import ProjectCreate, ProjectUpdate
from workhub.services import alert_service
from workhub.services.workflow_service import (
    apply_fields,
    check_version,
    commit,
    log_activity,
    touch,
)

logger = logging.getLogger(__name__)


def get_project(db: Session, project_id: int) -> Project:
    """
    Raises:
        NotFoundError: unknown project id
    """
    project = db.get(Project, project_id)
    if project is None:
        raise NotFoundError(f"Project not found with id: {project_id}")
    return project


def find_by_contact_number(
    db: Session, contact_number: str, exclude_id: int | None = None
) -> Project | None:
    query = db.query(Project).filter(Project.contact_number == contact_number)
    if exclude_id is not None:
        query = query.filter(Project.id != exclude_id)
    return query.first()


def _reject_duplicate(db: Session, existing: Project, contact_number: str, actor: Actor) -> None:
    """Record a DUPLICATE_LEAD alert against the existing project, then refuse."""
    alert_service.raise_alert(
        db,
        existing.id,
        AlertType.DUPLICATE_LEAD,
        AlertSeverity.WARNING,
        f"Duplicate lead attempt for contact number {contact_number} by {actor.name}",
    )
    db.commit()
    raise ConflictError(
        f"A project with contact number {contact_number} already exists "
        f"(project {existing.id}, {existing.school})"
    )


def create_project(db: Session, data: ProjectCreate, actor: Actor) -> Project:
    """Create a LEAD owned by the executive team."""
    contact_number = (data.contact_number or "").strip() or None
    if contact_number:
        existing = find_by_contact_number(db, contact_number)
        if existing:
            logger.warning(
                "Duplicate lead rejected",
                extra=build_log_context(user_id=actor.user_id, project_id=existing.id),
            )
            _reject_duplicate(db, existing, contact_number, actor)

    now = datetime.now(timezone.utc)
    values = data.model_dump(exclude={"contact_number", "region"})
    project = Project(
        **values,
        contact_number=contact_number,
        region=data.region.value if data.region else None,
        created_date=now,
        created_by=actor.name,
        created_by_user_id=actor.user_id,
        current_stage=Stage.LEAD.value,
        current_owner_role=Role.EXECUTIVE.value,
        is_locked=False,
        stage_change_timestamp=now,
        stage_changed_by=actor.name,
        last_updated_by=actor.name,
        last_updated_at=now,
    )
    db.add(project)
    db.flush()

    db.add(
        ProjectStageHistory(
            project_id=project.id,
            from_stage=None,
            to_stage=Stage.LEAD.value,
            changed_by=actor.name,
            changed_by_role=actor.role,
            remarks="Project created",
            is_system_triggered=False,
            timestamp=now,
        )
    )
    log_activity(db, project.id, ActivityType.CREATED, actor, remarks="Project created")
    db.commit()
    db.refresh(project)

    logger.info(
        "Project created",
        extra=build_log_context(user_id=actor.user_id, project_id=project.id),
    )
    return project


def update_project(db: Session, project: Project, data: ProjectUpdate, actor: Actor) -> Project:
    """
    Update executive fields.

    A denied edit is recorded as an UNAUTHORIZED_EDIT alert before the
    AuthorizationError is raised.
    """
    if not stage_machine.can_edit(project, actor):
        alert_service.raise_alert(
            db,
            project.id,
            AlertType.UNAUTHORIZED_EDIT,
            AlertSeverity.WARNING,
            f"{actor.name} attempted to edit '{project.school}' in {project.current_stage} stage",
        )
        db.commit()
        logger.warning(
            "Unauthorized edit blocked",
            extra=build_log_context(user_id=actor.user_id, project_id=project.id),
        )
        raise AuthorizationError("You are not allowed to edit this project")

    project_id = project.id
    try:
        check_version(project, data)
        values = data.model_dump(exclude_unset=True, exclude={"version"})
        if values.get("contact_number"):
            values["contact_number"] = values["contact_number"].strip()
            if find_by_contact_number(db, values["contact_number"], exclude_id=project.id):
                raise ConflictError(
                    f"A project with contact number {values['contact_number']} already exists"
                )
        if "school" in values and values["school"] is None:
            values.pop("school")
        apply_fields(db, project, values, actor)
        touch(project, actor)
        commit(db)
    except WorkHubError:
        db.rollback()
        raise

    db.refresh(project)
    logger.info(
        "Project updated",
        extra=build_log_context(user_id=actor.user_id, project_id=project_id),
    )
    return project


def delete_project(db: Session, project: Project, actor: Actor) -> None:
    """Delete a not-yet-onboarded project. History and activity rows remain."""
    if not stage_machine.can_delete(project, actor):
        raise AuthorizationError(
            "Only the creator can delete a project, and only before onboarding"
        )
    project_id = project.id
    log_activity(
        db,
        project_id,
        ActivityType.DELETED,
        actor,
        remarks=f"Deleted '{project.school}' in {project.current_stage} stage",
    )
    db.delete(project)
    db.commit()
    logger.info(
        "Project deleted",
        extra=build_log_context(user_id=actor.user_id, project_id=project_id),
    )


# =============================================================================
# Role-scoped views
# =============================================================================


def _in_stages(db: Session, stages: list[Stage]) -> list[Project]:
    return (
        db.query(Project)
        .filter(Project.current_stage.in_([s.value for s in stages]))
        .order_by(Project.stage_change_timestamp.desc(), Project.id.desc())
        .all()
    )


def list_all(db: Session) -> list[Project]:
    return db.query(Project).order_by(Project.created_date.desc(), Project.id.desc()).all()


def list_executive(db: Session) -> list[Project]:
    """Every project; executives group them by executive view status."""
    return list_all(db)


def list_sales(db: Session) -> list[Project]:
    # Sales keeps editing while the project sits in Accounts
    return _in_stages(db, [Stage.SALES, Stage.ACCOUNTS])


def list_accounts(db: Session) -> list[Project]:
    return _in_stages(db, [Stage.ACCOUNTS])


def list_installation(db: Session) -> list[Project]:
    return _in_stages(db, [Stage.INSTALLATION])


def list_completed(db: Session) -> list[Project]:
    return _in_stages(db, [Stage.COMPLETED])


def list_by_stage(db: Session, stage: Stage) -> list[Project]:
    return _in_stages(db, [stage])


def stage_history(db: Session, project_id: int) -> list[ProjectStageHistory]:
    return (
        db.query(ProjectStageHistory)
        .filter(ProjectStageHistory.project_id == project_id)
        .order_by(ProjectStageHistory.timestamp, ProjectStageHistory.id)
        .all()
    )


def activity_log(db: Session, project_id: int) -> list[ProjectActivityLog]:
    return (
        db.query(ProjectActivityLog)
        .filter(ProjectActivityLog.project_id == project_id)
        .order_by(ProjectActivityLog.timestamp, ProjectActivityLog.id)
        .all()
    )
