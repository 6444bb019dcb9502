"""
Stage-scoped project mutations.

`apply_mutation` is the single entry point for every stage change and every
specialist update. Validation, the mutation itself, automatic transitions,
stage history, activity log and alert housekeeping happen in one database
transaction: either all of it is committed or none of it is.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from workhub.core import stage_machine
from workhub.core.errors import ConflictError, ValidationError, WorkHubError
from workhub.core.role_policy import Actor
from workhub.core.structured_logging import build_log_context
from workhub.db.enums import (
    SYSTEM_ACTOR,
    ActivityType,
    InstallationStatus,
    MutationKind,
    PaymentStatus,
    Stage,
)
from workhub.db.models import (
    PaymentTransaction,
    Project,
    ProjectActivityLog,
    ProjectStageHistory,
)
from workhub.schemas.common import VersionedRequest
from workhub.schemas.project import (
    AccountsUpdate,
    InstallationUpdate,
    ReadyForAccountsRequest,
    SalesUpdate,
    StageTransitionRequest,
)
from workhub.services import alert_service

logger = logging.getLogger(__name__)

SALES_FIELDS = (
    "project_value",
    "invoice_amount",
    "pending_delivery",
    "quotation_remarks",
    "expected_delivery_date",
    "sales_remarks",
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _str(value: Any) -> str | None:
    if value is None:
        return None
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


# =============================================================================
# Shared bookkeeping (also used by project_service)
# =============================================================================


def check_version(project: Project, payload: VersionedRequest | None) -> None:
    """Reject a mutation built against a stale copy of the project."""
    if payload is None or payload.version is None:
        return
    if payload.version != project.version:
        raise ConflictError(
            f"Project {project.id} was modified by someone else "
            f"(version {project.version}, request based on {payload.version})"
        )


def log_activity(
    db: Session,
    project_id: int,
    action: ActivityType,
    actor: Actor,
    field_name: str | None = None,
    old_value: Any = None,
    new_value: Any = None,
    remarks: str | None = None,
) -> None:
    db.add(
        ProjectActivityLog(
            project_id=project_id,
            action_type=action.value,
            field_name=field_name,
            old_value=_str(old_value),
            new_value=_str(new_value),
            performed_by=actor.name,
            performed_by_role=actor.role,
            remarks=remarks,
            timestamp=_now(),
        )
    )


def apply_fields(
    db: Session,
    project: Project,
    values: dict[str, Any],
    actor: Actor,
) -> list[str]:
    """Set changed fields, logging one FIELD_UPDATED entry per change."""
    changed = []
    for field, new in values.items():
        if hasattr(new, "value"):
            new = new.value
        old = getattr(project, field)
        if old == new:
            continue
        setattr(project, field, new)
        log_activity(db, project.id, ActivityType.FIELD_UPDATED, actor, field, old, new)
        changed.append(field)
    return changed


def touch(project: Project, actor: Actor) -> None:
    project.last_updated_by = actor.name
    project.last_updated_at = _now()


def commit(db: Session) -> None:
    """Commit, translating a concurrent-version clash into ConflictError."""
    try:
        db.commit()
    except StaleDataError as e:
        db.rollback()
        raise ConflictError("Project was modified concurrently; reload and retry") from e


# =============================================================================
# Stage changes
# =============================================================================


def change_stage(
    db: Session,
    project: Project,
    to_stage: Stage,
    actor: Actor,
    remarks: str | None = None,
    system: bool = False,
) -> None:
    """
    Move `project` to `to_stage` and record it.

    Callers are responsible for validating the edge. Follows automatic
    advances (ONBOARDED -> SALES) before returning.
    """
    from_stage = Stage(project.current_stage)
    now = _now()
    changed_by = SYSTEM_ACTOR if system else actor.name

    project.previous_stage = from_stage.value
    project.current_stage = to_stage.value
    project.stage_change_timestamp = now
    project.stage_changed_by = changed_by
    project.current_owner_role = stage_machine.owner_role_for(
        to_stage, project.current_owner_role
    )
    if to_stage in stage_machine.LOCKING_STAGES:
        project.is_locked = True
    if to_stage is Stage.ACCOUNTS and project.payment_status is None:
        project.payment_status = PaymentStatus.PENDING.value
    if to_stage is Stage.INSTALLATION and project.installation_status is None:
        project.installation_status = InstallationStatus.PENDING.value

    db.add(
        ProjectStageHistory(
            project_id=project.id,
            from_stage=from_stage.value,
            to_stage=to_stage.value,
            changed_by=changed_by,
            changed_by_role=SYSTEM_ACTOR if system else actor.role,
            remarks=remarks,
            is_system_triggered=system,
            timestamp=now,
        )
    )
    log_activity(
        db,
        project.id,
        ActivityType.STAGE_CHANGED,
        actor,
        "current_stage",
        from_stage,
        to_stage,
        remarks=remarks,
    )

    cleared = stage_machine.ALERTS_CLEARED_ON_EXIT.get(from_stage)
    if cleared is not None:
        alert_service.auto_dismiss(db, project.id, cleared, SYSTEM_ACTOR)

    logger.info(
        "Stage changed: %s -> %s (system=%s)",
        from_stage.value,
        to_stage.value,
        system,
        extra=build_log_context(user_id=actor.user_id, project_id=project.id),
    )

    follow = stage_machine.AUTO_ADVANCE.get(to_stage)
    if follow is not None:
        next_stage, reason = follow
        change_stage(db, project, next_stage, actor, remarks=reason, system=True)


# =============================================================================
# Mutation handlers
# =============================================================================


def _transition(db: Session, project: Project, payload: StageTransitionRequest, actor: Actor) -> None:
    stage_machine.check_manual_transition(project, payload.to_stage, actor)
    change_stage(db, project, Stage(payload.to_stage), actor, remarks=payload.remarks)


def _sales_update(db: Session, project: Project, payload: SalesUpdate, actor: Actor) -> None:
    stage_machine.check_mutation_allowed(MutationKind.SALES_UPDATE, project, actor)

    values = {f: getattr(payload, f) for f in SALES_FIELDS if f in payload.model_fields_set}
    for money_field in ("project_value", "invoice_amount"):
        amount = values.get(money_field)
        if amount is not None and amount < 0:
            raise ValidationError(f"{money_field.replace('_', ' ').capitalize()} cannot be negative")

    if Stage(project.current_stage) is Stage.ACCOUNTS:
        # Payments need both figures set
        if "project_value" in values and values["project_value"] is None:
            raise ValidationError("Project value cannot be cleared once in Accounts")
        if "invoice_amount" in values and not values["invoice_amount"]:
            raise ValidationError("Invoice amount must stay greater than zero once in Accounts")

    invoice = values.get("invoice_amount")
    if "invoice_amount" in values and project.payments:
        received = project.total_received
        if invoice is None or Decimal(invoice) <= received:
            raise ValidationError(
                f"Invoice amount must stay above the {received} already received"
            )

    if apply_fields(db, project, values, actor):
        project.sales_updated_timestamp = _now()


def _ready_for_accounts(
    db: Session, project: Project, payload: ReadyForAccountsRequest, actor: Actor
) -> None:
    stage_machine.check_mutation_allowed(MutationKind.READY_FOR_ACCOUNTS, project, actor)
    if project.project_value is None or project.invoice_amount is None:
        raise ValidationError(
            "Project value and invoice amount must be set before moving to Accounts"
        )
    if project.invoice_amount <= 0:
        raise ValidationError("Invoice amount must be greater than zero")
    remarks = (payload.remarks if payload else None) or "Ready for accounts"
    change_stage(db, project, Stage.ACCOUNTS, actor, remarks=remarks)


def _payment(db: Session, project: Project, payload: AccountsUpdate, actor: Actor) -> None:
    stage_machine.check_mutation_allowed(MutationKind.PAYMENT, project, actor)
    outcome = stage_machine.evaluate_payment(
        project.invoice_amount,
        project.total_received,
        payload.amount_received,
        payload.payment_status,
    )

    paid_on = payload.payment_date or date.today()
    project.payments.append(
        PaymentTransaction(
            amount_paid=outcome.amount,
            payment_date=paid_on,
            payment_proof_url=payload.payment_proof_url,
            remarks=payload.payment_remarks,
            created_at=_now(),
            created_by=actor.name,
        )
    )
    project.amount_received = outcome.amount
    project.payment_status = outcome.status.value
    project.payment_date = paid_on
    if payload.payment_remarks is not None:
        project.payment_remarks = payload.payment_remarks
    if payload.payment_proof_url is not None:
        project.payment_proof_url = payload.payment_proof_url
    project.accounts_updated_timestamp = _now()

    log_activity(
        db,
        project.id,
        ActivityType.PAYMENT_ADDED,
        actor,
        "amount_received",
        None,
        outcome.amount,
        remarks=f"Pending {outcome.pending_amount}",
    )
    logger.info(
        "Payment recorded: amount=%s pending=%s status=%s",
        outcome.amount,
        outcome.pending_amount,
        outcome.status.value,
        extra=build_log_context(user_id=actor.user_id, project_id=project.id),
    )

    if outcome.status is PaymentStatus.COMPLETED:
        change_stage(
            db,
            project,
            Stage.INSTALLATION,
            actor,
            remarks=f"Payment completed by {actor.name}",
            system=True,
        )


def _installation_update(
    db: Session, project: Project, payload: InstallationUpdate, actor: Actor
) -> None:
    stage_machine.check_mutation_allowed(MutationKind.INSTALLATION_UPDATE, project, actor)
    status = InstallationStatus(payload.installation_status)
    remarks = (payload.installation_remarks or "").strip()
    if status is InstallationStatus.NOT_DONE and not remarks:
        raise ValidationError("Remarks are required when installation is not done")

    values: dict[str, Any] = {"installation_status": status}
    if "installation_remarks" in payload.model_fields_set:
        values["installation_remarks"] = payload.installation_remarks
    if payload.completion_date is not None:
        values["completion_date"] = payload.completion_date
    elif status is InstallationStatus.WORK_DONE:
        values["completion_date"] = date.today()

    apply_fields(db, project, values, actor)
    project.installation_updated_timestamp = _now()

    if status is InstallationStatus.WORK_DONE:
        change_stage(
            db,
            project,
            Stage.COMPLETED,
            actor,
            remarks=f"Installation completed by {actor.name}",
            system=True,
        )


_HANDLERS: dict[MutationKind, Callable[[Session, Project, Any, Actor], None]] = {
    MutationKind.TRANSITION: _transition,
    MutationKind.SALES_UPDATE: _sales_update,
    MutationKind.READY_FOR_ACCOUNTS: _ready_for_accounts,
    MutationKind.PAYMENT: _payment,
    MutationKind.INSTALLATION_UPDATE: _installation_update,
}


def apply_mutation(
    db: Session,
    project: Project,
    kind: MutationKind,
    payload: VersionedRequest | None,
    actor: Actor,
) -> Project:
    """
    Apply one stage-scoped mutation atomically and return the updated project.

    Raises:
        ValidationError: payload rejected (overpayment, missing remarks, ...)
        AuthorizationError: actor's role may not perform `kind`
        ConflictError: wrong stage, locked project, or stale version
    """
    project_id = project.id
    try:
        check_version(project, payload)
        _HANDLERS[kind](db, project, payload, actor)
        touch(project, actor)
        commit(db)
    except WorkHubError as e:
        db.rollback()
        logger.warning(
            "Mutation rejected: kind=%s reason=%s",
            kind.value,
            e.message,
            extra=build_log_context(user_id=actor.user_id, project_id=project_id),
        )
        raise
    except Exception:
        db.rollback()
        logger.exception(
            "Mutation failed: kind=%s",
            kind.value,
            extra=build_log_context(user_id=actor.user_id, project_id=project_id),
        )
        raise

    db.refresh(project)
    return project
