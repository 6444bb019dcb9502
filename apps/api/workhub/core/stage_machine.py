"""
Project stage machine.

Pure rules over stages and actors: forward order, executive grouping,
ownership, locking, edit/delete permissions, which roles may invoke each
mutation, and payment arithmetic. Persistence lives in workflow_service.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from workhub.core.errors import AuthorizationError, ConflictError, ValidationError
from workhub.core.role_policy import AREA_ROLES, Actor, Area, is_admin, parse_role
from workhub.db.enums import (
    AlertType,
    ExecutiveViewStatus,
    MutationKind,
    PaymentStatus,
    Role,
    Stage,
)


CENT = Decimal("0.01")


class ProjectLike(Protocol):
    current_stage: str
    created_by: str
    is_locked: bool


# Manual "next stage" edges; everything from ONBOARDED on is driven by
# automation or by the owning specialist's own action.
NEXT_STAGE: dict[Stage, Stage] = {
    Stage.LEAD: Stage.ON_PROGRESS,
    Stage.ON_PROGRESS: Stage.QUOTATION_SENT,
    Stage.QUOTATION_SENT: Stage.IN_REVIEW,
    Stage.IN_REVIEW: Stage.ONBOARDED,
}

EXECUTIVE_VIEW: dict[Stage, ExecutiveViewStatus] = {
    **{stage: ExecutiveViewStatus.NON_ONBOARDED for stage in Stage.non_onboarded()},
    **{stage: ExecutiveViewStatus.ONBOARDED_ACTIVE for stage in Stage.onboarded_active()},
    Stage.COMPLETED: ExecutiveViewStatus.COMPLETED,
}

OWNER_ROLE: dict[Stage, Role] = {
    Stage.LEAD: Role.EXECUTIVE,
    Stage.ON_PROGRESS: Role.EXECUTIVE,
    Stage.QUOTATION_SENT: Role.EXECUTIVE,
    Stage.IN_REVIEW: Role.EXECUTIVE,
    Stage.ONBOARDED: Role.SALES_COORDINATOR,
    Stage.SALES: Role.SALES_COORDINATOR,
    Stage.ACCOUNTS: Role.ACCOUNTS,
    Stage.INSTALLATION: Role.INSTALLATION,
}

# Stages that lock the project on entry
LOCKING_STAGES = frozenset({Stage.SALES, Stage.COMPLETED})

# Reaching the key stage immediately moves the project on, system triggered
AUTO_ADVANCE: dict[Stage, tuple[Stage, str]] = {
    Stage.ONBOARDED: (Stage.SALES, "Auto-assigned to Sales Coordinator"),
}

# Delay alerts that become moot once the project leaves the stage
ALERTS_CLEARED_ON_EXIT: dict[Stage, AlertType] = {
    Stage.IN_REVIEW: AlertType.STAGE_INACTIVITY,
    Stage.ACCOUNTS: AlertType.PAYMENT_DELAY,
    Stage.INSTALLATION: AlertType.INSTALLATION_DELAY,
}

MUTATION_AREA: dict[MutationKind, Area] = {
    MutationKind.TRANSITION: Area.EXECUTIVE,
    MutationKind.SALES_UPDATE: Area.SALES,
    MutationKind.READY_FOR_ACCOUNTS: Area.SALES,
    MutationKind.PAYMENT: Area.ACCOUNTS,
    MutationKind.INSTALLATION_UPDATE: Area.INSTALLATION,
}

# Stages in which each specialist mutation applies
MUTATION_STAGES: dict[MutationKind, frozenset[Stage]] = {
    MutationKind.SALES_UPDATE: frozenset({Stage.SALES, Stage.ACCOUNTS}),
    MutationKind.READY_FOR_ACCOUNTS: frozenset({Stage.SALES}),
    MutationKind.PAYMENT: frozenset({Stage.ACCOUNTS}),
    MutationKind.INSTALLATION_UPDATE: frozenset({Stage.INSTALLATION}),
}


def next_stage(current: Stage) -> Stage | None:
    """Next manual stage, or None where the funnel ends or the stage is terminal."""
    return NEXT_STAGE.get(Stage(current))


def executive_view_status(stage: Stage) -> ExecutiveViewStatus:
    return EXECUTIVE_VIEW[Stage(stage)]


def owner_role_for(stage: Stage, current_owner: str) -> str:
    """Responsible role after entering `stage`; COMPLETED keeps the last owner."""
    role = OWNER_ROLE.get(Stage(stage))
    return role.value if role else current_owner


def can_edit(project: ProjectLike, actor: Actor) -> bool:
    """
    Edit rights over executive fields.

    Completed projects are read-only for everyone. Leads are editable by any
    executive; once onboarded only the creator may edit. Admins may edit any
    project that is not completed.
    """
    status = executive_view_status(Stage(project.current_stage))
    if status is ExecutiveViewStatus.COMPLETED:
        return False
    if is_admin(actor.role):
        return True
    if parse_role(actor.role) is not Role.EXECUTIVE:
        return False
    if status is ExecutiveViewStatus.NON_ONBOARDED:
        return True
    return project.created_by == actor.name


def can_delete(project: ProjectLike, actor: Actor) -> bool:
    """Only non-onboarded projects, only by their creator (or an admin)."""
    status = executive_view_status(Stage(project.current_stage))
    if status is not ExecutiveViewStatus.NON_ONBOARDED:
        return False
    if is_admin(actor.role):
        return True
    return parse_role(actor.role) is Role.EXECUTIVE and project.created_by == actor.name


def check_mutation_allowed(kind: MutationKind, project: ProjectLike, actor: Actor) -> None:
    """Raise unless `actor` may apply `kind` to `project` in its current stage."""
    role = parse_role(actor.role)
    if role is None or role not in AREA_ROLES[MUTATION_AREA[kind]]:
        raise AuthorizationError(f"Role '{actor.role}' not authorized for {kind.value.lower()}")

    stages = MUTATION_STAGES.get(kind)
    if stages is not None and Stage(project.current_stage) not in stages:
        allowed = " or ".join(sorted(s.value for s in stages))
        raise ConflictError(
            f"{kind.value.replace('_', ' ').capitalize()} is only allowed when project is in {allowed} stage"
        )


def check_manual_transition(project: ProjectLike, to_stage: Stage, actor: Actor) -> None:
    """Validate an explicit "move to next stage" request."""
    check_mutation_allowed(MutationKind.TRANSITION, project, actor)
    current = Stage(project.current_stage)
    if project.is_locked:
        raise ConflictError(f"Project is locked in {current.value} stage")
    expected = next_stage(current)
    if expected is None:
        raise ConflictError(f"No manual transition out of {current.value}")
    if Stage(to_stage) is not expected:
        raise ValidationError(
            f"Invalid stage transition from {current.value} to {Stage(to_stage).value}"
        )


@dataclass(frozen=True)
class PaymentOutcome:
    """Ledger totals after applying one payment."""

    amount: Decimal
    total_received: Decimal
    pending_amount: Decimal
    status: PaymentStatus


def evaluate_payment(
    invoice_amount: Decimal | None,
    total_received: Decimal,
    amount: Decimal | None,
    requested_status: PaymentStatus | None = None,
) -> PaymentOutcome:
    """
    Validate a new payment against the invoice and compute resulting totals.

    `amount` is this transaction only, never the cumulative total. Status is
    derived from the remaining balance.
    """
    if invoice_amount is None:
        raise ValidationError("Invoice amount must be set before recording payments")
    if amount is None or amount <= 0:
        raise ValidationError("Payment amount must be greater than zero")
    if amount != amount.quantize(CENT):
        raise ValidationError("Payment amount cannot include fractions of a cent")

    invoice = Decimal(invoice_amount)
    remaining = invoice - total_received
    if amount > remaining:
        raise ValidationError(
            f"Payment amount {amount} exceeds remaining balance {remaining}"
        )

    new_total = total_received + amount
    pending = invoice - new_total
    if pending < 0:
        raise ValidationError("Pending amount cannot be negative")

    status = PaymentStatus.COMPLETED if pending == 0 else PaymentStatus.PARTIAL
    if requested_status is PaymentStatus.COMPLETED and status is not PaymentStatus.COMPLETED:
        raise ValidationError(
            f"Cannot mark payment completed while {pending} remains pending"
        )
    return PaymentOutcome(
        amount=amount,
        total_received=new_total,
        pending_amount=pending,
        status=status,
    )


__all__ = [
    "ALERTS_CLEARED_ON_EXIT",
    "AUTO_ADVANCE",
    "CENT",
    "LOCKING_STAGES",
    "PaymentOutcome",
    "can_delete",
    "can_edit",
    "check_manual_transition",
    "check_mutation_allowed",
    "evaluate_payment",
    "executive_view_status",
    "next_stage",
    "owner_role_for",
]
