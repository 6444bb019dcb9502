"""Tests for apply_mutation: automatic transitions, ledger atomicity, versions."""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaValidationError

from workhub.core.deps import actor_for
from workhub.core.errors import ConflictError, ValidationError
from workhub.db.enums import (
    InstallationStatus,
    MutationKind,
    PaymentStatus,
    Role,
    Stage,
)
from workhub.db.models import PaymentTransaction, Project, ProjectStageHistory
from workhub.schemas.project import AccountsUpdate, SalesUpdate, StageTransitionRequest
from workhub.services import project_service, workflow_service


def _reload(db, project_id: int) -> Project:
    db.expire_all()
    return db.get(Project, project_id)


def test_onboarding_auto_advances_to_sales_and_locks(db, pipeline):
    project = pipeline.onboard(pipeline.create())

    assert project.current_stage == Stage.SALES.value
    assert project.previous_stage == Stage.ONBOARDED.value
    assert project.is_locked is True
    assert project.current_owner_role == Role.SALES_COORDINATOR.value
    assert project.stage_changed_by == "SYSTEM"

    history = project_service.stage_history(db, project.id)
    assert [h.to_stage for h in history] == [
        "LEAD", "ON_PROGRESS", "QUOTATION_SENT", "IN_REVIEW", "ONBOARDED", "SALES",
    ]
    assert history[-1].is_system_triggered is True
    assert not any(h.is_system_triggered for h in history[:-1])


def test_transition_records_actor_and_remarks(db, pipeline, team):
    project = pipeline.create()
    project = workflow_service.apply_mutation(
        db,
        project,
        MutationKind.TRANSITION,
        StageTransitionRequest(to_stage=Stage.ON_PROGRESS, remarks="Called the principal"),
        actor_for(team.bob),
    )
    assert project.stage_changed_by == "Bob"
    last = project_service.stage_history(db, project.id)[-1]
    assert last.changed_by == "Bob"
    assert last.changed_by_role == Role.EXECUTIVE.value
    assert last.remarks == "Called the principal"


def test_skipping_stages_is_rejected_and_nothing_changes(db, pipeline):
    project = pipeline.create()
    with pytest.raises(ValidationError):
        pipeline.transition(project, Stage.ONBOARDED)
    project = _reload(db, project.id)
    assert project.current_stage == Stage.LEAD.value
    assert len(project_service.stage_history(db, project.id)) == 1


def test_ready_for_accounts_requires_value_and_invoice(db, pipeline, team):
    project = pipeline.onboard(pipeline.create())
    with pytest.raises(ValidationError):
        workflow_service.apply_mutation(
            db, project, MutationKind.READY_FOR_ACCOUNTS, None, actor_for(team.sales)
        )
    project = _reload(db, project.id)
    assert project.current_stage == Stage.SALES.value


def test_ready_for_accounts_moves_project_and_opens_payment(db, pipeline):
    project = pipeline.to_accounts(pipeline.onboard(pipeline.create()), invoice="50000")
    assert project.current_stage == Stage.ACCOUNTS.value
    assert project.current_owner_role == Role.ACCOUNTS.value
    assert project.payment_status == PaymentStatus.PENDING.value
    assert project.pending_amount == Decimal("50000")


def test_sales_update_outside_sales_stages_conflicts(db, pipeline, team):
    project = pipeline.create()
    with pytest.raises(ConflictError):
        workflow_service.apply_mutation(
            db,
            project,
            MutationKind.SALES_UPDATE,
            SalesUpdate(project_value=Decimal("10")),
            actor_for(team.sales),
        )


def test_partial_payment_appends_ledger_and_stays_in_accounts(db, pipeline):
    project = pipeline.to_accounts(pipeline.onboard(pipeline.create()))
    project = pipeline.pay(project, "40000", payment_remarks="First instalment")

    assert project.current_stage == Stage.ACCOUNTS.value
    assert project.payment_status == PaymentStatus.PARTIAL.value
    assert project.amount_received == Decimal("40000")
    assert project.total_received == Decimal("40000")
    assert project.pending_amount == Decimal("60000")
    assert [p.amount_paid for p in project.payment_history] == [Decimal("40000")]
    assert project.payment_history[0].created_by == "Ann Accounts"


def test_amount_received_is_a_delta_not_a_running_total(db, pipeline):
    project = pipeline.to_accounts(pipeline.onboard(pipeline.create()))
    project = pipeline.pay(project, "30000")
    project = pipeline.pay(project, "30000")
    assert project.amount_received == Decimal("30000")
    assert project.total_received == Decimal("60000")
    assert project.pending_amount == Decimal("40000")


def test_completing_payment_moves_to_installation_in_same_commit(db, pipeline):
    project = pipeline.to_accounts(pipeline.onboard(pipeline.create()))
    project = pipeline.pay(project, "60000")
    project = pipeline.pay(project, "40000")

    fresh = _reload(db, project.id)
    assert fresh.payment_status == PaymentStatus.COMPLETED.value
    assert fresh.current_stage == Stage.INSTALLATION.value
    assert fresh.installation_status == InstallationStatus.PENDING.value
    assert fresh.pending_amount == Decimal("0")
    assert len(fresh.payments) == 2
    last = project_service.stage_history(db, fresh.id)[-1]
    assert (last.from_stage, last.to_stage, last.is_system_triggered) == ("ACCOUNTS", "INSTALLATION", True)


def test_overpayment_is_rejected_without_side_effects(db, pipeline):
    project = pipeline.to_accounts(pipeline.onboard(pipeline.create()), invoice="100000")
    project = pipeline.pay(project, "90000")
    version = project.version

    with pytest.raises(ValidationError):
        pipeline.pay(project, "15000")

    fresh = _reload(db, project.id)
    assert fresh.total_received == Decimal("90000")
    assert fresh.amount_received == Decimal("90000")
    assert fresh.payment_status == PaymentStatus.PARTIAL.value
    assert fresh.current_stage == Stage.ACCOUNTS.value
    assert fresh.version == version
    assert db.query(PaymentTransaction).filter_by(project_id=fresh.id).count() == 1


def test_zero_payment_is_rejected(db, pipeline):
    project = pipeline.to_accounts(pipeline.onboard(pipeline.create()))
    with pytest.raises(ValidationError):
        pipeline.pay(project, "0")


def test_requested_completed_with_balance_left_is_rejected(db, pipeline):
    project = pipeline.to_accounts(pipeline.onboard(pipeline.create()))
    with pytest.raises(ValidationError):
        pipeline.pay(project, "10", payment_status=PaymentStatus.COMPLETED)


def test_invoice_cannot_drop_to_amount_already_received(db, pipeline, team):
    project = pipeline.to_accounts(pipeline.onboard(pipeline.create()))
    project = pipeline.pay(project, "40000")
    with pytest.raises(ValidationError):
        workflow_service.apply_mutation(
            db,
            project,
            MutationKind.SALES_UPDATE,
            SalesUpdate(invoice_amount=Decimal("30000")),
            actor_for(team.sales),
        )


@pytest.mark.parametrize(
    "fields",
    [
        {"invoice_amount": None},
        {"invoice_amount": Decimal("0")},
        {"project_value": None},
        {"invoice_amount": None, "project_value": None},
    ],
)
def test_project_in_accounts_keeps_value_and_invoice(db, pipeline, team, fields):
    project = pipeline.to_accounts(pipeline.onboard(pipeline.create()))
    with pytest.raises(ValidationError):
        workflow_service.apply_mutation(
            db,
            project,
            MutationKind.SALES_UPDATE,
            SalesUpdate(**fields),
            actor_for(team.sales),
        )

    fresh = _reload(db, project.id)
    assert fresh.current_stage == Stage.ACCOUNTS.value
    assert fresh.project_value == Decimal("100000")
    assert fresh.invoice_amount == Decimal("100000")

    fresh = pipeline.pay(fresh, "100000")
    assert fresh.current_stage == Stage.INSTALLATION.value


@pytest.mark.parametrize("amount", ["0.001", "99999.996"])
def test_request_schema_rejects_sub_cent_amounts(amount):
    with pytest.raises(SchemaValidationError):
        AccountsUpdate(amount_received=Decimal(amount))
    with pytest.raises(SchemaValidationError):
        SalesUpdate(invoice_amount=Decimal(amount))


@pytest.mark.parametrize("amount", ["0.001", "99999.996"])
def test_sub_cent_payment_leaves_ledger_untouched(db, pipeline, team, amount):
    project = pipeline.to_accounts(pipeline.onboard(pipeline.create()), invoice="100000")
    with pytest.raises(ValidationError):
        workflow_service.apply_mutation(
            db,
            project,
            MutationKind.PAYMENT,
            AccountsUpdate.model_construct(amount_received=Decimal(amount)),
            actor_for(team.accounts),
        )

    fresh = _reload(db, project.id)
    assert fresh.payments == []
    assert fresh.pending_amount == Decimal("100000")

    fresh = pipeline.pay(fresh, "100000")
    assert fresh.current_stage == Stage.INSTALLATION.value
    assert fresh.payment_status == PaymentStatus.COMPLETED.value


def test_work_done_completes_project_and_stamps_completion_date(db, pipeline):
    project = pipeline.complete(pipeline.create())

    assert project.current_stage == Stage.COMPLETED.value
    assert project.installation_status == InstallationStatus.WORK_DONE.value
    assert project.completion_date == date.today()
    assert project.is_locked is True
    assert project.current_owner_role == Role.INSTALLATION.value


def test_not_done_requires_remarks(db, pipeline):
    project = pipeline.to_installation(pipeline.create())
    with pytest.raises(ValidationError):
        pipeline.install(project, InstallationStatus.NOT_DONE, remarks="  ")

    project = pipeline.install(project, InstallationStatus.NOT_DONE, remarks="Power outage on site")
    assert project.current_stage == Stage.INSTALLATION.value
    assert project.installation_remarks == "Power outage on site"


def test_stale_version_is_rejected(db, pipeline, team):
    project = pipeline.create()
    stale_version = project.version
    project = pipeline.transition(project, Stage.ON_PROGRESS)
    assert project.version > stale_version

    with pytest.raises(ConflictError):
        workflow_service.apply_mutation(
            db,
            project,
            MutationKind.TRANSITION,
            StageTransitionRequest(to_stage=Stage.QUOTATION_SENT, version=stale_version),
            actor_for(team.alice),
        )


def test_matching_version_is_accepted(db, pipeline, team):
    project = pipeline.create()
    project = workflow_service.apply_mutation(
        db,
        project,
        MutationKind.TRANSITION,
        StageTransitionRequest(to_stage=Stage.ON_PROGRESS, version=project.version),
        actor_for(team.alice),
    )
    assert project.current_stage == Stage.ON_PROGRESS.value


def test_accounts_update_by_sales_is_not_authorized(db, pipeline, team):
    from workhub.core.errors import AuthorizationError

    project = pipeline.to_accounts(pipeline.onboard(pipeline.create()))
    with pytest.raises(AuthorizationError):
        workflow_service.apply_mutation(
            db,
            project,
            MutationKind.PAYMENT,
            AccountsUpdate(amount_received=Decimal("10")),
            actor_for(team.sales),
        )


def test_every_mutation_stamps_last_updated_by(db, pipeline, team):
    project = pipeline.to_accounts(pipeline.onboard(pipeline.create()))
    assert project.last_updated_by == "Sam Sales"
    project = pipeline.pay(project, "10")
    assert project.last_updated_by == "Ann Accounts"


def test_history_survives_project_deletion(db, pipeline, team):
    project = pipeline.create()
    project_id = project.id
    project_service.delete_project(db, project, actor_for(team.alice))

    assert db.get(Project, project_id) is None
    assert db.query(ProjectStageHistory).filter_by(project_id=project_id).count() == 1
    actions = [a.action_type for a in project_service.activity_log(db, project_id)]
    assert actions == ["CREATED", "DELETED"]
