"""Project endpoints: CRUD, role-scoped views and stage-scoped mutations."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from workhub.core.deps import actor_for, get_db, require_area
from workhub.core.role_policy import Area
from workhub.db.enums import MutationKind, Stage
from workhub.db.models import User
from workhub.schemas.project import (
    AccountsUpdate,
    ActivityLogRead,
    InstallationUpdate,
    ProjectCreate,
    ProjectRead,
    ProjectUpdate,
    ReadyForAccountsRequest,
    SalesUpdate,
    StageHistoryRead,
    StageTransitionRequest,
)
from workhub.services import project_service, workflow_service

router = APIRouter(prefix="/projects", tags=["projects"])


def _mutate(db: Session, project_id: int, kind: MutationKind, payload, user: User):
    project = project_service.get_project(db, project_id)
    return workflow_service.apply_mutation(db, project, kind, payload, actor_for(user))


# =============================================================================
# Executive
# =============================================================================


@router.post("/create", response_model=ProjectRead, status_code=201)
def create_project(
    data: ProjectCreate,
    user: User = Depends(require_area(Area.EXECUTIVE)),
    db: Session = Depends(get_db),
):
    return project_service.create_project(db, data, actor_for(user))


@router.put("/{project_id}", response_model=ProjectRead)
def update_project(
    project_id: int,
    data: ProjectUpdate,
    user: User = Depends(require_area(Area.EXECUTIVE)),
    db: Session = Depends(get_db),
):
    project = project_service.get_project(db, project_id)
    return project_service.update_project(db, project, data, actor_for(user))


@router.delete("/{project_id}", status_code=204)
def delete_project(
    project_id: int,
    user: User = Depends(require_area(Area.EXECUTIVE)),
    db: Session = Depends(get_db),
):
    project = project_service.get_project(db, project_id)
    project_service.delete_project(db, project, actor_for(user))
    return Response(status_code=204)


@router.post("/{project_id}/transition", response_model=ProjectRead)
def transition_stage(
    project_id: int,
    data: StageTransitionRequest,
    user: User = Depends(require_area(Area.EXECUTIVE)),
    db: Session = Depends(get_db),
):
    """Move a funnel project to its next stage."""
    return _mutate(db, project_id, MutationKind.TRANSITION, data, user)


@router.get("/executive", response_model=list[ProjectRead])
def list_executive(
    _: User = Depends(require_area(Area.EXECUTIVE)),
    db: Session = Depends(get_db),
):
    return project_service.list_executive(db)


# =============================================================================
# Sales
# =============================================================================


@router.get("/sales", response_model=list[ProjectRead])
def list_sales(
    _: User = Depends(require_area(Area.SALES)),
    db: Session = Depends(get_db),
):
    return project_service.list_sales(db)


@router.put("/{project_id}/sales", response_model=ProjectRead)
def update_sales(
    project_id: int,
    data: SalesUpdate,
    user: User = Depends(require_area(Area.SALES)),
    db: Session = Depends(get_db),
):
    return _mutate(db, project_id, MutationKind.SALES_UPDATE, data, user)


@router.post("/{project_id}/ready-for-accounts", response_model=ProjectRead)
def ready_for_accounts(
    project_id: int,
    data: ReadyForAccountsRequest | None = None,
    user: User = Depends(require_area(Area.SALES)),
    db: Session = Depends(get_db),
):
    """Hand the project to Accounts once value and invoice are set."""
    return _mutate(db, project_id, MutationKind.READY_FOR_ACCOUNTS, data, user)


# =============================================================================
# Accounts
# =============================================================================


@router.get("/accounts", response_model=list[ProjectRead])
def list_accounts(
    _: User = Depends(require_area(Area.ACCOUNTS)),
    db: Session = Depends(get_db),
):
    return project_service.list_accounts(db)


@router.put("/{project_id}/accounts", response_model=ProjectRead)
def update_accounts(
    project_id: int,
    data: AccountsUpdate,
    user: User = Depends(require_area(Area.ACCOUNTS)),
    db: Session = Depends(get_db),
):
    """Record one payment. Completing the balance moves the project to Installation."""
    return _mutate(db, project_id, MutationKind.PAYMENT, data, user)


# =============================================================================
# Installation
# =============================================================================


@router.get("/installation", response_model=list[ProjectRead])
def list_installation(
    _: User = Depends(require_area(Area.INSTALLATION)),
    db: Session = Depends(get_db),
):
    return project_service.list_installation(db)


@router.put("/{project_id}/installation", response_model=ProjectRead)
def update_installation(
    project_id: int,
    data: InstallationUpdate,
    user: User = Depends(require_area(Area.INSTALLATION)),
    db: Session = Depends(get_db),
):
    """Record installation status. WORK_DONE completes the project."""
    return _mutate(db, project_id, MutationKind.INSTALLATION_UPDATE, data, user)


# =============================================================================
# Shared reads
# =============================================================================


@router.get("/completed", response_model=list[ProjectRead])
def list_completed(
    _: User = Depends(require_area(Area.COMPLETED)),
    db: Session = Depends(get_db),
):
    return project_service.list_completed(db)


@router.get("/all", response_model=list[ProjectRead])
def list_all(
    _: User = Depends(require_area(Area.ADMIN)),
    db: Session = Depends(get_db),
):
    return project_service.list_all(db)


@router.get("/stage/{stage}", response_model=list[ProjectRead])
def list_by_stage(
    stage: Stage,
    _: User = Depends(require_area(Area.ADMIN)),
    db: Session = Depends(get_db),
):
    return project_service.list_by_stage(db, stage)


@router.get("/{project_id}", response_model=ProjectRead)
def get_project(
    project_id: int,
    _: User = Depends(require_area(Area.COMPLETED)),
    db: Session = Depends(get_db),
):
    return project_service.get_project(db, project_id)


@router.get("/{project_id}/history", response_model=list[StageHistoryRead])
def get_history(
    project_id: int,
    _: User = Depends(require_area(Area.COMPLETED)),
    db: Session = Depends(get_db),
):
    return project_service.stage_history(db, project_id)


@router.get("/{project_id}/activity", response_model=list[ActivityLogRead])
def get_activity(
    project_id: int,
    _: User = Depends(require_area(Area.COMPLETED)),
    db: Session = Depends(get_db),
):
    return project_service.activity_log(db, project_id)
