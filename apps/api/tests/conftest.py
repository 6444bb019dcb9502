"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, schema created and dropped per test
- Users for every role and JWT minting for authenticated requests
- HTTPX AsyncClient over the ASGI app with get_db overridden
- A `pipeline` helper that walks projects through the stages
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TESTING"] = "1"
os.environ["ENV"] = "test"
os.environ["INTERNAL_SECRET"] = "test-internal-secret"
os.environ["JWT_SECRET"] = "test-jwt-secret"

from dataclasses import dataclass
from decimal import Decimal
from typing import AsyncGenerator, Callable, Generator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from workhub.core.deps import actor_for, get_db
from workhub.core.security import create_access_token
from workhub.db.base import Base
from workhub.db.enums import InstallationStatus, MutationKind, Role, Stage
from workhub.db.models import Project, User
from workhub.db.session import SessionLocal, engine
from workhub.main import app
from workhub.schemas.project import (
    AccountsUpdate,
    InstallationUpdate,
    ProjectCreate,
    ReadyForAccountsRequest,
    SalesUpdate,
    StageTransitionRequest,
)
from workhub.services import project_service, workflow_service


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema per test; app code commits freely."""
    import workhub.db.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def make_user(db: Session) -> Callable[..., User]:
    counter = {"n": 0}

    def _make(role: Role, name: str | None = None) -> User:
        counter["n"] += 1
        user = User(
            name=name or f"{role.value.removeprefix('ROLE_').title()} {counter['n']}",
            email=f"user{counter['n']}@test.com",
            role=role.value,
            is_active=True,
            token_version=1,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@dataclass
class Team:
    alice: User  # executive, creator of most test projects
    bob: User  # another executive
    sales: User
    accounts: User
    installer: User
    admin: User
    super_admin: User
    employee: User
    client_user: User


@pytest.fixture(scope="function")
def team(make_user) -> Team:
    return Team(
        alice=make_user(Role.EXECUTIVE, "Alice"),
        bob=make_user(Role.EXECUTIVE, "Bob"),
        sales=make_user(Role.SALES_COORDINATOR, "Sam Sales"),
        accounts=make_user(Role.ACCOUNTS, "Ann Accounts"),
        installer=make_user(Role.INSTALLATION, "Ian Installer"),
        admin=make_user(Role.ADMIN, "Ada Admin"),
        super_admin=make_user(Role.SUPER_ADMIN, "Sue Super"),
        employee=make_user(Role.EMPLOYEE, "Eve Employee"),
        client_user=make_user(Role.CLIENT, "Carl Client"),
    )


# =============================================================================
# Auth Helpers
# =============================================================================

def token_for(user: User) -> str:
    return create_access_token(user.id, user.role, user.token_version)


@pytest.fixture
def auth() -> Callable[[User], dict[str, str]]:
    """Bearer header for a user: `headers=auth(team.alice)`."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {token_for(user)}"}

    return _headers


# =============================================================================
# Pipeline Helper
# =============================================================================

class Pipeline:
    """Drives projects through the stages with the real services."""

    def __init__(self, db: Session, team: Team):
        self.db = db
        self.team = team

    def create(self, creator: User | None = None, **fields) -> Project:
        fields.setdefault("school", "Greenwood High")
        data = ProjectCreate(**fields)
        return project_service.create_project(self.db, data, actor_for(creator or self.team.alice))

    def transition(self, project: Project, to_stage: Stage, user: User | None = None) -> Project:
        return workflow_service.apply_mutation(
            self.db,
            project,
            MutationKind.TRANSITION,
            StageTransitionRequest(to_stage=to_stage),
            actor_for(user or self.team.alice),
        )

    def onboard(self, project: Project) -> Project:
        for stage in (Stage.ON_PROGRESS, Stage.QUOTATION_SENT, Stage.IN_REVIEW, Stage.ONBOARDED):
            project = self.transition(project, stage)
        return project

    def to_accounts(
        self,
        project: Project,
        invoice: str = "100000",
        value: str | None = None,
    ) -> Project:
        project = workflow_service.apply_mutation(
            self.db,
            project,
            MutationKind.SALES_UPDATE,
            SalesUpdate(project_value=Decimal(value or invoice), invoice_amount=Decimal(invoice)),
            actor_for(self.team.sales),
        )
        return workflow_service.apply_mutation(
            self.db,
            project,
            MutationKind.READY_FOR_ACCOUNTS,
            ReadyForAccountsRequest(),
            actor_for(self.team.sales),
        )

    def pay(self, project: Project, amount: str, **fields) -> Project:
        return workflow_service.apply_mutation(
            self.db,
            project,
            MutationKind.PAYMENT,
            AccountsUpdate(amount_received=Decimal(amount), **fields),
            actor_for(self.team.accounts),
        )

    def to_installation(self, project: Project, invoice: str = "100000") -> Project:
        project = self.to_accounts(self.onboard(project), invoice=invoice)
        return self.pay(project, invoice)

    def install(self, project: Project, status: InstallationStatus, remarks: str | None = None) -> Project:
        return workflow_service.apply_mutation(
            self.db,
            project,
            MutationKind.INSTALLATION_UPDATE,
            InstallationUpdate(installation_status=status, installation_remarks=remarks),
            actor_for(self.team.installer),
        )

    def complete(self, project: Project) -> Project:
        return self.install(self.to_installation(project), InstallationStatus.WORK_DONE)


@pytest.fixture(scope="function")
def pipeline(db: Session, team: Team) -> Pipeline:
    return Pipeline(db, team)


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient against the app; pass headers=auth(user) per request."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
