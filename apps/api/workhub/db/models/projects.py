"""Project pipeline models: projects, payment ledger, stage history, activity log."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    TIMESTAMP,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workhub.db.base import Base
from workhub.db.enums import ExecutiveViewStatus, Role, Stage

MONEY = Numeric(14, 2)


class Project(Base):
    """
    A school/institution engagement moving through the pipeline.

    `executive_view_status`, `total_received` and `pending_amount` are
    derived on read and have no columns of their own.
    """

    __tablename__ = "projects"
    __table_args__ = (
        Index("idx_projects_current_stage", "current_stage"),
        Index("idx_projects_contact_number", "contact_number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Executive fields
    school: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_person: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    place: Mapped[str | None] = mapped_column(String(255), nullable=True)
    district: Mapped[str | None] = mapped_column(String(255), nullable=True)
    region: Mapped[str | None] = mapped_column(String(20), nullable=True)
    project_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    parent_company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    executive_remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_date: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_by_user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Workflow
    current_stage: Mapped[str] = mapped_column(
        String(50), default=Stage.LEAD.value, nullable=False
    )
    previous_stage: Mapped[str | None] = mapped_column(String(50), nullable=True)
    stage_change_timestamp: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    stage_changed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    current_owner_role: Mapped[str] = mapped_column(
        String(50), default=Role.EXECUTIVE.value, nullable=False
    )
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Sales
    project_value: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    invoice_amount: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    pending_delivery: Mapped[str | None] = mapped_column(Text, nullable=True)
    quotation_remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    expected_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    sales_remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    sales_updated_timestamp: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    # Accounts (amount_received is the latest transaction, not the running total)
    payment_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    amount_received: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    payment_remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_proof_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    accounts_updated_timestamp: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    # Installation
    installation_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    installation_remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    completion_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    installation_updated_timestamp: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    # Audit
    last_updated_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Optimistic concurrency token, bumped by the ORM on every UPDATE
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    payments: Mapped[list["PaymentTransaction"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        order_by=lambda: [PaymentTransaction.payment_date, PaymentTransaction.id],
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def stage(self) -> Stage:
        return Stage(self.current_stage)

    @property
    def executive_view_status(self) -> ExecutiveViewStatus:
        from workhub.core.stage_machine import executive_view_status

        return executive_view_status(self.stage)

    @property
    def payment_history(self) -> list["PaymentTransaction"]:
        return list(self.payments)

    @property
    def total_received(self) -> Decimal:
        return sum((p.amount_paid for p in self.payments), Decimal("0"))

    @property
    def pending_amount(self) -> Decimal:
        if self.invoice_amount is None:
            return Decimal("0")
        return Decimal(self.invoice_amount) - self.total_received


class PaymentTransaction(Base):
    """Append-only ledger entry for one payment toward a project invoice."""

    __tablename__ = "payment_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount_paid: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_proof_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)

    project: Mapped[Project] = relationship(back_populates="payments")


class ProjectStageHistory(Base):
    """One row per stage change, manual or system triggered."""

    __tablename__ = "project_stage_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # No FK: history outlives deleted leads
    project_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    from_stage: Mapped[str | None] = mapped_column(String(50), nullable=True)
    to_stage: Mapped[str] = mapped_column(String(50), nullable=False)
    changed_by: Mapped[str] = mapped_column(String(255), nullable=False)
    changed_by_role: Mapped[str | None] = mapped_column(String(50), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_system_triggered: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class ProjectActivityLog(Base):
    """Audit trail of project mutations."""

    __tablename__ = "project_activity_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # No FK: the DELETED entry must survive the project row
    project_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)
    field_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    old_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    performed_by: Mapped[str] = mapped_column(String(255), nullable=False)
    performed_by_role: Mapped[str | None] = mapped_column(String(50), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
