"""Pydantic schemas for projects and their stage-scoped updates."""

from datetime import date, datetime

from pydantic import Field

from workhub.db.enums import (
    ExecutiveViewStatus,
    InstallationStatus,
    PaymentStatus,
    Region,
    Stage,
)
from workhub.schemas.common import CamelModel, Money, MoneyInput, VersionedRequest


class ProjectCreate(CamelModel):
    """Request schema for creating a project (always starts as a LEAD)."""

    school: str = Field(..., min_length=1, max_length=255)
    contact_person: str | None = Field(None, max_length=255)
    contact_number: str | None = Field(None, max_length=50)
    place: str | None = Field(None, max_length=255)
    district: str | None = Field(None, max_length=255)
    region: Region | None = None
    project_name: str | None = Field(None, max_length=255)
    parent_company: str | None = Field(None, max_length=255)
    executive_remarks: str | None = None


class ProjectUpdate(VersionedRequest):
    """Partial update of executive fields. Unset fields are left alone."""

    school: str | None = Field(None, min_length=1, max_length=255)
    contact_person: str | None = Field(None, max_length=255)
    contact_number: str | None = Field(None, max_length=50)
    place: str | None = Field(None, max_length=255)
    district: str | None = Field(None, max_length=255)
    region: Region | None = None
    project_name: str | None = Field(None, max_length=255)
    parent_company: str | None = Field(None, max_length=255)
    executive_remarks: str | None = None


class StageTransitionRequest(VersionedRequest):
    to_stage: Stage
    remarks: str | None = None


class SalesUpdate(VersionedRequest):
    project_value: MoneyInput | None = None
    invoice_amount: MoneyInput | None = None
    pending_delivery: str | None = None
    quotation_remarks: str | None = None
    expected_delivery_date: date | None = None
    sales_remarks: str | None = None


class ReadyForAccountsRequest(VersionedRequest):
    remarks: str | None = None


class AccountsUpdate(VersionedRequest):
    """
    One payment toward the invoice.

    `amount_received` is this transaction only, never the running total.
    `payment_status` is optional; the stored status is derived from the
    remaining balance.
    """

    payment_status: PaymentStatus | None = None
    amount_received: MoneyInput | None = None
    payment_date: date | None = None
    payment_remarks: str | None = None
    payment_proof_url: str | None = Field(None, max_length=1000)


class InstallationUpdate(VersionedRequest):
    installation_status: InstallationStatus
    installation_remarks: str | None = None
    completion_date: date | None = None


class PaymentTransactionRead(CamelModel):
    id: int
    project_id: int
    amount_paid: Money
    payment_date: date
    payment_proof_url: str | None = None
    remarks: str | None = None
    created_at: datetime
    created_by: str


class ProjectRead(CamelModel):
    """Full project as returned by every list and mutation endpoint."""

    id: int

    school: str
    contact_person: str | None = None
    contact_number: str | None = None
    place: str | None = None
    district: str | None = None
    region: str | None = None
    project_name: str | None = None
    parent_company: str | None = None
    executive_remarks: str | None = None
    created_date: datetime
    created_by: str

    current_stage: Stage
    previous_stage: Stage | None = None
    stage_change_timestamp: datetime | None = None
    stage_changed_by: str | None = None
    current_owner_role: str
    is_locked: bool
    executive_view_status: ExecutiveViewStatus

    project_value: Money | None = None
    invoice_amount: Money | None = None
    pending_delivery: str | None = None
    quotation_remarks: str | None = None
    expected_delivery_date: date | None = None
    sales_remarks: str | None = None
    sales_updated_timestamp: datetime | None = None

    payment_status: PaymentStatus | None = None
    amount_received: Money | None = None
    total_received: Money
    pending_amount: Money
    payment_history: list[PaymentTransactionRead] = []
    payment_date: date | None = None
    payment_remarks: str | None = None
    payment_proof_url: str | None = None
    accounts_updated_timestamp: datetime | None = None

    installation_status: InstallationStatus | None = None
    installation_remarks: str | None = None
    completion_date: date | None = None
    installation_updated_timestamp: datetime | None = None

    last_updated_by: str | None = None
    last_updated_at: datetime
    version: int


class StageHistoryRead(CamelModel):
    id: int
    project_id: int
    from_stage: str | None = None
    to_stage: str
    changed_by: str
    changed_by_role: str | None = None
    remarks: str | None = None
    is_system_triggered: bool
    timestamp: datetime


class ActivityLogRead(CamelModel):
    id: int
    project_id: int
    action_type: str
    field_name: str | None = None
    old_value: str | None = None
    new_value: str | None = None
    performed_by: str
    performed_by_role: str | None = None
    remarks: str | None = None
    timestamp: datetime
