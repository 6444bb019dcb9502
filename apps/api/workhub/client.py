"""
Python client for the Work Hub REST API.

`ApiSession` holds the bearer token explicitly and is passed to the client;
a 401/403 response invalidates it and fires its `on_unauthorized` callback.
Every failure surfaces as one of the `workhub.core.errors` kinds. Nothing is
retried automatically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Callable

import httpx

from workhub.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from workhub.core.stage_machine import CENT, evaluate_payment
from workhub.db.enums import InstallationStatus, PaymentStatus, Stage

logger = logging.getLogger(__name__)

CONNECT_ERROR_MESSAGE = "Cannot connect to server. Please check if the backend is running."


@dataclass
class ApiSession:
    token: str | None = None
    on_unauthorized: Callable[[], None] | None = field(default=None, repr=False)

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def invalidate(self) -> None:
        """Drop the token and notify the owner (once per live session)."""
        if self.token is None:
            return
        self.token = None
        if self.on_unauthorized is not None:
            self.on_unauthorized()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message")
        if isinstance(detail, str):
            return detail
        if detail is not None:
            return str(detail)
    return f"HTTP {response.status_code}"


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, date):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    return value


def _body(**values: Any) -> dict[str, Any]:
    return {k: _json_value(v) for k, v in values.items() if v is not None}


class WorkHubClient:
    """One method per REST operation. Responses are returned as parsed JSON."""

    def __init__(
        self,
        base_url: str,
        session: ApiSession,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.session = session
        self._http = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "WorkHubClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, json: Any = None) -> Any:
        headers = {}
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        try:
            response = self._http.request(method, path, json=json, headers=headers)
        except httpx.RequestError as e:
            logger.warning("Request failed: %s %s (%s)", method, path, type(e).__name__)
            raise TransportError(CONNECT_ERROR_MESSAGE) from e

        if response.is_success:
            if response.status_code == 204 or not response.content:
                return None
            return response.json()

        message = _error_message(response)
        status = response.status_code
        if status in (401, 403):
            self.session.invalidate()
            raise AuthorizationError(message)
        if status == 404:
            raise NotFoundError(message)
        if status == 409:
            raise ConflictError(message)
        if status < 500:
            raise ValidationError(message)
        raise TransportError(message)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def me(self) -> dict:
        return self._request("GET", "/auth/me")

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(self, school: str, **fields: Any) -> dict:
        if not school or not school.strip():
            raise ValidationError("School name is required")
        return self._request("POST", "/projects/create", _body(school=school, **fields))

    def update_project(self, project_id: int, version: int | None = None, **fields: Any) -> dict:
        return self._request("PUT", f"/projects/{project_id}", _body(version=version, **fields))

    def delete_project(self, project_id: int) -> None:
        self._request("DELETE", f"/projects/{project_id}")

    def get_project(self, project_id: int) -> dict:
        return self._request("GET", f"/projects/{project_id}")

    def transition(
        self,
        project_id: int,
        to_stage: Stage | str,
        remarks: str | None = None,
        version: int | None = None,
    ) -> dict:
        return self._request(
            "POST",
            f"/projects/{project_id}/transition",
            _body(toStage=to_stage, remarks=remarks, version=version),
        )

    def list_projects(self, view: str) -> list[dict]:
        """`view` is one of executive, sales, accounts, installation, completed, all."""
        if view not in ("executive", "sales", "accounts", "installation", "completed", "all"):
            raise ValidationError(f"Unknown project view: {view}")
        return self._request("GET", f"/projects/{view}")

    def list_by_stage(self, stage: Stage | str) -> list[dict]:
        return self._request("GET", f"/projects/stage/{_json_value(stage)}")

    def update_sales(self, project_id: int, version: int | None = None, **fields: Any) -> dict:
        return self._request(
            "PUT", f"/projects/{project_id}/sales", _body(version=version, **fields)
        )

    def ready_for_accounts(self, project_id: int, remarks: str | None = None) -> dict:
        return self._request(
            "POST", f"/projects/{project_id}/ready-for-accounts", _body(remarks=remarks)
        )

    def record_payment(
        self,
        project_id: int,
        amount: Decimal | float | int,
        payment_date: date | None = None,
        remarks: str | None = None,
        proof_url: str | None = None,
        payment_status: PaymentStatus | str | None = None,
        project: dict | None = None,
    ) -> dict:
        """
        Record one payment (this transaction's amount, not a running total).

        When `project` (a previously fetched project) is given, overpayment is
        checked locally before anything is sent.
        """
        amount = Decimal(str(amount))
        if amount <= 0:
            raise ValidationError("Payment amount must be greater than zero")
        if amount != amount.quantize(CENT):
            raise ValidationError("Payment amount cannot include fractions of a cent")
        status = PaymentStatus(payment_status) if payment_status else None
        if project is not None:
            invoice = project.get("invoiceAmount")
            evaluate_payment(
                Decimal(str(invoice)) if invoice is not None else None,
                Decimal(str(project.get("totalReceived") or 0)),
                amount,
                status,
            )
        return self._request(
            "PUT",
            f"/projects/{project_id}/accounts",
            _body(
                amountReceived=amount,
                paymentDate=payment_date,
                paymentRemarks=remarks,
                paymentProofUrl=proof_url,
                paymentStatus=status,
            ),
        )

    def update_installation(
        self,
        project_id: int,
        status: InstallationStatus | str,
        remarks: str | None = None,
        completion_date: date | None = None,
    ) -> dict:
        status = InstallationStatus(status)
        if status is InstallationStatus.NOT_DONE and not (remarks or "").strip():
            raise ValidationError("Remarks are required when installation is not done")
        return self._request(
            "PUT",
            f"/projects/{project_id}/installation",
            _body(
                installationStatus=status,
                installationRemarks=remarks,
                completionDate=completion_date,
            ),
        )

    def history(self, project_id: int) -> list[dict]:
        return self._request("GET", f"/projects/{project_id}/history")

    def activity(self, project_id: int) -> list[dict]:
        return self._request("GET", f"/projects/{project_id}/activity")

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def list_active_alerts(self) -> list[dict]:
        return self._request("GET", "/alerts/active")

    def alert_summary(self) -> dict:
        return self._request("GET", "/alerts/summary")

    def project_alerts(self, project_id: int) -> list[dict]:
        return self._request("GET", f"/alerts/project/{project_id}")

    def dismiss_alert(self, alert_id: int) -> dict:
        return self._request("POST", f"/alerts/{alert_id}/dismiss")

    def generate_alerts(self) -> dict:
        return self._request("POST", "/alerts/generate")

    # ------------------------------------------------------------------
    # Analytics / users
    # ------------------------------------------------------------------

    def dashboard(self) -> dict:
        return self._request("GET", "/analytics/dashboard")

    def list_users(self) -> list[dict]:
        return self._request("GET", "/users")

    def set_user_role(self, user_id: int, role: str) -> dict:
        return self._request("PUT", f"/users/{user_id}/role", {"role": role})
