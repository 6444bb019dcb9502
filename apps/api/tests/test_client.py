"""Tests for the REST client: session handling, error mapping, local validation."""

import json
from decimal import Decimal

import httpx
import pytest

from workhub.client import CONNECT_ERROR_MESSAGE, ApiSession, WorkHubClient
from workhub.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    TransportError,
    ValidationError,
)


class Recorder:
    def __init__(self, status: int = 200, body=None):
        self.status = status
        self.body = body if body is not None else {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json=self.body)


def _client(handler, token: str | None = "tok", on_unauthorized=None):
    session = ApiSession(token=token, on_unauthorized=on_unauthorized)
    return WorkHubClient("http://test", session, transport=httpx.MockTransport(handler)), session


def test_bearer_token_is_attached():
    recorder = Recorder(body={"id": 1})
    client, _ = _client(recorder)

    assert client.get_project(1) == {"id": 1}
    assert recorder.requests[0].headers["Authorization"] == "Bearer tok"
    assert recorder.requests[0].url.path == "/projects/1"


@pytest.mark.parametrize("status", [401, 403])
def test_auth_failure_invalidates_session_once(status):
    calls = []
    client, session = _client(Recorder(status, {"detail": "Not authenticated"}), on_unauthorized=lambda: calls.append(1))

    with pytest.raises(AuthorizationError):
        client.list_projects("sales")
    with pytest.raises(AuthorizationError):
        client.list_projects("sales")

    assert session.token is None
    assert calls == [1]


@pytest.mark.parametrize(
    "status,error",
    [(404, NotFoundError), (409, ConflictError), (422, ValidationError), (400, ValidationError), (503, TransportError)],
)
def test_status_codes_map_to_error_kinds(status, error):
    client, session = _client(Recorder(status, {"detail": "Server says no", "kind": "x"}))
    with pytest.raises(error, match="Server says no"):
        client.get_project(7)
    assert session.token == "tok"


def test_connection_failure_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client, _ = _client(handler)
    with pytest.raises(TransportError, match=CONNECT_ERROR_MESSAGE):
        client.list_active_alerts()


def test_payment_is_validated_before_any_request():
    recorder = Recorder()
    client, _ = _client(recorder)
    project = {"invoiceAmount": 100000, "totalReceived": 90000}

    with pytest.raises(ValidationError):
        client.record_payment(1, 0)
    with pytest.raises(ValidationError):
        client.record_payment(1, 15000, project=project)

    assert recorder.requests == []


def test_payment_sends_delta_amount_in_camel_case():
    recorder = Recorder(body={"id": 1, "currentStage": "INSTALLATION"})
    client, _ = _client(recorder)

    client.record_payment(1, Decimal("10000"), remarks="Final", project={"invoiceAmount": 100000, "totalReceived": 90000})

    sent = json.loads(recorder.requests[0].content)
    assert recorder.requests[0].method == "PUT"
    assert recorder.requests[0].url.path == "/projects/1/accounts"
    assert sent == {"amountReceived": 10000.0, "paymentRemarks": "Final"}


def test_not_done_installation_needs_remarks_locally():
    recorder = Recorder()
    client, _ = _client(recorder)
    with pytest.raises(ValidationError):
        client.update_installation(1, "NOT_DONE", remarks=" ")
    assert recorder.requests == []


def test_sub_cent_payment_is_rejected_locally():
    recorder = Recorder()
    client, _ = _client(recorder)
    with pytest.raises(ValidationError):
        client.record_payment(1, "0.001")
    assert recorder.requests == []


def test_delete_returns_none_on_204():
    def handler(request):
        return httpx.Response(204)

    client, _ = _client(handler)
    assert client.delete_project(3) is None


def test_unknown_view_is_rejected_locally():
    client, _ = _client(Recorder())
    with pytest.raises(ValidationError):
        client.list_projects("marketing")
