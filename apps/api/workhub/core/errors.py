"""Error taxonomy shared by services, routers and the API client."""

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TRANSPORT = "transport"


class WorkHubError(Exception):
    """Base exception for Work Hub errors."""

    kind: ErrorKind
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(WorkHubError):
    """Input rejected before any state change (empty field, overpayment, ...)."""

    kind = ErrorKind.VALIDATION
    status_code = 422


class AuthorizationError(WorkHubError):
    """Authenticated actor is not allowed to perform the action."""

    kind = ErrorKind.AUTHORIZATION
    status_code = 403


class NotFoundError(WorkHubError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class ConflictError(WorkHubError):
    """Request conflicts with current state (wrong stage, locked, stale version)."""

    kind = ErrorKind.CONFLICT
    status_code = 409


class TransportError(WorkHubError):
    """Backend unreachable."""

    kind = ErrorKind.TRANSPORT
    status_code = 503
