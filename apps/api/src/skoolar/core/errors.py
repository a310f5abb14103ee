"""
Error Taxonomy

Every failure the core surfaces is a SkoolarError carrying exactly one
ClientSignal from the closed set the presentation layer renders.
"""

import enum
from uuid import UUID


class ClientSignal(str, enum.Enum):
    """User-facing signals handed to the presentation layer."""

    REQUIRE_LOGIN = "require_login"
    REQUIRE_LOGIN_EXPIRED = "require_login_expired"
    FORBIDDEN = "forbidden"
    THROTTLED = "throttled"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TRANSIENT_NETWORK_ERROR = "transient_network_error"


class SkoolarError(Exception):
    """Base exception for errors surfaced to callers."""

    signal: ClientSignal = ClientSignal.VALIDATION_ERROR
    discard_session: bool = False

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class AuthenticationRequired(SkoolarError):
    """Raised when no usable credential was presented."""

    signal = ClientSignal.REQUIRE_LOGIN

    def __init__(self, message: str = "Authentication is required."):
        super().__init__(message=message, error_code="AUTHENTICATION_REQUIRED", status_code=401)


class InvalidCredentials(AuthenticationRequired):
    """Raised when a login presents an unknown email or a wrong password."""

    def __init__(self):
        super().__init__("Invalid email or password.")
        self.error_code = "INVALID_CREDENTIALS"


class SessionExpired(SkoolarError):
    """Raised when a verified credential is past its expiry."""

    signal = ClientSignal.REQUIRE_LOGIN_EXPIRED

    def __init__(self):
        super().__init__(
            message="Your session has ended. Please log in again.",
            error_code="SESSION_EXPIRED",
            status_code=401,
        )


class AuthorizationDenied(SkoolarError):
    """Raised when a valid session's role is not allowed for the action."""

    signal = ClientSignal.FORBIDDEN

    def __init__(self, action: str | None = None):
        message = (
            f"You do not have permission to perform '{action}'."
            if action
            else "You do not have permission to perform this action."
        )
        super().__init__(message=message, error_code="AUTHORIZATION_DENIED", status_code=403)


class AccountInactive(SkoolarError):
    """Raised when a deactivated account tries to log in."""

    signal = ClientSignal.FORBIDDEN

    def __init__(self):
        super().__init__(
            message="Your account has been deactivated.",
            error_code="ACCOUNT_INACTIVE",
            status_code=403,
        )


class AdmissionThrottled(SkoolarError):
    """Raised when a client identity exceeds its admission window."""

    signal = ClientSignal.THROTTLED

    def __init__(self, limit: int, window_seconds: int, retry_after_seconds: int):
        self.limit = limit
        self.window_seconds = window_seconds
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            message=f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
            error_code="RATE_LIMIT_EXCEEDED",
            status_code=429,
        )


class ValidationError(SkoolarError):
    """Raised when action input is unacceptable."""

    signal = ClientSignal.VALIDATION_ERROR

    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR"):
        super().__init__(message=message, error_code=error_code, status_code=422)


class InvalidReason(ValidationError):
    """Raised when a rejection is submitted without a usable reason."""

    def __init__(self):
        super().__init__(
            message="A reason is required to reject a registration.",
            error_code="INVALID_REASON",
        )


class RecordNotFound(SkoolarError):
    """Raised when a registration record does not exist."""

    signal = ClientSignal.NOT_FOUND

    def __init__(self, record_id: UUID | None = None):
        message = f"Registration {record_id} not found" if record_id else "Registration not found"
        super().__init__(message=message, error_code="RECORD_NOT_FOUND", status_code=404)


class RecordAlreadyDecided(SkoolarError):
    """Raised when a decision targets a record that is no longer pending."""

    signal = ClientSignal.CONFLICT

    def __init__(self, record_id: UUID, current_status: str):
        self.record_id = record_id
        self.current_status = current_status
        super().__init__(
            message=f"Registration {record_id} has already been decided (status: {current_status}).",
            error_code="RECORD_ALREADY_DECIDED",
            status_code=409,
        )


class TransientNetworkError(SkoolarError):
    """Raised when the server could not be reached or did not answer in time."""

    signal = ClientSignal.TRANSIENT_NETWORK_ERROR

    def __init__(self, message: str = "Cannot connect to server. Please try again."):
        super().__init__(message=message, error_code="TRANSIENT_NETWORK_ERROR", status_code=503)


__all__ = [
    "ClientSignal",
    "SkoolarError",
    "AuthenticationRequired",
    "InvalidCredentials",
    "SessionExpired",
    "AuthorizationDenied",
    "AccountInactive",
    "AdmissionThrottled",
    "ValidationError",
    "InvalidReason",
    "RecordNotFound",
    "RecordAlreadyDecided",
    "TransientNetworkError",
]
