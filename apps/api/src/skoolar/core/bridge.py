"""
Client Action Bridge (server side)

Turns gate decisions and taxonomy errors into caller-visible results:
a signal from the closed ClientSignal set, an optional navigation intent,
and a single message string. No other copy is produced here.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from skoolar.core.config import settings
from skoolar.core.errors import (
    AdmissionThrottled,
    AuthenticationRequired,
    AuthorizationDenied,
    ClientSignal,
    SessionExpired,
    SkoolarError,
)
from skoolar.core.gate import GateDecision, GateOutcome

logger = logging.getLogger(__name__)

# Tells browsers to drop cached client-side session state
CLEAR_SITE_DATA_HEADER = ("Clear-Site-Data", '"storage"')


def redirect_for(signal: ClientSignal) -> str | None:
    """Navigation intent for a signal, if it has one."""
    if signal is ClientSignal.REQUIRE_LOGIN:
        return settings.login_url
    if signal is ClientSignal.REQUIRE_LOGIN_EXPIRED:
        return settings.login_expired_url
    if signal is ClientSignal.FORBIDDEN:
        return settings.unauthorized_url
    return None


def error_for_decision(decision: GateDecision, action: str | None = None) -> SkoolarError | None:
    """
    Map a gate decision to the error the caller must see.

    Returns:
        None for PROCEED, the matching taxonomy error otherwise
    """
    if decision.outcome is GateOutcome.PROCEED:
        return None

    error: SkoolarError
    if decision.outcome is GateOutcome.REDIRECT_LOGIN_EXPIRED:
        error = SessionExpired()
    elif decision.outcome is GateOutcome.REDIRECT_UNAUTHORIZED:
        error = AuthorizationDenied(action)
    else:
        error = AuthenticationRequired()
    error.discard_session = decision.discard_session
    return error


def error_payload(error: SkoolarError) -> dict:
    """JSON body for an error response."""
    payload: dict = {
        "error": error.error_code,
        "signal": error.signal.value,
        "message": error.message,
    }
    redirect_to = redirect_for(error.signal)
    if redirect_to:
        payload["redirect_to"] = redirect_to
    if isinstance(error, AdmissionThrottled):
        payload["retry_after_seconds"] = error.retry_after_seconds
    return payload


def error_headers(error: SkoolarError) -> dict[str, str]:
    headers: dict[str, str] = {}
    if error.signal in (ClientSignal.REQUIRE_LOGIN, ClientSignal.REQUIRE_LOGIN_EXPIRED):
        headers["WWW-Authenticate"] = "Bearer"
    if error.discard_session:
        name, value = CLEAR_SITE_DATA_HEADER
        headers[name] = value
    if isinstance(error, AdmissionThrottled):
        headers["Retry-After"] = str(error.retry_after_seconds)
    return headers


def error_response(error: SkoolarError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=error_payload(error),
        headers=error_headers(error),
    )


async def _skoolar_error_handler(request: Request, exc: SkoolarError) -> JSONResponse:
    logger.info(
        f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code} "
        f"({exc.signal.value})"
    )
    return error_response(exc)


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request.")
    if location:
        message = f"{location}: {message}"
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "signal": ClientSignal.VALIDATION_ERROR.value,
            "message": message,
        },
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "INTERNAL_ERROR",
            "signal": ClientSignal.TRANSIENT_NETWORK_ERROR.value,
            "message": "An unexpected error occurred.",
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the bridge's exception handlers on an application."""
    app.add_exception_handler(SkoolarError, _skoolar_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
