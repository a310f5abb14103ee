"""
Skoolar API Client (client action bridge, caller side)

Async HTTP client for presentation layers and scripts. Every call returns an
ActionResult or raises ClientError carrying one ClientSignal; callers never
see raw HTTP statuses or transport exceptions.

The bearer token lives in a SessionHolder: set by login(), cleared by
logout() and by any 401 answer. Nothing is retried.

Example:
    async with SkoolarClient("https://api.skoolar.app") as client:
        await client.login("operator@skoolar.app", "secret")
        pending = await client.list_pending_registrations()
        await client.reject_registration(pending.data["registrations"][0]["id"], "Duplicate")
"""

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import httpx

from skoolar.core.errors import ClientSignal
from skoolar.core.session import SessionHolder

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
DEFAULT_TIMEOUT_SECONDS = 10.0

_STATUS_SIGNALS: dict[int, ClientSignal] = {
    400: ClientSignal.VALIDATION_ERROR,
    401: ClientSignal.REQUIRE_LOGIN,
    403: ClientSignal.FORBIDDEN,
    404: ClientSignal.NOT_FOUND,
    409: ClientSignal.CONFLICT,
    422: ClientSignal.VALIDATION_ERROR,
    429: ClientSignal.THROTTLED,
}

_DEFAULT_MESSAGES: dict[ClientSignal, str] = {
    ClientSignal.REQUIRE_LOGIN: "Please log in to continue.",
    ClientSignal.REQUIRE_LOGIN_EXPIRED: "Session expired. Please login again.",
    ClientSignal.FORBIDDEN: "You do not have permission to perform this action.",
    ClientSignal.THROTTLED: "Too many requests. Please wait and try again.",
    ClientSignal.VALIDATION_ERROR: "The request was not accepted.",
    ClientSignal.NOT_FOUND: "The requested record was not found.",
    ClientSignal.CONFLICT: "This record has already been updated.",
    ClientSignal.TRANSIENT_NETWORK_ERROR: "Cannot connect to server. Please try again.",
}


@dataclass(frozen=True)
class ActionResult:
    """Successful outcome of an action."""

    status_code: int
    data: Any


class ClientError(Exception):
    """An action failed; `signal` says what the presentation layer should do."""

    def __init__(
        self,
        signal: ClientSignal,
        message: str | None = None,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
        redirect_to: str | None = None,
        retry_after_seconds: int | None = None,
    ):
        self.signal = signal
        self.message = message or _DEFAULT_MESSAGES[signal]
        self.status_code = status_code
        self.error_code = error_code
        self.redirect_to = redirect_to
        self.retry_after_seconds = retry_after_seconds
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"ClientError(signal={self.signal.value}, status_code={self.status_code})"


def _signal_from_response(response: httpx.Response, body: dict) -> ClientSignal:
    declared = body.get("signal")
    if declared:
        try:
            return ClientSignal(declared)
        except ValueError:
            logger.warning(f"Unknown signal in response: {declared}")

    if response.status_code in _STATUS_SIGNALS:
        return _STATUS_SIGNALS[response.status_code]
    if response.status_code >= 500:
        return ClientSignal.TRANSIENT_NETWORK_ERROR
    return ClientSignal.VALIDATION_ERROR


def _retry_after(response: httpx.Response, body: dict) -> int | None:
    value = body.get("retry_after_seconds", response.headers.get("retry-after"))
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class SkoolarClient:
    """Async client for the Skoolar API."""

    def __init__(
        self,
        base_url: str,
        holder: SessionHolder | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.holder = holder or SessionHolder()
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "SkoolarClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> ActionResult:
        """
        Send one request with the cached bearer token.

        Raises:
            ClientError: For any non-2xx answer, connection failure or timeout
        """
        headers = {}
        if self.holder.token:
            headers["Authorization"] = f"Bearer {self.holder.token}"

        try:
            response = await self._client.request(
                method, f"{API_PREFIX}{path}", json=json, params=params, headers=headers
            )
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            logger.warning(f"{method} {path} failed: {e.__class__.__name__}")
            raise ClientError(ClientSignal.TRANSIENT_NETWORK_ERROR) from e

        if response.headers.get("clear-site-data"):
            self.holder.clear(reason="server requested")

        if response.is_success:
            data = response.json() if response.content else None
            return ActionResult(status_code=response.status_code, data=data)

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        signal = _signal_from_response(response, body)
        if response.status_code == 401:
            self.holder.clear(reason=signal.value)

        raise ClientError(
            signal,
            body.get("message"),
            status_code=response.status_code,
            error_code=body.get("error"),
            redirect_to=body.get("redirect_to"),
            retry_after_seconds=_retry_after(response, body),
        )

    # ============================================
    # Auth
    # ============================================

    async def login(self, email: str, password: str) -> ActionResult:
        """Log in and cache the returned token."""
        result = await self.request("POST", "/auth/login", json={"email": email, "password": password})
        self.holder.set(result.data["access_token"])
        return result

    async def verify(self) -> ActionResult:
        return await self.request("GET", "/auth/verify")

    async def profile(self) -> ActionResult:
        return await self.request("GET", "/auth/profile")

    async def logout(self) -> ActionResult:
        """Log out; the cached token is discarded even if the server is unreachable."""
        try:
            return await self.request("POST", "/auth/logout")
        finally:
            self.holder.clear(reason="logout")

    # ============================================
    # Registrations (platform operator)
    # ============================================

    async def list_pending_registrations(
        self, order: str = "asc", skip: int = 0, limit: int | None = None
    ) -> ActionResult:
        """List pending registrations; all of them unless a limit is given."""
        params: dict[str, Any] = {"order": order, "skip": skip}
        if limit is not None:
            params["limit"] = limit
        return await self.request("GET", "/admin/registrations/pending", params=params)

    async def approve_registration(self, registration_id: UUID | str) -> ActionResult:
        return await self.request("POST", f"/admin/registrations/{registration_id}/approve")

    async def reject_registration(self, registration_id: UUID | str, reason: str) -> ActionResult:
        """
        Reject a registration.

        A blank reason is refused locally with VALIDATION_ERROR and never sent.
        """
        if not reason or not reason.strip():
            raise ClientError(
                ClientSignal.VALIDATION_ERROR,
                "Please provide a reason for rejection",
                error_code="INVALID_REASON",
            )
        return await self.request(
            "POST",
            f"/admin/registrations/{registration_id}/reject",
            json={"reason": reason},
        )
