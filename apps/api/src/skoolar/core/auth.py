"""
Authentication and Authorization Dependencies

FastAPI dependencies that run the authorization gate for a named action.

Usage:
    @router.post("/{registration_id}/approve")
    async def approve(
        session: Session = Depends(require_action(ACTION_REGISTRATIONS_APPROVE)),
    ):
        # session.subject, session.role are available
        ...

Non-proceed gate outcomes are raised as taxonomy errors and rendered by the
client action bridge (401 login / 401 expired / 403 unauthorized).
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from skoolar.core.bridge import error_for_decision
from skoolar.core.gate import AuthorizationGate
from skoolar.core.session import Session

logger = logging.getLogger(__name__)

# Missing credentials are a gate outcome, not a framework error
security = HTTPBearer(
    auto_error=False,
    description="Signed session token",
)

authorization_gate = AuthorizationGate()


def get_clock() -> datetime:
    """Current time used for session expiry checks."""
    return datetime.now(UTC)


def get_authorization_gate() -> AuthorizationGate:
    return authorization_gate


def require_action(action: str) -> Callable[..., Awaitable[Session]]:
    """
    Build a dependency guarding one action.

    The action must be declared in the gate's policy mapping; this is checked
    when the dependency is built so that a missing policy fails at import.

    Args:
        action: Action name, e.g. "registrations.approve"

    Returns:
        Async dependency returning the validated Session
    """
    authorization_gate.allowed_roles(action)

    async def dependency(
        credentials: HTTPAuthorizationCredentials | None = Depends(security),
        gate: AuthorizationGate = Depends(get_authorization_gate),
        now: datetime = Depends(get_clock),
    ) -> Session:
        token = credentials.credentials if credentials else None
        decision = gate.check(action, token, now)

        error = error_for_decision(decision, action)
        if error is not None:
            raise error

        logger.debug(f"Authorized {decision.session} for '{action}'")
        return decision.session

    dependency.__name__ = f"require_{action.replace('.', '_')}"
    return dependency


__all__ = [
    "security",
    "authorization_gate",
    "get_clock",
    "get_authorization_gate",
    "require_action",
]
