"""
Authorization Gate

Ordered authentication + authorization pipeline run before every protected
action:

1. No credential                 -> REDIRECT_LOGIN
2. Credential expired            -> REDIRECT_LOGIN_EXPIRED (discard session)
   Credential malformed          -> REDIRECT_LOGIN (discard session)
3. Role not in the allow-set     -> REDIRECT_UNAUTHORIZED (session kept)
4. Otherwise                     -> PROCEED with the validated Session

Each outcome maps to a different caller-visible remedy; they are never
collapsed into a generic "forbidden".
"""

import enum
import logging
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from datetime import datetime

from skoolar.core.roles import ACTION_POLICIES, Permission, Role, authorize
from skoolar.core.session import Session, SessionStatus, check_session

logger = logging.getLogger(__name__)


class GateOutcome(str, enum.Enum):
    """Outcome of running the gate for one action."""

    PROCEED = "proceed"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_LOGIN_EXPIRED = "redirect_login_expired"
    REDIRECT_UNAUTHORIZED = "redirect_unauthorized"


@dataclass(frozen=True)
class GateDecision:
    """
    Gate result.

    Attributes:
        outcome: Which of the four outcomes applies
        session: The validated session (PROCEED and REDIRECT_UNAUTHORIZED only)
        discard_session: Whether the caller must drop its cached credential
    """

    outcome: GateOutcome
    session: Session | None = None
    discard_session: bool = False

    @property
    def proceed(self) -> bool:
        return self.outcome is GateOutcome.PROCEED


def guard(token: str | None, allowed_roles: Collection[Role], now: datetime) -> GateDecision:
    """
    Run the ordered gate for one action.

    Args:
        token: Presented credential, or None when absent
        allowed_roles: Allow-set declared by the action
        now: Current time (timezone-aware)

    Returns:
        GateDecision
    """
    if not token:
        return GateDecision(GateOutcome.REDIRECT_LOGIN)

    status, session = check_session(token, now)

    if status is SessionStatus.MALFORMED:
        # Treated exactly like a missing credential; logged as a possible tamper signal
        logger.warning("Malformed credential presented")
        return GateDecision(GateOutcome.REDIRECT_LOGIN, discard_session=True)

    if status is SessionStatus.EXPIRED:
        logger.info(f"Session expired for subject {session.subject}")
        return GateDecision(GateOutcome.REDIRECT_LOGIN_EXPIRED, discard_session=True)

    if authorize(session.role, allowed_roles) is Permission.DENIED:
        logger.warning(
            f"Access denied: subject {session.subject} has role '{session.role.value}', "
            f"allowed: {sorted(r.value for r in allowed_roles)}"
        )
        return GateDecision(GateOutcome.REDIRECT_UNAUTHORIZED, session=session)

    return GateDecision(GateOutcome.PROCEED, session=session)


class AuthorizationGate:
    """
    Gate bound to an explicit {action name -> allow-set} mapping.

    Unknown action names raise KeyError so that a missing policy is a
    configuration error rather than an open door.
    """

    def __init__(self, policies: Mapping[str, Collection[Role]] | None = None) -> None:
        source = ACTION_POLICIES if policies is None else policies
        self._policies = {name: frozenset(roles) for name, roles in source.items()}

    def allowed_roles(self, action: str) -> frozenset[Role]:
        try:
            return self._policies[action]
        except KeyError:
            raise KeyError(f"No access policy declared for action '{action}'") from None

    def check(self, action: str, token: str | None, now: datetime) -> GateDecision:
        decision = guard(token, self.allowed_roles(action), now)
        logger.debug(f"Gate decision for '{action}': {decision.outcome.value}")
        return decision
