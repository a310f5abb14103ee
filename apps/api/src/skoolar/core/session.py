"""
Session Validator

Decides whether a presented credential is structurally valid and unexpired.

A credential is a signed access token. validate() is pure: it never clears
anything. Callers that receive EXPIRED or MALFORMED must discard their cached
session themselves (see SessionHolder) before reporting upstream.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from jose import JWTError

from skoolar.core.roles import Role
from skoolar.core.security import TOKEN_TYPE_ACCESS, decode_token_claims

logger = logging.getLogger(__name__)


class SessionStatus(str, enum.Enum):
    """Result of validating a credential."""

    VALID = "valid"
    EXPIRED = "expired"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class Session:
    """
    A time-bounded, signed proof of authenticated identity and role.

    Attributes:
        subject: User ID the session was issued to
        role: Role from the closed enumeration
        issued_at: When the token was issued (UTC)
        expires_at: When the token stops being valid (UTC)
        signature: Opaque signature segment of the token
        email: Email claim, if present
        name: Display name claim, if present
    """

    subject: str
    role: Role
    issued_at: datetime
    expires_at: datetime
    signature: str
    email: str | None = None
    name: str | None = None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def __str__(self) -> str:
        return f"Session(subject={self.subject}, role={self.role.value})"


class MalformedSessionError(ValueError):
    """Raised when a credential cannot be turned into a Session."""


def _timestamp(claims: dict[str, Any], name: str) -> datetime:
    value = claims.get(name)
    if not isinstance(value, int | float) or isinstance(value, bool):
        raise MalformedSessionError(f"Missing or invalid '{name}' claim")
    return datetime.fromtimestamp(value, tz=UTC)


def parse_session(token: str) -> Session:
    """
    Verify a token's signature and build a Session from its claims.

    Expiry is not checked.

    Raises:
        MalformedSessionError: If the token is unparseable, unsigned, or has
            missing/invalid claims
    """
    try:
        claims = decode_token_claims(token)
    except JWTError as e:
        raise MalformedSessionError("Token signature could not be verified") from e

    subject = claims.get("sub")
    if not subject or not isinstance(subject, str):
        raise MalformedSessionError("Missing 'sub' claim")

    if claims.get("type") != TOKEN_TYPE_ACCESS:
        raise MalformedSessionError(f"Invalid token type: {claims.get('type')}")

    try:
        role = Role(claims.get("role"))
    except ValueError as e:
        raise MalformedSessionError(f"Unknown role: {claims.get('role')}") from e

    return Session(
        subject=subject,
        role=role,
        issued_at=_timestamp(claims, "iat"),
        expires_at=_timestamp(claims, "exp"),
        signature=token.rsplit(".", 1)[-1],
        email=claims.get("email"),
        name=claims.get("name"),
    )


def check_session(token: str, now: datetime) -> tuple[SessionStatus, Session | None]:
    """
    Classify a credential and return the parsed Session alongside.

    The Session is None only for MALFORMED credentials.
    """
    try:
        session = parse_session(token)
    except MalformedSessionError as e:
        logger.debug(f"Credential rejected: {e}")
        return SessionStatus.MALFORMED, None

    if session.is_expired(now):
        return SessionStatus.EXPIRED, session
    return SessionStatus.VALID, session


def validate(token: str, now: datetime) -> SessionStatus:
    """
    Classify a credential.

    Args:
        token: Encoded access token
        now: Current time (timezone-aware)

    Returns:
        MALFORMED if it cannot be parsed or verified, EXPIRED if it verifies
        but now >= expires-at, VALID otherwise
    """
    status, _session = check_session(token, now)
    return status


class SessionHolder:
    """
    Explicit holder for a cached credential.

    Set on login, cleared on expiry, logout or forced invalidation, read-only
    everywhere else.
    """

    def __init__(self, token: str | None = None) -> None:
        self._token = token

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def is_set(self) -> bool:
        return self._token is not None

    def set(self, token: str) -> None:
        if not token:
            raise ValueError("Cannot store an empty credential")
        self._token = token

    def clear(self, reason: str = "logout") -> None:
        if self._token is not None:
            logger.info(f"Discarding cached session ({reason})")
        self._token = None
