"""
Security Utilities

Password hashing (bcrypt) and signed access tokens (python-jose).

Token expiry is deliberately NOT enforced by decode_token_claims: the session
validator compares expires-at against an explicit clock so that "expired" and
"malformed" stay distinguishable.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import bcrypt
from jose import JWTError, jwt

from skoolar.core.config import settings

logger = logging.getLogger(__name__)

TOKEN_TYPE_ACCESS = "access"


def hash_password(password: str) -> str:
    """Hash a plain text password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Check a plain text password against a stored bcrypt hash.

    Returns False for unparseable hashes instead of raising.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash could not be parsed")
        return False


def create_access_token(
    subject: str,
    role: str,
    *,
    additional_claims: dict[str, Any] | None = None,
    issued_at: datetime | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed access token.

    Args:
        subject: User ID placed in the "sub" claim
        role: Role value placed in the "role" claim
        additional_claims: Extra claims (email, name)
        issued_at: Issue time, defaults to now (UTC)
        expires_delta: Lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        Encoded JWT string
    """
    issued = issued_at or datetime.now(UTC)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)

    claims: dict[str, Any] = {
        **(additional_claims or {}),
        "sub": subject,
        "role": role,
        "type": TOKEN_TYPE_ACCESS,
        "iat": int(issued.timestamp()),
        "exp": int((issued + lifetime).timestamp()),
        "jti": uuid4().hex,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token_claims(token: str) -> dict[str, Any]:
    """
    Verify the token signature and return its claims.

    Expiry is not checked here.

    Raises:
        JWTError: If the token cannot be parsed or the signature does not verify
    """
    return jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm],
        options={"verify_exp": False},
    )
