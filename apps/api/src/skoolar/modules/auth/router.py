"""
Authentication router.

Endpoints:
- POST /auth/login - Exchange email/password for an access token
- GET /auth/verify - Check the presented session
- GET /auth/profile - Current user's profile
- POST /auth/logout - Tell the browser to drop its cached session

Sessions are stateless signed tokens, so logout has nothing to revoke
server side.
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from skoolar.core.auth import require_action
from skoolar.core.bridge import CLEAR_SITE_DATA_HEADER
from skoolar.core.database import get_db
from skoolar.core.errors import AccountInactive, AuthenticationRequired, InvalidCredentials
from skoolar.core.roles import ACTION_AUTH_PROFILE, ACTION_AUTH_VERIFY
from skoolar.core.security import create_access_token, verify_password
from skoolar.core.session import Session, parse_session
from skoolar.modules.auth.schemas import (
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    UserResponse,
    VerifyResponse,
)
from skoolar.modules.users.models import User
from skoolar.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=str(user.id),
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role,
        school_id=str(user.school_id) if user.school_id else None,
        is_active=user.is_active,
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate user and return an access token.

    Raises:
        InvalidCredentials: Unknown email or wrong password (401)
        AccountInactive: Account deactivated (403)
    """
    user = await UserRepository.get_by_email(db, credentials.email)

    if not user:
        logger.warning(f"Login attempt for non-existent email: {credentials.email}")
        raise InvalidCredentials()

    if not verify_password(credentials.password, user.password_hash):
        logger.warning(f"Invalid password for user: {credentials.email}")
        raise InvalidCredentials()

    if not user.is_active:
        logger.warning(f"Login attempt for inactive account: {credentials.email}")
        raise AccountInactive()

    access_token = create_access_token(
        subject=str(user.id),
        role=user.role.value,
        additional_claims={"email": user.email, "name": user.full_name},
    )
    session = parse_session(access_token)

    logger.info(f"User logged in: {user.email} (role: {user.role.value})")

    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        expires_at=session.expires_at,
        user=_user_response(user),
    )


@router.get("/verify", response_model=VerifyResponse)
async def verify(
    session: Session = Depends(require_action(ACTION_AUTH_VERIFY)),
) -> VerifyResponse:
    """Confirm the presented session is valid and report when it expires."""
    return VerifyResponse(
        subject=session.subject,
        role=session.role,
        expires_at=session.expires_at,
    )


@router.get("/profile", response_model=UserResponse)
async def profile(
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(require_action(ACTION_AUTH_PROFILE)),
) -> UserResponse:
    user = await UserRepository.get_by_id(db, session.subject)

    # A signed token for a deleted or deactivated account is no longer usable
    if user is None or not user.is_active:
        logger.warning(f"Profile requested for unavailable account: {session.subject}")
        error = AuthenticationRequired("Your account is no longer available.")
        error.discard_session = True
        raise error

    return _user_response(user)


@router.post("/logout", response_model=LogoutResponse)
async def logout(response: Response) -> LogoutResponse:
    name, value = CLEAR_SITE_DATA_HEADER
    response.headers[name] = value
    logger.debug("Logout requested")
    return LogoutResponse()
