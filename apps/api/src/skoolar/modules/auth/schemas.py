"""Authentication schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from skoolar.core.roles import Role


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """User response schema for login and profile."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: str
    last_name: str
    role: Role
    school_id: str | None = None
    is_active: bool


class LoginResponse(BaseModel):
    """Login response schema."""

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserResponse


class VerifyResponse(BaseModel):
    """Result of checking the presented session."""

    valid: bool = True
    subject: str
    role: Role
    expires_at: datetime


class LogoutResponse(BaseModel):
    message: str = "Logged out."
