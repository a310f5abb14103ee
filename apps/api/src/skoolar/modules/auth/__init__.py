"""Authentication module."""

from skoolar.modules.auth.router import router
from skoolar.modules.auth.schemas import LoginRequest, LoginResponse, VerifyResponse

__all__ = ["router", "LoginRequest", "LoginResponse", "VerifyResponse"]
