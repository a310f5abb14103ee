"""
Core module - Configuration, database, security, access control and utilities.
"""

from skoolar.core.config import get_settings, settings
from skoolar.core.database import Base, close_db, get_db, init_db
from skoolar.core.redis import close_redis, get_redis, init_redis
from skoolar.core.security import (
    create_access_token,
    decode_token_claims,
    hash_password,
    verify_password,
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Redis
    "get_redis",
    "init_redis",
    "close_redis",
    # Security
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_token_claims",
]
