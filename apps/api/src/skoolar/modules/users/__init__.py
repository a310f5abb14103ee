"""
Users module - User accounts and login lookups.
"""

from skoolar.modules.users.models import User
from skoolar.modules.users.repository import UserRepository

__all__ = ["User", "UserRepository"]
