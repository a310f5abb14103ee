"""
Seed Platform Operator User

Creates the initial platform operator account, the only role allowed to
approve or reject school registrations. Safe to run more than once.

Credentials are read from the environment:
    SEED_OPERATOR_EMAIL, SEED_OPERATOR_PASSWORD,
    SEED_OPERATOR_FIRST_NAME, SEED_OPERATOR_LAST_NAME

Usage:
    cd apps/api
    SEED_OPERATOR_EMAIL=ops@skoolar.app SEED_OPERATOR_PASSWORD=... \\
        python scripts/seed_platform_operator.py
"""

import asyncio
import logging
import os
import sys

from skoolar.core.database import async_session_maker, close_db
from skoolar.core.logging_config import configure_logging
from skoolar.core.roles import Role
from skoolar.core.security import hash_password
from skoolar.modules.users.repository import UserRepository

logger = logging.getLogger("skoolar.scripts.seed_platform_operator")


async def seed_platform_operator(email: str, password: str, first_name: str, last_name: str) -> None:
    """Create the platform operator if it doesn't exist."""
    async with async_session_maker() as db:
        existing = await UserRepository.get_by_email(db, email)
        if existing:
            logger.info(f"Platform operator already exists: {existing.email} (role={existing.role.value})")
            return

        user = await UserRepository.create(
            db,
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=Role.PLATFORM_OPERATOR,
            school_id=None,
        )
        await db.commit()
        logger.info(f"Platform operator created: {user.email} (id={user.id})")

    await close_db()


def main() -> int:
    configure_logging()

    email = os.environ.get("SEED_OPERATOR_EMAIL")
    password = os.environ.get("SEED_OPERATOR_PASSWORD")
    if not email or not password:
        logger.error("SEED_OPERATOR_EMAIL and SEED_OPERATOR_PASSWORD must be set")
        return 1

    asyncio.run(
        seed_platform_operator(
            email,
            password,
            os.environ.get("SEED_OPERATOR_FIRST_NAME", "Platform"),
            os.environ.get("SEED_OPERATOR_LAST_NAME", "Operator"),
        )
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
