"""
Shared fixtures: fixed clock, token factory, mock database session, and an
HTTP client with the database and clock dependencies overridden.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from skoolar.core.auth import get_clock
from skoolar.core.database import get_db
from skoolar.core.rate_limit import MemoryWindowStore, admission_controller
from skoolar.core.roles import Role
from skoolar.core.security import create_access_token
from skoolar.main import app
from skoolar.modules.registrations.models import RegistrationRecord, RegistrationStatus

FIXED_NOW = datetime(2026, 3, 2, 9, 30, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    """Fixed 'current time' used by gate checks."""
    return FIXED_NOW


@pytest.fixture
def make_token() -> Callable[..., str]:
    """
    Factory for signed access tokens.

    make_token(Role.TEACHER) -> token issued 5 minutes before FIXED_NOW,
    valid for one hour.
    """

    def _make(
        role: Role = Role.PLATFORM_OPERATOR,
        *,
        subject: str = "00000000-0000-0000-0000-000000000001",
        issued_at: datetime | None = None,
        lifetime: timedelta = timedelta(hours=1),
    ) -> str:
        return create_access_token(
            subject=subject,
            role=role.value,
            additional_claims={"email": "user@skoolar.test", "name": "Test User"},
            issued_at=issued_at or FIXED_NOW - timedelta(minutes=5),
            expires_delta=lifetime,
        )

    return _make


@pytest.fixture
def operator_token(make_token) -> str:
    return make_token(Role.PLATFORM_OPERATOR)


@pytest.fixture
def expired_token(make_token) -> str:
    return make_token(
        Role.PLATFORM_OPERATOR,
        issued_at=FIXED_NOW - timedelta(hours=2),
        lifetime=timedelta(hours=1),
    )


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.flush = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture(autouse=True)
def reset_admission():
    """Give every test a fresh in-memory admission window store."""
    admission_controller.memory_store = MemoryWindowStore()
    admission_controller.redis_store = None
    yield
    admission_controller.memory_store = MemoryWindowStore()


@pytest.fixture
def client(mock_db):
    """HTTP client against the app with database and clock overridden."""

    async def _get_db():
        yield mock_db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: FIXED_NOW
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_registration() -> Callable[..., MagicMock]:
    """Factory for registration model mocks."""

    def _make(status: RegistrationStatus = RegistrationStatus.PENDING, **overrides) -> MagicMock:
        registration = MagicMock(spec=RegistrationRecord)
        registration.id = uuid4()
        registration.school_name = "Harbour View Academy"
        registration.contact_name = "Ama Mensah"
        registration.contact_email = "ama@harbourview.edu"
        registration.contact_phone = "+233201234567"
        registration.country_code = "GH"
        registration.city = "Accra"
        registration.address = "12 Ring Road"
        registration.timezone = "Africa/Accra"
        registration.language = "en"
        registration.requested_subdomain = "harbourview"
        registration.estimated_students = 450
        registration.status = status
        registration.rejection_reason = None
        registration.created_at = FIXED_NOW - timedelta(days=2)
        registration.updated_at = FIXED_NOW - timedelta(days=2)
        registration.decided_at = None
        registration.decided_by = None
        for key, value in overrides.items():
            setattr(registration, key, value)
        return registration

    return _make
