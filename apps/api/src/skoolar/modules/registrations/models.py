"""
School Registration Models

A school's onboarding request awaiting a platform-operator decision.
Platform-level table (no tenant id) since the school tenant does not exist yet.
"""

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, Enum, Index, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from skoolar.core.database import Base


class RegistrationStatus(str, enum.Enum):
    """Status of a school registration."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RegistrationRecord(Base):
    """
    School registration record.

    Invariants:
    - rejection_reason is set iff status is REJECTED
    - decided_at / decided_by are set iff status is not PENDING
    - APPROVED and REJECTED are terminal
    """

    __tablename__ = "school_registrations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Organisation profile
    school_name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_email: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Locale
    country_code: Mapped[str] = mapped_column(String(2), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")
    language: Mapped[str] = mapped_column(String(8), nullable=False, default="en")

    # Tenant request
    requested_subdomain: Mapped[str] = mapped_column(String(63), nullable=False)
    estimated_students: Mapped[int] = mapped_column(Integer, nullable=False)

    # Workflow
    status: Mapped[RegistrationStatus] = mapped_column(
        Enum(
            RegistrationStatus,
            name="registration_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=RegistrationStatus.PENDING,
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    decided_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_school_registrations_status_created_at", "status", "created_at"),
        Index("ix_school_registrations_requested_subdomain", "requested_subdomain"),
    )

    def __repr__(self) -> str:
        return f"<RegistrationRecord(id={self.id}, school={self.school_name}, status={self.status.value})>"
