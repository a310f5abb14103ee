"""
School Registrations Repository

Database operations for school registrations. Only data access lives here;
workflow rules are enforced by the service.

Decisions are written with a conditional UPDATE (status must still be
pending) so that two concurrent operators cannot both move the same record.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import RegistrationRecord, RegistrationStatus
from .schemas import RegistrationCreate

SortOrder = Literal["asc", "desc"]


async def create(db: AsyncSession, data: RegistrationCreate) -> RegistrationRecord:
    """Create a new pending registration."""

    registration = RegistrationRecord(
        school_name=data.school_name,
        contact_name=data.contact_name,
        contact_email=str(data.contact_email).lower(),
        contact_phone=data.contact_phone,
        country_code=data.country_code.upper(),
        city=data.city,
        address=data.address,
        timezone=data.timezone,
        language=data.language,
        requested_subdomain=data.requested_subdomain.lower(),
        estimated_students=data.estimated_students,
        status=RegistrationStatus.PENDING,
    )

    db.add(registration)
    await db.commit()
    await db.refresh(registration)

    return registration


async def get_by_id(db: AsyncSession, id: UUID) -> RegistrationRecord | None:
    """Get registration by ID."""
    return await db.get(RegistrationRecord, id)


async def list_by_status(
    db: AsyncSession,
    status: RegistrationStatus,
    *,
    order: SortOrder = "asc",
    skip: int = 0,
    limit: int | None = None,
) -> list[RegistrationRecord]:
    """
    List registrations in a status, ordered by submission time.

    Every matching row is returned unless a limit is given. Ties on
    created_at are broken by id so paging is stable.
    """
    if order == "asc":
        ordering = (RegistrationRecord.created_at.asc(), RegistrationRecord.id.asc())
    else:
        ordering = (RegistrationRecord.created_at.desc(), RegistrationRecord.id.desc())

    query = (
        select(RegistrationRecord)
        .where(RegistrationRecord.status == status)
        .order_by(*ordering)
    )
    if skip:
        query = query.offset(skip)
    if limit is not None:
        query = query.limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())


# Pending is the only state that accepts a decision
VALID_STATUS_TRANSITIONS: dict[RegistrationStatus, set[RegistrationStatus]] = {
    RegistrationStatus.PENDING: {
        RegistrationStatus.APPROVED,
        RegistrationStatus.REJECTED,
    },
    # Terminal states
    RegistrationStatus.APPROVED: set(),
    RegistrationStatus.REJECTED: set(),
}


class InvalidStatusTransitionError(ValueError):
    """Raised when an invalid status transition is attempted."""

    def __init__(
        self,
        current_status: RegistrationStatus,
        new_status: RegistrationStatus,
    ):
        self.current_status = current_status
        self.new_status = new_status
        valid_transitions = VALID_STATUS_TRANSITIONS.get(current_status, set())
        super().__init__(
            f"Invalid status transition: {current_status.value} -> {new_status.value}. "
            f"Valid transitions: {sorted(s.value for s in valid_transitions)}"
        )


def check_transition(current_status: RegistrationStatus, new_status: RegistrationStatus) -> None:
    """
    Raise unless current_status -> new_status is allowed.

    Raises:
        InvalidStatusTransitionError: If the transition is not allowed
    """
    if new_status not in VALID_STATUS_TRANSITIONS.get(current_status, set()):
        raise InvalidStatusTransitionError(current_status, new_status)


async def apply_decision(
    db: AsyncSession,
    id: UUID,
    status: RegistrationStatus,
    *,
    decided_by: str,
    decided_at: datetime,
    rejection_reason: str | None = None,
) -> RegistrationRecord | None:
    """
    Move a pending registration to a terminal status.

    The update only matches while the row is still pending, so at most one
    concurrent decision wins.

    Args:
        db: Database session
        id: Registration UUID
        status: APPROVED or REJECTED
        decided_by: Operator subject
        decided_at: Decision time (UTC)
        rejection_reason: Trimmed reason, only for REJECTED

    Returns:
        The updated registration, or None if no pending row matched

    Raises:
        InvalidStatusTransitionError: If status is not reachable from PENDING
    """
    check_transition(RegistrationStatus.PENDING, status)

    result = await db.execute(
        update(RegistrationRecord)
        .where(
            RegistrationRecord.id == id,
            RegistrationRecord.status == RegistrationStatus.PENDING,
        )
        .values(
            status=status,
            decided_by=decided_by,
            decided_at=decided_at,
            rejection_reason=rejection_reason,
            updated_at=decided_at,
        )
        .returning(RegistrationRecord)
        .execution_options(synchronize_session="fetch")
    )
    registration = result.scalar_one_or_none()
    await db.commit()

    return registration
