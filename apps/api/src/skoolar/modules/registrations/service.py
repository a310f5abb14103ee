"""
School Registrations Service

Business logic for the registration workflow:

    PENDING --approve--> APPROVED   (terminal)
    PENDING --reject---> REJECTED   (terminal, reason required)

Both decisions reject a second submission against an already-decided record
with RecordAlreadyDecided, so a retried request can neither flip a decision
nor write a second audit entry.

Only a platform operator reaches approve/reject; that is enforced by the
authorization gate in front of the admin router, not here.
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from skoolar.core.email import send_registration_approved, send_registration_rejected
from skoolar.core.errors import InvalidReason, RecordAlreadyDecided, RecordNotFound

from . import repository
from .models import RegistrationRecord, RegistrationStatus
from .repository import SortOrder
from .schemas import RegistrationCreate

logger = logging.getLogger(__name__)


def normalize_reason(reason: str | None) -> str:
    """
    Return the trimmed rejection reason.

    Raises:
        InvalidReason: If the reason is missing, empty or whitespace only
    """
    if reason is None:
        raise InvalidReason()
    trimmed = reason.strip()
    if not trimmed:
        raise InvalidReason()
    return trimmed


async def _decide(
    db: AsyncSession,
    record_id: UUID,
    status: RegistrationStatus,
    actor: str,
    now: datetime,
    rejection_reason: str | None = None,
) -> RegistrationRecord:
    """Apply a decision, mapping a lost or stale update to the taxonomy errors."""
    registration = await repository.get_by_id(db, record_id)

    if registration is None:
        logger.warning(f"Registration not found: {record_id}")
        raise RecordNotFound(record_id)

    if registration.status != RegistrationStatus.PENDING:
        logger.warning(
            f"Registration {record_id} already decided "
            f"(status={registration.status.value}), refusing {status.value}"
        )
        raise RecordAlreadyDecided(record_id, registration.status.value)

    updated = await repository.apply_decision(
        db,
        record_id,
        status,
        decided_by=actor,
        decided_at=now,
        rejection_reason=rejection_reason,
    )

    if updated is None:
        # Another operator decided it between the read and the update
        current = await repository.get_by_id(db, record_id)
        current_status = current.status.value if current else "unknown"
        logger.warning(
            f"Lost decision race on registration {record_id} (status={current_status})"
        )
        raise RecordAlreadyDecided(record_id, current_status)

    return updated


async def approve(
    db: AsyncSession,
    record_id: UUID,
    actor: str,
    now: datetime | None = None,
) -> RegistrationRecord:
    """
    Approve a pending registration.

    Args:
        db: Database session
        record_id: Registration UUID
        actor: Subject of the deciding platform operator
        now: Decision time, defaults to the current UTC time

    Returns:
        The APPROVED registration

    Raises:
        RecordNotFound: If the registration does not exist
        RecordAlreadyDecided: If it is not pending, or another decision won
    """
    now = now or datetime.now(UTC)
    logger.info(f"Operator {actor} approving registration {record_id}")

    registration = await _decide(db, record_id, RegistrationStatus.APPROVED, actor, now)
    logger.info(f"Registration {record_id} approved by {actor}")

    # Notification is best effort; the decision is already committed
    try:
        await send_registration_approved(
            to_email=registration.contact_email,
            contact_name=registration.contact_name,
            school_name=registration.school_name,
            subdomain=registration.requested_subdomain,
        )
    except Exception as e:
        logger.error(f"Failed to send approval email for {record_id}: {e}", exc_info=True)

    return registration


async def reject(
    db: AsyncSession,
    record_id: UUID,
    actor: str,
    reason: str | None,
    now: datetime | None = None,
) -> RegistrationRecord:
    """
    Reject a pending registration with a reason.

    The reason is checked before the record is looked up, so an empty or
    whitespace-only reason never touches the database.

    Raises:
        InvalidReason: If the reason is empty or whitespace only
        RecordNotFound: If the registration does not exist
        RecordAlreadyDecided: If it is not pending, or another decision won
    """
    trimmed = normalize_reason(reason)
    now = now or datetime.now(UTC)
    logger.info(f"Operator {actor} rejecting registration {record_id}")

    registration = await _decide(
        db, record_id, RegistrationStatus.REJECTED, actor, now, rejection_reason=trimmed
    )
    logger.info(f"Registration {record_id} rejected by {actor}")

    try:
        await send_registration_rejected(
            to_email=registration.contact_email,
            contact_name=registration.contact_name,
            school_name=registration.school_name,
            reason=trimmed,
        )
    except Exception as e:
        logger.error(f"Failed to send rejection email for {record_id}: {e}", exc_info=True)

    return registration


async def list_pending(
    db: AsyncSession,
    order: SortOrder = "asc",
    skip: int = 0,
    limit: int | None = None,
) -> list[RegistrationRecord]:
    """
    Pending registrations, oldest first unless order="desc".

    Returns every pending registration unless skip/limit select a page.

    One query, so the result is a snapshot: a record decided before the query
    runs is never included.
    """
    return await repository.list_by_status(
        db, RegistrationStatus.PENDING, order=order, skip=skip, limit=limit
    )


async def get_registration(db: AsyncSession, record_id: UUID) -> RegistrationRecord:
    """
    Get a registration by ID.

    Raises:
        RecordNotFound: If the registration does not exist
    """
    registration = await repository.get_by_id(db, record_id)
    if registration is None:
        raise RecordNotFound(record_id)
    return registration


async def submit_registration(db: AsyncSession, data: RegistrationCreate) -> RegistrationRecord:
    """Store a new registration in PENDING status."""
    registration = await repository.create(db, data)
    logger.info(
        f"Registration submitted: {registration.id} - {registration.school_name} "
        f"({registration.requested_subdomain})"
    )
    return registration
