"""
School Registrations Admin Router

Endpoints for platform operators to review school registrations.
Every endpoint runs the authorization gate for its action; only the
platform_operator role proceeds.

Endpoints:
- GET /admin/registrations/pending - Pending registrations (oldest first)
- GET /admin/registrations/{id} - Registration details
- POST /admin/registrations/{id}/approve - Approve a pending registration
- POST /admin/registrations/{id}/reject - Reject with a reason

Errors are raised as SkoolarError subclasses and rendered by the exception
handlers in skoolar.core.bridge.
"""

import logging
from datetime import datetime
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from skoolar.core.auth import get_clock, require_action
from skoolar.core.database import get_db
from skoolar.core.roles import (
    ACTION_REGISTRATIONS_APPROVE,
    ACTION_REGISTRATIONS_LIST_PENDING,
    ACTION_REGISTRATIONS_REJECT,
    ACTION_REGISTRATIONS_VIEW,
)
from skoolar.core.session import Session
from skoolar.modules.registrations import service
from skoolar.modules.registrations.schemas import (
    DecisionResponse,
    PendingRegistrationsResponse,
    RegistrationDetailResponse,
    RegistrationListItem,
    RejectRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_GATE_RESPONSES = {
    401: {"description": "No session, or the session has expired"},
    403: {"description": "Session role is not platform_operator"},
    429: {"description": "Too many requests from this client"},
}


@router.get(
    "/pending",
    response_model=PendingRegistrationsResponse,
    summary="List Pending Registrations",
    description="""
Registrations awaiting a decision.

Ordered by submission time, **oldest first** by default (`order=asc`).
Approved and rejected registrations are never listed. Without `limit`
every pending registration is returned.
""",
    responses=_GATE_RESPONSES,
)
async def list_pending_registrations(
    order: Literal["asc", "desc"] = Query("asc", description="Sort by submission time"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int | None = Query(
        None, ge=1, le=100, description="Maximum records to return (all when omitted)"
    ),
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(require_action(ACTION_REGISTRATIONS_LIST_PENDING)),
) -> PendingRegistrationsResponse:
    registrations = await service.list_pending(db, order=order, skip=skip, limit=limit)
    logger.debug(f"{session} listed {len(registrations)} pending registrations")

    return PendingRegistrationsResponse(
        registrations=[RegistrationListItem.model_validate(r) for r in registrations],
        total=len(registrations),
        order=order,
    )


@router.get(
    "/{registration_id}",
    response_model=RegistrationDetailResponse,
    summary="Get Registration Details",
    responses={**_GATE_RESPONSES, 404: {"description": "Registration not found"}},
)
async def get_registration(
    registration_id: UUID,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(require_action(ACTION_REGISTRATIONS_VIEW)),
) -> RegistrationDetailResponse:
    registration = await service.get_registration(db, registration_id)
    return RegistrationDetailResponse.model_validate(registration)


@router.post(
    "/{registration_id}/approve",
    response_model=DecisionResponse,
    summary="Approve Registration",
    description="""
Approve a pending registration.

A registration that is already approved or rejected returns **409** with
`RECORD_ALREADY_DECIDED`; the original decision is kept.
""",
    responses={
        **_GATE_RESPONSES,
        404: {"description": "Registration not found"},
        409: {"description": "Registration already decided"},
    },
)
async def approve_registration(
    registration_id: UUID,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(require_action(ACTION_REGISTRATIONS_APPROVE)),
    now: datetime = Depends(get_clock),
) -> DecisionResponse:
    registration = await service.approve(db, registration_id, session.subject, now)

    return DecisionResponse(
        id=registration.id,
        status=registration.status,
        decided_at=registration.decided_at,
        decided_by=registration.decided_by,
        message="Registration approved.",
    )


@router.post(
    "/{registration_id}/reject",
    response_model=DecisionResponse,
    summary="Reject Registration",
    description="""
Reject a pending registration.

`reason` is required and must contain non-whitespace text; it is stored
trimmed and included in the notification email to the school contact,
which is sent on a best-effort basis.
""",
    responses={
        **_GATE_RESPONSES,
        404: {"description": "Registration not found"},
        409: {"description": "Registration already decided"},
        422: {"description": "Missing or blank reason"},
    },
)
async def reject_registration(
    registration_id: UUID,
    data: RejectRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(require_action(ACTION_REGISTRATIONS_REJECT)),
    now: datetime = Depends(get_clock),
) -> DecisionResponse:
    registration = await service.reject(db, registration_id, session.subject, data.reason, now)

    return DecisionResponse(
        id=registration.id,
        status=registration.status,
        decided_at=registration.decided_at,
        decided_by=registration.decided_by,
        rejection_reason=registration.rejection_reason,
        message="Registration rejected.",
    )
