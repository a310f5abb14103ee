"""
School Registrations Router

Public endpoint for submitting a school registration. No authentication:
it is used before any school or user account exists.

Endpoints:
- POST /registrations - Submit a new registration (PENDING)
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from skoolar.core.database import get_db
from skoolar.modules.registrations import service
from skoolar.modules.registrations.schemas import (
    RegistrationCreate,
    RegistrationSubmittedResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=RegistrationSubmittedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit School Registration",
    description="""
Submit a new school registration.

The registration is stored as **pending** and appears in the platform
operator review queue. The contact is emailed once it is approved or rejected.
""",
    responses={
        201: {"description": "Registration stored"},
        422: {
            "description": "Validation error - request body format",
            "content": {
                "application/json": {
                    "example": {
                        "error": "VALIDATION_ERROR",
                        "signal": "validation_error",
                        "message": "body.contact_email: value is not a valid email address",
                    }
                }
            },
        },
        429: {"description": "Too many requests from this client"},
    },
)
async def submit_registration(
    data: RegistrationCreate,
    db: AsyncSession = Depends(get_db),
) -> RegistrationSubmittedResponse:
    registration = await service.submit_registration(db, data)
    return RegistrationSubmittedResponse.model_validate(registration)
