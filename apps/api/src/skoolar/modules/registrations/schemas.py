"""
School Registration Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from skoolar.modules.registrations.models import RegistrationStatus


class RegistrationCreate(BaseModel):
    """Request body for POST /registrations."""

    school_name: str = Field(..., min_length=1, max_length=200)
    contact_name: str = Field(..., min_length=1, max_length=200)
    contact_email: EmailStr
    contact_phone: str | None = Field(None, max_length=20)
    country_code: str = Field(..., min_length=2, max_length=2)
    city: str = Field(..., min_length=1, max_length=100)
    address: str | None = Field(None, max_length=500)
    timezone: str = Field("UTC", max_length=64)
    language: str = Field("en", max_length=8)
    requested_subdomain: str = Field(..., min_length=1, max_length=63)
    estimated_students: int = Field(..., ge=0)


class RegistrationSubmittedResponse(BaseModel):
    """Response after submitting a registration."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    status: RegistrationStatus
    created_at: datetime
    message: str = "Registration submitted. A platform operator will review it."


class RegistrationListItem(BaseModel):
    """Registration summary for the pending list."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Registration UUID")
    school_name: str = Field(..., description="Official school name")
    contact_name: str = Field(..., description="Contact person")
    contact_email: str = Field(..., description="Contact email")
    country_code: str = Field(..., description="2-letter country code")
    city: str = Field(..., description="City where the school is located")
    requested_subdomain: str = Field(..., description="Requested portal subdomain")
    estimated_students: int = Field(..., description="Estimated student count")
    status: RegistrationStatus = Field(..., description="Current status")
    created_at: datetime = Field(..., description="When the registration was submitted")


class PendingRegistrationsResponse(BaseModel):
    """Snapshot of pending registrations."""

    registrations: list[RegistrationListItem]
    total: int = Field(..., ge=0, description="Number of pending registrations returned")
    order: Literal["asc", "desc"]


class RegistrationDetailResponse(RegistrationListItem):
    """Complete registration details for operator review."""

    contact_phone: str | None = None
    address: str | None = None
    timezone: str
    language: str
    rejection_reason: str | None = None
    decided_at: datetime | None = None
    decided_by: str | None = None
    updated_at: datetime


class RejectRequest(BaseModel):
    """Request body for rejecting a registration."""

    reason: str = Field(
        ...,
        max_length=1000,
        description="Reason for rejection (required, not blank)",
        json_schema_extra={"example": "Unable to verify the school's registration documents."},
    )


class DecisionResponse(BaseModel):
    """Response after approving or rejecting a registration."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Registration UUID")
    status: RegistrationStatus = Field(..., description="Terminal status")
    decided_at: datetime = Field(..., description="When the decision was made")
    decided_by: str = Field(..., description="Operator who decided")
    rejection_reason: str | None = Field(None, description="Present for rejections")
    message: str
