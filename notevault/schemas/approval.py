"""Pydantic schemas for the registration approval workflow."""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegistrationRequest(BaseModel):
    """Schema for self-registration. Creates a pending approval request."""

    email: EmailStr = Field(
        ...,
        description="Applicant email address",
        examples=["new.user@example.com"],
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Applicant display name",
    )
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Requested password (hashed on receipt)",
    )


class ApprovalReview(BaseModel):
    """Schema for an admin decision on a request."""

    status: Literal["approved", "rejected"] = Field(
        ...,
        description="Decision",
    )
    admin_notes: Optional[str] = Field(
        None,
        description="Notes shared with the applicant",
    )


class ApprovalRequestResponse(BaseModel):
    """Schema for approval request response. Never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    status: str
    admin_notes: Optional[str] = None
    requested_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[UUID] = None
