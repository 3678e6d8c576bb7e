"""Pydantic schemas for User model validation."""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

RoleName = Literal["user", "manager", "admin"]
StatusName = Literal["pending", "approved", "rejected"]


class UserBase(BaseModel):
    """Base schema with common user fields."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["user@example.com"],
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="User's display name",
        examples=["Jane Doe"],
    )


class UserCreate(UserBase):
    """Schema for provisioning a user directly (manager/admin)."""

    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="User's password (will be hashed)",
        examples=["SecureP@ssw0rd!"],
    )
    role: RoleName = Field(
        "user",
        description="Account role",
    )


class UserUpdate(BaseModel):
    """Schema for updating a user (manager/admin)."""

    email: Optional[EmailStr] = None
    name: Optional[str] = Field(
        None,
        min_length=1,
        max_length=255,
    )
    role: Optional[RoleName] = None
    status: Optional[StatusName] = None
    password: Optional[str] = Field(
        None,
        min_length=8,
        max_length=128,
        description="New password (will be hashed)",
    )


class ProfileUpdate(BaseModel):
    """Schema for updating one's own profile."""

    name: Optional[str] = Field(
        None,
        min_length=1,
        max_length=255,
        description="User's display name",
    )
    password: Optional[str] = Field(
        None,
        min_length=8,
        max_length=128,
        description="New password (will be hashed)",
    )


class UserResponse(UserBase):
    """Schema for user response (public data only)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(
        ...,
        description="Unique user identifier",
    )
    role: str = Field(
        ...,
        description="Account role",
    )
    status: str = Field(
        ...,
        description="Account status",
    )
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
