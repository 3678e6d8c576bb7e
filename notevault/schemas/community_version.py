"""Pydantic schemas for community versions (content partitions)."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CommunityVersionCreate(BaseModel):
    """Schema for creating a community version."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Unique version label",
        examples=["v1.0", "v2.1"],
    )
    description: Optional[str] = Field(
        None,
        description="Optional description",
    )


class CommunityVersionUpdate(BaseModel):
    """Schema for updating a community version."""

    name: Optional[str] = Field(
        None,
        min_length=1,
        max_length=255,
        description="Unique version label",
    )
    description: Optional[str] = Field(
        None,
        description="Version description",
    )


class CommunityVersionResponse(BaseModel):
    """
    Schema for community version response.

    When no version exists yet, the listing contains a single placeholder
    entry with id = null and is_placeholder = true. It is never a real row.
    """

    model_config = ConfigDict(from_attributes=True)

    id: Optional[UUID] = Field(
        None,
        description="Unique version identifier (null for the placeholder)",
    )
    name: str = Field(
        ...,
        description="Version label",
    )
    description: Optional[str] = None
    created_by: Optional[UUID] = Field(
        None,
        description="ID of the user who created the version",
    )
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_placeholder: bool = Field(
        False,
        description="True when this entry stands in for a missing version",
    )


class MigrateContentRequest(BaseModel):
    """Schema for moving a caller's content between versions."""

    model_config = ConfigDict(populate_by_name=True)

    source_version_id: str = Field(
        ...,
        alias="sourceVersionId",
        description="Version to move content out of",
    )
    target_version_id: str = Field(
        ...,
        alias="targetVersionId",
        description="Version to move content into",
    )


class MigrationResult(BaseModel):
    """Outcome of a content migration."""

    message: str
    source_version_id: UUID
    target_version_id: UUID
    migrated_notes: int = 0
    migrated_folders: int = 0
