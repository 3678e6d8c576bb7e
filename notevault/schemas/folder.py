"""Pydantic schemas for Folder model validation."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .note import NoteResponse


class FolderBase(BaseModel):
    """Base schema with common folder fields."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Folder display name",
        examples=["Guides", "Release notes"],
    )
    description: Optional[str] = Field(
        None,
        description="Optional free-text description",
    )


class FolderCreate(FolderBase):
    """Schema for creating a folder. The version comes from the versionId query parameter."""

    parent_id: Optional[str] = Field(
        None,
        description="ID of the parent folder (must be an active root folder)",
    )


class FolderUpdate(BaseModel):
    """Schema for updating a folder."""

    name: Optional[str] = Field(
        None,
        min_length=1,
        max_length=255,
        description="Folder display name",
    )
    description: Optional[str] = Field(
        None,
        description="Folder description",
    )


class FolderRename(BaseModel):
    """Schema for renaming a folder."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="New folder name",
    )


class FolderResponse(FolderBase):
    """Schema for folder response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(
        ...,
        description="Unique folder identifier",
    )
    parent_id: Optional[UUID] = Field(
        None,
        description="ID of the parent folder (null for root folders)",
    )
    owner_id: UUID = Field(
        ...,
        description="ID of the owning user",
    )
    version_id: Optional[UUID] = Field(
        None,
        description="Community version the folder belongs to",
    )
    is_deleted: bool = Field(
        False,
        description="Whether the folder is in the trash",
    )
    deleted_at: Optional[datetime] = Field(
        None,
        description="When the folder was moved to trash",
    )
    created_at: datetime
    updated_at: datetime


class FolderContents(BaseModel):
    """Active subfolders and notes of one folder."""

    subfolders: List[FolderResponse] = Field(default_factory=list)
    notes: List[NoteResponse] = Field(default_factory=list)


class FolderTreeNode(FolderResponse):
    """Folder with its active notes and child folders."""

    notes: List[NoteResponse] = Field(
        default_factory=list,
        description="Active notes directly in this folder",
    )
    children: List["FolderTreeNode"] = Field(
        default_factory=list,
        description="Active child folders",
    )


class FolderTree(BaseModel):
    """Root folders with nested children."""

    folders: List[FolderTreeNode] = Field(default_factory=list)


# Required for self-referential Pydantic models
FolderTreeNode.model_rebuild()
