"""Pydantic schemas for Note model validation."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class NoteBase(BaseModel):
    """Base schema with common note fields."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Note title",
        examples=["Release checklist", "Meeting Notes"],
    )
    content: Optional[str] = Field(
        "",
        description="Note body (plain text or markdown)",
        examples=["## Agenda\n- budget\n- hiring"],
    )
    description: Optional[str] = Field(
        None,
        description="Short description shown in listings",
    )


class NoteCreate(NoteBase):
    """Schema for creating a new note. The version comes from the versionId query parameter."""

    folder_id: Optional[str] = Field(
        None,
        description="ID of the containing folder (must be active)",
        examples=["7c9e6679-7425-40de-944b-e07fc1f90ae7"],
    )


class NoteUpdate(BaseModel):
    """
    Schema for updating a note.

    Only fields present in the request body are applied, so sending
    "folder_id": null moves the note out of its folder.
    """

    title: Optional[str] = Field(
        None,
        min_length=1,
        max_length=255,
        description="Note title",
    )
    content: Optional[str] = Field(
        None,
        description="Note body",
    )
    description: Optional[str] = Field(
        None,
        description="Short description",
    )
    folder_id: Optional[str] = Field(
        None,
        description="ID of the containing folder, or null for unfiled",
    )


class NoteRename(BaseModel):
    """Schema for renaming a note."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="New note title",
    )


class NoteResponse(NoteBase):
    """Schema for note response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(
        ...,
        description="Unique note identifier",
    )
    folder_id: Optional[UUID] = Field(
        None,
        description="ID of the containing folder",
    )
    owner_id: UUID = Field(
        ...,
        description="ID of the owning user",
    )
    version_id: Optional[UUID] = Field(
        None,
        description="Community version the note belongs to",
    )
    is_deleted: bool = Field(
        False,
        description="Whether the note is in the trash",
    )
    deleted_at: Optional[datetime] = Field(
        None,
        description="When the note was moved to trash",
    )
    revision: int = Field(
        1,
        description="Content revision counter",
    )
    created_at: datetime = Field(
        ...,
        description="When the note was created",
    )
    updated_at: datetime = Field(
        ...,
        description="When the note was last updated",
    )


class FolderSummary(BaseModel):
    """Folder fields embedded in the all-notes view."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    parent_id: Optional[UUID] = None
    description: Optional[str] = None


class NoteWithFolder(NoteResponse):
    """Note joined with a summary of its folder."""

    folder: Optional[FolderSummary] = Field(
        None,
        description="Containing folder, when the note is filed",
    )


class NoteRevisionResponse(BaseModel):
    """Schema for an entry of a note's revision log."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(
        ...,
        description="Unique revision entry identifier",
    )
    note_id: UUID = Field(
        ...,
        description="ID of the note",
    )
    title: str
    content: str
    revision: int = Field(
        ...,
        description="Revision number the snapshot was taken from",
    )
    created_at: datetime


class NoteRevisionList(BaseModel):
    """Revision log listing, newest first."""

    items: List[NoteRevisionResponse]
