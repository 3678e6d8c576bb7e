"""Pydantic schemas for trash operation results."""

from typing import List
from uuid import UUID

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


class TrashResult(BaseModel):
    """Outcome of moving a note or folder to trash."""

    message: str = Field(
        ...,
        description='"moved to trash", or "deleted (trash not available)" on an unmigrated schema',
    )
    id: UUID
    hard_deleted: bool = Field(
        False,
        description="True when the item was permanently deleted instead of trashed",
    )
    already_in_trash: bool = Field(
        False,
        description="True when the item was already trashed (no-op)",
    )
    cascaded_folders: int = Field(
        0,
        description="Descendant folders trashed with the folder",
    )
    cascaded_notes: int = Field(
        0,
        description="Notes trashed with the folder",
    )


class BulkTrashResult(BaseModel):
    """Per-category outcome of empty-trash and recover-all."""

    message: str
    notes: int = Field(
        0,
        description="Notes affected",
    )
    folders: int = Field(
        0,
        description="Folders affected",
    )
    failed: List[str] = Field(
        default_factory=list,
        description='Categories that failed and were rolled back ("notes", "folders")',
    )
