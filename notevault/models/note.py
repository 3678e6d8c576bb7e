"""Note SQLAlchemy model."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    false,
)

from ..database import Base


class Note(Base):
    """
    Note model representing a single note inside a folder.

    A note is active while is_deleted is false and its folder (if any) is
    active. Content-affecting updates bump `revision` and append the previous
    state to the note_versions revision log.

    Attributes:
        id: Unique identifier (UUID)
        title: Note title
        content: Note body (plain text / markdown)
        description: Optional short description
        folder_id: FK to Folder (nullable - null means unfiled)
        owner_id: FK to the owning user
        version_id: FK to CommunityVersion partition (nullable)
        is_deleted: Soft delete flag (trash)
        deleted_at: When the note was moved to trash
        revision: Content revision counter
        created_at: Timestamp when note was created
        updated_at: Timestamp when note was last updated
    """

    __tablename__ = "notes"
    __allow_unmapped__ = True

    # Primary key - UUID
    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )

    # Note details
    title = Column(
        String(255),
        nullable=False,
        index=True,
    )
    content = Column(
        Text,
        nullable=False,
        default="",
    )
    description = Column(
        Text,
        nullable=True,
    )

    # Foreign keys
    folder_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("folders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    owner_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("community_versions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Trash
    is_deleted = Column(
        Boolean,
        nullable=False,
        server_default=false(),
    )
    deleted_at = Column(
        DateTime,
        nullable=True,
        index=True,
    )

    revision = Column(
        Integer,
        nullable=False,
        default=1,
    )

    # Timestamps
    created_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_notes_owner_version_deleted", "owner_id", "version_id", "is_deleted"),
        Index("ix_notes_folder_version", "folder_id", "version_id"),
    )

    def __repr__(self) -> str:
        """String representation of Note."""
        return f"<Note(id={self.id}, title={self.title[:30] if self.title else ''})>"
