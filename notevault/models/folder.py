"""Folder SQLAlchemy model for the two-level note hierarchy.

Folders carry the trash columns (is_deleted, deleted_at) and the community
version partition key (version_id). Both arrive in later migrations, so a
live database may not have them yet; see services/schema_capabilities.py.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text, Uuid, false

from ..database import Base


class Folder(Base):
    """
    Folder model for organizing notes.

    Root folders have parent_id = NULL. The supported layout is two levels
    (root folder, child folder), the schema itself does not block deeper
    nesting.

    Attributes:
        id: Unique identifier (UUID)
        name: Folder display name
        parent_id: FK to parent folder (nullable for root folders)
        description: Optional free-text description
        owner_id: FK to the owning user
        version_id: FK to CommunityVersion partition (nullable)
        is_deleted: Soft delete flag (trash)
        deleted_at: When the folder was moved to trash
        created_at: Timestamp when folder was created
        updated_at: Timestamp when folder was last updated
    """

    __tablename__ = "folders"
    __allow_unmapped__ = True

    # Primary key
    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )

    name = Column(
        String(255),
        nullable=False,
    )

    # Self-referential parent
    parent_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("folders.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    description = Column(
        Text,
        nullable=True,
    )

    owner_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Content partition
    version_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("community_versions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Trash (server default so inserts never name the column)
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
        Index("ix_folders_owner_version_deleted", "owner_id", "version_id", "is_deleted"),
        Index("ix_folders_version_deleted", "version_id", "is_deleted"),
    )

    def __repr__(self) -> str:
        """String representation of Folder."""
        return f"<Folder(id={self.id}, name={self.name}, parent_id={self.parent_id})>"
