"""CommunityVersion SQLAlchemy model: the content partition key."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid

from ..database import Base


class CommunityVersion(Base):
    """
    A named partition of folders and notes (e.g. "v1.0", "v2.1").

    Versions are global: every user's content carries a version_id and
    listings are filtered by the version the caller selects. A version is
    not a revision history.

    Attributes:
        id: Unique identifier (UUID)
        name: Unique display label
        description: Optional description
        created_by: FK to the user who created the version
        created_at: Timestamp when version was created
        updated_at: Timestamp when version was last updated
    """

    __tablename__ = "community_versions"
    __allow_unmapped__ = True

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )

    name = Column(
        String(255),
        nullable=False,
        unique=True,
    )
    description = Column(
        Text,
        nullable=True,
    )

    created_by = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True,
    )
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation of CommunityVersion."""
        return f"<CommunityVersion(id={self.id}, name={self.name})>"
