"""NoteVersion SQLAlchemy model: the per-note revision log."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, Uuid

from ..database import Base


class NoteVersion(Base):
    """
    Point-in-time copy of a note's title and content.

    A row is appended whenever an update changes the title or content; it
    holds the state *before* the change. Not to be confused with
    CommunityVersion, which partitions content.

    Attributes:
        id: Unique identifier (UUID)
        note_id: FK to the note
        title: Title at that revision
        content: Content at that revision
        revision: The note's revision number the snapshot was taken from
        created_at: When the snapshot was recorded
    """

    __tablename__ = "note_versions"
    __allow_unmapped__ = True

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )

    note_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title = Column(
        String(255),
        nullable=False,
    )
    content = Column(
        Text,
        nullable=False,
        default="",
    )
    revision = Column(
        Integer,
        nullable=False,
    )

    created_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        """String representation of NoteVersion."""
        return f"<NoteVersion(note_id={self.note_id}, revision={self.revision})>"
