"""UserApprovalRequest SQLAlchemy model for the registration workflow."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String, Text, Uuid

from ..database import Base


class UserApprovalRequest(Base):
    """
    A pending account registration awaiting admin review.

    The request carries the already-hashed password so that approval can
    provision the account without the applicant resubmitting it.
    Status moves from "pending" to "approved" or "rejected" exactly once.

    Attributes:
        id: Unique identifier (UUID)
        email: Applicant email
        name: Applicant display name
        password_hash: bcrypt hash of the requested password
        status: "pending", "approved" or "rejected"
        admin_notes: Reviewer notes (optional)
        requested_at: When the request was submitted
        reviewed_at: When an admin processed the request
        reviewed_by: FK to the reviewing admin
    """

    __tablename__ = "user_approval_requests"
    __allow_unmapped__ = True

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )

    email = Column(
        String(255),
        nullable=False,
        index=True,
    )
    name = Column(
        String(255),
        nullable=False,
    )
    password_hash = Column(
        String(255),
        nullable=False,
    )

    status = Column(
        String(50),
        nullable=False,
        default="pending",
        index=True,
    )
    admin_notes = Column(
        Text,
        nullable=True,
    )

    requested_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True,
    )
    reviewed_at = Column(
        DateTime,
        nullable=True,
    )
    reviewed_by = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_user_approval_requests_status",
        ),
    )

    def __repr__(self) -> str:
        """String representation of UserApprovalRequest."""
        return f"<UserApprovalRequest(id={self.id}, email={self.email}, status={self.status})>"
