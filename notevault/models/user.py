"""User SQLAlchemy model for authentication and user management."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, String, Uuid

from ..database import Base

USER_ROLES = ("user", "manager", "admin")
USER_STATUSES = ("pending", "approved", "rejected")


class User(Base):
    """
    User model representing application users.

    Attributes:
        id: Unique identifier (UUID)
        email: User's email address (unique)
        password_hash: Hashed password for authentication
        name: User's display name
        role: One of "user", "manager", "admin"
        status: Account status, only "approved" accounts may log in
        created_at: Timestamp when user was created
        updated_at: Timestamp when user was last updated
    """

    __tablename__ = "users"
    __allow_unmapped__ = True

    # Primary key - UUID
    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )

    # Authentication fields
    email = Column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    password_hash = Column(
        String(255),
        nullable=False,
    )

    # Profile fields
    name = Column(
        String(255),
        nullable=False,
    )
    role = Column(
        String(50),
        nullable=False,
        default="user",
    )
    status = Column(
        String(50),
        nullable=False,
        default="approved",
        index=True,
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
        CheckConstraint("role IN ('user', 'manager', 'admin')", name="ck_users_role"),
        CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_users_status"),
    )

    def __repr__(self) -> str:
        """String representation of User."""
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
