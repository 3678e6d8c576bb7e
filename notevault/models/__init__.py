"""SQLAlchemy ORM models package."""

from .community_version import CommunityVersion
from .folder import Folder
from .note import Note
from .note_version import NoteVersion
from .user import User
from .user_approval_request import UserApprovalRequest

__all__ = [
    "CommunityVersion",
    "Folder",
    "Note",
    "NoteVersion",
    "User",
    "UserApprovalRequest",
]
