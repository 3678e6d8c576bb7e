"""Pydantic schemas for request/response validation."""

from .approval import ApprovalRequestResponse, ApprovalReview, RegistrationRequest
from .community_version import (
    CommunityVersionCreate,
    CommunityVersionResponse,
    CommunityVersionUpdate,
    MigrateContentRequest,
    MigrationResult,
)
from .folder import (
    FolderContents,
    FolderCreate,
    FolderRename,
    FolderResponse,
    FolderTree,
    FolderTreeNode,
    FolderUpdate,
)
from .note import (
    FolderSummary,
    NoteCreate,
    NoteRename,
    NoteResponse,
    NoteRevisionList,
    NoteRevisionResponse,
    NoteUpdate,
    NoteWithFolder,
)
from .trash import BulkTrashResult, MessageResponse, TrashResult
from .user import ProfileUpdate, UserCreate, UserResponse, UserUpdate

__all__ = [
    # Approval schemas
    "ApprovalRequestResponse",
    "ApprovalReview",
    "RegistrationRequest",
    # Community version schemas
    "CommunityVersionCreate",
    "CommunityVersionResponse",
    "CommunityVersionUpdate",
    "MigrateContentRequest",
    "MigrationResult",
    # Folder schemas
    "FolderContents",
    "FolderCreate",
    "FolderRename",
    "FolderResponse",
    "FolderTree",
    "FolderTreeNode",
    "FolderUpdate",
    # Note schemas
    "FolderSummary",
    "NoteCreate",
    "NoteRename",
    "NoteResponse",
    "NoteRevisionList",
    "NoteRevisionResponse",
    "NoteUpdate",
    "NoteWithFolder",
    # Trash schemas
    "BulkTrashResult",
    "MessageResponse",
    "TrashResult",
    # User schemas
    "ProfileUpdate",
    "UserCreate",
    "UserResponse",
    "UserUpdate",
]
