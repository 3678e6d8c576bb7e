"""Typed repositories over the content tables."""

from .base import ContentRepository
from .folder_repository import FolderRepository
from .note_repository import NoteRepository
from .version_repository import VersionRepository

__all__ = [
    "ContentRepository",
    "FolderRepository",
    "NoteRepository",
    "VersionRepository",
]
