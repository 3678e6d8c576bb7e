"""Notes API endpoints.

Provides endpoints for notes, folders, the trash lifecycle, community
versions and the per-note revision log. All endpoints require
authentication. Ids are accepted as strings and validated up front so that
a malformed id is a 400 before any query runs.

Static paths (/search, /trash, /versions, /folders, ...) are declared before
/{note_id} so they are not captured by it.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.community_version import (
    CommunityVersionCreate,
    CommunityVersionResponse,
    CommunityVersionUpdate,
    MigrateContentRequest,
    MigrationResult,
)
from ..schemas.folder import (
    FolderContents,
    FolderCreate,
    FolderRename,
    FolderResponse,
    FolderTree,
    FolderUpdate,
)
from ..schemas.note import (
    NoteCreate,
    NoteRename,
    NoteResponse,
    NoteRevisionResponse,
    NoteUpdate,
    NoteWithFolder,
)
from ..schemas.trash import BulkTrashResult, MessageResponse, TrashResult
from ..services.auth_service import get_current_caller
from ..services.content_service import ContentService
from ..services.lifecycle_service import ContentLifecycleService
from ..services.permission_service import Caller, PermissionService, get_permission_service
from ..services.schema_capabilities import SchemaCapabilities, get_schema_capabilities
from ..services.version_service import VersionService
from ..utils.validators import parse_optional_uuid, parse_uuid

router = APIRouter(
    prefix="/notes",
    tags=["notes"],
)

VersionIdQuery = Annotated[
    Optional[str],
    Query(alias="versionId", description="Restrict to one community version"),
]


# ============================================================================
# Service dependencies
# ============================================================================


def get_content_service(
    db: AsyncSession = Depends(get_db),
    capabilities: SchemaCapabilities = Depends(get_schema_capabilities),
    permissions: PermissionService = Depends(get_permission_service),
) -> ContentService:
    """Request-scoped ContentService."""
    return ContentService(db, capabilities, permissions)


def get_lifecycle_service(
    db: AsyncSession = Depends(get_db),
    capabilities: SchemaCapabilities = Depends(get_schema_capabilities),
    permissions: PermissionService = Depends(get_permission_service),
) -> ContentLifecycleService:
    """Request-scoped ContentLifecycleService."""
    return ContentLifecycleService(db, capabilities, permissions)


def get_version_service(
    db: AsyncSession = Depends(get_db),
    capabilities: SchemaCapabilities = Depends(get_schema_capabilities),
    permissions: PermissionService = Depends(get_permission_service),
) -> VersionService:
    """Request-scoped VersionService."""
    return VersionService(db, capabilities, permissions)


# ============================================================================
# Note collection endpoints
# ============================================================================


@router.get(
    "",
    response_model=List[NoteResponse],
    summary="List active notes",
    responses={400: {"description": "Malformed folderId or versionId"}},
)
async def list_notes(
    folder_id: Optional[str] = Query(None, alias="folderId", description="Only notes in this folder"),
    version_id: VersionIdQuery = None,
    caller: Caller = Depends(get_current_caller),
    service: ContentService = Depends(get_content_service),
) -> List[NoteResponse]:
    """
    List active notes, newest first.

    Users see their own notes; managers and admins see everyone's. Without
    versionId, notes of every version are returned.
    """
    return await service.list_notes(
        caller,
        folder_id=parse_optional_uuid(folder_id, "folderId"),
        version_id=parse_optional_uuid(version_id, "versionId"),
    )


@router.post(
    "",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a note",
    responses={
        400: {"description": "Malformed id, or folder in trash"},
        403: {"description": "Requires admin"},
        404: {"description": "Folder or version not found"},
    },
)
async def create_note(
    data: NoteCreate,
    version_id: VersionIdQuery = None,
    caller: Caller = Depends(get_current_caller),
    service: ContentService = Depends(get_content_service),
) -> NoteResponse:
    """Create a note in the given version, or in the latest version when omitted."""
    return await service.create_note(
        caller, data, version_id=parse_optional_uuid(version_id, "versionId")
    )


@router.get(
    "/search",
    response_model=List[NoteResponse],
    summary="Search notes",
)
async def search_notes(
    q: str = Query("", description="Case-insensitive substring of title or content"),
    version_id: VersionIdQuery = None,
    caller: Caller = Depends(get_current_caller),
    service: ContentService = Depends(get_content_service),
) -> List[NoteResponse]:
    """Substring search over active notes, most recently updated first."""
    return await service.search_notes(
        caller, q, version_id=parse_optional_uuid(version_id, "versionId")
    )


@router.get(
    "/all-notes",
    response_model=List[NoteWithFolder],
    summary="List active notes with their folders",
)
async def all_notes(
    version_id: VersionIdQuery = None,
    caller: Caller = Depends(get_current_caller),
    service: ContentService = Depends(get_content_service),
) -> List[NoteWithFolder]:
    """Active notes with a folder summary each, most recently updated first."""
    return await service.all_notes_with_folders(
        caller, version_id=parse_optional_uuid(version_id, "versionId")
    )


@router.get(
    "/folder-tree",
    response_model=FolderTree,
    summary="Folder tree with notes",
)
async def folder_tree(
    version_id: VersionIdQuery = None,
    caller: Caller = Depends(get_current_caller),
    service: ContentService = Depends(get_content_service),
) -> FolderTree:
    """Root folders, their child folders and the active notes in each."""
    return await service.folder_tree(caller, version_id=parse_optional_uuid(version_id, "versionId"))


# ============================================================================
# Trash endpoints (MUST be before /{note_id})
# ============================================================================


@router.get(
    "/trash",
    response_model=List[NoteResponse],
    summary="List trashed notes",
)
async def list_trash_notes(
    version_id: VersionIdQuery = None,
    caller: Caller = Depends(get_current_caller),
    service: ContentLifecycleService = Depends(get_lifecycle_service),
) -> List[NoteResponse]:
    """
    List trashed notes, most recently trashed first.

    Returns an empty list when the database has no trash columns yet.
    """
    return await service.get_trash_notes(caller, parse_optional_uuid(version_id, "versionId"))


@router.delete(
    "/trash",
    response_model=BulkTrashResult,
    summary="Empty trash",
    description="Permanently delete trashed notes, then trashed folders. Irreversible.",
    responses={400: {"description": "Trash not available on this database"}},
)
async def empty_trash(
    version_id: VersionIdQuery = None,
    caller: Caller = Depends(get_current_caller),
    service: ContentLifecycleService = Depends(get_lifecycle_service),
) -> BulkTrashResult:
    """Empty the caller's trash (everyone's for managers and admins)."""
    return await service.empty_trash(caller, parse_optional_uuid(version_id, "versionId"))


@router.patch(
    "/trash/recover-all",
    response_model=BulkTrashResult,
    summary="Recover everything from trash",
    responses={400: {"description": "Trash not available on this database"}},
)
async def recover_all(
    version_id: VersionIdQuery = None,
    caller: Caller = Depends(get_current_caller),
    service: ContentLifecycleService = Depends(get_lifecycle_service),
) -> BulkTrashResult:
    """Recover every trashed note and folder in scope."""
    return await service.recover_all(caller, parse_optional_uuid(version_id, "versionId"))


@router.get(
    "/trash/folders",
    response_model=List[FolderResponse],
    summary="List trashed folders",
)
async def list_trash_folders(
    version_id: VersionIdQuery = None,
    caller: Caller = Depends(get_current_caller),
    service: ContentLifecycleService = Depends(get_lifecycle_service),
) -> List[FolderResponse]:
    """List trashed folders, most recently trashed first."""
    return await service.get_trash_folders(caller, parse_optional_uuid(version_id, "versionId"))


# ============================================================================
# Community version endpoints (MUST be before /{note_id})
# ============================================================================


@router.get(
    "/versions",
    response_model=List[CommunityVersionResponse],
    summary="List community versions",
)
async def list_versions(
    caller: Caller = Depends(get_current_caller),
    service: VersionService = Depends(get_version_service),
) -> List[CommunityVersionResponse]:
    """
    List versions, newest first.

    When no version exists yet, a single placeholder entry is returned
    (is_placeholder = true, id = null).
    """
    return await service.list_versions(caller)


@router.post(
    "/versions",
    response_model=CommunityVersionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a community version",
    responses={
        403: {"description": "Requires manager or admin"},
        409: {"description": "Version name already exists"},
    },
)
async def create_version(
    data: CommunityVersionCreate,
    caller: Caller = Depends(get_current_caller),
    service: VersionService = Depends(get_version_service),
) -> CommunityVersionResponse:
    """Create a version with a unique name."""
    return await service.create_version(caller, data)


@router.post(
    "/versions/migrate",
    response_model=MigrationResult,
    summary="Migrate content between versions",
    description="Move every folder and note the caller owns from the source version to the target.",
    responses={
        400: {"description": "Malformed ids, or source equals target"},
        403: {"description": "Requires manager or admin"},
        404: {"description": "Version not found"},
    },
)
async def migrate_content(
    data: MigrateContentRequest,
    caller: Caller = Depends(get_current_caller),
    service: VersionService = Depends(get_version_service),
) -> MigrationResult:
    """Re-stamp the caller's content with the target version."""
    return await service.migrate_content(
        caller,
        parse_uuid(data.source_version_id, "sourceVersionId"),
        parse_uuid(data.target_version_id, "targetVersionId"),
    )


@router.patch(
    "/versions/{version_id}",
    response_model=CommunityVersionResponse,
    summary="Update a community version",
    responses={
        403: {"description": "Requires admin"},
        404: {"description": "Version not found"},
        409: {"description": "Version name already exists"},
    },
)
async def update_version(
    version_id: str,
    data: CommunityVersionUpdate,
    caller: Caller = Depends(get_current_caller),
    service: VersionService = Depends(get_version_service),
) -> CommunityVersionResponse:
    """Rename or re-describe a version."""
    return await service.update_version(caller, parse_uuid(version_id, "version_id"), data)


@router.delete(
    "/versions/{version_id}",
    response_model=MessageResponse,
    summary="Delete a community version",
    responses={
        400: {"description": "Last remaining version, or still referenced by content"},
        403: {"description": "Requires admin"},
        404: {"description": "Version not found"},
    },
)
async def delete_version(
    version_id: str,
    caller: Caller = Depends(get_current_caller),
    service: VersionService = Depends(get_version_service),
) -> MessageResponse:
    """Delete a version no active content uses."""
    await service.delete_version(caller, parse_uuid(version_id, "version_id"))
    return MessageResponse(message="Version deleted successfully")


@router.get(
    "/versions/{version_id}/notes",
    response_model=List[NoteResponse],
    summary="List notes of a version",
)
async def notes_by_version(
    version_id: str,
    caller: Caller = Depends(get_current_caller),
    service: VersionService = Depends(get_version_service),
) -> List[NoteResponse]:
    """Active notes in one version."""
    return await service.notes_by_version(caller, parse_uuid(version_id, "version_id"))


@router.get(
    "/versions/{version_id}/folders",
    response_model=List[FolderResponse],
    summary="List folders of a version",
)
async def folders_by_version(
    version_id: str,
    caller: Caller = Depends(get_current_caller),
    service: VersionService = Depends(get_version_service),
) -> List[FolderResponse]:
    """Active folders in one version."""
    return await service.folders_by_version(caller, parse_uuid(version_id, "version_id"))


# ============================================================================
# Folder endpoints (MUST be before /{note_id})
# ============================================================================


@router.get(
    "/folders",
    response_model=List[FolderResponse],
    summary="List folders",
)
async def list_folders(
    version_id: VersionIdQuery = None,
    parent_id: Optional[str] = Query(None, alias="parentId", description="List children of this folder"),
    caller: Caller = Depends(get_current_caller),
    service: ContentService = Depends(get_content_service),
) -> List[FolderResponse]:
    """Active root folders by name, or the children of parentId."""
    return await service.list_folders(
        caller,
        version_id=parse_optional_uuid(version_id, "versionId"),
        parent_id=parse_optional_uuid(parent_id, "parentId"),
    )


@router.post(
    "/folders",
    response_model=FolderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a folder",
    responses={
        400: {"description": "Malformed id, parent in trash, or nesting too deep"},
        403: {"description": "Requires admin"},
        404: {"description": "Parent folder or version not found"},
    },
)
async def create_folder(
    data: FolderCreate,
    version_id: VersionIdQuery = None,
    caller: Caller = Depends(get_current_caller),
    service: ContentService = Depends(get_content_service),
) -> FolderResponse:
    """Create a root folder, or a child of an active root folder."""
    return await service.create_folder(
        caller, data, version_id=parse_optional_uuid(version_id, "versionId")
    )


@router.get(
    "/folders/{folder_id}",
    response_model=FolderResponse,
    summary="Get a folder",
)
async def get_folder(
    folder_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ContentService = Depends(get_content_service),
) -> FolderResponse:
    """One folder in any trash state."""
    return await service.get_folder(caller, parse_uuid(folder_id, "folder_id"))


@router.get(
    "/folders/{folder_id}/contents",
    response_model=FolderContents,
    summary="Get folder contents",
)
async def get_folder_contents(
    folder_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ContentService = Depends(get_content_service),
) -> FolderContents:
    """Active subfolders and notes of an active folder."""
    return await service.folder_contents(caller, parse_uuid(folder_id, "folder_id"))


@router.patch(
    "/folders/{folder_id}",
    response_model=FolderResponse,
    summary="Update a folder",
    responses={403: {"description": "Requires manager or admin"}},
)
async def update_folder(
    folder_id: str,
    data: FolderUpdate,
    caller: Caller = Depends(get_current_caller),
    service: ContentService = Depends(get_content_service),
) -> FolderResponse:
    """Update a folder's name or description."""
    return await service.update_folder(caller, parse_uuid(folder_id, "folder_id"), data)


@router.patch(
    "/folders/{folder_id}/rename",
    response_model=FolderResponse,
    summary="Rename a folder",
    responses={403: {"description": "Requires manager or admin"}},
)
async def rename_folder(
    folder_id: str,
    data: FolderRename,
    caller: Caller = Depends(get_current_caller),
    service: ContentService = Depends(get_content_service),
) -> FolderResponse:
    """Rename a folder."""
    return await service.rename_folder(caller, parse_uuid(folder_id, "folder_id"), data.name)


@router.delete(
    "/folders/{folder_id}",
    response_model=TrashResult,
    summary="Move a folder to trash",
    description=(
        "Trash the folder with every active subfolder and note under it. On a "
        "database without trash columns an empty folder is deleted permanently."
    ),
    responses={
        400: {"description": "Malformed id, or non-empty folder without trash support"},
        403: {"description": "Requires admin"},
        404: {"description": "Folder not found"},
        409: {"description": "Folder changed concurrently"},
    },
)
async def delete_folder(
    folder_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ContentLifecycleService = Depends(get_lifecycle_service),
) -> TrashResult:
    """Trash a folder and cascade to its contents."""
    return await service.delete_folder(caller, parse_uuid(folder_id, "folder_id"))


@router.patch(
    "/folders/{folder_id}/recover",
    response_model=FolderResponse,
    summary="Recover a folder from trash",
    description="Recovers only the folder. Content trashed with it stays in trash.",
    responses={
        400: {"description": "Not in trash, parent in trash, or trash not available"},
        404: {"description": "Folder not found"},
        409: {"description": "Folder changed concurrently"},
    },
)
async def recover_folder(
    folder_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ContentLifecycleService = Depends(get_lifecycle_service),
) -> FolderResponse:
    """Recover a trashed folder."""
    return await service.recover_folder(caller, parse_uuid(folder_id, "folder_id"))


# ============================================================================
# Single note endpoints
# ============================================================================


@router.get(
    "/{note_id}",
    response_model=NoteResponse,
    summary="Get a note",
    responses={
        400: {"description": "Malformed note id"},
        404: {"description": "Note not found"},
    },
)
async def get_note(
    note_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ContentService = Depends(get_content_service),
) -> NoteResponse:
    """One note in any trash state."""
    return await service.get_note(caller, parse_uuid(note_id, "note_id"))


@router.patch(
    "/{note_id}",
    response_model=NoteResponse,
    summary="Update a note",
    description="Title or content changes are recorded in the revision log.",
    responses={
        400: {"description": "Malformed id, or note/folder in trash"},
        403: {"description": "Requires manager or admin"},
        404: {"description": "Note or folder not found"},
    },
)
async def update_note(
    note_id: str,
    data: NoteUpdate,
    caller: Caller = Depends(get_current_caller),
    service: ContentService = Depends(get_content_service),
) -> NoteResponse:
    """Update a note's title, content, description or folder."""
    return await service.update_note(caller, parse_uuid(note_id, "note_id"), data)


@router.patch(
    "/{note_id}/rename",
    response_model=NoteResponse,
    summary="Rename a note",
    responses={403: {"description": "Requires manager or admin"}},
)
async def rename_note(
    note_id: str,
    data: NoteRename,
    caller: Caller = Depends(get_current_caller),
    service: ContentService = Depends(get_content_service),
) -> NoteResponse:
    """Change a note's title."""
    return await service.rename_note(caller, parse_uuid(note_id, "note_id"), data.title)


@router.patch(
    "/{note_id}/trash",
    response_model=TrashResult,
    summary="Move a note to trash",
    description="On a database without trash columns the note is deleted permanently.",
    responses={
        404: {"description": "Note not found"},
        409: {"description": "Note changed concurrently"},
    },
)
async def move_note_to_trash(
    note_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ContentLifecycleService = Depends(get_lifecycle_service),
) -> TrashResult:
    """Trash a note. Trashing an already-trashed note is a no-op."""
    return await service.move_note_to_trash(caller, parse_uuid(note_id, "note_id"))


@router.patch(
    "/{note_id}/recover",
    response_model=NoteResponse,
    summary="Recover a note from trash",
    responses={
        400: {"description": "Not in trash, folder in trash, or trash not available"},
        404: {"description": "Note not found"},
        409: {"description": "Note changed concurrently"},
    },
)
async def recover_note(
    note_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ContentLifecycleService = Depends(get_lifecycle_service),
) -> NoteResponse:
    """Recover a trashed note whose folder is active."""
    return await service.recover_note(caller, parse_uuid(note_id, "note_id"))


@router.delete(
    "/{note_id}",
    response_model=TrashResult,
    summary="Permanently delete a note",
    responses={
        403: {"description": "Requires admin"},
        404: {"description": "Note not found"},
    },
)
async def delete_note(
    note_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ContentLifecycleService = Depends(get_lifecycle_service),
) -> TrashResult:
    """Delete a note permanently, whether active or trashed."""
    return await service.delete_note(caller, parse_uuid(note_id, "note_id"))


@router.get(
    "/{note_id}/versions",
    response_model=List[NoteRevisionResponse],
    summary="List a note's revisions",
)
async def list_note_revisions(
    note_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ContentService = Depends(get_content_service),
) -> List[NoteRevisionResponse]:
    """Revision log entries, newest first."""
    return await service.list_revisions(caller, parse_uuid(note_id, "note_id"))


@router.post(
    "/{note_id}/versions/{revision_id}/restore",
    response_model=NoteResponse,
    summary="Restore a note revision",
    responses={
        403: {"description": "Requires manager or admin"},
        404: {"description": "Note or revision not found"},
    },
)
async def restore_note_revision(
    note_id: str,
    revision_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ContentService = Depends(get_content_service),
) -> NoteResponse:
    """Copy a logged revision back into the note."""
    return await service.restore_revision(
        caller,
        parse_uuid(note_id, "note_id"),
        parse_uuid(revision_id, "revisionId"),
    )
