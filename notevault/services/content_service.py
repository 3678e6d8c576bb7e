"""Note and folder CRUD, listings, search and the per-note revision log."""

import logging
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.folder import (
    FolderContents,
    FolderCreate,
    FolderResponse,
    FolderTree,
    FolderTreeNode,
    FolderUpdate,
)
from ..schemas.note import (
    FolderSummary,
    NoteCreate,
    NoteResponse,
    NoteRevisionResponse,
    NoteUpdate,
    NoteWithFolder,
)
from ..utils.validators import parse_optional_uuid
from .errors import InvalidArgument, InvalidState, NotFound
from .lifecycle_service import ContentLifecycleService
from .permission_service import Action, Caller, PermissionService
from .schema_capabilities import SchemaCapabilities
from .version_service import VersionService

logger = logging.getLogger(__name__)


class ContentService:
    """
    Service class for everyday note and folder operations.

    Trash transitions live in ContentLifecycleService; this service reuses
    its visibility-scoped lookups so both agree on what a caller can see.
    """

    def __init__(
        self,
        db: AsyncSession,
        capabilities: SchemaCapabilities,
        permissions: PermissionService,
    ):
        self.db = db
        self.permissions = permissions
        self.lifecycle = ContentLifecycleService(db, capabilities, permissions)
        self.versions = VersionService(db, capabilities, permissions)
        self.notes = self.lifecycle.notes
        self.folders = self.lifecycle.folders

    async def _require_active_folder(self, caller: Caller, folder_id: UUID) -> FolderResponse:
        folder = await self.lifecycle.get_visible_folder(caller, folder_id)
        if folder.is_deleted:
            raise InvalidState(f"Folder '{folder.name}' is in trash. Recover it first.")
        return folder

    async def _require_active_note(self, caller: Caller, note_id: UUID) -> NoteResponse:
        note = await self.lifecycle.get_visible_note(caller, note_id)
        if note.is_deleted:
            raise InvalidState("Note is in trash. Recover it before editing.")
        return note

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    async def list_notes(
        self,
        caller: Caller,
        folder_id: Optional[UUID] = None,
        version_id: Optional[UUID] = None,
    ) -> List[NoteResponse]:
        """Active notes within visibility, newest first."""
        self.permissions.require(caller.role, Action.VIEW_CONTENT)
        return await self.notes.find_active(
            owner_id=self.permissions.owner_filter(caller),
            version_id=version_id,
            folder_id=folder_id,
        )

    async def get_note(self, caller: Caller, note_id: UUID) -> NoteResponse:
        """A single note in any trash state."""
        self.permissions.require(caller.role, Action.VIEW_CONTENT)
        return await self.lifecycle.get_visible_note(caller, note_id)

    async def create_note(
        self,
        caller: Caller,
        data: NoteCreate,
        version_id: Optional[UUID] = None,
    ) -> NoteResponse:
        """
        Create a note (admin).

        Args:
            caller: Acting user, recorded as owner
            data: Note fields
            version_id: Explicit partition; defaults to the latest version

        Raises:
            PermissionDenied: If the role may not create notes
            InvalidArgument: If folder_id is malformed
            NotFound: If the folder or explicit version does not exist
            InvalidState: If the folder is in trash
        """
        self.permissions.require(caller.role, Action.CREATE_NOTE)
        folder_id = parse_optional_uuid(data.folder_id, "folder_id")
        if folder_id is not None:
            await self._require_active_folder(caller, folder_id)

        note = await self.notes.create(
            {
                "title": data.title.strip(),
                "content": data.content or "",
                "description": data.description,
                "folder_id": folder_id,
                "owner_id": caller.user_id,
                "version_id": await self.versions.resolve_version_id(version_id),
                "revision": 1,
            }
        )
        logger.info(f"Created note {note.id} in folder {folder_id} (version {note.version_id})")
        return note

    async def update_note(self, caller: Caller, note_id: UUID, data: NoteUpdate) -> NoteResponse:
        """
        Update a note (manager/admin).

        A change of title or content appends the previous state to the
        revision log and bumps the revision counter.

        Raises:
            NotFound: If the note (or target folder) is not visible
            InvalidState: If the note or target folder is in trash
        """
        self.permissions.require(caller.role, Action.UPDATE_NOTE)
        note = await self._require_active_note(caller, note_id)

        values = data.model_dump(exclude_unset=True)
        for field in ("title", "content"):
            if field in values and values[field] is None:
                del values[field]
        if "folder_id" in values:
            values["folder_id"] = parse_optional_uuid(values["folder_id"], "folder_id")
            if values["folder_id"] is not None:
                await self._require_active_folder(caller, values["folder_id"])

        return await self._apply_note_update(note, values)

    async def rename_note(self, caller: Caller, note_id: UUID, title: str) -> NoteResponse:
        """Change only the title (manager/admin)."""
        self.permissions.require(caller.role, Action.UPDATE_NOTE)
        note = await self._require_active_note(caller, note_id)
        return await self._apply_note_update(note, {"title": title.strip()})

    async def _apply_note_update(self, note: NoteResponse, values: dict) -> NoteResponse:
        content_changed = (
            "title" in values and values["title"] != note.title
        ) or ("content" in values and values["content"] != note.content)
        if content_changed:
            await self.notes.add_revision(note)
            values["revision"] = note.revision + 1

        if not values:
            return note
        updated = await self.notes.update_fields(note.id, values)
        if updated is None:
            raise NotFound("Note", note.id)
        if content_changed:
            logger.info(f"Note {note.id} updated to revision {updated.revision}")
        return updated

    async def search_notes(
        self,
        caller: Caller,
        query: str,
        version_id: Optional[UUID] = None,
    ) -> List[NoteResponse]:
        """Substring search over title and content of active notes."""
        self.permissions.require(caller.role, Action.SEARCH_CONTENT)
        query = (query or "").strip()
        if not query:
            return []
        return await self.notes.search(
            query,
            owner_id=self.permissions.owner_filter(caller),
            version_id=version_id,
        )

    async def all_notes_with_folders(
        self,
        caller: Caller,
        version_id: Optional[UUID] = None,
    ) -> List[NoteWithFolder]:
        """Active notes, most recently updated first, each with its folder summary."""
        self.permissions.require(caller.role, Action.VIEW_CONTENT)
        notes = await self.notes.find_recently_updated(
            owner_id=self.permissions.owner_filter(caller),
            version_id=version_id,
        )
        folder_ids = list({note.folder_id for note in notes if note.folder_id is not None})
        folders = {folder.id: folder for folder in await self.folders.find_by_ids(folder_ids)}

        results = []
        for note in notes:
            folder = folders.get(note.folder_id) if note.folder_id else None
            results.append(
                NoteWithFolder(
                    **note.model_dump(),
                    folder=FolderSummary.model_validate(folder.model_dump()) if folder else None,
                )
            )
        return results

    # ------------------------------------------------------------------
    # Revision log
    # ------------------------------------------------------------------

    async def list_revisions(self, caller: Caller, note_id: UUID) -> List[NoteRevisionResponse]:
        """Revision log of a visible note, newest first."""
        self.permissions.require(caller.role, Action.VIEW_CONTENT)
        note = await self.lifecycle.get_visible_note(caller, note_id)
        return await self.notes.list_revisions(note.id)

    async def restore_revision(
        self, caller: Caller, note_id: UUID, revision_id: UUID
    ) -> NoteResponse:
        """
        Copy a logged revision back into the note (manager/admin).

        The state being replaced is logged first, so a restore can itself be
        undone.

        Raises:
            NotFound: If the note or the revision does not exist
            InvalidState: If the note is in trash
        """
        self.permissions.require(caller.role, Action.RESTORE_NOTE_REVISION)
        note = await self._require_active_note(caller, note_id)
        revision = await self.notes.get_revision(note.id, revision_id)
        if revision is None:
            raise NotFound("Revision", revision_id)

        await self.notes.add_revision(note)
        updated = await self.notes.update_fields(
            note.id,
            {
                "title": revision.title,
                "content": revision.content,
                "revision": note.revision + 1,
            },
        )
        if updated is None:
            raise NotFound("Note", note_id)
        logger.info(f"Restored note {note_id} to revision {revision.revision}")
        return updated

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------

    async def list_folders(
        self,
        caller: Caller,
        version_id: Optional[UUID] = None,
        parent_id: Optional[UUID] = None,
    ) -> List[FolderResponse]:
        """Active root folders, or the active children of parent_id, by name."""
        self.permissions.require(caller.role, Action.VIEW_CONTENT)
        return await self.folders.find_active(
            owner_id=self.permissions.owner_filter(caller),
            version_id=version_id,
            parent_id=parent_id,
        )

    async def get_folder(self, caller: Caller, folder_id: UUID) -> FolderResponse:
        """A single folder in any trash state."""
        self.permissions.require(caller.role, Action.VIEW_CONTENT)
        return await self.lifecycle.get_visible_folder(caller, folder_id)

    async def create_folder(
        self,
        caller: Caller,
        data: FolderCreate,
        version_id: Optional[UUID] = None,
    ) -> FolderResponse:
        """
        Create a folder (admin).

        A child folder must sit under an active root folder and, unless a
        version is given, inherits the parent's version.

        Raises:
            InvalidArgument: If parent_id is malformed or the parent is itself a child
            NotFound: If the parent or explicit version does not exist
            InvalidState: If the parent is in trash
        """
        self.permissions.require(caller.role, Action.CREATE_FOLDER)
        parent_id = parse_optional_uuid(data.parent_id, "parent_id")
        parent = None
        if parent_id is not None:
            parent = await self._require_active_folder(caller, parent_id)
            if parent.parent_id is not None:
                raise InvalidArgument(
                    "Folders can only be nested two levels deep", field_name="parent_id"
                )

        if version_id is None and parent is not None and parent.version_id is not None:
            resolved_version = parent.version_id
        else:
            resolved_version = await self.versions.resolve_version_id(version_id)

        folder = await self.folders.create(
            {
                "name": data.name.strip(),
                "description": data.description,
                "parent_id": parent_id,
                "owner_id": caller.user_id,
                "version_id": resolved_version,
            }
        )
        logger.info(f"Created folder {folder.id} under {parent_id} (version {folder.version_id})")
        return folder

    async def update_folder(
        self, caller: Caller, folder_id: UUID, data: FolderUpdate
    ) -> FolderResponse:
        """Update name/description (manager/admin)."""
        self.permissions.require(caller.role, Action.UPDATE_FOLDER)
        folder = await self._require_active_folder(caller, folder_id)
        values = data.model_dump(exclude_unset=True)
        if values.get("name") is None:
            values.pop("name", None)
        else:
            values["name"] = values["name"].strip()
        if not values:
            return folder
        updated = await self.folders.update_fields(folder.id, values)
        if updated is None:
            raise NotFound("Folder", folder_id)
        return updated

    async def rename_folder(self, caller: Caller, folder_id: UUID, name: str) -> FolderResponse:
        """Change only the name (manager/admin)."""
        return await self.update_folder(caller, folder_id, FolderUpdate(name=name))

    async def folder_contents(self, caller: Caller, folder_id: UUID) -> FolderContents:
        """Active subfolders (by name) and active notes (recently updated first)."""
        self.permissions.require(caller.role, Action.VIEW_CONTENT)
        folder = await self._require_active_folder(caller, folder_id)
        owner_id = self.permissions.owner_filter(caller)
        subfolders = await self.folders.find_active(owner_id=owner_id, parent_id=folder.id)
        notes = await self.notes.find_active_in_folders([folder.id], owner_id=owner_id)
        return FolderContents(subfolders=subfolders, notes=notes)

    async def folder_tree(
        self,
        caller: Caller,
        version_id: Optional[UUID] = None,
    ) -> FolderTree:
        """Root folders with nested child folders and their active notes."""
        self.permissions.require(caller.role, Action.VIEW_CONTENT)
        owner_id = self.permissions.owner_filter(caller)
        folders = await self.folders.find_active(
            owner_id=owner_id, version_id=version_id, roots_only=False
        )
        notes = await self.notes.find_active_in_folders(
            [folder.id for folder in folders], owner_id=owner_id, order_by_title=True
        )

        nodes: Dict[UUID, FolderTreeNode] = {
            folder.id: FolderTreeNode(**folder.model_dump()) for folder in folders
        }
        for note in notes:
            nodes[note.folder_id].notes.append(note)

        roots = []
        for folder in folders:
            node = nodes[folder.id]
            parent = nodes.get(folder.parent_id) if folder.parent_id else None
            if parent is not None:
                parent.children.append(node)
            elif folder.parent_id is None:
                roots.append(node)
        return FolderTree(folders=roots)
