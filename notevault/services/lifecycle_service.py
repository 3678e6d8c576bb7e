"""Content lifecycle engine: trash, cascade, recovery and purge.

Each note and folder is either Active or Trashed, stored as
(is_deleted, deleted_at). Transitions:

    Active  --move to trash / folder cascade-->  Trashed
    Trashed --recover (single item, no cascade)--> Active
    Trashed --empty trash-->                      removed
    any     --hard delete (admin)-->              removed

Every transition is a conditional update on the expected prior state, so a
lost race surfaces as Conflict instead of silently overwriting. A folder
cascade runs in the request transaction (see database.get_db): it either
trashes the whole subtree or nothing.

On a schema without trash columns, trashing degrades to a permanent delete
and says so in the result; operations with no safe fallback raise
SchemaUnavailable.
"""

import logging
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..repositories import FolderRepository, NoteRepository
from ..schemas.folder import FolderResponse
from ..schemas.note import NoteResponse
from ..schemas.trash import BulkTrashResult, TrashResult
from .errors import Conflict, InvalidState, NotFound, SchemaUnavailable
from .permission_service import Action, Caller, PermissionService
from .schema_capabilities import SchemaCapabilities

logger = logging.getLogger(__name__)

MOVED_TO_TRASH = "moved to trash"
DELETED_NO_TRASH = "deleted (trash not available)"


class ContentLifecycleService:
    """
    Service class for note/folder trash state transitions.

    Request scoped: holds the session, the startup-resolved schema
    capabilities and the role policy.
    """

    def __init__(
        self,
        db: AsyncSession,
        capabilities: SchemaCapabilities,
        permissions: PermissionService,
    ):
        self.db = db
        self.capabilities = capabilities
        self.permissions = permissions
        self.notes = NoteRepository(db, capabilities)
        self.folders = FolderRepository(db, capabilities)

    # ------------------------------------------------------------------
    # Lookups within the caller's visibility
    # ------------------------------------------------------------------

    async def get_visible_note(self, caller: Caller, note_id: UUID) -> NoteResponse:
        """
        Load a note the caller may see, in any trash state.

        Raises:
            NotFound: If the note does not exist within the caller's scope
        """
        note = await self.notes.find_by_id(note_id, self.permissions.owner_filter(caller))
        if note is None:
            raise NotFound("Note", note_id)
        return note

    async def get_visible_folder(self, caller: Caller, folder_id: UUID) -> FolderResponse:
        """
        Load a folder the caller may see, in any trash state.

        Raises:
            NotFound: If the folder does not exist within the caller's scope
        """
        folder = await self.folders.find_by_id(folder_id, self.permissions.owner_filter(caller))
        if folder is None:
            raise NotFound("Folder", folder_id)
        return folder

    # ------------------------------------------------------------------
    # Active -> Trashed
    # ------------------------------------------------------------------

    async def move_note_to_trash(self, caller: Caller, note_id: UUID) -> TrashResult:
        """
        Move a note to trash.

        Trashing a note that is already trashed is a no-op. Without trash
        columns the note is permanently deleted instead.

        Args:
            caller: Acting user
            note_id: Note to trash

        Returns:
            TrashResult describing what happened

        Raises:
            PermissionDenied: If the role may not trash content
            NotFound: If the note is not visible to the caller
            Conflict: If the note changed state concurrently
        """
        self.permissions.require(caller.role, Action.TRASH_CONTENT)
        note = await self.get_visible_note(caller, note_id)

        if not self.notes.has_trash:
            if not await self.notes.hard_delete(note.id):
                raise NotFound("Note", note_id)
            logger.warning(f"Trash not available, permanently deleted note {note_id}")
            return TrashResult(message=f"Note {DELETED_NO_TRASH}", id=note.id, hard_deleted=True)

        if note.is_deleted:
            return TrashResult(message="Note is already in trash", id=note.id, already_in_trash=True)

        if not await self.notes.soft_delete(note.id, datetime.utcnow()):
            raise Conflict(f"Note {note_id} was modified concurrently. Reload and retry.")

        logger.info(f"Moved note {note_id} to trash")
        return TrashResult(message=f"Note {MOVED_TO_TRASH}", id=note.id)

    async def delete_folder(self, caller: Caller, folder_id: UUID) -> TrashResult:
        """
        Trash a folder together with every active descendant folder and note.

        The whole subtree is enumerated breadth-first and trashed in the
        request transaction. Without trash columns an empty folder is
        permanently deleted; a non-empty one is refused.

        Args:
            caller: Acting user
            folder_id: Folder to trash

        Returns:
            TrashResult with cascaded_folders and cascaded_notes counts

        Raises:
            PermissionDenied: If the role may not delete folders
            NotFound: If the folder is not visible to the caller
            InvalidState: If the legacy hard delete would orphan content
            Conflict: If the folder changed state concurrently
        """
        self.permissions.require(caller.role, Action.DELETE_FOLDER)
        folder = await self.get_visible_folder(caller, folder_id)

        if not self.folders.has_trash:
            return await self._hard_delete_empty_folder(folder)

        if folder.is_deleted:
            return TrashResult(
                message="Folder is already in trash", id=folder.id, already_in_trash=True
            )

        descendant_ids = await self.folders.find_active_descendant_ids(folder.id)
        note_ids: List[UUID] = []
        if self.notes.has_trash:
            note_ids = await self.notes.find_active_ids_in_folders([folder.id, *descendant_ids])
        else:
            logger.warning(
                f"Notes table has no trash columns, notes under folder {folder_id} are left in place"
            )

        now = datetime.utcnow()
        if not await self.folders.soft_delete(folder.id, now):
            raise Conflict(f"Folder {folder_id} was modified concurrently. Reload and retry.")
        cascaded_folders = await self.folders.soft_delete_many(descendant_ids, now)
        cascaded_notes = await self.notes.soft_delete_many(note_ids, now) if note_ids else 0

        logger.info(
            f"Moved folder {folder_id} to trash "
            f"(cascaded {cascaded_folders} folders, {cascaded_notes} notes)"
        )
        return TrashResult(
            message=f"Folder {MOVED_TO_TRASH}",
            id=folder.id,
            cascaded_folders=cascaded_folders,
            cascaded_notes=cascaded_notes,
        )

    async def _hard_delete_empty_folder(self, folder: FolderResponse) -> TrashResult:
        children = await self.folders.count_children(folder.id)
        notes = await self.notes.count_in_folder(folder.id)
        if children or notes:
            raise InvalidState(
                f"Folder contains {children} subfolders and {notes} notes. Trash is not "
                "available on this database, so delete or move them before deleting the folder."
            )
        if not await self.folders.hard_delete(folder.id):
            raise NotFound("Folder", folder.id)
        logger.warning(f"Trash not available, permanently deleted folder {folder.id}")
        return TrashResult(message=f"Folder {DELETED_NO_TRASH}", id=folder.id, hard_deleted=True)

    # ------------------------------------------------------------------
    # Trashed -> Active
    # ------------------------------------------------------------------

    async def recover_note(self, caller: Caller, note_id: UUID) -> NoteResponse:
        """
        Recover a trashed note. The note's folder must be active.

        Raises:
            SchemaUnavailable: If the notes table has no trash columns
            NotFound: If the note is not visible to the caller
            InvalidState: If the note is not trashed or its folder is trashed
            Conflict: If the note changed state concurrently
        """
        self.permissions.require(caller.role, Action.RECOVER_CONTENT)
        if not self.notes.has_trash:
            raise SchemaUnavailable("Trash")

        note = await self.get_visible_note(caller, note_id)
        if not note.is_deleted:
            raise InvalidState("Note is not in trash")

        if note.folder_id is not None:
            folder = await self.folders.find_by_id(note.folder_id)
            if folder is not None and folder.is_deleted:
                raise InvalidState(
                    f"Cannot recover note: its folder '{folder.name}' is in trash. "
                    "Recover the folder first."
                )

        if not await self.notes.recover(note.id, datetime.utcnow()):
            raise Conflict(f"Note {note_id} was modified concurrently. Reload and retry.")

        logger.info(f"Recovered note {note_id} from trash")
        return await self.get_visible_note(caller, note_id)

    async def recover_folder(self, caller: Caller, folder_id: UUID) -> FolderResponse:
        """
        Recover a trashed folder.

        Does not cascade: subfolders and notes trashed with it stay in trash
        and are recovered individually.

        Raises:
            SchemaUnavailable: If the folders table has no trash columns
            NotFound: If the folder is not visible to the caller
            InvalidState: If the folder is not trashed or its parent is trashed
            Conflict: If the folder changed state concurrently
        """
        self.permissions.require(caller.role, Action.RECOVER_CONTENT)
        if not self.folders.has_trash:
            raise SchemaUnavailable("Trash")

        folder = await self.get_visible_folder(caller, folder_id)
        if not folder.is_deleted:
            raise InvalidState("Folder is not in trash")

        if folder.parent_id is not None:
            parent = await self.folders.find_by_id(folder.parent_id)
            if parent is not None and parent.is_deleted:
                raise InvalidState(
                    f"Cannot recover folder: its parent folder '{parent.name}' is in trash. "
                    "Recover the parent folder first."
                )

        if not await self.folders.recover(folder.id, datetime.utcnow()):
            raise Conflict(f"Folder {folder_id} was modified concurrently. Reload and retry.")

        logger.info(f"Recovered folder {folder_id} from trash")
        return await self.get_visible_folder(caller, folder_id)

    # ------------------------------------------------------------------
    # Trash listings
    # ------------------------------------------------------------------

    async def get_trash_notes(
        self, caller: Caller, version_id: Optional[UUID] = None
    ) -> List[NoteResponse]:
        """Trashed notes in scope, newest first. Empty without trash columns."""
        self.permissions.require(caller.role, Action.VIEW_TRASH)
        return await self.notes.find_trashed(self.permissions.owner_filter(caller), version_id)

    async def get_trash_folders(
        self, caller: Caller, version_id: Optional[UUID] = None
    ) -> List[FolderResponse]:
        """Trashed folders in scope, newest first. Empty without trash columns."""
        self.permissions.require(caller.role, Action.VIEW_TRASH)
        return await self.folders.find_trashed(self.permissions.owner_filter(caller), version_id)

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    async def empty_trash(self, caller: Caller, version_id: Optional[UUID] = None) -> BulkTrashResult:
        """
        Permanently delete trashed notes, then trashed folders, in scope.

        Each category runs in its own savepoint. A failing category is
        logged and reported in `failed`; the other one still commits.
        Trashed folders that still hold active content are left in trash.

        Raises:
            SchemaUnavailable: If neither content table has trash columns
        """
        self.permissions.require(caller.role, Action.EMPTY_TRASH)
        self._require_any_trash()
        owner_id = self.permissions.owner_filter(caller)

        notes, folders, failed = await self._run_bulk(
            "empty trash",
            lambda: self.notes.purge_trashed(owner_id, version_id),
            lambda: self.folders.purge_trashed(owner_id, version_id),
        )
        logger.info(f"Emptied trash: {notes} notes, {folders} folders permanently deleted")
        message = "Trash emptied" if not failed else f"Trash partially emptied (failed: {', '.join(failed)})"
        return BulkTrashResult(message=message, notes=notes, folders=folders, failed=failed)

    async def recover_all(self, caller: Caller, version_id: Optional[UUID] = None) -> BulkTrashResult:
        """
        Recover every trashed note and folder in scope.

        Folders are recovered first, parents before children. An item whose
        parent or containing folder stays trashed (outside the scope) stays
        in trash as well.

        Raises:
            SchemaUnavailable: If neither content table has trash columns
        """
        self.permissions.require(caller.role, Action.RECOVER_CONTENT)
        self._require_any_trash()
        owner_id = self.permissions.owner_filter(caller)
        now = datetime.utcnow()

        notes, folders, failed = await self._run_bulk(
            "recover all",
            lambda: self.notes.recover_all(now, owner_id, version_id),
            lambda: self.folders.recover_all(now, owner_id, version_id),
            folders_first=True,
        )
        logger.info(f"Recovered from trash: {notes} notes, {folders} folders")
        message = (
            "All items recovered from trash"
            if not failed
            else f"Trash partially recovered (failed: {', '.join(failed)})"
        )
        return BulkTrashResult(message=message, notes=notes, folders=folders, failed=failed)

    def _require_any_trash(self) -> None:
        if not self.notes.has_trash and not self.folders.has_trash:
            raise SchemaUnavailable("Trash")

    async def _run_bulk(
        self,
        operation: str,
        notes_step: Callable[[], Awaitable[int]],
        folders_step: Callable[[], Awaitable[int]],
        folders_first: bool = False,
    ) -> Tuple[int, int, List[str]]:
        """Run the notes step and the folders step, each in a savepoint.

        Notes go first unless folders_first is set.
        """
        failed: List[str] = []
        counts = {"notes": 0, "folders": 0}
        steps = [
            ("notes", self.notes, notes_step),
            ("folders", self.folders, folders_step),
        ]
        if folders_first:
            steps.reverse()
        for category, repository, step in steps:
            if not repository.has_trash:
                continue
            try:
                async with self.db.begin_nested():
                    counts[category] = await step()
            except SQLAlchemyError as e:
                logger.error(f"{operation}: {category} step failed and was rolled back: {e}")
                failed.append(category)
        return counts["notes"], counts["folders"], failed

    # ------------------------------------------------------------------
    # Permanent delete
    # ------------------------------------------------------------------

    async def delete_note(self, caller: Caller, note_id: UUID) -> TrashResult:
        """
        Permanently delete a note in any trash state (admin).

        Raises:
            PermissionDenied: If the role may not delete notes
            NotFound: If the note is not visible to the caller
        """
        self.permissions.require(caller.role, Action.DELETE_NOTE)
        note = await self.get_visible_note(caller, note_id)
        if not await self.notes.hard_delete(note.id):
            raise NotFound("Note", note_id)
        logger.info(f"Permanently deleted note {note_id}")
        return TrashResult(message="Note permanently deleted", id=note.id, hard_deleted=True)
