"""Repository for notes and their revision log."""

from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, insert, or_, select

from ..models.folder import Folder
from ..models.note import Note
from ..models.note_version import NoteVersion
from ..schemas.note import NoteResponse, NoteRevisionResponse
from .base import ContentRepository


def escape_like_pattern(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class NoteRepository(ContentRepository[NoteResponse]):
    """Queries over the notes table plus the note_versions revision log."""

    model = Note
    record = NoteResponse

    def _recoverable(self, stmt):
        """Unfiled notes, or notes whose folder is active."""
        if not self.capabilities.folders_trash:
            return stmt
        folders = Folder.__table__
        folder_active = (
            select(folders.c.id)
            .where(folders.c.id == self.table.c.folder_id, folders.c.is_deleted.is_(False))
            .correlate(self.table)
            .exists()
        )
        return stmt.where(or_(self.table.c.folder_id.is_(None), folder_active))

    async def find_active(
        self,
        owner_id: Optional[UUID] = None,
        version_id: Optional[UUID] = None,
        folder_id: Optional[UUID] = None,
    ) -> List[NoteResponse]:
        """Active notes, newest created first, optionally within one folder."""
        stmt = self._in_version(self._owned(self._active(self._select()), owner_id), version_id)
        if folder_id is not None:
            stmt = stmt.where(self.table.c.folder_id == folder_id)
        return await self._fetch_all(stmt.order_by(self.table.c.created_at.desc()))

    async def find_active_in_folders(
        self,
        folder_ids: Iterable[UUID],
        owner_id: Optional[UUID] = None,
        order_by_title: bool = False,
    ) -> List[NoteResponse]:
        """Active notes filed in any of the folders."""
        ids = list(folder_ids)
        if not ids:
            return []
        stmt = self._owned(self._active(self._select()), owner_id).where(
            self.table.c.folder_id.in_(ids)
        )
        order = self.table.c.title.asc() if order_by_title else self.table.c.updated_at.desc()
        return await self._fetch_all(stmt.order_by(order))

    async def find_active_ids_in_folders(self, folder_ids: Iterable[UUID]) -> List[UUID]:
        """Ids of active notes in the folders, any owner (cascade input)."""
        ids = list(folder_ids)
        if not ids:
            return []
        stmt = self._active(select(self.table.c.id).where(self.table.c.folder_id.in_(ids)))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_recently_updated(
        self,
        owner_id: Optional[UUID] = None,
        version_id: Optional[UUID] = None,
    ) -> List[NoteResponse]:
        """Active notes, most recently updated first (all-notes view)."""
        stmt = self._in_version(self._owned(self._active(self._select()), owner_id), version_id)
        return await self._fetch_all(stmt.order_by(self.table.c.updated_at.desc()))

    async def search(
        self,
        query: str,
        owner_id: Optional[UUID] = None,
        version_id: Optional[UUID] = None,
    ) -> List[NoteResponse]:
        """Case-insensitive substring match over title and content."""
        pattern = f"%{escape_like_pattern(query)}%"
        stmt = self._in_version(self._owned(self._active(self._select()), owner_id), version_id)
        stmt = stmt.where(
            or_(
                self.table.c.title.ilike(pattern, escape="\\"),
                self.table.c.content.ilike(pattern, escape="\\"),
            )
        )
        return await self._fetch_all(stmt.order_by(self.table.c.updated_at.desc()))

    async def count_in_folder(self, folder_id: UUID) -> int:
        """Notes in the folder in any trash state."""
        stmt = select(func.count()).select_from(self.table).where(
            self.table.c.folder_id == folder_id
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    # ------------------------------------------------------------------
    # Revision log
    # ------------------------------------------------------------------

    async def add_revision(self, note: NoteResponse) -> None:
        """Append the note's current title/content to its revision log."""
        await self.db.execute(
            insert(NoteVersion.__table__).values(
                note_id=note.id,
                title=note.title,
                content=note.content or "",
                revision=note.revision,
            )
        )

    async def list_revisions(self, note_id: UUID) -> List[NoteRevisionResponse]:
        """Revision log entries, newest first."""
        revisions = NoteVersion.__table__
        stmt = (
            select(revisions)
            .where(revisions.c.note_id == note_id)
            .order_by(revisions.c.created_at.desc(), revisions.c.revision.desc())
        )
        result = await self.db.execute(stmt)
        return [NoteRevisionResponse.model_validate(dict(row._mapping)) for row in result.all()]

    async def get_revision(self, note_id: UUID, revision_id: UUID) -> Optional[NoteRevisionResponse]:
        """One revision log entry of the note."""
        revisions = NoteVersion.__table__
        stmt = select(revisions).where(
            revisions.c.id == revision_id,
            revisions.c.note_id == note_id,
        )
        result = await self.db.execute(stmt)
        row = result.first()
        return NoteRevisionResponse.model_validate(dict(row._mapping)) if row is not None else None
