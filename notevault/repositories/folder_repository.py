"""Repository for folders."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select

from ..models.folder import Folder
from ..models.note import Note
from ..schemas.folder import FolderResponse
from .base import ContentRepository


class FolderRepository(ContentRepository[FolderResponse]):
    """Queries over the folders table."""

    model = Folder
    record = FolderResponse

    def _recoverable(self, stmt):
        """Root folders, or folders whose parent is active."""
        parent = self.table.alias("parent")
        parent_active = (
            select(parent.c.id)
            .where(parent.c.id == self.table.c.parent_id, parent.c.is_deleted.is_(False))
            .correlate(self.table)
            .exists()
        )
        return stmt.where(or_(self.table.c.parent_id.is_(None), parent_active))

    def _purgeable(self, stmt):
        """Folders with no active child folder and no active note in their subtree."""
        child = self.table.alias("child")
        notes = Note.__table__
        child_ids = (
            select(child.c.id).where(child.c.parent_id == self.table.c.id).correlate(self.table)
        )
        active_child = (
            select(child.c.id)
            .where(child.c.parent_id == self.table.c.id, child.c.is_deleted.is_(False))
            .correlate(self.table)
            .exists()
        )
        note_criteria = [
            or_(notes.c.folder_id == self.table.c.id, notes.c.folder_id.in_(child_ids))
        ]
        if self.capabilities.notes_trash:
            note_criteria.append(notes.c.is_deleted.is_(False))
        active_note = select(notes.c.id).where(*note_criteria).correlate(self.table).exists()
        return stmt.where(~active_child, ~active_note)

    async def recover_all(
        self,
        now: datetime,
        owner_id: Optional[UUID] = None,
        version_id: Optional[UUID] = None,
    ) -> int:
        """
        Recover trashed folders top-down, one level per pass.

        A folder comes back only once its parent is active, so children of
        a parent outside the scope (another owner or version) stay in trash.
        """
        total = 0
        while True:
            recovered = await super().recover_all(now, owner_id, version_id)
            if not recovered:
                return total
            total += recovered

    async def find_active(
        self,
        owner_id: Optional[UUID] = None,
        version_id: Optional[UUID] = None,
        parent_id: Optional[UUID] = None,
        roots_only: bool = True,
    ) -> List[FolderResponse]:
        """
        Active folders ordered by name.

        Args:
            owner_id: Restrict to one owner (None = all owners)
            version_id: Restrict to one partition
            parent_id: Children of this folder. Overrides roots_only.
            roots_only: Only folders without a parent
        """
        stmt = self._in_version(self._owned(self._active(self._select()), owner_id), version_id)
        if parent_id is not None:
            stmt = stmt.where(self.table.c.parent_id == parent_id)
        elif roots_only:
            stmt = stmt.where(self.table.c.parent_id.is_(None))
        return await self._fetch_all(stmt.order_by(self.table.c.name.asc()))

    async def find_active_by_version(
        self,
        version_id: UUID,
        owner_id: Optional[UUID] = None,
    ) -> List[FolderResponse]:
        """Every active folder (roots and children) of one partition."""
        return await self.find_active(owner_id=owner_id, version_id=version_id, roots_only=False)

    async def find_active_descendant_ids(self, folder_id: UUID) -> List[UUID]:
        """
        Breadth-first walk over parent_id collecting active descendants.

        Owners are ignored: a cascade covers everything under the folder.
        The folder itself is not included.
        """
        found: List[UUID] = []
        seen = {folder_id}
        frontier = [folder_id]
        while frontier:
            stmt = self._active(
                select(self.table.c.id).where(self.table.c.parent_id.in_(frontier))
            )
            result = await self.db.execute(stmt)
            frontier = [row_id for row_id in result.scalars().all() if row_id not in seen]
            seen.update(frontier)
            found.extend(frontier)
        return found

    async def count_children(self, folder_id: UUID) -> int:
        """Child folders in any trash state."""
        stmt = select(func.count()).select_from(self.table).where(
            self.table.c.parent_id == folder_id
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def find_by_ids(self, folder_ids: List[UUID]) -> List[FolderResponse]:
        """Folders by id in any trash state."""
        if not folder_ids:
            return []
        return await self._fetch_all(self._select().where(self.table.c.id.in_(folder_ids)))
