"""Shared repository plumbing for the content tables (folders, notes).

Statements are built against the mapped Table rather than ORM entities so
that a column the connected database does not have yet (trash columns,
version_id) is never selected, inserted or filtered on. Rows come back as
pydantic records.
"""

import logging
from datetime import datetime
from typing import Any, Generic, Iterable, List, Optional, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import Select, delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..services.errors import SchemaUnavailable
from ..services.schema_capabilities import SchemaCapabilities

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class ContentRepository(Generic[RecordT]):
    """
    Base repository for a trashable, version-partitioned content table.

    Subclasses set `model` (the declarative class) and `record` (the pydantic
    schema rows are converted to). Every query that takes `owner_id` treats
    None as "all owners"; the caller decides visibility.
    """

    model: Any = None
    record: Type[RecordT]

    def __init__(self, db: AsyncSession, capabilities: SchemaCapabilities):
        """
        Initialize the repository.

        Args:
            db: Request-scoped async session (commit/rollback belongs to the caller)
            capabilities: Schema capabilities resolved at startup
        """
        self.db = db
        self.capabilities = capabilities
        self.table = self.model.__table__
        missing = capabilities.missing_columns(self.table.name)
        self.columns = tuple(c for c in self.table.columns if c.name not in missing)
        self.has_trash = "is_deleted" not in missing

    # ------------------------------------------------------------------
    # Capability flags
    # ------------------------------------------------------------------

    @property
    def has_versions(self) -> bool:
        return self.capabilities.versions

    def _require_trash(self) -> None:
        if not self.has_trash:
            raise SchemaUnavailable("Trash")

    # ------------------------------------------------------------------
    # Statement helpers
    # ------------------------------------------------------------------

    def _select(self) -> Select:
        return select(*self.columns)

    def _owned(self, stmt, owner_id: Optional[UUID]):
        if owner_id is not None:
            stmt = stmt.where(self.table.c.owner_id == owner_id)
        return stmt

    def _in_version(self, stmt, version_id: Optional[UUID]):
        """Filter by partition. No-op without a version or without the versions feature."""
        if version_id is not None and self.has_versions:
            stmt = stmt.where(self.table.c.version_id == version_id)
        return stmt

    def _active(self, stmt):
        if self.has_trash:
            stmt = stmt.where(self.table.c.is_deleted.is_(False))
        return stmt

    def _trashed(self, stmt):
        return stmt.where(self.table.c.is_deleted.is_(True))

    def _recoverable(self, stmt):
        """Restrict a bulk recovery. Subclasses exclude rows whose container stays trashed."""
        return stmt

    def _purgeable(self, stmt):
        """Restrict a bulk purge. Subclasses exclude rows that still hold active content."""
        return stmt

    def _to_record(self, row) -> RecordT:
        return self.record.model_validate(dict(row._mapping))

    async def _fetch_all(self, stmt) -> List[RecordT]:
        result = await self.db.execute(stmt)
        return [self._to_record(row) for row in result.all()]

    async def _fetch_one(self, stmt) -> Optional[RecordT]:
        result = await self.db.execute(stmt)
        row = result.first()
        return self._to_record(row) if row is not None else None

    async def _count_returning(self, stmt) -> int:
        result = await self.db.execute(stmt.returning(self.table.c.id))
        return len(result.all())

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_by_id(self, item_id: UUID, owner_id: Optional[UUID] = None) -> Optional[RecordT]:
        """Find a row in any trash state, optionally restricted to one owner."""
        stmt = self._owned(self._select().where(self.table.c.id == item_id), owner_id)
        return await self._fetch_one(stmt)

    async def find_trashed(
        self,
        owner_id: Optional[UUID] = None,
        version_id: Optional[UUID] = None,
    ) -> List[RecordT]:
        """Trashed rows, newest deleted_at first. Empty without trash columns."""
        if not self.has_trash:
            return []
        stmt = self._trashed(self._select())
        stmt = self._in_version(self._owned(stmt, owner_id), version_id)
        return await self._fetch_all(stmt.order_by(self.table.c.deleted_at.desc()))

    async def count_active_in_version(self, version_id: UUID) -> int:
        """Active rows (any owner) stamped with the version."""
        if not self.has_versions:
            return 0
        stmt = self._active(select(self.table.c.id).where(self.table.c.version_id == version_id))
        result = await self.db.execute(stmt)
        return len(result.all())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, values: dict) -> RecordT:
        """Insert a row. Values for columns the schema lacks are dropped."""
        allowed = {c.name for c in self.columns}
        dropped = set(values) - allowed
        if dropped:
            logger.debug(f"Dropping unsupported {self.table.name} columns on insert: {sorted(dropped)}")
        stmt = (
            insert(self.table)
            .values({k: v for k, v in values.items() if k in allowed})
            .returning(*self.columns)
        )
        result = await self.db.execute(stmt)
        return self._to_record(result.one())

    async def update_fields(self, item_id: UUID, values: dict) -> Optional[RecordT]:
        """Update plain fields of one row and return the new state."""
        values = {**values, "updated_at": datetime.utcnow()}
        stmt = (
            update(self.table)
            .where(self.table.c.id == item_id)
            .values(values)
            .returning(*self.columns)
        )
        result = await self.db.execute(stmt)
        row = result.first()
        return self._to_record(row) if row is not None else None

    async def soft_delete(self, item_id: UUID, now: datetime) -> bool:
        """
        Active -> Trashed, conditional on the row still being active.

        Returns:
            False if the row was not active when the update ran
        """
        self._require_trash()
        stmt = (
            update(self.table)
            .where(self.table.c.id == item_id, self.table.c.is_deleted.is_(False))
            .values(is_deleted=True, deleted_at=now, updated_at=now)
        )
        return await self._count_returning(stmt) == 1

    async def soft_delete_many(self, item_ids: Iterable[UUID], now: datetime) -> int:
        """Trash every still-active row among item_ids; returns how many changed."""
        self._require_trash()
        ids = list(item_ids)
        if not ids:
            return 0
        stmt = (
            update(self.table)
            .where(self.table.c.id.in_(ids), self.table.c.is_deleted.is_(False))
            .values(is_deleted=True, deleted_at=now, updated_at=now)
        )
        return await self._count_returning(stmt)

    async def recover(self, item_id: UUID, now: datetime) -> bool:
        """
        Trashed -> Active, conditional on the row still being trashed.

        Returns:
            False if the row was not trashed when the update ran
        """
        self._require_trash()
        stmt = (
            update(self.table)
            .where(self.table.c.id == item_id, self.table.c.is_deleted.is_(True))
            .values(is_deleted=False, deleted_at=None, updated_at=now)
        )
        return await self._count_returning(stmt) == 1

    async def recover_all(
        self,
        now: datetime,
        owner_id: Optional[UUID] = None,
        version_id: Optional[UUID] = None,
    ) -> int:
        """Recover every trashed row in scope that `_recoverable` admits; returns the count."""
        self._require_trash()
        stmt = self._trashed(update(self.table)).values(
            is_deleted=False, deleted_at=None, updated_at=now
        )
        stmt = self._in_version(self._owned(stmt, owner_id), version_id)
        stmt = self._recoverable(stmt)
        return await self._count_returning(stmt)

    async def hard_delete(self, item_id: UUID) -> bool:
        """Permanently delete one row regardless of trash state."""
        stmt = delete(self.table).where(self.table.c.id == item_id)
        return await self._count_returning(stmt) == 1

    async def purge_trashed(
        self,
        owner_id: Optional[UUID] = None,
        version_id: Optional[UUID] = None,
    ) -> int:
        """Permanently delete every trashed row in scope that `_purgeable` admits; returns the count."""
        self._require_trash()
        stmt = self._trashed(delete(self.table))
        stmt = self._in_version(self._owned(stmt, owner_id), version_id)
        stmt = self._purgeable(stmt)
        return await self._count_returning(stmt)

    async def migrate_version(self, owner_id: UUID, source_id: UUID, target_id: UUID) -> int:
        """Re-stamp the owner's rows (any trash state) from source to target."""
        stmt = (
            update(self.table)
            .where(self.table.c.owner_id == owner_id, self.table.c.version_id == source_id)
            .values(version_id=target_id, updated_at=datetime.utcnow())
        )
        return await self._count_returning(stmt)
