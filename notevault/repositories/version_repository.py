"""Repository for community versions."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.community_version import CommunityVersion
from ..schemas.community_version import CommunityVersionResponse


class VersionRepository:
    """Queries over the community_versions table."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.table = CommunityVersion.__table__

    def _to_record(self, row) -> CommunityVersionResponse:
        return CommunityVersionResponse.model_validate(dict(row._mapping))

    async def _fetch_one(self, stmt) -> Optional[CommunityVersionResponse]:
        result = await self.db.execute(stmt)
        row = result.first()
        return self._to_record(row) if row is not None else None

    async def list_all(self) -> List[CommunityVersionResponse]:
        """All versions, newest first."""
        result = await self.db.execute(
            select(self.table).order_by(self.table.c.created_at.desc())
        )
        return [self._to_record(row) for row in result.all()]

    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(self.table))
        return result.scalar_one()

    async def find_by_id(self, version_id: UUID) -> Optional[CommunityVersionResponse]:
        return await self._fetch_one(select(self.table).where(self.table.c.id == version_id))

    async def find_by_name(self, name: str) -> Optional[CommunityVersionResponse]:
        return await self._fetch_one(select(self.table).where(self.table.c.name == name))

    async def find_latest(self) -> Optional[CommunityVersionResponse]:
        """Most recently created version, or None when there are none."""
        return await self._fetch_one(
            select(self.table).order_by(self.table.c.created_at.desc()).limit(1)
        )

    async def create(
        self,
        name: str,
        description: Optional[str],
        created_by: Optional[UUID],
    ) -> CommunityVersionResponse:
        result = await self.db.execute(
            insert(self.table)
            .values(name=name, description=description, created_by=created_by)
            .returning(*self.table.columns)
        )
        return self._to_record(result.one())

    async def update_fields(self, version_id: UUID, values: dict) -> Optional[CommunityVersionResponse]:
        values = {**values, "updated_at": datetime.utcnow()}
        return await self._fetch_one(
            update(self.table)
            .where(self.table.c.id == version_id)
            .values(values)
            .returning(*self.table.columns)
        )

    async def delete(self, version_id: UUID) -> bool:
        result = await self.db.execute(
            delete(self.table).where(self.table.c.id == version_id).returning(self.table.c.id)
        )
        return len(result.all()) == 1
