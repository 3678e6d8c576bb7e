"""Schema capability descriptor for progressive migrations.

A live deployment may still be running a schema from before the trash
columns (is_deleted, deleted_at) or the community versions feature
(community_versions table + version_id columns) were added. Instead of
probing on every call, capabilities are resolved once at startup by
inspecting the database, unless pinned through settings, and handed to the
repositories and services.

A failed inspection is an expected situation during rolling migrations: it
is logged and treated as "capability absent" so the service still starts.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Optional

from fastapi import Request
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

from ..config import settings

logger = logging.getLogger(__name__)

TRASH_COLUMNS = frozenset({"is_deleted", "deleted_at"})
VERSION_COLUMNS = frozenset({"version_id"})


@dataclass(frozen=True)
class SchemaCapabilities:
    """Which optional schema features the connected database has.

    Attributes:
        notes_trash: notes has is_deleted/deleted_at
        folders_trash: folders has is_deleted/deleted_at
        versions: community_versions exists and both content tables have version_id
    """

    notes_trash: bool = True
    folders_trash: bool = True
    versions: bool = True

    @classmethod
    def full(cls) -> "SchemaCapabilities":
        """Capabilities of a fully migrated schema."""
        return cls(notes_trash=True, folders_trash=True, versions=True)

    @classmethod
    def legacy(cls) -> "SchemaCapabilities":
        """Capabilities of the base schema (no trash, no versions)."""
        return cls(notes_trash=False, folders_trash=False, versions=False)

    def missing_columns(self, table_name: str) -> frozenset[str]:
        """Columns of the given content table that must not be referenced."""
        missing: set[str] = set()
        if table_name == "notes" and not self.notes_trash:
            missing |= TRASH_COLUMNS
        if table_name == "folders" and not self.folders_trash:
            missing |= TRASH_COLUMNS
        if table_name in ("notes", "folders") and not self.versions:
            missing |= VERSION_COLUMNS
        return frozenset(missing)

    def as_dict(self) -> dict:
        """Plain dict for health/debug output."""
        return asdict(self)


def _capabilities_from_inspector(sync_conn) -> SchemaCapabilities:
    """Inspect table columns on a sync connection (run via AsyncConnection.run_sync)."""
    inspector = inspect(sync_conn)
    tables = set(inspector.get_table_names())

    def columns(table: str) -> set[str]:
        if table not in tables:
            return set()
        return {column["name"] for column in inspector.get_columns(table)}

    note_columns = columns("notes")
    folder_columns = columns("folders")

    return SchemaCapabilities(
        notes_trash=TRASH_COLUMNS <= note_columns,
        folders_trash=TRASH_COLUMNS <= folder_columns,
        versions=(
            "community_versions" in tables
            and VERSION_COLUMNS <= note_columns
            and VERSION_COLUMNS <= folder_columns
        ),
    )


def _apply_overrides(detected: SchemaCapabilities) -> SchemaCapabilities:
    """Settings pin individual capabilities; None keeps the detected value."""
    return SchemaCapabilities(
        notes_trash=_pick(settings.schema_notes_trash, detected.notes_trash),
        folders_trash=_pick(settings.schema_folders_trash, detected.folders_trash),
        versions=_pick(settings.schema_versions, detected.versions),
    )


def _pick(pinned: Optional[bool], detected: bool) -> bool:
    return detected if pinned is None else pinned


async def detect_schema_capabilities(engine: AsyncEngine) -> SchemaCapabilities:
    """
    Resolve schema capabilities once, at startup.

    Args:
        engine: The application's async engine

    Returns:
        SchemaCapabilities with settings overrides applied
    """
    pinned = (
        settings.schema_notes_trash,
        settings.schema_folders_trash,
        settings.schema_versions,
    )
    if all(value is not None for value in pinned):
        capabilities = _apply_overrides(SchemaCapabilities.full())
        logger.info(f"Schema capabilities pinned by settings: {capabilities.as_dict()}")
        return capabilities

    try:
        async with engine.connect() as conn:
            detected = await conn.run_sync(_capabilities_from_inspector)
    except Exception as e:
        logger.warning(f"Schema capability probe failed, assuming unmigrated schema: {e}")
        detected = SchemaCapabilities.legacy()

    capabilities = _apply_overrides(detected)
    if not capabilities.notes_trash or not capabilities.folders_trash:
        logger.warning(
            "Trash columns not found. Trash falls back to permanent delete until the "
            "database is migrated."
        )
    if not capabilities.versions:
        logger.warning("Community versions not available. Content is not partitioned.")
    logger.info(f"Schema capabilities resolved: {capabilities.as_dict()}")
    return capabilities


def get_schema_capabilities(request: Request) -> SchemaCapabilities:
    """
    FastAPI dependency returning the capabilities resolved in the lifespan hook.

    Falls back to a fully migrated schema when the app was started without the
    lifespan (e.g. a bare TestClient).
    """
    return getattr(request.app.state, "schema_capabilities", None) or SchemaCapabilities.full()
