"""Tests for schema capability detection and the degraded (unmigrated) code paths."""

import pytest
from httpx import AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from notevault.services.errors import InvalidState, SchemaUnavailable
from notevault.services.lifecycle_service import ContentLifecycleService
from notevault.services.schema_capabilities import (
    SchemaCapabilities,
    detect_schema_capabilities,
)

LEGACY_DDL = [
    "CREATE TABLE users (id CHAR(32) PRIMARY KEY, email VARCHAR(255))",
    "CREATE TABLE folders (id CHAR(32) PRIMARY KEY, name VARCHAR(255), owner_id CHAR(32))",
    "CREATE TABLE notes (id CHAR(32) PRIMARY KEY, title VARCHAR(255), owner_id CHAR(32))",
]


class TestCapabilityFlags:
    """Tests for SchemaCapabilities."""

    def test_full_schema_hides_nothing(self):
        assert SchemaCapabilities.full().missing_columns("notes") == frozenset()

    def test_legacy_schema_hides_trash_and_version_columns(self):
        missing = SchemaCapabilities.legacy().missing_columns("folders")

        assert missing == {"is_deleted", "deleted_at", "version_id"}

    def test_tables_are_independent(self):
        capabilities = SchemaCapabilities(notes_trash=True, folders_trash=False, versions=True)

        assert capabilities.missing_columns("notes") == frozenset()
        assert capabilities.missing_columns("folders") == {"is_deleted", "deleted_at"}


@pytest.mark.asyncio
class TestDetection:
    """Tests for detect_schema_capabilities."""

    async def test_detects_full_schema(self, engine):
        capabilities = await detect_schema_capabilities(engine)

        assert capabilities == SchemaCapabilities.full()

    async def test_detects_legacy_schema(self):
        legacy_engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
        async with legacy_engine.begin() as conn:
            for statement in LEGACY_DDL:
                await conn.execute(text(statement))

        capabilities = await detect_schema_capabilities(legacy_engine)
        await legacy_engine.dispose()

        assert capabilities == SchemaCapabilities.legacy()

    async def test_settings_pin_a_capability(self, engine, monkeypatch):
        from notevault.config import settings

        monkeypatch.setattr(settings, "schema_versions", False)

        capabilities = await detect_schema_capabilities(engine)

        assert capabilities.versions is False
        assert capabilities.notes_trash is True

    async def test_unreachable_database_assumes_legacy(self, caplog):
        broken = create_async_engine("sqlite+aiosqlite:////nonexistent/dir/db.sqlite")

        capabilities = await detect_schema_capabilities(broken)
        await broken.dispose()

        assert capabilities == SchemaCapabilities.legacy()
        assert "probe failed" in caplog.text


@pytest.mark.asyncio
class TestLegacyLifecycle:
    """Trash operations against a schema without trash columns."""

    @pytest.fixture
    def capabilities(self) -> SchemaCapabilities:
        return SchemaCapabilities.legacy()

    @pytest.fixture
    def lifecycle(self, db_session, capabilities, permissions) -> ContentLifecycleService:
        return ContentLifecycleService(db_session, capabilities, permissions)

    async def test_trash_note_deletes_permanently(self, lifecycle, seed, test_user, as_caller):
        note = await seed.note(test_user, "Groceries")

        result = await lifecycle.move_note_to_trash(as_caller(test_user), note.id)

        assert result.hard_deleted is True
        assert "trash not available" in result.message
        assert await lifecycle.notes.find_by_id(note.id) is None

    async def test_empty_folder_deletes_permanently(self, lifecycle, seed, test_admin, as_caller):
        folder = await seed.folder(test_admin, "Empty")

        result = await lifecycle.delete_folder(as_caller(test_admin), folder.id)

        assert result.hard_deleted is True

    async def test_non_empty_folder_is_refused(self, lifecycle, seed, test_admin, as_caller):
        folder = await seed.folder(test_admin, "Full")
        await seed.note(test_admin, "Inside", folder=folder)

        with pytest.raises(InvalidState):
            await lifecycle.delete_folder(as_caller(test_admin), folder.id)

    async def test_trash_listing_is_empty(self, lifecycle, seed, test_user, as_caller):
        await seed.note(test_user, "Groceries")

        assert await lifecycle.get_trash_notes(as_caller(test_user)) == []

    async def test_recover_is_unavailable(self, lifecycle, seed, test_user, as_caller):
        note = await seed.note(test_user, "Groceries")

        with pytest.raises(SchemaUnavailable):
            await lifecycle.recover_note(as_caller(test_user), note.id)

    async def test_empty_trash_is_unavailable(self, lifecycle, test_user, as_caller):
        with pytest.raises(SchemaUnavailable):
            await lifecycle.empty_trash(as_caller(test_user))


@pytest.mark.asyncio
class TestLegacyApi:
    """HTTP behaviour on an unmigrated schema."""

    @pytest.fixture
    def capabilities(self) -> SchemaCapabilities:
        return SchemaCapabilities.legacy()

    async def test_notes_still_work(self, client: AsyncClient, admin_headers: dict):
        created = await client.post(
            "/notes", json={"title": "Plain"}, headers=admin_headers
        )
        assert created.status_code == 201
        assert created.json()["version_id"] is None

        listed = await client.get("/notes", headers=admin_headers)
        assert [n["title"] for n in listed.json()] == ["Plain"]

    async def test_versions_show_placeholder(self, client: AsyncClient, user_headers: dict):
        response = await client.get("/notes/versions", headers=user_headers)

        assert response.json()[0]["is_placeholder"] is True

    async def test_recover_reports_unavailable(self, client: AsyncClient, user_headers: dict, seed, test_user):
        note = await seed.note(test_user, "Groceries")

        response = await client.patch(f"/notes/{note.id}/recover", headers=user_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "SCHEMA_UNAVAILABLE"

    async def test_health_reports_capabilities(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.json()["status"] == "healthy"
        assert set(response.json()["schema"]) == {"notes_trash", "folders_trash", "versions"}
