"""Shared pytest fixtures for backend tests."""

import os
import sys
from typing import AsyncGenerator, Callable
from uuid import uuid4

# Point the application engine at SQLite before notevault.database is imported
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

# Add app to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import bcrypt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from notevault.database import Base, get_db
from notevault.main import app
from notevault.models import User
from notevault.repositories import FolderRepository, NoteRepository, VersionRepository
from notevault.services.auth_service import create_token_for_user
from notevault.services.permission_service import (
    Caller,
    PermissionService,
    PolicyMode,
    get_permission_service,
)
from notevault.services.schema_capabilities import SchemaCapabilities, get_schema_capabilities


def get_test_password_hash(password: str) -> str:
    """
    Generate a password hash for testing.

    Uses bcrypt directly to avoid passlib version detection issues.
    """
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


# Use in-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite+aiosqlite://"

TEST_PASSWORD = "TestPassword123!"


@pytest_asyncio.fixture
async def engine():
    """Create a test database engine with SQLite."""
    engine = create_async_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enable foreign key support for SQLite
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_maker = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()


@pytest.fixture
def capabilities() -> SchemaCapabilities:
    """Schema capabilities the app sees. Override in a module to test a degraded schema."""
    return SchemaCapabilities.full()


@pytest.fixture
def permissions() -> PermissionService:
    """Enforced role policy."""
    return PermissionService(PolicyMode.ENFORCED)


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    capabilities: SchemaCapabilities,
    permissions: PermissionService,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database, schema and policy overrides."""

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_schema_capabilities] = lambda: capabilities
    app.dependency_overrides[get_permission_service] = lambda: permissions

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable:
    """Factory creating an approved user with the given role."""

    async def _make_user(role: str = "user", email: str = None, status: str = "approved") -> User:
        user = User(
            id=uuid4(),
            email=email or f"{role}-{uuid4().hex[:8]}@example.com",
            password_hash=get_test_password_hash(TEST_PASSWORD),
            name=f"Test {role.title()}",
            role=role,
            status=status,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make_user


@pytest_asyncio.fixture
async def test_user(make_user) -> User:
    """A plain user."""
    return await make_user("user", email="user@example.com")


@pytest_asyncio.fixture
async def test_manager(make_user) -> User:
    """A manager."""
    return await make_user("manager", email="manager@example.com")


@pytest_asyncio.fixture
async def test_admin(make_user) -> User:
    """An admin."""
    return await make_user("admin", email="admin@example.com")


def headers_for(user: User) -> dict:
    """Create authorization headers for a user."""
    return {"Authorization": f"Bearer {create_token_for_user(user)}"}


@pytest.fixture
def user_headers(test_user: User) -> dict:
    return headers_for(test_user)


@pytest.fixture
def manager_headers(test_manager: User) -> dict:
    return headers_for(test_manager)


@pytest.fixture
def admin_headers(test_admin: User) -> dict:
    return headers_for(test_admin)


def caller_for(user: User) -> Caller:
    """Service-layer Caller for a user."""
    return Caller(user_id=user.id, role=user.role)


@pytest.fixture
def auth_headers_for() -> Callable[[User], dict]:
    """Factory fixture: authorization headers for any user."""
    return headers_for


@pytest.fixture
def as_caller() -> Callable[[User], Caller]:
    """Factory fixture: service-layer Caller for any user."""
    return caller_for


class ContentSeeder:
    """Inserts folders, notes and versions directly, bypassing the role policy."""

    def __init__(self, db: AsyncSession, capabilities: SchemaCapabilities):
        self.db = db
        self.notes = NoteRepository(db, capabilities)
        self.folders = FolderRepository(db, capabilities)
        self.versions = VersionRepository(db)

    async def version(self, name: str, created_by: User = None):
        version = await self.versions.create(name, f"{name} description", created_by.id if created_by else None)
        await self.db.commit()
        return version

    async def folder(self, owner: User, name: str, parent=None, version=None):
        folder = await self.folders.create(
            {
                "name": name,
                "owner_id": owner.id,
                "parent_id": parent.id if parent else None,
                "version_id": version.id if version else None,
            }
        )
        await self.db.commit()
        return folder

    async def note(self, owner: User, title: str, folder=None, version=None, content: str = ""):
        note = await self.notes.create(
            {
                "title": title,
                "content": content,
                "owner_id": owner.id,
                "folder_id": folder.id if folder else None,
                "version_id": version.id if version else None,
                "revision": 1,
            }
        )
        await self.db.commit()
        return note


@pytest.fixture
def seed(db_session: AsyncSession, capabilities: SchemaCapabilities) -> ContentSeeder:
    """Direct content inserts for arranging test data."""
    return ContentSeeder(db_session, capabilities)
