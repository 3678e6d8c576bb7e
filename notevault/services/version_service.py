"""Community version partition service.

A community version is a named partition of folders and notes ("v1.0",
"v2.1"). Every listing can be narrowed to one version, creation stamps new
content with a version, and content can be migrated between versions.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..repositories import FolderRepository, NoteRepository, VersionRepository
from ..schemas.community_version import (
    CommunityVersionCreate,
    CommunityVersionResponse,
    CommunityVersionUpdate,
    MigrationResult,
)
from ..schemas.folder import FolderResponse
from ..schemas.note import NoteResponse
from .errors import Conflict, InvalidArgument, InvalidState, NotFound, SchemaUnavailable
from .permission_service import Action, Caller, PermissionService
from .schema_capabilities import SchemaCapabilities

logger = logging.getLogger(__name__)


def placeholder_version() -> CommunityVersionResponse:
    """The explicit stand-in listed when no version exists yet."""
    return CommunityVersionResponse(
        id=None,
        name=settings.default_version_name,
        description="Default version",
        is_placeholder=True,
    )


class VersionService:
    """
    Service class for community version management and partition queries.
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
        self.versions = VersionRepository(db)
        self.notes = NoteRepository(db, capabilities)
        self.folders = FolderRepository(db, capabilities)

    def _require_versions(self) -> None:
        if not self.capabilities.versions:
            raise SchemaUnavailable("Community versions")

    async def _get_version(self, version_id: UUID) -> CommunityVersionResponse:
        version = await self.versions.find_by_id(version_id)
        if version is None:
            raise NotFound("Version", version_id)
        return version

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_versions(self, caller: Caller) -> List[CommunityVersionResponse]:
        """
        All versions, newest first.

        Returns a single placeholder entry (is_placeholder = true, id = null)
        when no version exists or the feature is not migrated.
        """
        self.permissions.require(caller.role, Action.VIEW_VERSIONS)
        if not self.capabilities.versions:
            return [placeholder_version()]
        versions = await self.versions.list_all()
        return versions or [placeholder_version()]

    async def get_latest_version(self) -> Optional[CommunityVersionResponse]:
        """Most recently created version, or None."""
        if not self.capabilities.versions:
            return None
        return await self.versions.find_latest()

    async def resolve_version_id(self, requested: Optional[UUID]) -> Optional[UUID]:
        """
        Version to stamp on newly created content.

        Args:
            requested: Explicit version id from the request, if any

        Returns:
            The requested id, else the latest version's id, else None

        Raises:
            NotFound: If an explicit version id does not exist
        """
        if not self.capabilities.versions:
            if requested is not None:
                logger.warning(f"Ignoring versionId {requested}: community versions not migrated")
            return None
        if requested is not None:
            return (await self._get_version(requested)).id
        latest = await self.get_latest_version()
        return latest.id if latest is not None else None

    async def notes_by_version(self, caller: Caller, version_id: UUID) -> List[NoteResponse]:
        """Active notes of one partition within the caller's visibility."""
        self.permissions.require(caller.role, Action.VIEW_CONTENT)
        self._require_versions()
        await self._get_version(version_id)
        return await self.notes.find_active(
            owner_id=self.permissions.owner_filter(caller), version_id=version_id
        )

    async def folders_by_version(self, caller: Caller, version_id: UUID) -> List[FolderResponse]:
        """Active folders of one partition within the caller's visibility."""
        self.permissions.require(caller.role, Action.VIEW_CONTENT)
        self._require_versions()
        await self._get_version(version_id)
        return await self.folders.find_active_by_version(
            version_id, owner_id=self.permissions.owner_filter(caller)
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_version(
        self, caller: Caller, data: CommunityVersionCreate
    ) -> CommunityVersionResponse:
        """
        Create a version with a unique name.

        Raises:
            PermissionDenied: If the role may not create versions
            Conflict: If the name is taken
        """
        self.permissions.require(caller.role, Action.CREATE_VERSION)
        self._require_versions()
        name = data.name.strip()
        if await self.versions.find_by_name(name) is not None:
            raise Conflict(f"Version '{name}' already exists")
        version = await self.versions.create(name, data.description, caller.user_id)
        logger.info(f"Created community version {version.id} ({name})")
        return version

    async def update_version(
        self, caller: Caller, version_id: UUID, data: CommunityVersionUpdate
    ) -> CommunityVersionResponse:
        """
        Rename or re-describe a version (admin).

        Raises:
            NotFound: If the version does not exist
            Conflict: If the new name belongs to another version
        """
        self.permissions.require(caller.role, Action.UPDATE_VERSION)
        self._require_versions()
        await self._get_version(version_id)

        values = data.model_dump(exclude_unset=True)
        if values.get("name") is not None:
            values["name"] = values["name"].strip()
            existing = await self.versions.find_by_name(values["name"])
            if existing is not None and existing.id != version_id:
                raise Conflict(f"Version '{values['name']}' already exists")
        elif "name" in values:
            del values["name"]

        updated = await self.versions.update_fields(version_id, values)
        if updated is None:
            raise NotFound("Version", version_id)
        return updated

    async def delete_version(self, caller: Caller, version_id: UUID) -> None:
        """
        Delete an unreferenced version (admin).

        Raises:
            NotFound: If the version does not exist
            InvalidState: If it is the last version, or active content still uses it
        """
        self.permissions.require(caller.role, Action.DELETE_VERSION)
        self._require_versions()
        version = await self._get_version(version_id)

        if await self.versions.count() <= 1:
            raise InvalidState("Cannot delete the last remaining version")

        notes = await self.notes.count_active_in_version(version_id)
        folders = await self.folders.count_active_in_version(version_id)
        if notes or folders:
            raise InvalidState(
                f"Version '{version.name}' is still used by {notes} notes and {folders} "
                "folders. Migrate the content to another version first."
            )

        if not await self.versions.delete(version_id):
            raise NotFound("Version", version_id)
        logger.info(f"Deleted community version {version_id} ({version.name})")

    async def migrate_content(
        self, caller: Caller, source_id: UUID, target_id: UUID
    ) -> MigrationResult:
        """
        Move the caller's folders and notes from one version to another.

        Both tables are re-stamped in the request transaction. Trashed rows
        move too, so recovering them later lands them in the target version.

        Raises:
            InvalidArgument: If source and target are the same
            NotFound: If either version does not exist
        """
        self.permissions.require(caller.role, Action.MIGRATE_CONTENT)
        self._require_versions()
        if source_id == target_id:
            raise InvalidArgument("Source and target versions must be different", "targetVersionId")
        source = await self._get_version(source_id)
        target = await self._get_version(target_id)

        folders = await self.folders.migrate_version(caller.user_id, source_id, target_id)
        notes = await self.notes.migrate_version(caller.user_id, source_id, target_id)

        logger.info(
            f"Migrated {notes} notes and {folders} folders of user {caller.user_id} "
            f"from version {source.name} to {target.name}"
        )
        return MigrationResult(
            message=f"Migrated {notes} notes and {folders} folders from {source.name} to {target.name}",
            source_version_id=source_id,
            target_version_id=target_id,
            migrated_notes=notes,
            migrated_folders=folders,
        )
