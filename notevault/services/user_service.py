"""User management service (accounts provisioned by managers and admins)."""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.user import User
from ..schemas.user import ProfileUpdate, UserCreate, UserUpdate
from ..utils.security import get_password_hash
from .auth_service import get_user_by_email, get_user_by_id
from .errors import InvalidArgument, InvalidState, NotFound
from .permission_service import Action, Caller, PermissionService

logger = logging.getLogger(__name__)


class UserService:
    """Service class for listing, provisioning, updating and deleting users."""

    def __init__(self, db: AsyncSession, permissions: PermissionService):
        self.db = db
        self.permissions = permissions

    async def _get(self, user_id: UUID) -> User:
        user = await get_user_by_id(self.db, user_id)
        if user is None:
            raise NotFound("User", user_id)
        return user

    async def _ensure_email_free(self, email: str, exclude_id: UUID = None) -> None:
        existing = await get_user_by_email(self.db, email)
        if existing is not None and existing.id != exclude_id:
            raise InvalidArgument("Email already registered", field_name="email")

    async def list_users(self, caller: Caller) -> List[User]:
        """All users ordered by creation time (manager/admin)."""
        self.permissions.require(caller.role, Action.MANAGE_USERS)
        result = await self.db.execute(select(User).order_by(User.created_at.asc()))
        return list(result.scalars().all())

    async def get_user(self, caller: Caller, user_id: UUID) -> User:
        """One user (manager/admin)."""
        self.permissions.require(caller.role, Action.MANAGE_USERS)
        return await self._get(user_id)

    async def create_user(self, caller: Caller, data: UserCreate) -> User:
        """
        Provision an approved account directly (manager/admin).

        Raises:
            InvalidArgument: If the email is already registered
        """
        self.permissions.require(caller.role, Action.MANAGE_USERS)
        await self._ensure_email_free(data.email)

        user = User(
            email=data.email.lower(),
            name=data.name.strip(),
            password_hash=get_password_hash(data.password),
            role=data.role,
            status="approved",
        )
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        logger.info(f"User {caller.user_id} created user {user.id} with role {user.role}")
        return user

    async def update_user(self, caller: Caller, user_id: UUID, data: UserUpdate) -> User:
        """Update any user's fields (manager/admin)."""
        self.permissions.require(caller.role, Action.MANAGE_USERS)
        user = await self._get(user_id)
        values = data.model_dump(exclude_unset=True, exclude_none=True)

        if "email" in values:
            await self._ensure_email_free(values["email"], exclude_id=user.id)
            user.email = values["email"].lower()
        if "name" in values:
            user.name = values["name"].strip()
        if "role" in values:
            user.role = values["role"]
        if "status" in values:
            user.status = values["status"]
        if "password" in values:
            user.password_hash = get_password_hash(values["password"])

        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def update_profile(self, user: User, data: ProfileUpdate) -> User:
        """Update one's own name/password. Role and status are not self-service."""
        if data.name is not None:
            user.name = data.name.strip()
        if data.password is not None:
            user.password_hash = get_password_hash(data.password)
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def delete_user(self, caller: Caller, user_id: UUID) -> None:
        """
        Delete a user and, through the foreign keys, their content (admin).

        Raises:
            InvalidState: If an admin tries to delete their own account
        """
        self.permissions.require(caller.role, Action.DELETE_USER)
        user = await self._get(user_id)
        if user.id == caller.user_id:
            raise InvalidState("You cannot delete your own account")
        await self.db.delete(user)
        await self.db.flush()
        logger.info(f"User {caller.user_id} deleted user {user_id}")
