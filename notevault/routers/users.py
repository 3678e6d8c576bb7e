"""Users API endpoints.

Provides user management for managers and admins, and self-service
profile access for every authenticated user.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User
from ..schemas.trash import MessageResponse
from ..schemas.user import ProfileUpdate, UserCreate, UserResponse, UserUpdate
from ..services.auth_service import get_current_caller, get_current_user
from ..services.permission_service import Caller, PermissionService, get_permission_service
from ..services.user_service import UserService
from ..utils.validators import parse_uuid

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(
    db: AsyncSession = Depends(get_db),
    permissions: PermissionService = Depends(get_permission_service),
) -> UserService:
    """Request-scoped UserService."""
    return UserService(db, permissions)


@router.get(
    "",
    response_model=List[UserResponse],
    summary="List users",
    responses={403: {"description": "Requires manager or admin"}},
)
async def list_users(
    caller: Caller = Depends(get_current_caller),
    service: UserService = Depends(get_user_service),
) -> List[UserResponse]:
    """List every account (manager/admin)."""
    users = await service.list_users(caller)
    return [UserResponse.model_validate(user) for user in users]


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
    description="Provision an approved account directly, bypassing the approval workflow.",
    responses={
        400: {"description": "Email already registered or validation error"},
        403: {"description": "Requires manager or admin"},
    },
)
async def create_user(
    data: UserCreate,
    caller: Caller = Depends(get_current_caller),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Create a user (manager/admin)."""
    return UserResponse.model_validate(await service.create_user(caller, data))


# Profile endpoints (MUST be before /{user_id})


@router.get(
    "/profile",
    response_model=UserResponse,
    summary="Get own profile",
)
async def get_profile(
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    """Return the authenticated user's profile."""
    return UserResponse.model_validate(current_user)


@router.patch(
    "/profile",
    response_model=UserResponse,
    summary="Update own profile",
    description="Change display name and/or password. Role and status cannot be self-assigned.",
)
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Update the authenticated user's profile."""
    return UserResponse.model_validate(await service.update_profile(current_user, data))


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get a user",
    responses={
        400: {"description": "Malformed user id"},
        403: {"description": "Requires manager or admin"},
        404: {"description": "User not found"},
    },
)
async def get_user(
    user_id: str,
    caller: Caller = Depends(get_current_caller),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Get one user (manager/admin)."""
    user = await service.get_user(caller, parse_uuid(user_id, "user_id"))
    return UserResponse.model_validate(user)


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update a user",
    responses={
        400: {"description": "Malformed id or email already registered"},
        403: {"description": "Requires manager or admin"},
        404: {"description": "User not found"},
    },
)
async def update_user(
    user_id: str,
    data: UserUpdate,
    caller: Caller = Depends(get_current_caller),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Update a user's email, name, role, status or password (manager/admin)."""
    user = await service.update_user(caller, parse_uuid(user_id, "user_id"), data)
    return UserResponse.model_validate(user)


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    summary="Delete a user",
    description="Delete the account together with the notes and folders it owns.",
    responses={
        400: {"description": "Malformed id or deleting own account"},
        403: {"description": "Requires admin"},
        404: {"description": "User not found"},
    },
)
async def delete_user(
    user_id: str,
    caller: Caller = Depends(get_current_caller),
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Delete a user (admin)."""
    await service.delete_user(caller, parse_uuid(user_id, "user_id"))
    return MessageResponse(message="User deleted successfully")
