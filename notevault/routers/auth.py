"""Authentication API endpoints.

Provides endpoints for self-registration (which files an approval request),
login, logout, and profile access. Uses JWT-based authentication; only
approved accounts receive tokens.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User
from ..schemas.approval import ApprovalRequestResponse, RegistrationRequest
from ..schemas.user import UserResponse
from ..services.approval_service import ApprovalService
from ..services.auth_service import (
    Token,
    authenticate_user,
    create_token_for_user,
    get_current_user,
)
from ..services.email_service import notify_admin_of_registration
from ..services.permission_service import PermissionService, get_permission_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

_STATUS_MESSAGES = {
    "pending": (
        "Your account is pending approval. Please wait for an administrator "
        "to approve your request."
    ),
    "rejected": "Your account request was not approved.",
}


@router.post(
    "/register",
    response_model=ApprovalRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request an account",
    description="File a registration request. An admin must approve it before the account exists.",
    responses={
        201: {"description": "Request filed and pending approval"},
        400: {"description": "Email already registered, already pending, or validation error"},
    },
)
async def register(
    data: RegistrationRequest,
    db: AsyncSession = Depends(get_db),
    permissions: PermissionService = Depends(get_permission_service),
) -> ApprovalRequestResponse:
    """
    Register for an account.

    - **email**: Valid email address (unique)
    - **name**: Display name
    - **password**: Minimum 8 characters

    Returns the pending approval request (never the password hash).
    """
    request = await ApprovalService(db, permissions).create_request(data)
    await db.commit()

    notify_admin_of_registration(email=request.email, name=request.name)
    return ApprovalRequestResponse.model_validate(request)


@router.post(
    "/login",
    response_model=Token,
    summary="Login and get access token",
    description="Authenticate with email and password to receive a JWT access token.",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"description": "Invalid credentials or account not approved"},
    },
)
async def login(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: AsyncSession = Depends(get_db),
) -> Token:
    """
    Login with email and password.

    Uses OAuth2 password flow with form data:
    - **username**: Email address (the OAuth2 password form calls it 'username')
    - **password**: User's password

    Returns JWT access token for authenticating subsequent requests.
    """
    user = await authenticate_user(db, form_data.username, form_data.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if user.status != "approved":
        logger.info(f"Login refused for {user.email}: account {user.status}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_STATUS_MESSAGES.get(user.status, "Account is not approved"),
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Token(access_token=create_token_for_user(user))


@router.post(
    "/logout",
    status_code=status.HTTP_200_OK,
    summary="Logout current user",
    description="Confirm logout. Tokens are stateless; the client discards its token.",
    responses={
        200: {"description": "Successfully logged out"},
        401: {"description": "Not authenticated"},
    },
)
async def logout(
    current_user: User = Depends(get_current_user),
) -> dict:
    """Logout the current user."""
    return {
        "message": "Successfully logged out",
        "user_id": str(current_user.id),
    }


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user profile",
    responses={
        200: {"description": "User profile retrieved successfully"},
        401: {"description": "Not authenticated"},
    },
)
async def get_me(
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    """Return the authenticated user's profile."""
    return UserResponse.model_validate(current_user)
