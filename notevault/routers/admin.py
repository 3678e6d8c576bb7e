"""Admin API endpoints for the registration approval workflow."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.approval import ApprovalRequestResponse, ApprovalReview
from ..services.approval_service import ApprovalService
from ..services.auth_service import get_current_caller
from ..services.email_service import notify_applicant_of_decision
from ..services.permission_service import Caller, PermissionService, get_permission_service
from ..utils.validators import parse_uuid

router = APIRouter(prefix="/admin", tags=["Admin"])


def get_approval_service(
    db: AsyncSession = Depends(get_db),
    permissions: PermissionService = Depends(get_permission_service),
) -> ApprovalService:
    """Request-scoped ApprovalService."""
    return ApprovalService(db, permissions)


@router.get(
    "/approvals",
    response_model=List[ApprovalRequestResponse],
    summary="List registration requests",
    responses={403: {"description": "Requires admin"}},
)
async def list_approvals(
    caller: Caller = Depends(get_current_caller),
    service: ApprovalService = Depends(get_approval_service),
) -> List[ApprovalRequestResponse]:
    """All requests, newest first."""
    requests = await service.list_requests(caller)
    return [ApprovalRequestResponse.model_validate(r) for r in requests]


@router.get(
    "/approvals/pending",
    response_model=List[ApprovalRequestResponse],
    summary="List pending registration requests",
    responses={403: {"description": "Requires admin"}},
)
async def list_pending_approvals(
    caller: Caller = Depends(get_current_caller),
    service: ApprovalService = Depends(get_approval_service),
) -> List[ApprovalRequestResponse]:
    """Requests awaiting review, oldest first."""
    requests = await service.list_pending(caller)
    return [ApprovalRequestResponse.model_validate(r) for r in requests]


@router.get(
    "/approvals/{request_id}",
    response_model=ApprovalRequestResponse,
    summary="Get a registration request",
    responses={
        400: {"description": "Malformed request id"},
        403: {"description": "Requires admin"},
        404: {"description": "Request not found"},
    },
)
async def get_approval(
    request_id: str,
    caller: Caller = Depends(get_current_caller),
    service: ApprovalService = Depends(get_approval_service),
) -> ApprovalRequestResponse:
    """One request."""
    request = await service.get_request(caller, parse_uuid(request_id, "request_id"))
    return ApprovalRequestResponse.model_validate(request)


@router.put(
    "/approvals/{request_id}",
    response_model=ApprovalRequestResponse,
    summary="Approve or reject a registration request",
    description="Approval creates the account. A processed request cannot be reviewed again.",
    responses={
        400: {"description": "Malformed id, or request already processed"},
        403: {"description": "Requires admin"},
        404: {"description": "Request not found"},
        409: {"description": "Reviewed concurrently by another admin"},
    },
)
async def review_approval(
    request_id: str,
    review: ApprovalReview,
    caller: Caller = Depends(get_current_caller),
    service: ApprovalService = Depends(get_approval_service),
    db: AsyncSession = Depends(get_db),
) -> ApprovalRequestResponse:
    """Record an admin decision and tell the applicant once it is committed."""
    request = await service.review_request(caller, parse_uuid(request_id, "request_id"), review)
    await db.commit()

    notify_applicant_of_decision(
        email=request.email,
        name=request.name,
        approved=request.status == "approved",
        admin_notes=request.admin_notes,
    )
    return ApprovalRequestResponse.model_validate(request)
