"""Registration approval workflow.

Self-registration does not create an account. It files a request that an
admin reviews:

    pending --approve--> approved  (account provisioned from the stored hash)
    pending --reject-->  rejected

Both outcomes are terminal. The routers send the admin and applicant
notifications once the transaction has committed.
"""

import logging
from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.user import User
from ..models.user_approval_request import UserApprovalRequest
from ..schemas.approval import ApprovalReview, RegistrationRequest
from ..utils.security import get_password_hash
from .auth_service import get_user_by_email
from .errors import Conflict, InvalidArgument, InvalidState, NotFound
from .permission_service import Action, Caller, PermissionService

logger = logging.getLogger(__name__)


class ApprovalService:
    """Service class for registration requests and their review."""

    def __init__(self, db: AsyncSession, permissions: PermissionService):
        self.db = db
        self.permissions = permissions

    async def _get(self, request_id: UUID) -> UserApprovalRequest:
        result = await self.db.execute(
            select(UserApprovalRequest).where(UserApprovalRequest.id == request_id)
        )
        request = result.scalar_one_or_none()
        if request is None:
            raise NotFound("Approval request", request_id)
        return request

    async def create_request(self, data: RegistrationRequest) -> UserApprovalRequest:
        """
        File a registration request. Needs no authentication.

        Args:
            data: Applicant email, name and password (hashed before storage)

        Returns:
            The pending request

        Raises:
            InvalidArgument: If the email already has an account or a pending request
        """
        email = data.email.lower()
        if await get_user_by_email(self.db, email) is not None:
            raise InvalidArgument("An account with this email already exists", field_name="email")

        pending = await self.db.execute(
            select(UserApprovalRequest.id).where(
                func.lower(UserApprovalRequest.email) == email,
                UserApprovalRequest.status == "pending",
            )
        )
        if pending.first() is not None:
            raise InvalidArgument(
                "A registration request for this email is already pending approval",
                field_name="email",
            )

        request = UserApprovalRequest(
            email=email,
            name=data.name.strip(),
            password_hash=get_password_hash(data.password),
            status="pending",
        )
        self.db.add(request)
        await self.db.flush()
        await self.db.refresh(request)

        logger.info(f"Registration request {request.id} filed for {email}")
        return request

    async def list_requests(self, caller: Caller) -> List[UserApprovalRequest]:
        """All requests, newest first (admin)."""
        self.permissions.require(caller.role, Action.REVIEW_REGISTRATIONS)
        result = await self.db.execute(
            select(UserApprovalRequest).order_by(UserApprovalRequest.requested_at.desc())
        )
        return list(result.scalars().all())

    async def list_pending(self, caller: Caller) -> List[UserApprovalRequest]:
        """Pending requests, oldest first (admin)."""
        self.permissions.require(caller.role, Action.REVIEW_REGISTRATIONS)
        result = await self.db.execute(
            select(UserApprovalRequest)
            .where(UserApprovalRequest.status == "pending")
            .order_by(UserApprovalRequest.requested_at.asc())
        )
        return list(result.scalars().all())

    async def get_request(self, caller: Caller, request_id: UUID) -> UserApprovalRequest:
        """One request (admin)."""
        self.permissions.require(caller.role, Action.REVIEW_REGISTRATIONS)
        return await self._get(request_id)

    async def review_request(
        self,
        caller: Caller,
        request_id: UUID,
        review: ApprovalReview,
    ) -> UserApprovalRequest:
        """
        Approve or reject a pending request (admin).

        Approval provisions a `user`/`approved` account from the stored
        password hash. The status change is conditional on the request still
        being pending, so two admins cannot both process it.

        Raises:
            NotFound: If the request does not exist
            InvalidState: If the request was already processed
            InvalidArgument: If approving while the email already has an account
            Conflict: If another reviewer processed it concurrently
        """
        self.permissions.require(caller.role, Action.REVIEW_REGISTRATIONS)
        request = await self._get(request_id)
        if request.status != "pending":
            raise InvalidState(f"Request has already been {request.status}")

        approved = review.status == "approved"
        if approved and await get_user_by_email(self.db, request.email) is not None:
            raise InvalidArgument("An account with this email already exists", field_name="email")

        result = await self.db.execute(
            update(UserApprovalRequest)
            .where(
                UserApprovalRequest.id == request_id,
                UserApprovalRequest.status == "pending",
            )
            .values(
                status=review.status,
                admin_notes=review.admin_notes,
                reviewed_at=datetime.utcnow(),
                reviewed_by=caller.user_id,
            )
            .returning(UserApprovalRequest.id)
        )
        if result.first() is None:
            raise Conflict("Request was reviewed concurrently. Reload and retry.")

        if approved:
            user = User(
                email=request.email,
                name=request.name,
                password_hash=request.password_hash,
                role="user",
                status="approved",
            )
            self.db.add(user)
            await self.db.flush()
            logger.info(f"Approved registration {request_id}, created user {user.id}")
        else:
            logger.info(f"Rejected registration {request_id}")

        await self.db.refresh(request)
        return request
