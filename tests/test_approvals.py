"""Tests for the registration approval workflow."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.models import User

APPLICANT = {"email": "Newcomer@Example.com", "name": "New Comer", "password": "Sup3rSecret!"}


async def register(client: AsyncClient, payload: dict = None) -> dict:
    response = await client.post("/auth/register", json=payload or APPLICANT)
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
class TestRegister:
    """Tests for POST /auth/register."""

    async def test_register_files_pending_request(self, client: AsyncClient, db_session: AsyncSession):
        data = await register(client)

        assert data["status"] == "pending"
        assert data["email"] == "newcomer@example.com"
        assert "password" not in data and "password_hash" not in data

        # No account exists until an admin approves
        result = await db_session.execute(select(User).where(User.email == "newcomer@example.com"))
        assert result.scalar_one_or_none() is None

    async def test_duplicate_pending_request(self, client: AsyncClient):
        await register(client)

        response = await client.post("/auth/register", json=APPLICANT)

        assert response.status_code == 400
        assert "pending" in response.json()["detail"]

    async def test_existing_account(self, client: AsyncClient, test_user):
        response = await client.post(
            "/auth/register", json={**APPLICANT, "email": "user@example.com"}
        )

        assert response.status_code == 400

    async def test_short_password(self, client: AsyncClient):
        response = await client.post("/auth/register", json={**APPLICANT, "password": "short"})

        assert response.status_code == 422

    async def test_cannot_login_before_approval(self, client: AsyncClient):
        await register(client)

        response = await client.post(
            "/auth/login",
            data={"username": APPLICANT["email"], "password": APPLICANT["password"]},
        )

        assert response.status_code == 401


@pytest.mark.asyncio
class TestReview:
    """Tests for the admin review endpoints."""

    async def test_pending_listing(self, client: AsyncClient, admin_headers: dict):
        await register(client)
        await register(client, {**APPLICANT, "email": "second@example.com"})

        response = await client.get("/admin/approvals/pending", headers=admin_headers)

        assert [r["email"] for r in response.json()] == ["newcomer@example.com", "second@example.com"]

    async def test_manager_cannot_review(self, client: AsyncClient, manager_headers: dict):
        request = await register(client)

        response = await client.put(
            f"/admin/approvals/{request['id']}", json={"status": "approved"}, headers=manager_headers
        )

        assert response.status_code == 403

    async def test_approve_creates_account(self, client: AsyncClient, admin_headers: dict, test_admin):
        request = await register(client)

        response = await client.put(
            f"/admin/approvals/{request['id']}",
            json={"status": "approved", "admin_notes": "Welcome"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        assert response.json()["reviewed_by"] == str(test_admin.id)

        login = await client.post(
            "/auth/login",
            data={"username": APPLICANT["email"], "password": APPLICANT["password"]},
        )
        assert login.status_code == 200

        token = login.json()["access_token"]
        me = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["role"] == "user"

    async def test_reject(self, client: AsyncClient, admin_headers: dict, db_session: AsyncSession):
        request = await register(client)

        response = await client.put(
            f"/admin/approvals/{request['id']}", json={"status": "rejected"}, headers=admin_headers
        )

        assert response.json()["status"] == "rejected"
        result = await db_session.execute(select(User).where(User.email == "newcomer@example.com"))
        assert result.scalar_one_or_none() is None
        assert (await client.get("/admin/approvals/pending", headers=admin_headers)).json() == []

    async def test_decision_is_final(self, client: AsyncClient, admin_headers: dict):
        request = await register(client)
        await client.put(
            f"/admin/approvals/{request['id']}", json={"status": "rejected"}, headers=admin_headers
        )

        response = await client.put(
            f"/admin/approvals/{request['id']}", json={"status": "approved"}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATE"

    async def test_invalid_decision(self, client: AsyncClient, admin_headers: dict):
        request = await register(client)

        response = await client.put(
            f"/admin/approvals/{request['id']}", json={"status": "pending"}, headers=admin_headers
        )

        assert response.status_code == 422

    async def test_reapply_after_rejection(self, client: AsyncClient, admin_headers: dict):
        request = await register(client)
        await client.put(
            f"/admin/approvals/{request['id']}", json={"status": "rejected"}, headers=admin_headers
        )

        await register(client)

        all_requests = (await client.get("/admin/approvals", headers=admin_headers)).json()
        assert sorted(r["status"] for r in all_requests) == ["pending", "rejected"]

    async def test_unknown_request(self, client: AsyncClient, admin_headers: dict):
        from uuid import uuid4

        response = await client.get(f"/admin/approvals/{uuid4()}", headers=admin_headers)

        assert response.status_code == 404


@pytest.mark.asyncio
class TestNotifications:
    """Tests for the email notifications."""

    async def test_email_disabled_sends_nothing(self, monkeypatch):
        from notevault.services import email_service

        monkeypatch.setattr(email_service.settings, "email_enabled", False)

        assert email_service.get_email_service() is None

    async def test_admin_is_notified(self, client: AsyncClient, monkeypatch):
        from notevault.services import email_service

        sent = []
        monkeypatch.setattr(email_service.settings, "admin_email", "root@example.com")
        monkeypatch.setattr(
            email_service, "_send_in_background", lambda to, subject, body: sent.append((to, subject))
        )

        await register(client)

        assert sent == [("root@example.com", "New registration request: New Comer")]

    async def test_applicant_is_notified_of_decision(
        self, client: AsyncClient, admin_headers: dict, monkeypatch
    ):
        from notevault.services import email_service

        sent = []
        monkeypatch.setattr(
            email_service, "_send_in_background", lambda to, subject, body: sent.append((to, subject))
        )
        request = await register(client)

        response = await client.put(
            f"/admin/approvals/{request['id']}", json={"status": "approved"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert ("newcomer@example.com", "Your account has been approved") in sent

    async def test_no_decision_email_when_commit_fails(
        self, db_session: AsyncSession, permissions, test_admin, as_caller, monkeypatch
    ):
        """The applicant hears nothing about a decision that was rolled back."""
        from sqlalchemy.exc import OperationalError

        from notevault.routers.admin import review_approval
        from notevault.schemas.approval import ApprovalReview, RegistrationRequest
        from notevault.services import email_service
        from notevault.services.approval_service import ApprovalService

        sent = []
        monkeypatch.setattr(
            email_service, "_send_in_background", lambda to, subject, body: sent.append((to, subject))
        )
        service = ApprovalService(db_session, permissions)
        request = await service.create_request(RegistrationRequest(**APPLICANT))

        async def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        monkeypatch.setattr(db_session, "commit", failing_commit)

        with pytest.raises(OperationalError):
            await review_approval(
                str(request.id),
                ApprovalReview(status="approved"),
                caller=as_caller(test_admin),
                service=service,
                db=db_session,
            )

        assert sent == []

    async def test_failed_send_is_logged_not_raised(self, monkeypatch, caplog):
        import asyncio

        from notevault.services import email_service

        class BrokenService:
            async def send(self, to, subject, body):
                raise OSError("connection refused")

        monkeypatch.setattr(email_service, "get_email_service", lambda: BrokenService())

        email_service.notify_applicant_of_decision("a@example.com", "A", approved=True)
        await asyncio.gather(*email_service._background_tasks)

        assert "failed" in caplog.text
