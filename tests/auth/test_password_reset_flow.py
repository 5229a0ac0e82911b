"""Tests for the forgot/reset password flow."""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlsplit

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.auth.router import FORGOT_PASSWORD_MESSAGE
from goldticket.auth.service import get_user_by_username


def _token_from(mock_email_service) -> str:
    reset_url = mock_email_service.send_template.call_args.kwargs["reset_url"]
    return parse_qs(urlsplit(reset_url).query)["token"][0]


class TestForgotPassword:
    @pytest.mark.asyncio
    async def test_known_email_sends_link(self, client: AsyncClient, alice: dict, mock_email_service):
        response = await client.post("/api/auth/forgot-password", json={"email": "ALICE@example.com"})
        assert response.status_code == 200
        assert response.json() == {"message": FORGOT_PASSWORD_MESSAGE}

        kwargs = mock_email_service.send_template.call_args.kwargs
        assert kwargs["to"] == "alice@example.com"
        assert kwargs["template_name"] == "password_reset"
        assert kwargs["reset_url"].startswith("http://127.0.0.1:5501/reset-password.html?token=")
        assert kwargs["expires_minutes"] == 60

    @pytest.mark.asyncio
    async def test_unknown_email_same_answer(self, client: AsyncClient, mock_email_service):
        response = await client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
        assert response.status_code == 200
        assert response.json() == {"message": FORGOT_PASSWORD_MESSAGE}
        mock_email_service.send_template.assert_not_called()


class TestResetPassword:
    @pytest.mark.asyncio
    async def test_full_reset_flow(self, client: AsyncClient, alice: dict, mock_email_service):
        await client.post("/api/auth/forgot-password", json={"email": alice["email"]})
        token = _token_from(mock_email_service)

        response = await client.post(f"/api/auth/reset-password/{token}", json={"password": "fresh-pass"})
        assert response.status_code == 200
        assert response.json() == {"message": "Password has been reset"}
        last_call = mock_email_service.send_template.call_args.kwargs
        assert last_call["template_name"] == "password_changed"
        assert last_call["username"] == "alice"

        old = await client.post("/api/auth/login", json={"username": "alice", "password": alice["password"]})
        assert old.status_code == 401
        new = await client.post("/api/auth/login", json={"username": "alice", "password": "fresh-pass"})
        assert new.status_code == 200

    @pytest.mark.asyncio
    async def test_token_is_single_use(self, client: AsyncClient, alice: dict, mock_email_service):
        await client.post("/api/auth/forgot-password", json={"email": alice["email"]})
        token = _token_from(mock_email_service)

        first = await client.post(f"/api/auth/reset-password/{token}", json={"password": "fresh-pass"})
        assert first.status_code == 200
        second = await client.post(f"/api/auth/reset-password/{token}", json={"password": "other-pass"})
        assert second.status_code == 400

    @pytest.mark.asyncio
    async def test_newer_request_replaces_token(self, client: AsyncClient, alice: dict, mock_email_service):
        await client.post("/api/auth/forgot-password", json={"email": alice["email"]})
        first_token = _token_from(mock_email_service)
        await client.post("/api/auth/forgot-password", json={"email": alice["email"]})

        response = await client.post(f"/api/auth/reset-password/{first_token}", json={"password": "fresh-pass"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_expired_token(
        self, client: AsyncClient, db_session: AsyncSession, alice: dict, mock_email_service
    ):
        await client.post("/api/auth/forgot-password", json={"email": alice["email"]})
        token = _token_from(mock_email_service)

        user = await get_user_by_username(db_session, "alice")
        user.password_reset_expires = datetime.now(timezone.utc) - timedelta(minutes=1)
        await db_session.commit()

        response = await client.post(f"/api/auth/reset-password/{token}", json={"password": "fresh-pass"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Password reset token is invalid or has expired"

    @pytest.mark.asyncio
    async def test_weak_new_password(self, client: AsyncClient, alice: dict, mock_email_service):
        await client.post("/api/auth/forgot-password", json={"email": alice["email"]})
        token = _token_from(mock_email_service)
        response = await client.post(f"/api/auth/reset-password/{token}", json={"password": "abc"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_token(self, client: AsyncClient, mock_email_service):
        response = await client.post("/api/auth/reset-password/made-up", json={"password": "fresh-pass"})
        assert response.status_code == 400
