"""Integration tests for /api/auth: registration, verification, magic links, session."""

import pytest
from sqlalchemy import select

from irl.db.models import AuthenticationAttempt, User
from irl.gamification.service import has_achievement
from tests.conftest import auth_headers, create_person, create_user


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_sends_verification(self, client, seeded_db, mock_email_service):
        resp = await client.post("/api/auth/register", json={"email": "New@Example.com"})

        assert resp.status_code == 201
        data = resp.json()
        assert data["email"] == "new@example.com"
        assert data["email_verified"] is False
        mock_email_service.send_verification_email.assert_awaited_once()
        assert mock_email_service.send_verification_email.call_args.args[0] == "new@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, client, user):
        resp = await client.post("/api/auth/register", json={"email": "ALEX@example.com"})
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_invalid_email(self, client):
        resp = await client.post("/api/auth/register", json={"email": "not-an-email"})
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Validation error"


class TestVerifyEmail:
    @pytest.mark.asyncio
    async def test_verify_awards_achievement(self, client, seeded_db, mock_email_service):
        await client.post("/api/auth/register", json={"email": "new@example.com"})
        token = mock_email_service.send_verification_email.call_args.args[1]

        resp = await client.post("/api/auth/verify-email", json={"token": token})

        assert resp.status_code == 200
        body = resp.json()
        assert body["user"]["email_verified"] is True
        assert body["awarded_achievements"] == ["email_verified"]
        assert await has_achievement(seeded_db, body["user"]["id"], "email_verified")

    @pytest.mark.asyncio
    async def test_token_is_single_use(self, client, mock_email_service):
        await client.post("/api/auth/register", json={"email": "new@example.com"})
        token = mock_email_service.send_verification_email.call_args.args[1]

        await client.post("/api/auth/verify-email", json={"token": token})
        resp = await client.post("/api/auth/verify-email", json={"token": token})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_bad_token(self, client):
        resp = await client.post("/api/auth/verify-email", json={"token": "nope"})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_resend_neutral_for_unknown_and_verified(self, client, user, mock_email_service):
        unknown = await client.post("/api/auth/resend-verification", json={"email": "ghost@example.com"})
        verified = await client.post("/api/auth/resend-verification", json={"email": user.email})

        assert unknown.json() == verified.json()
        mock_email_service.send_verification_email.assert_not_awaited()


class TestMagicLink:
    @pytest.mark.asyncio
    async def test_full_sign_in(self, client, seeded_db, user, mock_email_service):
        person = await create_person(seeded_db, user)

        resp = await client.post("/api/auth/send-magic-link", json={"email": "Alex@Example.com"})
        assert resp.status_code == 200
        token = mock_email_service.send_magic_link_email.call_args.args[1]

        resp = await client.get("/api/auth/verify-magic-link", params={"token": token})
        assert resp.status_code == 200
        body = resp.json()
        assert body["user"]["id"] == user.id
        assert body["person"]["display_id"] == person.display_id
        assert body["token_type"] == "bearer"

        session = await client.get(
            "/api/auth/session", headers={"Authorization": f"Bearer {body['access_token']}"}
        )
        assert session.status_code == 200
        assert session.json()["user"]["email"] == user.email

    @pytest.mark.asyncio
    async def test_token_stored_hashed(self, client, seeded_db, user, mock_email_service):
        await client.post("/api/auth/send-magic-link", json={"email": user.email})
        token = mock_email_service.send_magic_link_email.call_args.args[1]

        result = await seeded_db.execute(select(AuthenticationAttempt.token_hash))
        stored = result.scalar_one()
        assert stored != token
        assert len(stored) == 64

    @pytest.mark.asyncio
    async def test_link_single_use(self, client, user, mock_email_service):
        await client.post("/api/auth/send-magic-link", json={"email": user.email})
        token = mock_email_service.send_magic_link_email.call_args.args[1]

        first = await client.get("/api/auth/verify-magic-link", params={"token": token})
        second = await client.get("/api/auth/verify-magic-link", params={"token": token})
        assert first.status_code == 200
        assert second.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        resp = await client.get("/api/auth/verify-magic-link")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Token is required"

    @pytest.mark.asyncio
    async def test_unverified_user_gets_no_link(self, client, seeded_db, mock_email_service):
        await create_user(seeded_db, "pending@example.com", verified=False)

        pending = await client.post("/api/auth/send-magic-link", json={"email": "pending@example.com"})
        unknown = await client.post("/api/auth/send-magic-link", json={"email": "ghost@example.com"})

        assert pending.status_code == unknown.status_code == 200
        assert pending.json() == unknown.json()
        mock_email_service.send_magic_link_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rate_limited_after_three(self, client, user, mock_email_service):
        for _ in range(4):
            resp = await client.post("/api/auth/send-magic-link", json={"email": user.email})
            assert resp.status_code == 200

        assert mock_email_service.send_magic_link_email.await_count == 3


class TestSession:
    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        resp = await client.get("/api/auth/session")
        assert resp.status_code == 401
        assert resp.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        resp = await client.get("/api/auth/session", headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_deleted_user_rejected(self, client, seeded_db, user):
        headers = auth_headers(user)
        user.deleted = True
        await seeded_db.commit()

        resp = await client.get("/api/auth/session", headers=headers)
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_session_without_person(self, client, user):
        resp = await client.get("/api/auth/session", headers=auth_headers(user))
        assert resp.status_code == 200
        assert resp.json()["person"] is None


class TestUserModel:
    @pytest.mark.asyncio
    async def test_registered_user_has_token_hash(self, client, seeded_db):
        await client.post("/api/auth/register", json={"email": "new@example.com"})
        result = await seeded_db.execute(select(User).where(User.email == "new@example.com"))
        assert result.scalar_one().verification_token_hash is not None


class TestLogout:
    @pytest.mark.asyncio
    async def test_logout(self, client, user):
        resp = await client.post("/api/auth/logout", headers=auth_headers(user))
        assert resp.status_code == 204
        assert resp.content == b""

    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        resp = await client.post("/api/auth/logout")
        assert resp.status_code == 401
