"""Unit tests for authentication helpers, principal resolution and login."""

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import status
from fastapi.security import HTTPAuthorizationCredentials
from httpx import AsyncClient, ASGITransport
from jose import JWTError, jwt

from app.core.security import create_access_token, decode_token, hash_password, verify_password
from app.database import get_db
from app.dependencies.auth import AccessDeniedError, get_current_user, require_admin
from app.main import app
from app.models.user import User


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def session_returning(user):
    session = AsyncMock()
    result = MagicMock()
    result.scalar_one_or_none.return_value = user
    session.execute = AsyncMock(return_value=result)
    return session


@pytest.fixture
def admin_user():
    return User(
        id=uuid.uuid4(),
        email="admin@example.com",
        password_hash=hash_password("admin-password"),
        root_admin=True,
    )


class TestSecurity:
    """Tests for password hashing and tokens."""

    def test_password_hash_verifies(self):
        hashed = hash_password("s3cret")

        assert hashed != "s3cret"
        assert verify_password("s3cret", hashed)
        assert not verify_password("wrong", hashed)

    def test_token_round_trip(self):
        token = create_access_token("admin@example.com")

        assert decode_token(token)["sub"] == "admin@example.com"

    def test_expired_token_is_rejected(self):
        token = create_access_token("admin@example.com", expires_delta=timedelta(minutes=-5))

        with pytest.raises(JWTError):
            decode_token(token)

    def test_token_signed_with_other_key_is_rejected(self):
        token = jwt.encode({"sub": "admin@example.com"}, "some-other-secret", algorithm="HS256")

        with pytest.raises(JWTError):
            decode_token(token)


class TestGetCurrentUser:
    """Tests for resolving the principal from a bearer token."""

    @pytest.mark.asyncio
    async def test_no_credentials(self):
        session = session_returning(None)

        assert await get_current_user(credentials=None, db=session) is None
        session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_token(self):
        session = session_returning(None)

        assert await get_current_user(credentials=bearer("garbage"), db=session) is None
        session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_valid_token_resolves_user(self, admin_user):
        session = session_returning(admin_user)
        token = create_access_token(admin_user.email)

        assert await get_current_user(credentials=bearer(token), db=session) is admin_user

    @pytest.mark.asyncio
    async def test_unknown_user(self):
        session = session_returning(None)
        token = create_access_token("ghost@example.com")

        assert await get_current_user(credentials=bearer(token), db=session) is None


class TestRequireAdmin:
    """Tests for the administrator gate."""

    @pytest.mark.asyncio
    async def test_missing_principal_is_denied(self):
        with pytest.raises(AccessDeniedError) as exc_info:
            await require_admin(current_user=None)

        assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_non_admin_is_denied(self):
        user = User(email="user@example.com", password_hash="x", root_admin=False)

        with pytest.raises(AccessDeniedError):
            await require_admin(current_user=user)

    @pytest.mark.asyncio
    async def test_admin_passes_through(self, admin_user):
        assert await require_admin(current_user=admin_user) is admin_user


class TestLogin:
    """Tests for POST /api/auth/login."""

    @pytest.mark.asyncio
    async def test_login_success(self, admin_user):
        async def override_get_db():
            yield session_returning(admin_user)

        app.dependency_overrides[get_db] = override_get_db
        try:
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.post(
                    "/api/auth/login",
                    json={"email": "admin@example.com", "password": "admin-password"},
                )

            assert response.status_code == status.HTTP_200_OK
            data = response.json()
            assert data["token_type"] == "bearer"
            assert decode_token(data["access_token"])["sub"] == "admin@example.com"
        finally:
            app.dependency_overrides.clear()

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, admin_user):
        async def override_get_db():
            yield session_returning(admin_user)

        app.dependency_overrides[get_db] = override_get_db
        try:
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.post(
                    "/api/auth/login",
                    json={"email": "admin@example.com", "password": "wrong"},
                )

            assert response.status_code == status.HTTP_401_UNAUTHORIZED
        finally:
            app.dependency_overrides.clear()

    @pytest.mark.asyncio
    async def test_bearer_token_from_login_opens_application_api(self, admin_user):
        """A real token for an admin passes the gate when no principal override is set."""
        from app.routers.database_hosts import get_database_host_service

        service = MagicMock()
        service.list_hosts = AsyncMock(return_value=[])

        async def override_get_db():
            yield session_returning(admin_user)

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_database_host_service] = lambda: service
        try:
            token = create_access_token(admin_user.email)
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                authorized = await client.get(
                    "/api/application/database-hosts",
                    headers={"Authorization": f"Bearer {token}"},
                )
                anonymous = await client.get("/api/application/database-hosts")

            assert authorized.status_code == status.HTTP_200_OK
            assert authorized.json() == []
            assert anonymous.status_code == status.HTTP_403_FORBIDDEN
            service.list_hosts.assert_awaited_once()
        finally:
            app.dependency_overrides.clear()
