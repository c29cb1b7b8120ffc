"""
Tests for the authentication dependencies.
"""

from datetime import timedelta

import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient
from jose import jwt

from lms_api.core.auth import CurrentUser, get_current_admin_user, get_current_user
from lms_api.core.security import get_session_issuer


@pytest.fixture
async def auth_client(issuer):
    app = FastAPI()

    @app.get("/me")
    async def me(user: CurrentUser = Depends(get_current_user)):
        return {"id": user.id, "role": user.role.value, "email": user.email}

    @app.get("/admin")
    async def admin(user: CurrentUser = Depends(get_current_admin_user)):
        return {"id": user.id}

    app.dependency_overrides[get_session_issuer] = lambda: issuer

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_missing_token_is_401(auth_client):
    response = await auth_client.get("/me")

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "NOT_AUTHENTICATED"


@pytest.mark.asyncio
async def test_valid_token(auth_client, issuer):
    token = issuer.issue("user-1", "student", extra_claims={"email": "cy@example.com"})
    response = await auth_client.get("/me", headers=_bearer(token))

    assert response.status_code == 200
    assert response.json() == {"id": "user-1", "role": "student", "email": "cy@example.com"}


@pytest.mark.asyncio
async def test_expired_token_is_401(auth_client, issuer):
    token = issuer.issue("user-1", "student", expires_delta=timedelta(seconds=-5))
    response = await auth_client.get("/me", headers=_bearer(token))

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_unknown_role_is_401(auth_client, issuer):
    token = issuer.issue("user-1", "superuser")
    response = await auth_client.get("/me", headers=_bearer(token))

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "INVALID_TOKEN_CLAIMS"


@pytest.mark.asyncio
async def test_wrong_token_type_is_401(auth_client, issuer):
    claims = issuer.decode(issuer.issue("user-1", "student"))
    claims["type"] = "refresh"
    forged = jwt.encode(claims, "test-secret-key-not-for-production", algorithm=issuer.algorithm)

    response = await auth_client.get("/me", headers=_bearer(forged))

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "INVALID_TOKEN_TYPE"


@pytest.mark.asyncio
async def test_admin_route_rejects_non_admin(auth_client, issuer):
    token = issuer.issue("user-1", "instructor")
    response = await auth_client.get("/admin", headers=_bearer(token))

    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "ADMIN_ACCESS_REQUIRED"


@pytest.mark.asyncio
async def test_admin_route_accepts_admin(auth_client, issuer):
    token = issuer.issue("admin-1", "admin")
    response = await auth_client.get("/admin", headers=_bearer(token))

    assert response.status_code == 200
    assert response.json() == {"id": "admin-1"}
