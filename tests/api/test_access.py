"""Access token endpoint tests."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.conftest import AuthenticatedClient, make_grant
from vipclub.models import AccessGrant, TargetPage


@pytest.mark.asyncio
async def test_generate_token_requires_post(client: AsyncClient):
    response = await client.get("/api/generate-token")
    assert response.status_code == 405


@pytest.mark.asyncio
async def test_generate_token_requires_admin_session(client: AsyncClient):
    response = await client.post("/api/generate-token")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_generate_token_rejects_member_session(member_client: AuthenticatedClient):
    response = await member_client.post("/api/generate-token")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_generate_token(admin_client: AuthenticatedClient, client: AsyncClient):
    response = await admin_client.post("/api/generate-token")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["accessLink"].endswith(f"/access?token={data['token']}")
    assert data["expiresAt"]

    # The minted link is a working one-time admin link
    redeem = await client.get("/api/validate-token", params={"token": data["token"]})
    assert redeem.status_code == 200
    assert redeem.json()["targetPage"] == "admin"


@pytest.mark.asyncio
async def test_validate_token_missing(client: AsyncClient):
    response = await client.get("/api/validate-token")
    assert response.status_code == 400
    assert response.json() == {"error": "Access token is required", "state": "invalid"}


@pytest.mark.asyncio
async def test_validate_token_unknown(client: AsyncClient):
    response = await client.get("/api/validate-token", params={"token": "nope"})
    assert response.status_code == 404
    assert response.json() == {"error": "Invalid access token", "state": "invalid"}


@pytest.mark.asyncio
async def test_validate_token_once(client: AsyncClient, member_grant: AccessGrant):
    response = await client.get("/api/validate-token", params={"token": member_grant.token})
    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is True
    assert data["message"] == "Access token is valid"
    assert data["targetPage"] == "member"
    assert data["sessionToken"]
    assert data["sessionExpiresAt"]

    again = await client.get("/api/validate-token", params={"token": member_grant.token})
    assert again.status_code == 403
    assert again.json() == {"error": "Access token has already been used", "state": "used"}


@pytest.mark.asyncio
async def test_validate_token_expired(client: AsyncClient, session: AsyncSession):
    grant = await make_grant(session, TargetPage.MEMBER, minutes=60, created_minutes_ago=61)

    response = await client.get("/api/validate-token", params={"token": grant.token})
    assert response.status_code == 403
    assert response.json() == {"error": "Access token has expired", "state": "expired"}


@pytest.mark.asyncio
async def test_session_from_redeem(client: AsyncClient, vip_grant: AccessGrant):
    redeem = await client.get("/api/validate-token", params={"token": vip_grant.token})
    headers = {"Authorization": f"Bearer {redeem.json()['sessionToken']}"}

    response = await client.get("/api/session", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["grantId"] == vip_grant.id
    assert data["targetPage"] == "vip"


@pytest.mark.asyncio
async def test_session_requires_credentials(client: AsyncClient):
    response = await client.get("/api/session")
    assert response.status_code == 401

    response = await client.get("/api/session", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or expired session"


@pytest.mark.asyncio
async def test_validate_token_rate_limited(client: AsyncClient):
    for _ in range(10):
        response = await client.get("/api/validate-token", params={"token": "nope"})
        assert response.status_code == 404

    response = await client.get("/api/validate-token", params={"token": "nope"})
    assert response.status_code == 429
    assert "Retry-After" in response.headers


@pytest.mark.asyncio
async def test_validate_token_rate_limit_ignores_spoofed_forwarded_for(client: AsyncClient):
    for i in range(10):
        response = await client.get(
            "/api/validate-token",
            params={"token": "nope"},
            headers={"X-Forwarded-For": f"10.0.0.{i}"},
        )
        assert response.status_code == 404

    response = await client.get(
        "/api/validate-token",
        params={"token": "nope"},
        headers={"X-Forwarded-For": "10.0.0.99"},
    )
    assert response.status_code == 429


@pytest.mark.asyncio
async def test_validate_token_requires_get(client: AsyncClient):
    response = await client.post("/api/validate-token", params={"token": "nope"})
    assert response.status_code == 405
