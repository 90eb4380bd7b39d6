"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncGenerator
from datetime import timedelta
from typing import Any

# Set test environment before importing app
os.environ["ENVIRONMENT"] = "test"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from vipclub.config import settings
from vipclub.database import engine_kwargs, get_session
from vipclub.main import app
from vipclub.models import AccessGrant, Member, MemberImage, MemberType, TargetPage, utcnow
from vipclub.services import storage as storage_module
from vipclub.services.access import generate_access_token
from vipclub.services.rate_limit import get_rate_limiter
from vipclub.services.session import create_session_token
from vipclub.services.storage import StorageService


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Start every test with empty rate limit windows."""
    get_rate_limiter().reset()
    yield
    get_rate_limiter().reset()


@pytest.fixture(autouse=True)
def temp_storage(tmp_path, monkeypatch) -> StorageService:
    """Point uploads at a per-test directory."""
    service = StorageService(root=tmp_path / "uploads")
    monkeypatch.setattr(storage_module, "storage", service)
    monkeypatch.setattr("vipclub.api.upload.storage", service)
    return service


@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh in-memory database per test."""
    engine = create_async_engine(
        settings.database_url_test,
        echo=False,
        **engine_kwargs(settings.database_url_test),
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with factory() as session:
        yield session


@pytest.fixture
async def client(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


async def make_grant(
    session: AsyncSession,
    target_page: TargetPage = TargetPage.MEMBER,
    minutes: int | None = 60,
    *,
    is_used: bool = False,
    allow_share: bool = False,
    created_minutes_ago: int = 0,
) -> AccessGrant:
    """Insert a grant directly, bypassing issuance validation.

    ``minutes=None`` makes the grant permanent.
    """
    created_at = utcnow() - timedelta(minutes=created_minutes_ago)
    grant = AccessGrant(
        token=generate_access_token(),
        target_page=target_page,
        created_at=created_at,
        updated_at=created_at,
        expires_at=None if minutes is None else created_at + timedelta(minutes=minutes),
        is_permanent=minutes is None,
        is_used=is_used,
        allow_share=allow_share,
    )
    session.add(grant)
    await session.commit()
    await session.refresh(grant)
    return grant


@pytest.fixture
async def member_grant(session: AsyncSession) -> AccessGrant:
    """One-time member link valid for an hour."""
    return await make_grant(session, TargetPage.MEMBER)


@pytest.fixture
async def vip_grant(session: AsyncSession) -> AccessGrant:
    """One-time VIP link valid for an hour."""
    return await make_grant(session, TargetPage.VIP)


@pytest.fixture
async def admin_grant(session: AsyncSession) -> AccessGrant:
    """Already-redeemed admin link backing the admin session."""
    return await make_grant(session, TargetPage.ADMIN, is_used=True)


def bearer(grant: AccessGrant) -> dict[str, str]:
    token, _ = create_session_token(grant)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_grant: AccessGrant) -> dict[str, str]:
    return bearer(admin_grant)


@pytest.fixture
async def member_headers(session: AsyncSession) -> dict[str, str]:
    return bearer(await make_grant(session, TargetPage.MEMBER, is_used=True))


@pytest.fixture
async def vip_headers(session: AsyncSession) -> dict[str, str]:
    return bearer(await make_grant(session, TargetPage.VIP, is_used=True))


@pytest.fixture
async def member(session: AsyncSession) -> Member:
    """Create a VIP member shown on both galleries, with a two-image album."""
    member = Member(
        name="Ada Lovelace",
        bio="Analyst",
        location="London",
        member_type=MemberType.VIP,
        cover_image_url="/uploads/member-covers/ada.png",
        show_on_member_page=True,
        show_on_vip_page=True,
    )
    session.add(member)
    await session.flush()
    session.add(MemberImage(member_id=member.id, image_url="/uploads/member-albums/1.png", display_order=0))
    session.add(MemberImage(member_id=member.id, image_url="/uploads/member-albums/2.png", display_order=1))
    await session.commit()
    return member


@pytest.fixture
def png_content() -> bytes:
    """Minimal PNG header bytes for upload tests."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


# Helper to make authenticated requests
class AuthenticatedClient:
    """Wrapper for AsyncClient with authentication."""

    def __init__(self, client: AsyncClient, headers: dict[str, str]):
        self.client = client
        self.headers = headers

    async def get(self, url: str, **kwargs: Any) -> Any:
        kwargs.setdefault("headers", {}).update(self.headers)
        return await self.client.get(url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> Any:
        kwargs.setdefault("headers", {}).update(self.headers)
        return await self.client.post(url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> Any:
        kwargs.setdefault("headers", {}).update(self.headers)
        return await self.client.patch(url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> Any:
        kwargs.setdefault("headers", {}).update(self.headers)
        return await self.client.delete(url, **kwargs)


@pytest.fixture
def admin_client(client: AsyncClient, admin_headers: dict[str, str]) -> AuthenticatedClient:
    """Client holding an admin access session."""
    return AuthenticatedClient(client, admin_headers)


@pytest.fixture
def member_client(client: AsyncClient, member_headers: dict[str, str]) -> AuthenticatedClient:
    """Client holding a member access session."""
    return AuthenticatedClient(client, member_headers)


@pytest.fixture
def vip_client(client: AsyncClient, vip_headers: dict[str, str]) -> AuthenticatedClient:
    """Client holding a VIP access session."""
    return AuthenticatedClient(client, vip_headers)
