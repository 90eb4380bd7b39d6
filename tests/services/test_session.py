"""Tests for signed access sessions."""

from datetime import timedelta

import pytest
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from tests.conftest import make_grant
from vipclub.config import settings
from vipclub.models import TargetPage, utcnow
from vipclub.services.access import delete_grant, revoke_grant
from vipclub.services.session import (
    SessionError,
    create_session_token,
    decode_session_token,
    session_expiry,
    verify_session,
)


async def test_session_round_trip(session: AsyncSession):
    grant = await make_grant(session, TargetPage.VIP, is_used=True)
    token, _ = create_session_token(grant)

    access = await verify_session(session, token)
    assert access.grant_id == grant.id
    assert access.target_page == TargetPage.VIP


async def test_session_capped_at_grant_expiry(session: AsyncSession):
    grant = await make_grant(session, TargetPage.MEMBER, minutes=15)
    now = utcnow()

    expires = session_expiry(grant, now)
    assert expires <= now + timedelta(minutes=15)


async def test_permanent_grant_gets_full_session_lifetime(session: AsyncSession):
    grant = await make_grant(session, TargetPage.MEMBER, minutes=None, allow_share=True)
    now = utcnow()

    assert session_expiry(grant, now) == now + timedelta(hours=settings.session_expiration_hours)


async def test_tampered_token_rejected(session: AsyncSession):
    grant = await make_grant(session, TargetPage.MEMBER, is_used=True)
    forged = jwt.encode(
        {"sub": grant.id, "target_page": "admin", "exp": utcnow() + timedelta(hours=1)},
        "x" * 32,
        algorithm=settings.jwt_algorithm,
    )

    with pytest.raises(SessionError):
        await verify_session(session, forged)


async def test_expired_session_rejected():
    with pytest.raises(SessionError):
        decode_session_token(
            jwt.encode(
                {"sub": "abc", "target_page": "member", "exp": utcnow() - timedelta(minutes=1)},
                settings.session_secret,
                algorithm=settings.jwt_algorithm,
            )
        )


async def test_target_mismatch_rejected(session: AsyncSession):
    grant = await make_grant(session, TargetPage.MEMBER, is_used=True)
    token = jwt.encode(
        {"sub": grant.id, "target_page": "vip", "exp": utcnow() + timedelta(hours=1)},
        settings.session_secret,
        algorithm=settings.jwt_algorithm,
    )

    with pytest.raises(SessionError):
        await verify_session(session, token)


async def test_revoke_ends_session(session: AsyncSession):
    grant = await make_grant(session, TargetPage.MEMBER, is_used=True)
    token, _ = create_session_token(grant)

    await revoke_grant(session, grant.id)

    with pytest.raises(SessionError):
        await verify_session(session, token)


async def test_delete_ends_session(session: AsyncSession):
    grant = await make_grant(session, TargetPage.MEMBER, is_used=True)
    token, _ = create_session_token(grant)

    await delete_grant(session, grant.id)

    with pytest.raises(SessionError):
        await verify_session(session, token)
