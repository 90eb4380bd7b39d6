"""Signed access sessions issued after a successful redemption."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from vipclub.config import settings
from vipclub.models import AccessGrant, TargetPage, ensure_utc, utcnow


class SessionError(Exception):
    """Access session is missing, malformed, expired or no longer backed by a grant."""

    pass


@dataclass
class AccessSession:
    """A verified access session."""

    grant_id: str
    target_page: TargetPage
    expires_at: datetime


def session_expiry(grant: AccessGrant, now: datetime | None = None) -> datetime:
    """Session lifetime, capped at the grant's own expiry for non-permanent grants."""
    now = now or utcnow()
    expires = now + timedelta(hours=settings.session_expiration_hours)
    grant_expires = ensure_utc(grant.expires_at)
    if not grant.is_permanent and grant_expires is not None and grant_expires < expires:
        expires = grant_expires
    return expires


def create_session_token(grant: AccessGrant, now: datetime | None = None) -> tuple[str, datetime]:
    """Create a signed session token for a redeemed grant."""
    now = now or utcnow()
    expires = session_expiry(grant, now)
    payload = {
        "sub": grant.id,
        "target_page": grant.target_page.value,
        "exp": expires,
        "iat": now,
    }
    token = jwt.encode(payload, settings.session_secret, algorithm=settings.jwt_algorithm)
    return token, expires


def decode_session_token(token: str) -> dict:
    """Decode and validate a session token."""
    try:
        return jwt.decode(
            token,
            settings.session_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise SessionError(f"Invalid session: {e}") from e


async def verify_session(session: AsyncSession, token: str) -> AccessSession:
    """Verify a session token and the grant behind it.

    Deleting or revoking the grant ends every session minted from it.
    """
    payload = decode_session_token(token)

    grant_id = payload.get("sub")
    target = payload.get("target_page")
    if not grant_id or not target:
        raise SessionError("Invalid session: missing claims")

    try:
        target_page = TargetPage(target)
    except ValueError as e:
        raise SessionError(f"Invalid session: unknown target {target!r}") from e

    stmt = select(AccessGrant).where(AccessGrant.id == grant_id)
    result = await session.execute(stmt)
    grant = result.scalar_one_or_none()

    if grant is None:
        raise SessionError("Access grant no longer exists")
    if grant.revoked_at is not None:
        raise SessionError("Access grant was revoked")
    if grant.target_page != target_page:
        raise SessionError("Session target does not match grant")

    return AccessSession(
        grant_id=grant.id,
        target_page=target_page,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
    )
