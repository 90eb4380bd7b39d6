"""Access link lifecycle: issuing, redeeming, revoking and deleting grants.

A grant is redeemed through a small state machine evaluated in this order:

- no grant for the token: ``invalid``
- ``is_used`` and not ``allow_share``: ``used``
- not ``is_permanent`` and ``expires_at`` in the past: ``expired``
- otherwise: ``valid``

A valid, non-shareable grant is consumed with a single conditional UPDATE
(``WHERE id = :id AND is_used = false``); if no row changes, another request
consumed it first and the result is ``used``.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from vipclub.config import settings
from vipclub.models import AccessGrant, GrantStatus, TargetPage, ensure_utc, utcnow
from vipclub.models.access_grant import AccessGrantRead

logger = logging.getLogger(__name__)

USED_MESSAGE = "Access token has already been used"
EXPIRED_MESSAGE = "Access token has expired"
INVALID_MESSAGE = "Invalid access token"
MISSING_MESSAGE = "Access token is required"
STORE_MESSAGE = "Internal server error"


class AccessState(str, Enum):
    """Outcome of redeeming a token."""

    VALID = "valid"
    INVALID = "invalid"
    USED = "used"
    EXPIRED = "expired"


class AccessError(Exception):
    """Base error for access link operations."""

    status_code = 400
    state = AccessState.INVALID

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AccessValidationError(AccessError):
    """Missing token or bad issuance parameters."""

    status_code = 400


class AccessNotFoundError(AccessError):
    """No grant matches the token or id."""

    status_code = 404


class AccessStateError(AccessError):
    """Grant exists but is used or expired."""

    status_code = 403

    def __init__(self, message: str, state: AccessState) -> None:
        super().__init__(message)
        self.state = state


class AccessStoreError(AccessError):
    """Database failure. The message is always generic."""

    status_code = 500

    def __init__(self, message: str = STORE_MESSAGE) -> None:
        super().__init__(message)


@dataclass(frozen=True)
class TTLPolicy:
    """Expiry policy for a new grant: permanent, or a positive number of minutes."""

    minutes: int | None = None

    @classmethod
    def permanent(cls) -> "TTLPolicy":
        return cls(minutes=None)

    @classmethod
    def of_minutes(cls, minutes: int) -> "TTLPolicy":
        return cls(minutes=minutes)

    @property
    def is_permanent(self) -> bool:
        return self.minutes is None


@dataclass
class IssuedGrant:
    """A freshly issued grant and its shareable link."""

    grant: AccessGrant
    access_link: str


@dataclass
class RedeemResult:
    """Successful redemption."""

    grant: AccessGrant
    state: AccessState = AccessState.VALID
    message: str = "Access token is valid"

    @property
    def target_page(self) -> TargetPage:
        return self.grant.target_page


def build_access_link(token: str) -> str:
    """Build the shareable URL for a token."""
    return f"{settings.site_url.rstrip('/')}/access?token={token}"


def generate_access_token() -> str:
    """Generate an unguessable bearer token."""
    return str(uuid.uuid4())


def evaluate_grant(grant: AccessGrant, now: datetime | None = None) -> AccessState:
    """Evaluate a grant's redemption state without touching the store."""
    now = now or utcnow()

    if grant.is_used and not grant.allow_share:
        return AccessState.USED

    expires_at = ensure_utc(grant.expires_at)
    if not grant.is_permanent and expires_at is not None and expires_at < now:
        return AccessState.EXPIRED

    return AccessState.VALID


def grant_status(grant: AccessGrant, now: datetime | None = None) -> GrantStatus:
    """Collapse a grant's state to the admin display status."""
    if grant.revoked_at is not None:
        return GrantStatus.USED

    state = evaluate_grant(grant, now)
    if state == AccessState.USED:
        return GrantStatus.USED
    if state == AccessState.EXPIRED:
        return GrantStatus.EXPIRED
    return GrantStatus.ACTIVE


def to_read(grant: AccessGrant, now: datetime | None = None) -> AccessGrantRead:
    """Build the API representation of a grant."""
    return AccessGrantRead(
        id=grant.id,
        token=grant.token,
        target_page=grant.target_page,
        created_at=ensure_utc(grant.created_at),  # type: ignore[arg-type]
        expires_at=ensure_utc(grant.expires_at),
        is_permanent=grant.is_permanent,
        is_used=grant.is_used,
        allow_share=grant.allow_share,
        revoked_at=ensure_utc(grant.revoked_at),
        status=grant_status(grant, now),
        access_link=build_access_link(grant.token),
    )


# ---------- issuing ----------


async def issue_grant(
    session: AsyncSession,
    target_page: TargetPage,
    ttl: TTLPolicy,
    allow_share: bool = False,
    now: datetime | None = None,
) -> IssuedGrant:
    """Create and persist a new grant.

    Raises:
        AccessValidationError: non-positive or oversized duration (nothing written)
        AccessStoreError: the insert failed
    """
    if not ttl.is_permanent:
        minutes = ttl.minutes or 0
        if minutes <= 0:
            raise AccessValidationError("Duration must be a positive number of minutes")
        if minutes > settings.access_link_max_ttl_minutes:
            raise AccessValidationError(
                f"Duration cannot exceed {settings.access_link_max_ttl_minutes} minutes"
            )

    created_at = now or utcnow()
    expires_at = None if ttl.is_permanent else created_at + timedelta(minutes=ttl.minutes or 0)

    grant = AccessGrant(
        token=generate_access_token(),
        target_page=target_page,
        created_at=created_at,
        updated_at=created_at,
        expires_at=expires_at,
        is_permanent=ttl.is_permanent,
        is_used=False,
        allow_share=allow_share,
    )

    try:
        session.add(grant)
        await session.commit()
        await session.refresh(grant)
    except SQLAlchemyError as e:
        logger.exception("Failed to create access grant")
        await session.rollback()
        raise AccessStoreError("Failed to create access token") from e

    logger.info(
        f"Issued {target_page.value} access grant {grant.id} "
        f"(permanent={grant.is_permanent}, share={grant.allow_share})"
    )
    return IssuedGrant(grant=grant, access_link=build_access_link(grant.token))


async def issue_admin_token(session: AsyncSession, now: datetime | None = None) -> IssuedGrant:
    """Issue a one-time admin link with the fixed admin lifetime."""
    return await issue_grant(
        session,
        TargetPage.ADMIN,
        TTLPolicy.of_minutes(settings.admin_token_ttl_minutes),
        allow_share=False,
        now=now,
    )


# ---------- redeeming ----------


async def get_grant_by_token(session: AsyncSession, token: str) -> AccessGrant | None:
    """Look up the grant for a bearer token."""
    stmt = select(AccessGrant).where(AccessGrant.token == token)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def consume_grant(session: AsyncSession, grant: AccessGrant) -> bool:
    """Atomically mark a grant used. Returns False if it was already used."""
    stmt = (
        update(AccessGrant)
        .where(AccessGrant.id == grant.id, col(AccessGrant.is_used).is_(False))
        .values(is_used=True, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    await session.commit()
    if result.rowcount != 1:  # type: ignore[attr-defined]
        return False
    grant.is_used = True
    return True


async def redeem_grant(
    session: AsyncSession,
    token: str | None,
    now: datetime | None = None,
) -> RedeemResult:
    """Validate a bearer token and consume it when it is single-use.

    Raises:
        AccessValidationError: no token given (no lookup performed)
        AccessNotFoundError: unknown token
        AccessStateError: grant used or expired
        AccessStoreError: the lookup or the consuming update failed
    """
    if not token or not token.strip():
        raise AccessValidationError(MISSING_MESSAGE)

    now = now or utcnow()

    try:
        grant = await get_grant_by_token(session, token.strip())
    except SQLAlchemyError as e:
        logger.exception("Failed to look up access grant")
        raise AccessStoreError() from e

    if grant is None:
        raise AccessNotFoundError(INVALID_MESSAGE)

    state = evaluate_grant(grant, now)
    if state == AccessState.USED:
        raise AccessStateError(USED_MESSAGE, AccessState.USED)
    if state == AccessState.EXPIRED:
        raise AccessStateError(EXPIRED_MESSAGE, AccessState.EXPIRED)

    if not grant.allow_share:
        try:
            consumed = await consume_grant(session, grant)
        except SQLAlchemyError as e:
            logger.exception(f"Failed to consume access grant {grant.id}")
            await session.rollback()
            raise AccessStoreError() from e

        if not consumed:
            logger.info(f"Access grant {grant.id} consumed by a concurrent request")
            raise AccessStateError(USED_MESSAGE, AccessState.USED)

    logger.info(f"Redeemed {grant.target_page.value} access grant {grant.id}")
    return RedeemResult(grant=grant)


# ---------- admin management ----------


async def get_grant(session: AsyncSession, grant_id: str) -> AccessGrant:
    """Get a grant by id or raise AccessNotFoundError."""
    stmt = select(AccessGrant).where(AccessGrant.id == grant_id)
    result = await session.execute(stmt)
    grant = result.scalar_one_or_none()
    if grant is None:
        raise AccessNotFoundError("Access link not found")
    return grant


async def list_grants(
    session: AsyncSession,
    status: GrantStatus | None = None,
    target_page: TargetPage | None = None,
    now: datetime | None = None,
) -> list[AccessGrant]:
    """List grants newest first, optionally filtered by target and display status."""
    stmt = select(AccessGrant).order_by(col(AccessGrant.created_at).desc())
    if target_page is not None:
        stmt = stmt.where(AccessGrant.target_page == target_page)

    result = await session.execute(stmt)
    grants = list(result.scalars().all())

    if status is not None:
        now = now or utcnow()
        grants = [g for g in grants if grant_status(g, now) == status]
    return grants


async def revoke_grant(session: AsyncSession, grant_id: str) -> AccessGrant:
    """Revoke a grant. Idempotent; also disables sharing so it cannot be redeemed again."""
    grant = await get_grant(session, grant_id)

    grant.is_used = True
    grant.allow_share = False
    if grant.revoked_at is None:
        grant.revoked_at = utcnow()

    try:
        await session.commit()
        await session.refresh(grant)
    except SQLAlchemyError as e:
        logger.exception(f"Failed to revoke access grant {grant_id}")
        await session.rollback()
        raise AccessStoreError() from e

    logger.info(f"Revoked access grant {grant_id}")
    return grant


async def delete_grant(session: AsyncSession, grant_id: str) -> None:
    """Permanently delete a grant."""
    grant = await get_grant(session, grant_id)

    try:
        await session.delete(grant)
        await session.commit()
    except SQLAlchemyError as e:
        logger.exception(f"Failed to delete access grant {grant_id}")
        await session.rollback()
        raise AccessStoreError() from e

    logger.info(f"Deleted access grant {grant_id}")


async def grant_stats(session: AsyncSession, now: datetime | None = None) -> dict[str, int]:
    """Count grants per display status."""
    now = now or utcnow()
    total_result = await session.execute(select(func.count()).select_from(AccessGrant))
    total = total_result.scalar() or 0

    counts = {status.value: 0 for status in GrantStatus}
    for grant in await list_grants(session, now=now):
        counts[grant_status(grant, now).value] += 1

    return {"total": total, **counts}
