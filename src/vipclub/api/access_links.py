"""Admin endpoints for managing access links."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from vipclub.api.deps import AdminSession, SessionDep
from vipclub.models import GrantStatus, TargetPage
from vipclub.models.access_grant import AccessGrantCreate, AccessGrantRead
from vipclub.services.access import (
    AccessValidationError,
    TTLPolicy,
    delete_grant,
    grant_stats,
    issue_grant,
    list_grants,
    revoke_grant,
    to_read,
)

router = APIRouter()


class AccessLinkStats(BaseModel):
    """Counts of access links per status."""

    total: int
    active: int
    used: int
    expired: int


@router.get("", response_model=list[AccessGrantRead])
async def list_access_links(
    session: SessionDep,
    _admin: AdminSession,
    status: GrantStatus | None = None,
    target_page: TargetPage | None = None,
):
    """List access links, newest first."""
    grants = await list_grants(session, status=status, target_page=target_page)
    return [to_read(g) for g in grants]


@router.get("/stats", response_model=AccessLinkStats)
async def access_link_stats(session: SessionDep, _admin: AdminSession):
    """Count access links per status."""
    return AccessLinkStats(**await grant_stats(session))


@router.post("", response_model=AccessGrantRead, status_code=status.HTTP_201_CREATED)
async def create_access_link(grant_in: AccessGrantCreate, session: SessionDep, _admin: AdminSession):
    """Issue a new access link."""
    if grant_in.is_permanent:
        ttl = TTLPolicy.permanent()
    elif grant_in.duration_minutes is None:
        raise AccessValidationError("duration_minutes is required unless the link is permanent")
    else:
        ttl = TTLPolicy.of_minutes(grant_in.duration_minutes)

    issued = await issue_grant(
        session,
        target_page=grant_in.target_page,
        ttl=ttl,
        allow_share=grant_in.allow_share,
    )
    return to_read(issued.grant)


@router.post("/{grant_id}/revoke", response_model=AccessGrantRead)
async def revoke_access_link(grant_id: str, session: SessionDep, _admin: AdminSession):
    """Revoke an access link. Revoking twice is harmless."""
    grant = await revoke_grant(session, grant_id)
    return to_read(grant)


@router.delete("/{grant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_access_link(grant_id: str, session: SessionDep, _admin: AdminSession):
    """Permanently delete an access link."""
    await delete_grant(session, grant_id)
