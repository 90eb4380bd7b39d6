"""Access token endpoints: minting admin links and redeeming links."""

import logging
from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from vipclub.api.deps import AdminSession, CurrentAccess, RedeemRateLimit, SessionDep
from vipclub.models import TargetPage, ensure_utc
from vipclub.schemas import AccessErrorResponse
from vipclub.services.access import issue_admin_token, redeem_grant
from vipclub.services.session import create_session_token

logger = logging.getLogger(__name__)

router = APIRouter()

ACCESS_ERRORS: dict[int | str, dict] = {
    code: {"model": AccessErrorResponse} for code in (400, 403, 404, 500)
}


class CamelModel(BaseModel):
    """Response model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateTokenResponse(CamelModel):
    """Response for a freshly minted admin link."""

    success: bool = True
    access_link: str
    token: str
    expires_at: datetime


class ValidateTokenResponse(CamelModel):
    """Response for a successful redemption.

    ``session_token`` is the bearer credential for protected content.
    """

    valid: bool = True
    message: str
    target_page: TargetPage
    session_token: str
    session_expires_at: datetime


class SessionResponse(CamelModel):
    """Current access session."""

    grant_id: str
    target_page: TargetPage
    expires_at: datetime


@router.post(
    "/generate-token",
    response_model=GenerateTokenResponse,
    responses={500: {"model": AccessErrorResponse}},
)
async def generate_token(session: SessionDep, _admin: AdminSession):
    """Mint a one-time admin access link valid for one hour."""
    issued = await issue_admin_token(session)

    return GenerateTokenResponse(
        access_link=issued.access_link,
        token=issued.grant.token,
        expires_at=ensure_utc(issued.grant.expires_at),  # type: ignore[arg-type]
    )


@router.get("/validate-token", response_model=ValidateTokenResponse, responses=ACCESS_ERRORS)
async def validate_token(
    session: SessionDep,
    _rate_limit: RedeemRateLimit,
    token: str | None = None,
):
    """
    Redeem an access link token.

    Single-use links are consumed by this call. The returned session token
    must be sent as a Bearer credential to read gated content.
    """
    result = await redeem_grant(session, token)
    session_token, session_expires = create_session_token(result.grant)

    return ValidateTokenResponse(
        message=result.message,
        target_page=result.target_page,
        session_token=session_token,
        session_expires_at=session_expires,
    )


@router.get("/session", response_model=SessionResponse)
async def get_session_info(access: CurrentAccess):
    """Describe the current access session."""
    return SessionResponse(
        grant_id=access.grant_id,
        target_page=access.target_page,
        expires_at=access.expires_at,
    )
