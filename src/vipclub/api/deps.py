"""Request dependencies: database session, access sessions and throttling."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from vipclub.database import get_session
from vipclub.models import TargetPage
from vipclub.services.rate_limit import RateLimitType, check_rate_limit
from vipclub.services.session import AccessSession, SessionError, verify_session

logger = logging.getLogger(__name__)

SessionDep = Annotated[AsyncSession, Depends(get_session)]

bearer_scheme = HTTPBearer(auto_error=False)
BearerCredentials = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_access_session(session: SessionDep, credentials: BearerCredentials) -> AccessSession:
    """Resolve the Bearer session token issued by /validate-token."""
    if credentials is None:
        raise unauthorized("Not authenticated")

    try:
        return await verify_session(session, credentials.credentials)
    except SessionError as e:
        logger.debug(f"Rejected access session: {e}")
        raise unauthorized("Invalid or expired session") from e


CurrentAccess = Annotated[AccessSession, Depends(get_access_session)]


class RequireTarget:
    """Admit only sessions minted for ``target_page``; anything else is a 403.

    Runs before the endpoint body, so a mismatched session never reaches a
    content query.
    """

    def __init__(self, target_page: TargetPage) -> None:
        self.target_page = target_page

    async def __call__(self, access: CurrentAccess) -> AccessSession:
        if access.target_page is not self.target_page:
            logger.info(
                f"Session for {access.target_page.value} denied access to {self.target_page.value}"
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
        return access


AdminSession = Annotated[AccessSession, Depends(RequireTarget(TargetPage.ADMIN))]
MemberSession = Annotated[AccessSession, Depends(RequireTarget(TargetPage.MEMBER))]
VIPSession = Annotated[AccessSession, Depends(RequireTarget(TargetPage.VIP))]


class Throttle:
    """429 once the caller's IP exhausts the window for ``limit_type``."""

    def __init__(self, limit_type: RateLimitType) -> None:
        self.limit_type = limit_type

    async def __call__(self, request: Request) -> None:
        result = await check_rate_limit(request, self.limit_type)
        if not result.allowed:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Too many requests. Retry in {result.retry_after} seconds.",
                headers=result.headers(),
            )


RedeemRateLimit = Annotated[None, Depends(Throttle(RateLimitType.REDEEM))]
UploadRateLimit = Annotated[None, Depends(Throttle(RateLimitType.UPLOAD))]
