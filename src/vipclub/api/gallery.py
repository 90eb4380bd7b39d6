"""Gated gallery endpoints for the Members and VIP pages."""

from fastapi import APIRouter

from vipclub.api.deps import MemberSession, SessionDep, VIPSession
from vipclub.models import TargetPage
from vipclub.models.member import MemberRead
from vipclub.services.members import gallery_members

router = APIRouter()


@router.get("/member", response_model=list[MemberRead])
async def member_gallery(session: SessionDep, _access: MemberSession):
    """Profiles shown on the Members page."""
    return await gallery_members(session, TargetPage.MEMBER)


@router.get("/vip", response_model=list[MemberRead])
async def vip_gallery(session: SessionDep, _access: VIPSession):
    """Profiles shown on the VIP page."""
    return await gallery_members(session, TargetPage.VIP)
