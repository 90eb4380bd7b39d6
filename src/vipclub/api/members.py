"""Admin member CRUD endpoints."""

import logging

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from vipclub.api.deps import AdminSession, SessionDep
from vipclub.models import Member, MemberImage
from vipclub.models.member import MemberCreate, MemberRead, MemberUpdate
from vipclub.schemas import ErrorResponse
from vipclub.services.members import load_images, member_stats, read_members, replace_images, to_read

logger = logging.getLogger(__name__)

router = APIRouter()
dashboard_router = APIRouter()

NOT_FOUND: dict[int | str, dict] = {404: {"model": ErrorResponse}}


class DashboardStats(BaseModel):
    """Member counts for the admin dashboard."""

    total_members: int
    vip_members: int
    regular_members: int
    locations: int


async def get_member_or_404(member_id: str, session: AsyncSession) -> Member:
    """Get a member by ID or raise 404."""
    stmt = select(Member).where(Member.id == member_id)
    result = await session.execute(stmt)
    member = result.scalar_one_or_none()

    if not member:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Member not found",
        )
    return member


@dashboard_router.get("", response_model=DashboardStats)
async def dashboard(session: SessionDep, _admin: AdminSession):
    """Member statistics for the admin dashboard."""
    return DashboardStats(**await member_stats(session))


@router.get("", response_model=list[MemberRead])
async def list_members(session: SessionDep, _admin: AdminSession):
    """List all members, newest first."""
    stmt = select(Member).order_by(col(Member.created_at).desc())
    result = await session.execute(stmt)
    return await read_members(session, list(result.scalars().all()))


@router.get("/{member_id}", response_model=MemberRead, responses=NOT_FOUND)
async def get_member(member_id: str, session: SessionDep, _admin: AdminSession):
    """Get a member with their album."""
    member = await get_member_or_404(member_id, session)
    images = await load_images(session, [member.id])
    return to_read(member, images.get(member.id, []))


@router.post("", response_model=MemberRead, status_code=status.HTTP_201_CREATED)
async def create_member(member_in: MemberCreate, session: SessionDep, _admin: AdminSession):
    """Create a member and their album."""
    member = Member(**member_in.model_dump(exclude={"images"}))
    session.add(member)
    await session.flush()

    await replace_images(session, member.id, member_in.images)
    await session.commit()
    await session.refresh(member)

    logger.info(f"Created member {member.id} with {len(member_in.images)} images")
    images = await load_images(session, [member.id])
    return to_read(member, images.get(member.id, []))


@router.patch("/{member_id}", response_model=MemberRead, responses=NOT_FOUND)
async def update_member(
    member_id: str, member_in: MemberUpdate, session: SessionDep, _admin: AdminSession
):
    """Update a member. A provided ``images`` list replaces the whole album."""
    member = await get_member_or_404(member_id, session)

    update_data = member_in.model_dump(exclude_unset=True)
    new_images = update_data.pop("images", None)

    for field, value in update_data.items():
        setattr(member, field, value)

    if new_images is not None:
        await replace_images(session, member.id, new_images)

    await session.commit()
    await session.refresh(member)

    images = await load_images(session, [member.id])
    return to_read(member, images.get(member.id, []))


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT, responses=NOT_FOUND)
async def delete_member(member_id: str, session: SessionDep, _admin: AdminSession):
    """Delete a member and their album."""
    member = await get_member_or_404(member_id, session)

    await session.execute(delete(MemberImage).where(col(MemberImage.member_id) == member.id))
    await session.delete(member)
    await session.commit()
    logger.info(f"Deleted member {member_id}")
