"""Member profile queries shared by the admin API and the galleries."""

from collections import defaultdict
from collections.abc import Sequence

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from vipclub.models import Member, MemberImage, MemberType, TargetPage
from vipclub.models.member import MemberImageRead, MemberRead


async def load_images(
    session: AsyncSession, member_ids: Sequence[str]
) -> dict[str, list[MemberImage]]:
    """Load album images for members, grouped by member and in display order."""
    grouped: dict[str, list[MemberImage]] = defaultdict(list)
    if not member_ids:
        return grouped

    stmt = (
        select(MemberImage)
        .where(col(MemberImage.member_id).in_(member_ids))
        .order_by(MemberImage.member_id, MemberImage.display_order)
    )
    result = await session.execute(stmt)
    for image in result.scalars():
        grouped[image.member_id].append(image)
    return grouped


def to_read(member: Member, images: list[MemberImage]) -> MemberRead:
    """Build the API representation of a member."""
    return MemberRead(
        id=member.id,
        name=member.name,
        bio=member.bio,
        location=member.location,
        member_type=member.member_type,
        cover_image_url=member.cover_image_url,
        show_on_member_page=member.show_on_member_page,
        show_on_vip_page=member.show_on_vip_page,
        images=[
            MemberImageRead(id=img.id, image_url=img.image_url, display_order=img.display_order)
            for img in images
        ],
    )


async def read_members(session: AsyncSession, members: Sequence[Member]) -> list[MemberRead]:
    """Attach albums to a list of members."""
    images = await load_images(session, [m.id for m in members])
    return [to_read(m, images.get(m.id, [])) for m in members]


async def replace_images(session: AsyncSession, member_id: str, urls: list[str]) -> None:
    """Replace a member's album with ``urls`` in the given order. Caller commits."""
    await session.execute(delete(MemberImage).where(col(MemberImage.member_id) == member_id))
    for index, url in enumerate(urls):
        session.add(MemberImage(member_id=member_id, image_url=url, display_order=index))


async def gallery_members(session: AsyncSession, page: TargetPage) -> list[MemberRead]:
    """Members visible on the member or VIP gallery, newest first."""
    stmt = select(Member).order_by(col(Member.created_at).desc())
    if page == TargetPage.VIP:
        stmt = stmt.where(col(Member.show_on_vip_page).is_(True))
    elif page == TargetPage.MEMBER:
        stmt = stmt.where(col(Member.show_on_member_page).is_(True))
    else:
        raise ValueError(f"No gallery for {page.value!r}")

    result = await session.execute(stmt)
    return await read_members(session, list(result.scalars().all()))


async def member_stats(session: AsyncSession) -> dict[str, int]:
    """Dashboard counts: total, VIP, regular and distinct locations."""
    result = await session.execute(select(Member.member_type, Member.location))
    rows = result.all()

    vip = sum(1 for member_type, _ in rows if member_type == MemberType.VIP)
    locations = {location for _, location in rows if location}

    return {
        "total_members": len(rows),
        "vip_members": vip,
        "regular_members": len(rows) - vip,
        "locations": len(locations),
    }
