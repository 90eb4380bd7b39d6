"""SQLModel database models."""

from vipclub.models.access_grant import AccessGrant, GrantStatus, TargetPage
from vipclub.models.base import TimestampMixin, ensure_utc, utcnow
from vipclub.models.member import Member, MemberImage, MemberType

__all__ = [
    "AccessGrant",
    "GrantStatus",
    "Member",
    "MemberImage",
    "MemberType",
    "TargetPage",
    "TimestampMixin",
    "ensure_utc",
    "utcnow",
]
