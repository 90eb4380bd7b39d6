"""Access grant model: a bearer token unlocking one gated surface."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from vipclub.models.base import TimestampMixin, generate_nanoid


class TargetPage(str, Enum):
    """Gated surface a grant unlocks."""

    ADMIN = "admin"
    MEMBER = "member"
    VIP = "vip"


class GrantStatus(str, Enum):
    """Display status shown in the admin panel."""

    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"


class AccessGrant(TimestampMixin, SQLModel, table=True):
    """Issued access credential: token, policy and consumption state.

    ``expires_at`` is null only for permanent grants and never changes once
    set. ``is_used`` flips to true on the first redemption of a non-shareable
    grant, or when an admin revokes it.
    """

    __tablename__ = "access_grants"

    id: str = Field(default_factory=generate_nanoid, primary_key=True, max_length=21)
    token: str = Field(unique=True, index=True, max_length=64, description="Bearer token")
    target_page: TargetPage = Field(default=TargetPage.MEMBER, index=True)
    expires_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore[call-overload]
        description="Expiry time; ignored when is_permanent",
    )
    is_permanent: bool = Field(default=False)
    is_used: bool = Field(default=False)
    allow_share: bool = Field(default=False, description="Reusable until expiry or revoke")
    revoked_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore[call-overload]
        description="Set when an admin revokes the grant",
    )


class AccessGrantCreate(SQLModel):
    """Schema for issuing an access grant.

    ``duration_minutes`` is required unless ``is_permanent`` is set.
    """

    target_page: TargetPage = TargetPage.MEMBER
    duration_minutes: int | None = None
    is_permanent: bool = False
    allow_share: bool = False


class AccessGrantRead(SQLModel):
    """Schema for reading an access grant."""

    id: str
    token: str
    target_page: TargetPage
    created_at: datetime
    expires_at: datetime | None
    is_permanent: bool
    is_used: bool
    allow_share: bool
    revoked_at: datetime | None = None
    status: GrantStatus
    access_link: str
