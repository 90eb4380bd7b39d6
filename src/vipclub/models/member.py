"""Member profile and album image models."""

from enum import Enum

from pydantic import field_validator
from sqlmodel import Field, SQLModel

from vipclub.models.base import TimestampMixin, generate_nanoid


class MemberType(str, Enum):
    """Membership tier shown on the profile badge."""

    VIP = "VIP"
    MEMBER = "Member"


class Member(TimestampMixin, SQLModel, table=True):
    """Club member profile."""

    __tablename__ = "members"

    id: str = Field(default_factory=generate_nanoid, primary_key=True, max_length=21)
    name: str = Field(max_length=100, index=True)
    bio: str | None = Field(default=None, max_length=1000)
    location: str | None = Field(default=None, max_length=100)
    member_type: MemberType = Field(default=MemberType.MEMBER)
    cover_image_url: str | None = Field(default=None, max_length=2048)
    show_on_member_page: bool = Field(default=False)
    show_on_vip_page: bool = Field(default=False)


class MemberImage(SQLModel, table=True):
    """Album image belonging to a member, ordered by display_order."""

    __tablename__ = "member_images"

    id: str = Field(default_factory=generate_nanoid, primary_key=True, max_length=21)
    member_id: str = Field(foreign_key="members.id", index=True, ondelete="CASCADE", max_length=21)
    image_url: str = Field(max_length=2048)
    display_order: int = Field(default=0)


class MemberCreate(SQLModel):
    """Schema for creating a member.

    ``images`` is the album in display order.
    """

    name: str = Field(min_length=1, max_length=100)
    bio: str | None = Field(default=None, max_length=1000)
    location: str | None = Field(default=None, max_length=100)
    member_type: MemberType = MemberType.MEMBER
    cover_image_url: str | None = None
    show_on_member_page: bool = False
    show_on_vip_page: bool = False
    images: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class MemberUpdate(SQLModel):
    """Schema for updating a member. A provided ``images`` list replaces the album."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    bio: str | None = Field(default=None, max_length=1000)
    location: str | None = Field(default=None, max_length=100)
    member_type: MemberType | None = None
    cover_image_url: str | None = None
    show_on_member_page: bool | None = None
    show_on_vip_page: bool | None = None
    images: list[str] | None = None


class MemberImageRead(SQLModel):
    """Schema for reading an album image."""

    id: str
    image_url: str
    display_order: int


class MemberRead(SQLModel):
    """Schema for reading a member with its album."""

    id: str
    name: str
    bio: str | None
    location: str | None
    member_type: MemberType
    cover_image_url: str | None
    show_on_member_page: bool
    show_on_vip_page: bool
    images: list[MemberImageRead] = []
