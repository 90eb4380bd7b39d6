"""initial_schema

Revision ID: a1c4e7f20b93
Revises:
Create Date: 2026-10-19 10:00:00.000000

Create access_grants (unified replacement for admin_tokens and access_links),
members and member_images.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "a1c4e7f20b93"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

target_page = sa.Enum("ADMIN", "MEMBER", "VIP", name="targetpage")
member_type = sa.Enum("VIP", "MEMBER", name="membertype")


def upgrade() -> None:
    op.create_table(
        "access_grants",
        sa.Column("id", sa.String(length=21), nullable=False),
        sa.Column("token", sa.String(length=64), nullable=False),
        sa.Column("target_page", target_page, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_permanent", sa.Boolean(), nullable=False),
        sa.Column("is_used", sa.Boolean(), nullable=False),
        sa.Column("allow_share", sa.Boolean(), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_access_grants_token", "access_grants", ["token"], unique=True)
    op.create_index("ix_access_grants_target_page", "access_grants", ["target_page"])

    op.create_table(
        "members",
        sa.Column("id", sa.String(length=21), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("bio", sa.String(length=1000), nullable=True),
        sa.Column("location", sa.String(length=100), nullable=True),
        sa.Column("member_type", member_type, nullable=False),
        sa.Column("cover_image_url", sa.String(length=2048), nullable=True),
        sa.Column("show_on_member_page", sa.Boolean(), nullable=False),
        sa.Column("show_on_vip_page", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_members_name", "members", ["name"])

    op.create_table(
        "member_images",
        sa.Column("id", sa.String(length=21), nullable=False),
        sa.Column("member_id", sa.String(length=21), nullable=False),
        sa.Column("image_url", sa.String(length=2048), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_member_images_member_id", "member_images", ["member_id"])


def downgrade() -> None:
    op.drop_index("ix_member_images_member_id", table_name="member_images")
    op.drop_table("member_images")
    op.drop_index("ix_members_name", table_name="members")
    op.drop_table("members")
    op.drop_index("ix_access_grants_target_page", table_name="access_grants")
    op.drop_index("ix_access_grants_token", table_name="access_grants")
    op.drop_table("access_grants")
    member_type.drop(op.get_bind(), checkfirst=True)
    target_page.drop(op.get_bind(), checkfirst=True)
