"""initial schema for moodiary

Revision ID: 0001_diary_initial
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_diary_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "profile",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("display_name", sa.String(length=255)),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "emotion_tag",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("profile_id", sa.String(length=36), sa.ForeignKey("profile.id", ondelete="CASCADE")),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("color", sa.String(length=16), server_default="#6B7280"),
        sa.Column(
            "category",
            sa.Enum("positive", "negative", "neutral", name="emotion_category", native_enum=False),
            server_default="neutral",
        ),
        sa.Column("is_default", sa.Boolean(), server_default=sa.false()),
        sa.Column("usage_count", sa.Integer(), server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("profile_id", "name", name="ux_emotion_tag_profile_name"),
    )
    op.create_index("ix_emotion_tag_profile_id", "emotion_tag", ["profile_id"])
    op.create_index("ix_emotion_tag_is_default", "emotion_tag", ["is_default"])

    op.create_table(
        "diary",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "profile_id",
            sa.String(length=36),
            sa.ForeignKey("profile.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("short_content", sa.Text()),
        sa.Column("situation", sa.Text()),
        sa.Column("reaction", sa.Text()),
        sa.Column("physical_sensation", sa.Text()),
        sa.Column("desired_reaction", sa.Text()),
        sa.Column("gratitude_moment", sa.Text()),
        sa.Column("self_kind_words", sa.Text()),
        sa.Column("image_url", sa.Text()),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        # One row per day, live or soft-deleted.
        sa.UniqueConstraint("profile_id", "date", name="ux_diary_profile_date"),
    )
    op.create_index("ix_diary_profile_id", "diary", ["profile_id"])
    op.create_index("ix_diary_profile_deleted_date", "diary", ["profile_id", "is_deleted", "date"])

    op.create_table(
        "diary_tag",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("diary_id", sa.Integer(), sa.ForeignKey("diary.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "emotion_tag_id",
            sa.Integer(),
            sa.ForeignKey("emotion_tag.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("diary_id", "emotion_tag_id", name="ux_diary_tag_pair"),
    )
    op.create_index("ix_diary_tag_diary_id", "diary_tag", ["diary_id"])
    op.create_index("ix_diary_tag_emotion_tag_id", "diary_tag", ["emotion_tag_id"])


def downgrade():
    op.drop_index("ix_diary_tag_emotion_tag_id", table_name="diary_tag")
    op.drop_index("ix_diary_tag_diary_id", table_name="diary_tag")
    op.drop_table("diary_tag")
    op.drop_index("ix_diary_profile_deleted_date", table_name="diary")
    op.drop_index("ix_diary_profile_id", table_name="diary")
    op.drop_table("diary")
    op.drop_index("ix_emotion_tag_is_default", table_name="emotion_tag")
    op.drop_index("ix_emotion_tag_profile_id", table_name="emotion_tag")
    op.drop_table("emotion_tag")
    op.drop_table("profile")
