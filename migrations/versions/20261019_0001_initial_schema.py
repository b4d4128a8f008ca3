"""initial schema

Revision ID: 5b1e0c7a9d21
Revises:
Create Date: 2026-10-19 09:12:44.512310

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1e0c7a9d21"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create accounts, follows, content, and notification tables."""
    op.create_table(
        "user_account",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=24), nullable=False),
        sa.Column("email", sa.String(length=254), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("avatar", sa.Text(), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("website", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("username"),
    )
    op.create_table(
        "user_follow",
        sa.Column("follower_id", sa.Integer(), nullable=False),
        sa.Column("followee_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["followee_id"], ["user_account.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["follower_id"], ["user_account.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("follower_id", "followee_id"),
    )
    op.create_index("ix_user_follow_followee_id", "user_follow", ["followee_id"])

    op.create_table(
        "content_entity",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column("depth", sa.Integer(), nullable=False),
        sa.Column("parent_id", sa.Integer(), nullable=True),
        sa.Column("root_id", sa.Integer(), nullable=True),
        sa.Column("original_post_id", sa.Integer(), nullable=True),
        sa.Column("child_ids", sa.JSON(), nullable=False),
        sa.Column("media", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("depth >= 0 AND depth <= 2", name="ck_content_entity_depth"),
        sa.CheckConstraint(
            "kind IN ('post', 'comment', 'repost')",
            name="ck_content_entity_kind",
        ),
        sa.ForeignKeyConstraint(["author_id"], ["user_account.id"]),
        sa.ForeignKeyConstraint(["original_post_id"], ["content_entity.id"]),
        sa.ForeignKeyConstraint(["parent_id"], ["content_entity.id"]),
        sa.ForeignKeyConstraint(["root_id"], ["content_entity.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_content_entity_author_created", "content_entity", ["author_id", "created_at"]
    )
    op.create_index(
        "ix_content_entity_parent_created", "content_entity", ["parent_id", "created_at"]
    )
    op.create_index("ix_content_entity_root_created", "content_entity", ["root_id", "created_at"])
    op.create_index("ix_content_entity_original_post_id", "content_entity", ["original_post_id"])

    for table in ("content_like", "content_repost"):
        op.create_table(
            table,
            sa.Column("entity_id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["entity_id"], ["content_entity.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["user_id"], ["user_account.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("entity_id", "user_id"),
        )
        op.create_index(f"ix_{table}_user_id", table, ["user_id"])

    op.create_table(
        "notification",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("recipient_id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("related_entity_id", sa.Integer(), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("recipient_id <> sender_id", name="ck_notification_not_self"),
        sa.ForeignKeyConstraint(["recipient_id"], ["user_account.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["related_entity_id"], ["content_entity.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sender_id"], ["user_account.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_notification_recipient_created", "notification", ["recipient_id", "created_at"]
    )
    op.create_index("ix_notification_related_entity_id", "notification", ["related_entity_id"])


def downgrade() -> None:
    """Drop every table created by :func:`upgrade`."""
    op.drop_table("notification")
    op.drop_table("content_repost")
    op.drop_table("content_like")
    op.drop_table("content_entity")
    op.drop_table("user_follow")
    op.drop_table("user_account")
