"""SQLAlchemy models for posts, comments, and reposts.

All three live in one table discriminated by ``kind``. Kind-specific columns
are nullable and their presence is validated by the content repository:

* ``post``: depth 0, no parent/root/original.
* ``comment``: depth 1..2, ``parent_id`` and ``root_id`` set.
* ``repost``: depth 0, ``original_post_id`` set.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ripple_stage.db.session import Base
from ripple_stage.db.time import utcnow

if TYPE_CHECKING:
    from .user import User

MAX_DEPTH = 2


class ContentKind(str, enum.Enum):
    """Discriminator for content entities."""

    POST = "post"
    COMMENT = "comment"
    REPOST = "repost"


class MediaType(str, enum.Enum):
    """Supported attachment types."""

    IMAGE = "image"
    VIDEO = "video"


class ContentEntity(Base):
    """A post, a comment on a post or comment, or a repost."""

    __tablename__ = "content_entity"
    __table_args__ = (
        CheckConstraint("depth >= 0 AND depth <= 2", name="ck_content_entity_depth"),
        CheckConstraint(
            "kind IN ('post', 'comment', 'repost')",
            name="ck_content_entity_kind",
        ),
        Index("ix_content_entity_parent_created", "parent_id", "created_at"),
        Index("ix_content_entity_root_created", "root_id", "created_at"),
        Index("ix_content_entity_author_created", "author_id", "created_at"),
        Index("ix_content_entity_original_post_id", "original_post_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(16), nullable=False, default=ContentKind.POST.value)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id"),
        nullable=False,
    )
    depth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Comment chain; both null for posts and reposts.
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("content_entity.id"),
        nullable=True,
    )
    root_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("content_entity.id"),
        nullable=True,
    )
    # Reposted entity; null unless kind == "repost".
    original_post_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("content_entity.id"),
        nullable=True,
    )

    # Direct children in display order.
    child_ids: Mapped[list[int]] = mapped_column(
        MutableList.as_mutable(JSON),
        nullable=False,
        default=list,
    )
    # [{"media_type": "image"|"video", "url": ..., "storage_key": ...}]
    media: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)

    author: Mapped[User] = relationship("User", lazy="joined")
    likes: Mapped[list[ContentLike]] = relationship(
        "ContentLike",
        cascade="all, delete-orphan",
        order_by="ContentLike.created_at",
        lazy="selectin",
    )
    reposts: Mapped[list[ContentRepost]] = relationship(
        "ContentRepost",
        cascade="all, delete-orphan",
        order_by="ContentRepost.created_at",
        lazy="selectin",
    )

    @property
    def liker_ids(self) -> list[int]:
        """Return ids of users who liked this entity."""
        return [like.user_id for like in self.likes]

    @property
    def reposter_ids(self) -> list[int]:
        """Return ids of users who reposted this entity."""
        return [repost.user_id for repost in self.reposts]

    @property
    def storage_keys(self) -> list[str]:
        """Return object storage keys of attached media."""
        return [item["storage_key"] for item in self.media or [] if item.get("storage_key")]

    @property
    def is_comment(self) -> bool:
        return self.kind == ContentKind.COMMENT.value


class ContentLike(Base):
    """Per-user like; the composite key gives set semantics."""

    __tablename__ = "content_like"
    __table_args__ = (Index("ix_content_like_user_id", "user_id"),)

    entity_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("content_entity.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow)


class ContentRepost(Base):
    """Per-user repost marker on the original entity."""

    __tablename__ = "content_repost"
    __table_args__ = (Index("ix_content_repost_user_id", "user_id"),)

    entity_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("content_entity.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
