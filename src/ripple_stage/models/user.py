"""SQLAlchemy models for user accounts and the follow graph."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ripple_stage.db.session import Base
from ripple_stage.db.time import utcnow

DEFAULT_AVATAR = "/placeholder.svg?height=128&width=128"


class User(Base):
    """Registered account that authors content and receives notifications."""

    __tablename__ = "user_account"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Lowercase alphanumeric handle; also the token matched by @mentions.
    username: Mapped[str] = mapped_column(String(24), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(254), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    avatar: Mapped[str] = mapped_column(Text, nullable=False, default=DEFAULT_AVATAR)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    website: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)

    @property
    def has_custom_avatar(self) -> bool:
        """Return True when the avatar points at an uploaded object."""
        return bool(self.avatar) and "placeholder.svg" not in self.avatar


class UserFollow(Base):
    """Directed follow edge.

    A single row is both an entry in the follower's following set and in the
    followee's follower set, so the two views can never disagree.
    """

    __tablename__ = "user_follow"
    __table_args__ = (Index("ix_user_follow_followee_id", "followee_id"),)

    follower_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        primary_key=True,
    )
    followee_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
