"""SQLAlchemy model for interaction notifications."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ripple_stage.db.session import Base
from ripple_stage.db.time import utcnow

if TYPE_CHECKING:
    from .user import User


class NotificationType(str, enum.Enum):
    """Kinds of interaction events that notify a user."""

    LIKE = "like"
    COMMENT_LIKE = "comment_like"
    COMMENT = "comment"
    FOLLOW = "follow"
    REPOST = "repost"
    MENTION = "mention"
    SYSTEM = "system"


class Notification(Base):
    """Record of one user's interaction directed at another user."""

    __tablename__ = "notification"
    __table_args__ = (
        CheckConstraint("recipient_id <> sender_id", name="ck_notification_not_self"),
        Index("ix_notification_recipient_created", "recipient_id", "created_at"),
        Index("ix_notification_related_entity_id", "related_entity_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipient_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    )
    sender_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    related_entity_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("content_entity.id", ondelete="CASCADE"),
        nullable=True,
    )
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    sender: Mapped[User] = relationship("User", foreign_keys=[sender_id], lazy="joined")
