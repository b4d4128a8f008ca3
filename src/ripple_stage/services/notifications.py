"""Notification fan-out, listing, and read-state management."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from ripple_stage.db.time import as_utc, utcnow
from ripple_stage.errors import NotFoundError
from ripple_stage.models import Notification, NotificationType
from ripple_stage.schemas.content import AuthorSummary
from ripple_stage.schemas.notification import NotificationOut

logger = logging.getLogger(__name__)

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY

_TEMPLATES: dict[str, str] = {
    NotificationType.LIKE.value: "{sender} liked your post",
    NotificationType.COMMENT_LIKE.value: "{sender} liked your comment",
    NotificationType.COMMENT.value: "{sender} commented on your post",
    NotificationType.FOLLOW.value: "{sender} started following you",
    NotificationType.REPOST.value: "{sender} reposted your post",
    NotificationType.MENTION.value: "{sender} mentioned you",
    NotificationType.SYSTEM.value: "You have a new notification",
}

LIKE_TYPES = (NotificationType.LIKE.value, NotificationType.COMMENT_LIKE.value)


def format_relative_time(created_at: datetime, now: datetime | None = None) -> str:
    """Render the age of a notification the way the notification list shows it.

    Args:
        created_at: When the notification was created.
        now: Reference time; defaults to the current UTC time.

    Returns:
        ``"Ns"``, ``"Nm"``, ``"Nh"`` or ``"Nd"`` for anything younger than a
        week, otherwise a short date such as ``"Oct 3"`` (with the year
        appended when it differs from ``now``).
    """
    now = as_utc(now or utcnow())
    created_at = as_utc(created_at)
    seconds = max(int((now - created_at).total_seconds()), 0)

    if seconds < MINUTE:
        return f"{seconds}s"
    if seconds < HOUR:
        return f"{seconds // MINUTE}m"
    if seconds < DAY:
        return f"{seconds // HOUR}h"
    if seconds < WEEK:
        return f"{seconds // DAY}d"
    if created_at.year == now.year:
        return f"{created_at:%b} {created_at.day}"
    return f"{created_at:%b} {created_at.day}, {created_at.year}"


def render_content(notification_type: str, sender_username: str) -> str:
    """Return the display text for a notification type."""
    template = _TEMPLATES.get(notification_type, _TEMPLATES[NotificationType.SYSTEM.value])
    return template.format(sender=sender_username)


class NotificationService:
    """Creates and queries notifications inside the caller's session.

    Methods that write do not commit; the calling service owns the unit of
    work.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def notify(
        self,
        *,
        recipient_id: int,
        sender_id: int,
        notification_type: NotificationType | str,
        related_entity_id: int | None = None,
    ) -> Notification | None:
        """Record an interaction, unless the sender is the recipient."""
        if recipient_id == sender_id:
            return None
        notification = Notification(
            recipient_id=recipient_id,
            sender_id=sender_id,
            type=NotificationType(notification_type).value,
            related_entity_id=related_entity_id,
            read=False,
        )
        self.session.add(notification)
        self.session.flush()
        return notification

    def retract(
        self,
        *,
        recipient_id: int,
        sender_id: int,
        types: Iterable[str],
        related_entity_id: int | None,
    ) -> int:
        """Delete notifications matching an undone interaction; return the count."""
        result = self.session.execute(
            delete(Notification)
            .where(
                Notification.recipient_id == recipient_id,
                Notification.sender_id == sender_id,
                Notification.type.in_(list(types)),
                Notification.related_entity_id == related_entity_id,
            )
        )
        return result.rowcount or 0

    def list_for(self, user_id: int, now: datetime | None = None) -> list[NotificationOut]:
        """Return every notification for ``user_id``, newest first, formatted."""
        now = now or utcnow()
        rows = self.session.scalars(
            select(Notification)
            .where(Notification.recipient_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        return [self.to_out(notification, now) for notification in rows]

    def to_out(self, notification: Notification, now: datetime | None = None) -> NotificationOut:
        """Decorate a notification with its sender, text, and relative age."""
        sender = notification.sender
        return NotificationOut(
            id=notification.id,
            type=NotificationType(notification.type),
            sender=AuthorSummary.model_validate(sender),
            content=render_content(notification.type, sender.username),
            time=format_relative_time(notification.created_at, now),
            read=notification.read,
            related_entity_id=notification.related_entity_id,
            created_at=as_utc(notification.created_at),
        )

    def mark_read(self, notification_id: int, owner_id: int) -> Notification:
        """Set ``read`` on a notification owned by ``owner_id``.

        Raises:
            NotFoundError: If the notification is absent or belongs to someone else.
        """
        notification = self.session.get(Notification, notification_id)
        if notification is None or notification.recipient_id != owner_id:
            raise NotFoundError("Notification not found")
        notification.read = True
        return notification

    def clear_all(self, owner_id: int) -> int:
        """Delete every notification addressed to ``owner_id``."""
        result = self.session.execute(
            delete(Notification).where(Notification.recipient_id == owner_id)
        )
        return result.rowcount or 0

    def unread_count(self, owner_id: int | None) -> int:
        """Return the number of unread notifications; zero for anonymous callers."""
        if owner_id is None:
            return 0
        count = self.session.scalar(
            select(func.count())
            .select_from(Notification)
            .where(Notification.recipient_id == owner_id, Notification.read.is_(False))
        )
        return int(count or 0)

    def delete_for_entities(self, entity_ids: Iterable[int]) -> int:
        """Delete notifications whose related entity is in ``entity_ids``."""
        ids = list(entity_ids)
        if not ids:
            return 0
        result = self.session.execute(
            delete(Notification).where(Notification.related_entity_id.in_(ids))
        )
        return result.rowcount or 0

    def delete_for_user(self, user_id: int) -> int:
        """Delete notifications where ``user_id`` is the sender or the recipient."""
        result = self.session.execute(
            delete(Notification)
            .where(or_(Notification.sender_id == user_id, Notification.recipient_id == user_id))
        )
        removed = result.rowcount or 0
        logger.debug("Removed %s notifications involving user %s", removed, user_id)
        return removed
