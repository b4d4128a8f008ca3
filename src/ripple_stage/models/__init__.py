"""SQLAlchemy models for the Ripple application."""

from .content import MAX_DEPTH, ContentEntity, ContentKind, ContentLike, ContentRepost, MediaType
from .notification import Notification, NotificationType
from .user import DEFAULT_AVATAR, User, UserFollow

__all__ = [
    "MAX_DEPTH",
    "ContentEntity", "ContentKind", "ContentLike", "ContentRepost", "MediaType",
    "Notification", "NotificationType",
    "DEFAULT_AVATAR", "User", "UserFollow",
]
