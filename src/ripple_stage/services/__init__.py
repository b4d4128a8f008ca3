"""Business logic services for the Ripple application."""

from .deletion import CascadeDeleter, delete_account
from .feed import FeedService
from .interactions import InteractionService
from .media import MediaStore, get_media_store
from .notifications import NotificationService

__all__ = [
    "CascadeDeleter",
    "FeedService",
    "InteractionService",
    "MediaStore",
    "NotificationService",
    "delete_account",
    "get_media_store",
]
