"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .content import (
    AuthorSummary,
    CommentCreate,
    ContentOut,
    DeleteResponse,
    FeedPage,
    MediaItem,
    PostCreate,
    PresignRequest,
    PresignResponse,
)
from .notification import (
    NotificationCreate,
    NotificationEnvelope,
    NotificationList,
    NotificationOut,
    UnreadCount,
)
from .user import (
    FollowResponse,
    LoginRequest,
    MentionValidationRequest,
    PasswordChangeRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    TokenResponse,
    UserList,
    UserOut,
    UserSummary,
)

__all__ = [
    "AuthorSummary", "CommentCreate", "ContentOut", "DeleteResponse", "FeedPage",
    "MediaItem", "PostCreate", "PresignRequest", "PresignResponse",
    "NotificationCreate", "NotificationEnvelope", "NotificationList", "NotificationOut",
    "UnreadCount",
    "FollowResponse", "LoginRequest", "MentionValidationRequest", "PasswordChangeRequest",
    "ProfileResponse",
    "ProfileUpdateRequest", "RegisterRequest", "TokenResponse", "UserList", "UserOut",
    "UserSummary",
]
