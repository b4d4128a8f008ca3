"""Notification Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ripple_stage.models.notification import NotificationType

from .content import AuthorSummary


class NotificationOut(BaseModel):
    """Notification decorated for display."""

    id: int
    type: NotificationType
    sender: AuthorSummary
    content: str = Field(..., description="Rendered text, e.g. 'alice liked your post'")
    time: str = Field(..., description="Relative age such as '5m' or 'Oct 3'")
    read: bool
    related_entity_id: int | None = None
    created_at: datetime


class NotificationList(BaseModel):
    """Envelope for the notification list endpoint."""

    notifications: list[NotificationOut]


class NotificationCreate(BaseModel):
    """Client-originated notification sent from the caller to a recipient."""

    recipient_id: int
    type: NotificationType
    related_entity_id: int | None = None


class NotificationEnvelope(BaseModel):
    """Single notification wrapper; ``None`` when nothing was created."""

    notification: NotificationOut | None = None


class UnreadCount(BaseModel):
    """Unread notification counter."""

    count: int = 0
