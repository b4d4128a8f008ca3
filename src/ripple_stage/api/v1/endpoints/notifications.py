# src/ripple_stage/api/v1/endpoints/notifications.py
"""Notification endpoints for the Ripple API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from ripple_stage.api.v1.dependencies import CurrentUserDep, OptionalUserDep, SessionDep
from ripple_stage.errors import NotFoundError
from ripple_stage.models import ContentEntity, User
from ripple_stage.schemas.notification import (
    NotificationCreate,
    NotificationEnvelope,
    NotificationList,
    UnreadCount,
)
from ripple_stage.services.notifications import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)


@router.get("", response_model=NotificationList)
async def list_notifications(
    current_user: OptionalUserDep,
    db: SessionDep,
) -> NotificationList | JSONResponse:
    """Return the caller's notifications, newest first."""
    if current_user is None:
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={})
    try:
        notifications = NotificationService(db).list_for(current_user.id)
    except Exception:
        logger.exception("Failed to list notifications for user %s", current_user.id)
        db.rollback()
        notifications = []
    return NotificationList(notifications=notifications)


@router.post("", response_model=NotificationEnvelope)
async def create_notification(
    payload: NotificationCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> NotificationEnvelope:
    """Send a notification from the caller; silently skipped when addressed to oneself."""
    if db.get(User, payload.recipient_id) is None:
        raise NotFoundError("Recipient not found")
    if payload.related_entity_id is not None and db.get(
        ContentEntity, payload.related_entity_id
    ) is None:
        raise NotFoundError("Post not found")

    service = NotificationService(db)
    notification = service.notify(
        recipient_id=payload.recipient_id,
        sender_id=current_user.id,
        notification_type=payload.type,
        related_entity_id=payload.related_entity_id,
    )
    if notification is None:
        return NotificationEnvelope(notification=None)
    db.commit()
    return NotificationEnvelope(notification=service.to_out(notification))


@router.delete("")
async def clear_notifications(current_user: CurrentUserDep, db: SessionDep) -> dict[str, int]:
    """Delete every notification addressed to the caller."""
    removed = NotificationService(db).clear_all(current_user.id)
    db.commit()
    return {"deleted": removed}


@router.get("/unread", response_model=UnreadCount)
async def unread_count(current_user: OptionalUserDep, db: SessionDep) -> UnreadCount:
    """Return the caller's unread count; zero when anonymous or on failure."""
    if current_user is None:
        return UnreadCount(count=0)
    try:
        count = NotificationService(db).unread_count(current_user.id)
    except Exception:
        logger.exception("Failed to count unread notifications for user %s", current_user.id)
        db.rollback()
        count = 0
    return UnreadCount(count=count)


@router.put("/{notification_id}/read", response_model=NotificationEnvelope)
async def mark_read(
    notification_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> NotificationEnvelope:
    """Mark one of the caller's notifications as read."""
    service = NotificationService(db)
    notification = service.mark_read(notification_id, current_user.id)
    db.commit()
    return NotificationEnvelope(notification=service.to_out(notification))
