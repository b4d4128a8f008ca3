"""Symmetric follow graph helpers."""
from __future__ import annotations

import logging
from typing import Literal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ripple_stage.errors import NotFoundError, ValidationError
from ripple_stage.models import NotificationType, User, UserFollow
from ripple_stage.schemas.user import (
    CurrentStats,
    FollowResponse,
    FollowStats,
    TargetStats,
    UserSummary,
)
from ripple_stage.services.notifications import NotificationService

__all__ = [
    "following_ids",
    "follower_ids",
    "is_following",
    "follow_counts",
    "toggle_follow",
    "list_connections",
]

logger = logging.getLogger(__name__)


def following_ids(db: Session, user_id: int) -> list[int]:
    """Return ids of the users ``user_id`` follows."""
    return list(db.scalars(select(UserFollow.followee_id).where(UserFollow.follower_id == user_id)))


def follower_ids(db: Session, user_id: int) -> list[int]:
    """Return ids of the users following ``user_id``."""
    return list(db.scalars(select(UserFollow.follower_id).where(UserFollow.followee_id == user_id)))


def is_following(db: Session, follower_id: int | None, followee_id: int) -> bool:
    """Return True when ``follower_id`` follows ``followee_id``."""
    if follower_id is None:
        return False
    return db.get(UserFollow, (follower_id, followee_id)) is not None


def follow_counts(db: Session, user_id: int) -> tuple[int, int]:
    """Return ``(followers, following)`` counted from the follow relation."""
    followers = db.scalar(
        select(func.count()).select_from(UserFollow).where(UserFollow.followee_id == user_id)
    )
    following = db.scalar(
        select(func.count()).select_from(UserFollow).where(UserFollow.follower_id == user_id)
    )
    return int(followers or 0), int(following or 0)


def toggle_follow(db: Session, current_user: User, username: str) -> FollowResponse:
    """Follow ``username`` if not yet followed, otherwise unfollow.

    Args:
        db: Database session; committed on success.
        current_user: The acting user.
        username: Handle of the user to (un)follow.

    Returns:
        The new follow state with recomputed counts for both users.

    Raises:
        NotFoundError: If ``username`` does not exist.
        ValidationError: If the user tries to follow themselves.
    """
    target = db.scalar(select(User).where(User.username == username.lower()))
    if target is None:
        raise NotFoundError("Target user not found")
    if target.id == current_user.id:
        raise ValidationError("You cannot follow yourself")

    current_id, target_id = current_user.id, target.id
    edge = db.get(UserFollow, (current_id, target_id))
    try:
        if edge is not None:
            db.delete(edge)
            now_following = False
        else:
            db.add(UserFollow(follower_id=current_id, followee_id=target_id))
            NotificationService(db).notify(
                recipient_id=target_id,
                sender_id=current_id,
                notification_type=NotificationType.FOLLOW,
            )
            now_following = True
        db.commit()
    except IntegrityError:
        # A concurrent request already recorded the same follow.
        db.rollback()
        logger.info("Duplicate follow by user %s on %s ignored", current_id, target_id)
        now_following = is_following(db, current_id, target_id)
    else:
        logger.info(
            "User %s %s user %s",
            current_id,
            "followed" if now_following else "unfollowed",
            target_id,
        )

    target_followers, target_following = follow_counts(db, target_id)
    current_followers, current_following = follow_counts(db, current_id)
    return FollowResponse(
        is_following=now_following,
        stats=FollowStats(
            target=TargetStats(
                followers=target_followers,
                following=target_following,
                is_following=now_following,
            ),
            current=CurrentStats(followers=current_followers, following=current_following),
        ),
    )


def list_connections(
    db: Session,
    user: User,
    direction: Literal["following", "followers"],
    viewer_id: int | None = None,
) -> list[UserSummary]:
    """Return the users ``user`` follows or is followed by.

    Each row is flagged with whether ``viewer_id`` follows that user.
    """
    if direction == "following":
        ids = following_ids(db, user.id)
    else:
        ids = follower_ids(db, user.id)
    if not ids:
        return []

    users = db.scalars(select(User).where(User.id.in_(ids)).order_by(User.username))
    viewer_follows = set(following_ids(db, viewer_id)) if viewer_id is not None else set()
    return [
        UserSummary(
            id=row.id,
            username=row.username,
            avatar=row.avatar,
            bio=row.bio or "",
            is_following=row.id in viewer_follows,
        )
        for row in users
    ]
