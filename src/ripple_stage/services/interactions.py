"""Posting, commenting, liking, and reposting.

Every public method is one unit of work: it validates, mutates the content
store, fans out notifications, and commits.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ripple_stage.core.settings import settings
from ripple_stage.db.time import utcnow
from ripple_stage.errors import ValidationError
from ripple_stage.models import (
    ContentEntity,
    ContentKind,
    ContentLike,
    ContentRepost,
    NotificationType,
    User,
)
from ripple_stage.repositories.content_repo import ContentRepository
from ripple_stage.services.deletion import CascadeDeleter
from ripple_stage.services.media import MediaStore
from ripple_stage.services.notifications import LIKE_TYPES, NotificationService

logger = logging.getLogger(__name__)


class InteractionService:
    """Mutating operations on posts, comments, and reposts."""

    def __init__(self, session: Session, media_store: MediaStore | None = None) -> None:
        self.session = session
        self.media_store = media_store
        self.repo = ContentRepository(
            session,
            max_depth=settings.max_comment_depth,
            max_content_length=settings.max_content_length,
        )
        self.notifications = NotificationService(session)

    def create_post(
        self,
        author_id: int,
        content: str | None,
        media: Iterable[Any] | None = None,
        *,
        mentioned: Sequence[User] = (),
    ) -> ContentEntity:
        """Create a top-level post and notify mentioned users.

        Raises:
            ValidationError: If both content and media are empty.
        """
        post = self.repo.create(
            kind=ContentKind.POST,
            author_id=author_id,
            content=content,
            media=media,
        )
        self._notify_mentions(post, mentioned)
        self.session.commit()
        logger.info("User %s created post %s", author_id, post.id)
        return post

    def create_comment(
        self,
        author_id: int,
        parent_id: int,
        content: str | None,
        media: Iterable[Any] | None = None,
        *,
        mentioned: Sequence[User] = (),
    ) -> ContentEntity:
        """Comment on a post or on a comment.

        The parent's author is notified with the thread root as the related
        entity, so the notification always opens the whole thread.

        Raises:
            NotFoundError: If the parent does not exist.
            DepthExceededError: If the comment would be nested too deeply.
            ValidationError: If both content and media are empty.
        """
        parent = self.repo.find_by_id(parent_id)
        comment = self.repo.create(
            kind=ContentKind.COMMENT,
            author_id=author_id,
            content=content,
            media=media,
            parent=parent,
        )
        self.repo.append_child(parent, comment.id)
        self.notifications.notify(
            recipient_id=parent.author_id,
            sender_id=author_id,
            notification_type=NotificationType.COMMENT,
            related_entity_id=comment.root_id,
        )
        self._notify_mentions(comment, mentioned)
        self.session.commit()
        logger.info(
            "User %s commented %s on %s at depth %s",
            author_id,
            comment.id,
            parent.id,
            comment.depth,
        )
        return comment

    def toggle_like(self, user_id: int, entity_id: int) -> ContentEntity:
        """Like the entity, or remove an existing like.

        Unliking also retracts the like notification sent to the author.

        Raises:
            NotFoundError: If the entity does not exist.
        """
        entity = self.repo.find_by_id(entity_id)
        existing = next((like for like in entity.likes if like.user_id == user_id), None)
        try:
            if existing is not None:
                entity.likes.remove(existing)
                self.notifications.retract(
                    recipient_id=entity.author_id,
                    sender_id=user_id,
                    types=LIKE_TYPES,
                    related_entity_id=entity.id,
                )
            else:
                entity.likes.append(ContentLike(user_id=user_id))
                self.notifications.notify(
                    recipient_id=entity.author_id,
                    sender_id=user_id,
                    notification_type=(
                        NotificationType.COMMENT_LIKE
                        if entity.is_comment
                        else NotificationType.LIKE
                    ),
                    related_entity_id=entity.id,
                )
            entity.updated_at = utcnow()
            self.session.commit()
        except IntegrityError:
            # A concurrent request already recorded the same like.
            self.session.rollback()
            logger.info("Duplicate like by user %s on %s ignored", user_id, entity_id)
            entity = self.repo.find_by_id(entity_id)
        return entity

    def toggle_repost(self, user_id: int, entity_id: int) -> ContentEntity:
        """Repost the entity, or undo an existing repost.

        Reposting creates a ``repost`` entity copying the original's content
        and media. Undoing it deletes that entity. No notification is sent
        either way.

        Raises:
            NotFoundError: If the original does not exist.
            ValidationError: If the target is itself a repost.
        """
        original = self.repo.find_by_id(entity_id)
        if original.kind == ContentKind.REPOST.value:
            raise ValidationError("Reposts cannot be reposted")

        marker = next((item for item in original.reposts if item.user_id == user_id), None)
        try:
            if marker is not None:
                original.reposts.remove(marker)
                repost = self.repo.find_repost(user_id, original.id)
                if repost is not None:
                    CascadeDeleter(self.session, self.media_store).purge(repost)
                logger.info("User %s removed repost of %s", user_id, original.id)
            else:
                original.reposts.append(ContentRepost(user_id=user_id))
                repost = self.repo.create(
                    kind=ContentKind.REPOST,
                    author_id=user_id,
                    content=original.content,
                    media=original.media,
                    original_post_id=original.id,
                )
                logger.info("User %s reposted %s as %s", user_id, original.id, repost.id)
            original.updated_at = utcnow()
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.info("Duplicate repost by user %s on %s ignored", user_id, entity_id)
            original = self.repo.find_by_id(entity_id)
        return original

    def _notify_mentions(self, entity: ContentEntity, mentioned: Sequence[User]) -> None:
        for user in mentioned:
            self.notifications.notify(
                recipient_id=user.id,
                sender_id=entity.author_id,
                notification_type=NotificationType.MENTION,
                related_entity_id=entity.id,
            )
