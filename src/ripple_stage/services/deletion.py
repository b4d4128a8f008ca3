"""Cascade deletion of content and of whole accounts."""
from __future__ import annotations

import logging

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from ripple_stage.errors import ForbiddenError
from ripple_stage.models import (
    ContentEntity,
    ContentKind,
    ContentLike,
    ContentRepost,
    User,
    UserFollow,
)
from ripple_stage.repositories.content_repo import ContentRepository
from ripple_stage.services.media import MediaStore
from ripple_stage.services.notifications import NotificationService

logger = logging.getLogger(__name__)


class CascadeDeleter:
    """Removes entities together with everything that depends on them."""

    def __init__(self, session: Session, media_store: MediaStore | None = None) -> None:
        self.session = session
        self.media_store = media_store
        self.repo = ContentRepository(session)
        self.notifications = NotificationService(session)

    def delete_entity(self, entity_id: int, requester_id: int) -> str:
        """Delete an entity owned by ``requester_id`` and its descendants.

        Returns:
            The deleted entity's kind.

        Raises:
            NotFoundError: If the entity does not exist.
            ForbiddenError: If ``requester_id`` is not the author.
        """
        entity = self.repo.find_by_id(entity_id)
        if entity.author_id != requester_id:
            raise ForbiddenError("You can only delete your own posts")

        kind = entity.kind
        removed = self.purge(entity)
        self.session.commit()
        logger.info("User %s deleted %s %s (%s entities)", requester_id, kind, entity_id, removed)
        return kind

    def collect(self, root: ContentEntity) -> list[ContentEntity]:
        """Return ``root`` and every transitive dependant, parents before children.

        Dependants are children listed in ``child_ids``, rows pointing at a
        member through ``parent_id``, and reposts of a member.
        """
        ordered = [root]
        seen = {root.id}
        frontier = [root]
        while frontier:
            ids = [entity.id for entity in frontier]
            listed = {child_id for entity in frontier for child_id in entity.child_ids}
            conditions = [
                ContentEntity.parent_id.in_(ids),
                ContentEntity.original_post_id.in_(ids),
            ]
            if listed:
                conditions.append(ContentEntity.id.in_(listed))
            rows = self.session.scalars(
                select(ContentEntity).where(or_(*conditions)).order_by(ContentEntity.id)
            )
            frontier = []
            for row in rows:
                if row.id in seen:
                    continue
                seen.add(row.id)
                ordered.append(row)
                frontier.append(row)
        return ordered

    def purge(self, root: ContentEntity) -> int:
        """Delete ``root`` and its dependants without committing.

        Blob deletion is best-effort; failures are logged by the media store.

        Returns:
            The number of entities removed.
        """
        doomed = self.collect(root)
        doomed_ids = {entity.id for entity in doomed}

        if self.media_store is not None:
            keys = [
                key
                for entity in doomed
                if entity.kind != ContentKind.REPOST.value
                for key in entity.storage_keys
            ]
            self.media_store.delete_objects(keys)

        self.notifications.delete_for_entities(doomed_ids)

        if root.parent_id is not None and root.parent_id not in doomed_ids:
            self.repo.remove_child(root.parent_id, root.id)

        for entity in doomed:
            if entity.kind != ContentKind.REPOST.value or entity.original_post_id in doomed_ids:
                continue
            original = self.repo.get(entity.original_post_id) if entity.original_post_id else None
            if original is None:
                continue
            for marker in list(original.reposts):
                if marker.user_id == entity.author_id:
                    original.reposts.remove(marker)

        for entity in reversed(doomed):
            self.session.delete(entity)
            self.session.flush()
        return len(doomed)


def delete_account(db: Session, user: User, media_store: MediaStore | None = None) -> None:
    """Delete ``user`` and every trace of them.

    Authored content is cascade-deleted, the user's likes and repost markers
    are stripped from other entities, notifications they sent or received
    and follow edges are removed, and the avatar blob is deleted best-effort.
    """
    user_id = user.id
    deleter = CascadeDeleter(db, media_store)
    authored_ids = list(
        db.scalars(
            select(ContentEntity.id)
            .where(ContentEntity.author_id == user_id)
            .order_by(ContentEntity.depth, ContentEntity.id)
        )
    )
    for entity_id in authored_ids:
        entity = deleter.repo.get(entity_id)
        if entity is not None:
            deleter.purge(entity)

    db.execute(
        delete(ContentLike).where(ContentLike.user_id == user_id)
    )
    db.execute(
        delete(ContentRepost).where(ContentRepost.user_id == user_id)
    )
    db.expire_all()

    deleter.notifications.delete_for_user(user_id)
    db.execute(
        delete(UserFollow)
        .where(or_(UserFollow.follower_id == user_id, UserFollow.followee_id == user_id))
    )

    if media_store is not None and user.has_custom_avatar:
        media_store.delete_objects([user.avatar])

    db.delete(user)
    db.commit()
    logger.info("Deleted account %s (%s authored entities)", user_id, len(authored_ids))
