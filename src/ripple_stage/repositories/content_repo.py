"""Data access helpers for posts, comments, and reposts."""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ripple_stage.db.time import utcnow
from ripple_stage.errors import DepthExceededError, NotFoundError, ValidationError
from ripple_stage.models.content import MAX_DEPTH, ContentEntity, ContentKind, MediaType

__all__ = ["ContentRepository", "normalize_media"]

_MEDIA_TYPES = {media_type.value for media_type in MediaType}


def normalize_media(media: Iterable[Any] | None) -> list[dict[str, str]]:
    """Return media entries as plain dicts, rejecting malformed items.

    Accepts Pydantic ``MediaItem`` objects or mappings with ``media_type``,
    ``url`` and ``storage_key``.
    """
    normalized: list[dict[str, str]] = []
    for item in media or []:
        data = item.model_dump(mode="json") if hasattr(item, "model_dump") else dict(item)
        media_type = str(data.get("media_type") or "")
        url = str(data.get("url") or "").strip()
        storage_key = str(data.get("storage_key") or "").strip()
        if media_type not in _MEDIA_TYPES:
            raise ValidationError(f"Unsupported media type: {media_type or 'missing'}")
        if not url or not storage_key:
            raise ValidationError("Media items require a url and a storage key")
        normalized.append({"media_type": media_type, "url": url, "storage_key": storage_key})
    return normalized


class ContentRepository:
    """Schema-level rules and persistence for content entities."""

    def __init__(
        self,
        session: Session,
        *,
        max_depth: int = MAX_DEPTH,
        max_content_length: int | None = None,
    ) -> None:
        self.session = session
        self.max_depth = min(max_depth, MAX_DEPTH)
        self.max_content_length = max_content_length

    def get(self, entity_id: int) -> ContentEntity | None:
        """Return an entity by identifier, or None."""
        return self.session.get(ContentEntity, entity_id)

    def find_by_id(self, entity_id: int) -> ContentEntity:
        """Return an entity by identifier.

        Raises:
            NotFoundError: If no entity has this id.
        """
        entity = self.get(entity_id)
        if entity is None:
            raise NotFoundError("Post not found")
        return entity

    def get_many(self, entity_ids: Iterable[int]) -> dict[int, ContentEntity]:
        """Return the existing entities among ``entity_ids`` keyed by id."""
        ids = list(dict.fromkeys(entity_ids))
        if not ids:
            return {}
        rows = self.session.scalars(select(ContentEntity).where(ContentEntity.id.in_(ids)))
        return {entity.id: entity for entity in rows}

    def create(
        self,
        *,
        kind: ContentKind | str,
        author_id: int,
        content: str | None = None,
        media: Iterable[Any] | None = None,
        parent: ContentEntity | int | None = None,
        original_post_id: int | None = None,
    ) -> ContentEntity:
        """Validate and insert a new entity, returning it flushed with an id.

        Raises:
            ValidationError: Empty content without media, bad media, or wrong
                references for the kind.
            NotFoundError: The parent of a comment does not exist.
            DepthExceededError: The comment would nest deeper than allowed.
        """
        try:
            kind = ContentKind(kind)
        except ValueError as err:
            raise ValidationError(f"Unknown content kind: {kind}") from err

        text = (content or "").strip()
        media_items = normalize_media(media)
        if not text and not media_items:
            raise ValidationError("Content or media is required")
        if self.max_content_length is not None and len(text) > self.max_content_length:
            raise ValidationError(
                f"Content cannot be longer than {self.max_content_length} characters"
            )

        entity = ContentEntity(
            kind=kind.value,
            author_id=author_id,
            content=text,
            media=media_items,
            child_ids=[],
            depth=0,
        )

        if kind is ContentKind.COMMENT:
            if parent is None:
                raise ValidationError("Comments require a parent")
            parent_entity = parent if isinstance(parent, ContentEntity) else self.find_by_id(parent)
            depth = parent_entity.depth + 1 if parent_entity.is_comment else 1
            if depth > self.max_depth:
                raise DepthExceededError(
                    f"Comments cannot be nested more than {self.max_depth} levels deep"
                )
            entity.depth = depth
            entity.parent_id = parent_entity.id
            entity.root_id = parent_entity.root_id if parent_entity.is_comment else parent_entity.id
        elif parent is not None:
            raise ValidationError(f"A {kind.value} cannot have a parent")

        if kind is ContentKind.REPOST:
            if original_post_id is None:
                raise ValidationError("Reposts require an original post")
            entity.original_post_id = self.find_by_id(original_post_id).id
        elif original_post_id is not None:
            raise ValidationError(f"A {kind.value} cannot reference an original post")

        self.session.add(entity)
        self.session.flush()
        return entity

    def append_child(self, parent: ContentEntity | int, child_id: int) -> ContentEntity:
        """Append ``child_id`` to the parent's ordered child list."""
        parent_entity = parent if isinstance(parent, ContentEntity) else self.find_by_id(parent)
        parent_entity.child_ids.append(child_id)
        parent_entity.updated_at = utcnow()
        return parent_entity

    def remove_child(self, parent_id: int, child_id: int) -> None:
        """Drop ``child_id`` from the parent's child list if both still exist."""
        parent = self.get(parent_id)
        if parent is None or child_id not in parent.child_ids:
            return
        parent.child_ids = [cid for cid in parent.child_ids if cid != child_id]
        parent.updated_at = utcnow()

    def find_repost(self, author_id: int, original_post_id: int) -> ContentEntity | None:
        """Return the repost entity ``author_id`` made of ``original_post_id``."""
        return self.session.scalars(
            select(ContentEntity)
            .where(
                ContentEntity.kind == ContentKind.REPOST.value,
                ContentEntity.author_id == author_id,
                ContentEntity.original_post_id == original_post_id,
            )
            .order_by(ContentEntity.id)
            .limit(1)
        ).first()

    def list_by_authors(
        self,
        author_ids: Sequence[int],
        *,
        kinds: Sequence[ContentKind] = (ContentKind.POST,),
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[ContentEntity], int]:
        """Return a newest-first page of entities by ``author_ids`` and the total count."""
        if not author_ids:
            return [], 0
        conditions = (
            ContentEntity.author_id.in_(list(author_ids)),
            ContentEntity.kind.in_([kind.value for kind in kinds]),
        )
        total = self.session.scalar(
            select(func.count()).select_from(ContentEntity).where(*conditions)
        ) or 0
        rows = self.session.scalars(
            select(ContentEntity)
            .where(*conditions)
            .order_by(ContentEntity.created_at.desc(), ContentEntity.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(rows), int(total)
