"""Read-side assembly of feeds, timelines, and comment threads."""
from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from ripple_stage.db.time import as_utc
from ripple_stage.models import MAX_DEPTH, ContentEntity, ContentKind
from ripple_stage.repositories.content_repo import ContentRepository
from ripple_stage.schemas.content import (
    AuthorSummary,
    ContentOut,
    FeedPage,
    MediaItem,
    OriginalPostSummary,
)
from ripple_stage.services.follows import following_ids

# Pages past this are always empty; keeps OFFSET inside a 64-bit integer.
MAX_PAGE = 1_000_000


def format_entity(entity: ContentEntity) -> ContentOut:
    """Convert an entity to its display schema without nested comments."""
    return ContentOut(
        id=entity.id,
        kind=entity.kind,
        content=entity.content,
        author=AuthorSummary.model_validate(entity.author),
        depth=entity.depth,
        parent_id=entity.parent_id,
        root_id=entity.root_id,
        original_post_id=entity.original_post_id,
        likes=entity.liker_ids,
        reposts=entity.reposter_ids,
        child_ids=list(entity.child_ids),
        media=[MediaItem.model_validate(item) for item in entity.media or []],
        created_at=as_utc(entity.created_at),
        updated_at=as_utc(entity.updated_at),
    )


class FeedService:
    """Builds display trees with bounded comment nesting."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.repo = ContentRepository(session)

    def build_trees(self, roots: Sequence[ContentEntity], levels: int) -> list[ContentOut]:
        """Format ``roots`` and expand up to ``levels`` generations of comments.

        Expansion walks one generation at a time with a single batched
        lookup per level. An id already placed in the tree is never placed
        again, so malformed or cyclic ``child_ids`` cannot loop. Entities at
        the last expanded level keep ``child_ids`` but get no ``comments``.
        """
        trees = [format_entity(root) for root in roots]
        nodes = {tree.id: tree for tree in trees}
        seen = set(nodes)
        frontier = list(roots)
        formatted = list(roots)

        for _ in range(max(levels, 0)):
            wanted = [cid for entity in frontier for cid in entity.child_ids if cid not in seen]
            if not wanted:
                break
            children = self.repo.get_many(wanted)
            next_frontier: list[ContentEntity] = []
            for parent in frontier:
                for child_id in parent.child_ids:
                    child = children.get(child_id)
                    if child is None or child_id in seen:
                        continue
                    seen.add(child_id)
                    node = format_entity(child)
                    nodes[parent.id].comments.append(node)
                    nodes[child_id] = node
                    next_frontier.append(child)
            formatted.extend(next_frontier)
            frontier = next_frontier

        self._attach_originals(formatted, nodes)
        return trees

    def _attach_originals(
        self,
        entities: Sequence[ContentEntity],
        nodes: dict[int, ContentOut],
    ) -> None:
        reposts = [entity for entity in entities if entity.original_post_id is not None]
        if not reposts:
            return
        originals = self.repo.get_many(entity.original_post_id for entity in reposts)
        for repost in reposts:
            original = originals.get(repost.original_post_id)
            if original is None:
                continue
            nodes[repost.id].original_post = OriginalPostSummary(
                id=original.id,
                kind=original.kind,
                author=AuthorSummary.model_validate(original.author),
            )

    def get_thread(self, entity_id: int) -> ContentOut:
        """Return one entity with its entire comment subtree.

        Raises:
            NotFoundError: If the entity does not exist.
        """
        entity = self.repo.find_by_id(entity_id)
        return self.build_trees([entity], MAX_DEPTH - entity.depth)[0]

    def get_comments(self, entity_id: int) -> list[ContentOut]:
        """Return the direct comments of an entity, each with its subtree."""
        return self.get_thread(entity_id).comments

    def get_feed(self, user_id: int, page: int = 1, limit: int = 10) -> FeedPage:
        """Return the user's and followed authors' posts, newest first."""
        author_ids = [user_id, *following_ids(self.session, user_id)]
        return self._page(author_ids, (ContentKind.POST,), page, limit)

    def get_timeline(self, author_id: int, page: int = 1, limit: int = 10) -> FeedPage:
        """Return one author's posts and reposts, newest first."""
        return self._page([author_id], (ContentKind.POST, ContentKind.REPOST), page, limit)

    def _page(
        self,
        author_ids: Sequence[int],
        kinds: Sequence[ContentKind],
        page: int,
        limit: int,
    ) -> FeedPage:
        page = max(page, 1)
        if page > MAX_PAGE:
            return FeedPage(posts=[], next_page=None)
        offset = (page - 1) * limit
        rows, total = self.repo.list_by_authors(author_ids, kinds=kinds, offset=offset, limit=limit)
        next_page = page + 1 if offset + len(rows) < total else None
        return FeedPage(posts=self.build_trees(rows, MAX_DEPTH), next_page=next_page)
