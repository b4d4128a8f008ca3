# src/ripple_stage/api/v1/endpoints/posts.py
"""Post, comment, like, and repost endpoints for the Ripple API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query
from sqlalchemy.orm import Session

from ripple_stage.api.v1.dependencies import CurrentUserDep, MediaStoreDep, SessionDep
from ripple_stage.core.settings import settings
from ripple_stage.models import ContentKind, User
from ripple_stage.schemas.content import (
    CommentCreate,
    ContentOut,
    DeleteResponse,
    FeedPage,
    PostCreate,
    PresignRequest,
    PresignResponse,
)
from ripple_stage.services.deletion import CascadeDeleter
from ripple_stage.services.feed import FeedService
from ripple_stage.services.interactions import InteractionService
from ripple_stage.services.mentions import extract_mentions, validate_mentions

router = APIRouter(prefix="/posts", tags=["posts"])


def _mentioned_users(db: Session, content: str, author: User) -> list[User]:
    users = validate_mentions(db, extract_mentions(content))
    return [user for user in users if user.id != author.id]


@router.get("", response_model=FeedPage)
async def get_feed(
    current_user: CurrentUserDep,
    db: SessionDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> FeedPage:
    """Return the caller's and followed users' posts, newest first."""
    page_size = min(limit or settings.feed_page_size, settings.feed_max_page_size)
    return FeedService(db).get_feed(current_user.id, page=page, limit=page_size)


@router.post("", response_model=ContentOut)
async def create_post(
    post_data: PostCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    media_store: MediaStoreDep,
) -> ContentOut:
    """Create a top-level post."""
    mentioned = _mentioned_users(db, post_data.content, current_user)
    post = InteractionService(db, media_store).create_post(
        current_user.id,
        post_data.content,
        post_data.media,
        mentioned=mentioned,
    )
    return FeedService(db).get_thread(post.id)


@router.post("/media/presign", response_model=PresignResponse)
async def presign_media_upload(
    request: PresignRequest,
    current_user: CurrentUserDep,
    media_store: MediaStoreDep,
) -> PresignResponse:
    """Issue a presigned URL for uploading one image or video."""
    return PresignResponse(**media_store.create_upload_url(current_user.id, request.content_type))


@router.get("/{post_id}", response_model=ContentOut)
async def get_post(post_id: int, db: SessionDep) -> ContentOut:
    """Return one post or comment with its full comment subtree."""
    return FeedService(db).get_thread(post_id)


@router.delete("/{post_id}", response_model=DeleteResponse)
async def delete_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    media_store: MediaStoreDep,
) -> DeleteResponse:
    """Delete an owned entity together with its comments, notifications, and media."""
    kind = CascadeDeleter(db, media_store).delete_entity(post_id, current_user.id)
    label = "Comment" if kind == ContentKind.COMMENT.value else "Post"
    return DeleteResponse(kind=kind, message=f"{label} deleted")


@router.get("/{post_id}/comments", response_model=list[ContentOut])
async def get_comments(post_id: int, db: SessionDep) -> list[ContentOut]:
    """Return the direct comments of an entity, each with its replies."""
    return FeedService(db).get_comments(post_id)


@router.post("/{post_id}/comments", response_model=ContentOut)
async def create_comment(
    post_id: int,
    comment_data: CommentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    media_store: MediaStoreDep,
) -> ContentOut:
    """Comment on a post or on a comment."""
    mentioned = _mentioned_users(db, comment_data.content, current_user)
    comment = InteractionService(db, media_store).create_comment(
        current_user.id,
        post_id,
        comment_data.content,
        comment_data.media,
        mentioned=mentioned,
    )
    return FeedService(db).get_thread(comment.id)


@router.post("/{post_id}/reply", response_model=ContentOut)
async def create_reply(
    post_id: int,
    comment_data: CommentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    media_store: MediaStoreDep,
) -> ContentOut:
    """Reply to a comment; same rules as commenting."""
    return await create_comment(post_id, comment_data, current_user, db, media_store)


@router.post("/{post_id}/like", response_model=ContentOut)
async def toggle_like(post_id: int, current_user: CurrentUserDep, db: SessionDep) -> ContentOut:
    """Like or unlike an entity; returns it as updated."""
    entity = InteractionService(db).toggle_like(current_user.id, post_id)
    return FeedService(db).get_thread(entity.id)


@router.post("/{post_id}/repost", response_model=ContentOut)
async def toggle_repost(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    media_store: MediaStoreDep,
) -> ContentOut:
    """Repost or un-repost an entity; returns the original as updated."""
    entity = InteractionService(db, media_store).toggle_repost(current_user.id, post_id)
    return FeedService(db).get_thread(entity.id)
