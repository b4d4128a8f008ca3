"""Post, comment, and repost Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ripple_stage.models.content import MediaType


class MediaItem(BaseModel):
    """Attachment stored in object storage."""

    media_type: MediaType = Field(..., description="image or video")
    url: str = Field(..., min_length=1, description="Public URL of the object")
    storage_key: str = Field(..., min_length=1, description="Object storage key")


class PostCreate(BaseModel):
    """Schema for creating a top-level post."""

    content: str = Field("", description="Text body; may be empty when media is attached")
    media: list[MediaItem] = Field(default_factory=list, description="Ordered attachments")


class CommentCreate(PostCreate):
    """Schema for commenting on a post or a comment."""


class AuthorSummary(BaseModel):
    """Author fields embedded in every formatted entity."""

    id: int
    username: str
    avatar: str | None = None

    model_config = ConfigDict(from_attributes=True)


class OriginalPostSummary(BaseModel):
    """Reference to the entity a repost points at."""

    id: int
    kind: str
    author: AuthorSummary


class ContentOut(BaseModel):
    """Entity formatted for display, optionally with nested comments.

    ``child_ids`` always lists the direct children; ``comments`` holds the
    expanded ones and stays empty where expansion stopped.
    """

    id: int
    kind: str
    content: str
    author: AuthorSummary
    depth: int
    parent_id: int | None = None
    root_id: int | None = None
    original_post_id: int | None = None
    original_post: OriginalPostSummary | None = None
    likes: list[int] = Field(default_factory=list)
    reposts: list[int] = Field(default_factory=list)
    child_ids: list[int] = Field(default_factory=list)
    comments: list[ContentOut] = Field(default_factory=list)
    media: list[MediaItem] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class FeedPage(BaseModel):
    """One page of the home feed or a profile timeline."""

    posts: list[ContentOut]
    next_page: int | None = None


class DeleteResponse(BaseModel):
    """Result of a cascade deletion."""

    kind: str
    message: str


class PresignRequest(BaseModel):
    """Request for a presigned media upload URL."""

    content_type: str = Field(..., description="MIME type, image/* or video/*")


class PresignResponse(BaseModel):
    """Presigned upload target for one media object."""

    upload_url: str
    public_url: str
    storage_key: str
    media_type: MediaType
