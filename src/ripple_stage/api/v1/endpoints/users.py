# src/ripple_stage/api/v1/endpoints/users.py
"""User profile, follow, and account management endpoints."""

from __future__ import annotations

from typing import Annotated, Literal

from fastapi import APIRouter, Query

from ripple_stage.api.v1.dependencies import (
    CurrentUserDep,
    MediaStoreDep,
    OptionalUserDep,
    SessionDep,
)
from ripple_stage.core.settings import settings
from ripple_stage.schemas.content import FeedPage
from ripple_stage.schemas.user import (
    AvatarUpdateRequest,
    AvatarUpdateResponse,
    AvatarUploadRequest,
    AvatarUploadResponse,
    FollowResponse,
    MentionValidationRequest,
    PasswordChangeRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    UserList,
    UserOut,
)
from ripple_stage.services import accounts, follows
from ripple_stage.services.deletion import delete_account
from ripple_stage.services.feed import FeedService
from ripple_stage.services.mentions import validate_mentions

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=UserList)
async def search_users(
    db: SessionDep,
    current_user: OptionalUserDep,
    q: Annotated[str, Query(max_length=50)] = "",
) -> UserList:
    """Find users whose handle contains ``q``."""
    viewer_id = current_user.id if current_user else None
    return UserList(users=accounts.search_users(db, q, viewer_id))


@router.post("/validate-mentions")
async def check_mentions(payload: MentionValidationRequest, db: SessionDep) -> dict[str, bool]:
    """Confirm that every username resolves to an account."""
    validate_mentions(db, payload.usernames)
    return {"valid": True}


@router.get("/me", response_model=UserOut)
async def read_me(current_user: CurrentUserDep) -> UserOut:
    """Return the caller's account."""
    return UserOut.model_validate(current_user)


@router.patch("/me", response_model=UserOut)
async def update_me(
    update_data: ProfileUpdateRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
    media_store: MediaStoreDep,
) -> UserOut:
    """Update the caller's profile fields."""
    user = accounts.update_profile(db, current_user, update_data, media_store)
    return UserOut.model_validate(user)


@router.post("/me/avatar", response_model=AvatarUploadResponse)
async def presign_avatar_upload(
    request: AvatarUploadRequest,
    current_user: CurrentUserDep,
    media_store: MediaStoreDep,
) -> AvatarUploadResponse:
    """Issue a presigned URL for uploading a new avatar image."""
    upload = media_store.create_avatar_upload_url(current_user.id, request.content_type)
    return AvatarUploadResponse(**upload)


@router.put("/me/avatar", response_model=AvatarUpdateResponse)
async def set_avatar(
    payload: AvatarUpdateRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
    media_store: MediaStoreDep,
) -> AvatarUpdateResponse:
    """Use an uploaded image as the caller's avatar."""
    avatar = accounts.set_avatar(db, current_user, payload.key, media_store)
    return AvatarUpdateResponse(avatar=avatar)


@router.post("/me/password")
async def change_password(
    payload: PasswordChangeRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    """Change the caller's password."""
    accounts.change_password(db, current_user, payload.current_password, payload.new_password)
    return {"message": "Password updated successfully"}


@router.delete("/me")
async def delete_me(
    current_user: CurrentUserDep,
    db: SessionDep,
    media_store: MediaStoreDep,
) -> dict[str, str]:
    """Delete the caller's account and everything they created."""
    delete_account(db, current_user, media_store)
    return {"message": "Account deleted"}


@router.get("/{username}", response_model=ProfileResponse)
async def get_profile(
    username: str,
    db: SessionDep,
    current_user: OptionalUserDep,
) -> ProfileResponse:
    """Return a public profile."""
    viewer_id = current_user.id if current_user else None
    return accounts.get_profile(db, username, viewer_id)


@router.get("/{username}/posts", response_model=FeedPage)
async def get_user_posts(
    username: str,
    db: SessionDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> FeedPage:
    """Return a user's posts and reposts, newest first."""
    user = accounts.get_user_by_username(db, username)
    page_size = min(limit or settings.feed_page_size, settings.feed_max_page_size)
    return FeedService(db).get_timeline(user.id, page=page, limit=page_size)


@router.get("/{username}/{direction}", response_model=UserList)
async def list_connections(
    username: str,
    direction: Literal["following", "followers"],
    db: SessionDep,
    current_user: OptionalUserDep,
) -> UserList:
    """List who a user follows, or who follows them."""
    user = accounts.get_user_by_username(db, username)
    viewer_id = current_user.id if current_user else None
    return UserList(users=follows.list_connections(db, user, direction, viewer_id))


@router.post("/{username}/follow", response_model=FollowResponse)
async def toggle_follow(username: str, current_user: CurrentUserDep, db: SessionDep) -> FollowResponse:
    """Follow or unfollow a user."""
    return follows.toggle_follow(db, current_user, username)
