"""Registration, authentication, and profile helpers for user accounts."""
from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ripple_stage.core import security
from ripple_stage.core.settings import settings
from ripple_stage.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ripple_stage.models import User
from ripple_stage.schemas.user import ProfileResponse, ProfileUpdateRequest, UserSummary
from ripple_stage.services import follows
from ripple_stage.services.media import MediaStore

__all__ = [
    "register_user",
    "authenticate_user",
    "change_password",
    "get_user_by_username",
    "get_profile",
    "search_users",
    "update_profile",
    "set_avatar",
]

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[a-z0-9_]+$")
_email_adapter: TypeAdapter[str] = TypeAdapter(EmailStr)
SEARCH_LIMIT = 10


def _validate_username(username: str) -> str:
    normalized = username.strip().lower()
    if not normalized or len(normalized) > settings.username_max_length:
        raise ValidationError(
            f"Username must be between 1 and {settings.username_max_length} characters"
        )
    if not USERNAME_PATTERN.match(normalized):
        raise ValidationError("Username may only contain letters, numbers and underscores")
    return normalized


def _validate_email(email: str) -> str:
    try:
        normalized = _email_adapter.validate_python(email.strip())
    except PydanticValidationError as err:
        raise ValidationError("Invalid email address") from err
    return normalized.lower()


def _validate_password(password: str) -> None:
    if len(password) < settings.password_min_length:
        raise ValidationError(
            f"Password must be at least {settings.password_min_length} characters"
        )
    if not any(char.isalpha() for char in password) or not any(
        char.isdigit() for char in password
    ):
        raise ValidationError("Password must contain at least one letter and one number")


def register_user(db: Session, username: str, email: str, password: str) -> User:
    """Create a new account.

    Args:
        db: Database session; committed on success.
        username: Requested handle, stored lowercase.
        email: Contact address, stored lowercase.
        password: Plain-text password, stored as a salted hash.

    Returns:
        The persisted user.

    Raises:
        ValidationError: If any field fails its format rules.
        ConflictError: If the username or email is already registered.
    """
    username = _validate_username(username)
    email = _validate_email(email)
    _validate_password(password)

    existing = db.scalar(select(User).where(or_(User.username == username, User.email == email)))
    if existing is not None:
        field = "Username" if existing.username == username else "Email"
        raise ConflictError(f"{field} is already taken")

    user = User(username=username, email=email, password_hash=security.hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s (%s)", user.id, username)
    return user


def authenticate_user(db: Session, login: str, password: str) -> User:
    """Return the user matching ``login`` (username or email) and ``password``.

    Raises:
        AuthenticationError: If no account matches or the password is wrong.
    """
    identifier = login.strip().lower()
    user = db.scalar(select(User).where(or_(User.username == identifier, User.email == identifier)))
    if user is None or not security.verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    """Replace the user's password after verifying the current one.

    Raises:
        ValidationError: If the current password is wrong or the new one is weak.
    """
    if not security.verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")
    _validate_password(new_password)
    user.password_hash = security.hash_password(new_password)
    db.commit()
    logger.info("User %s changed their password", user.id)


def get_user_by_username(db: Session, username: str) -> User:
    """Return a user by handle.

    Raises:
        NotFoundError: If no such user exists.
    """
    user = db.scalar(select(User).where(User.username == username.lower()))
    if user is None:
        raise NotFoundError("User not found")
    return user


def get_profile(db: Session, username: str, viewer_id: int | None = None) -> ProfileResponse:
    """Return a public profile with follow counts."""
    user = get_user_by_username(db, username)
    followers, following = follows.follow_counts(db, user.id)
    return ProfileResponse(
        id=user.id,
        username=user.username,
        avatar=user.avatar,
        bio=user.bio,
        location=user.location,
        website=user.website,
        followers=followers,
        following=following,
        is_following=follows.is_following(db, viewer_id, user.id),
        created_at=user.created_at,
    )


def search_users(db: Session, query: str, viewer_id: int | None = None) -> list[UserSummary]:
    """Return up to ten users whose handle contains ``query``."""
    term = query.strip().lower().lstrip("@")
    if not term:
        return []
    rows: Sequence[User] = db.scalars(
        select(User)
        .where(func.lower(User.username).contains(term, autoescape=True))
        .order_by(User.username)
        .limit(SEARCH_LIMIT)
    ).all()
    viewer_follows = set(follows.following_ids(db, viewer_id)) if viewer_id is not None else set()
    return [
        UserSummary(
            id=row.id,
            username=row.username,
            avatar=row.avatar,
            bio=row.bio or "",
            is_following=row.id in viewer_follows,
        )
        for row in rows
    ]


def _replace_avatar(db: Session, user: User, avatar: str, media_store: MediaStore | None) -> None:
    previous = user.avatar if user.has_custom_avatar else None
    user.avatar = avatar
    db.commit()
    if previous and previous != avatar and media_store is not None:
        media_store.delete_objects([previous])


def update_profile(
    db: Session,
    user: User,
    update_data: ProfileUpdateRequest,
    media_store: MediaStore | None = None,
) -> User:
    """Apply partial updates to profile fields.

    A new avatar may be given as a URL or as a key under the user's avatar
    prefix; the replaced custom avatar is removed from storage.
    """
    update_dict = update_data.model_dump(exclude_unset=True)
    avatar = update_dict.pop("avatar", None)
    for key, value in update_dict.items():
        setattr(user, key, value)

    if avatar:
        if media_store is not None and avatar.startswith(media_store.avatar_prefix(user.id)):
            avatar = media_store.public_url(avatar)
        _replace_avatar(db, user, avatar, media_store)
    else:
        db.commit()
    db.refresh(user)
    return user


def set_avatar(db: Session, user: User, key: str, media_store: MediaStore) -> str:
    """Point the user's avatar at an uploaded object and return its URL.

    Raises:
        ValidationError: If storage is disabled or ``key`` is not under the
            user's avatar prefix.
    """
    if not media_store.enabled:
        raise ValidationError("Media uploads are not configured")
    key = media_store.key_from(key)
    if not key.startswith(media_store.avatar_prefix(user.id)):
        raise ValidationError("Invalid avatar key")
    avatar = media_store.public_url(key)
    _replace_avatar(db, user, avatar, media_store)
    logger.info("User %s changed their avatar", user.id)
    return avatar
