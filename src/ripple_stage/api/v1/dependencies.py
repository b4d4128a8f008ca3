"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ripple_stage.core.security import decode_access_token
from ripple_stage.db.session import get_db
from ripple_stage.errors import AuthenticationError
from ripple_stage.models import User
from ripple_stage.services.media import MediaStore, get_media_store

# HTTP Bearer scheme; missing credentials are reported as our own 401 body
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
CredentialsDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def get_optional_user(credentials: CredentialsDep, db: SessionDep) -> User | None:
    """Return the authenticated user, or None for anonymous or invalid tokens."""
    if credentials is None:
        return None
    try:
        user_id = decode_access_token(credentials.credentials)
    except AuthenticationError:
        return None
    return db.get(User, user_id)


def get_current_user(credentials: CredentialsDep, db: SessionDep) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        AuthenticationError: If the token is missing or invalid, or the user is gone
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")
    user_id = decode_access_token(credentials.credentials)
    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User not found")
    return user


# Type aliases for user and media dependencies
CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]
MediaStoreDep = Annotated[MediaStore, Depends(get_media_store)]
