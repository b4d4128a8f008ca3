"""Password hashing and access-token helpers."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from pwdlib import PasswordHash
from pwdlib.exceptions import UnknownHashError

from ripple_stage.core.settings import settings
from ripple_stage.errors import AuthenticationError

password_hash = PasswordHash.recommended()


def hash_password(password: str) -> str:
    """Return an Argon2 hash of ``password``."""
    return password_hash.hash(password)


def verify_password(password: str, encoded: str) -> bool:
    """Check ``password`` against a stored hash; unknown formats never match."""
    try:
        return password_hash.verify(password, encoded)
    except UnknownHashError:
        return False


def create_access_token(
    user_id: int,
    extra_claims: dict[str, str] | None = None,
    *,
    expires_delta: timedelta | None = None,
) -> str:
    """Create JWT access token for user authentication."""
    to_encode: dict[str, object] = {"sub": str(user_id)}
    if extra_claims:
        to_encode.update(extra_claims)
    expires_delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    expire = datetime.now(UTC) + expires_delta
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> int:
    """Return the user id carried by ``token``.

    Raises:
        AuthenticationError: If the token is malformed, expired, or has no subject.
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise AuthenticationError() from err

    subject = payload.get("sub")
    if subject is None:
        raise AuthenticationError()
    try:
        return int(subject)
    except (TypeError, ValueError) as err:
        raise AuthenticationError() from err
