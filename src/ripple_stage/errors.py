"""Domain error taxonomy shared by services and the HTTP layer.

Services raise these exceptions; handlers registered in
:mod:`ripple_stage.main` translate them into ``{"error", "message"}`` bodies.
"""

from __future__ import annotations

from fastapi import status


class RippleError(Exception):
    """Base class for expected, client-facing failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    error: str = "bad_request"
    default_message: str = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, object]:
        """Return the JSON body rendered for this error."""
        return {"error": self.error, "message": self.message}


class ValidationError(RippleError):
    """Bad input shape, length, or empty content."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "validation_error"
    default_message = "Invalid request"


class DepthExceededError(ValidationError):
    """Comment nesting would exceed the maximum depth."""

    error = "depth_exceeded"
    default_message = "Maximum comment depth exceeded"


class InvalidMentionsError(ValidationError):
    """One or more @username tokens do not resolve to a user."""

    error = "invalid_mentions"

    def __init__(self, usernames: list[str]) -> None:
        self.usernames = list(usernames)
        super().__init__("Invalid mentions: @" + ", @".join(self.usernames))

    def to_dict(self) -> dict[str, object]:
        body = super().to_dict()
        body["invalid_mentions"] = self.usernames
        return body


class NotFoundError(RippleError):
    """Referenced entity, user, or notification does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    error = "not_found"
    default_message = "Not found"


class ForbiddenError(RippleError):
    """The actor does not own the resource."""

    status_code = status.HTTP_403_FORBIDDEN
    error = "forbidden"
    default_message = "Forbidden"


class ConflictError(RippleError):
    """Duplicate username or email."""

    status_code = status.HTTP_409_CONFLICT
    error = "conflict"
    default_message = "Resource already exists"


class AuthenticationError(RippleError):
    """Missing, invalid, or expired credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error = "unauthorized"
    default_message = "Could not validate credentials"


__all__ = [
    "AuthenticationError",
    "ConflictError",
    "DepthExceededError",
    "ForbiddenError",
    "InvalidMentionsError",
    "NotFoundError",
    "RippleError",
    "ValidationError",
]
