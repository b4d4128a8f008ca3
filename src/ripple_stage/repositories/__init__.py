"""Persistence helpers wrapping SQLAlchemy queries."""

from .content_repo import ContentRepository, normalize_media

__all__ = ["ContentRepository", "normalize_media"]
