"""@username mention parsing and resolution."""
from __future__ import annotations

import re
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from ripple_stage.errors import InvalidMentionsError
from ripple_stage.models import User

MENTION_PATTERN = re.compile(r"@(\w+)")


def extract_mentions(text: str | None) -> list[str]:
    """Return distinct lowercased usernames mentioned in ``text``, in order."""
    if not text:
        return []
    return list(dict.fromkeys(match.lower() for match in MENTION_PATTERN.findall(text)))


def resolve_mentions(session: Session, usernames: Iterable[str]) -> dict[str, User]:
    """Return the users matching ``usernames`` keyed by lowercase username."""
    names = list(dict.fromkeys(name.lower().lstrip("@") for name in usernames if name))
    if not names:
        return {}
    users = session.scalars(select(User).where(User.username.in_(names)))
    return {user.username: user for user in users}


def validate_mentions(session: Session, usernames: Iterable[str]) -> list[User]:
    """Resolve every username or fail with one aggregated error.

    Raises:
        InvalidMentionsError: Listing each username with no matching account.
    """
    names = list(dict.fromkeys(name.lower().lstrip("@") for name in usernames if name))
    found = resolve_mentions(session, names)
    missing = [name for name in names if name not in found]
    if missing:
        raise InvalidMentionsError(missing)
    return [found[name] for name in names]
