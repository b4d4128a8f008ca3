# mypy: ignore-errors
"""Tests for mention parsing and validation."""

import pytest

from ripple_stage.errors import InvalidMentionsError
from ripple_stage.services.mentions import extract_mentions, resolve_mentions, validate_mentions


def test_extract_mentions_dedupes_in_order() -> None:
    """Handles are lowercased and reported once each."""
    assert extract_mentions("hey @Bob, @carol and @bob again") == ["bob", "carol"]
    assert extract_mentions("no handles here") == []
    assert extract_mentions(None) == []


def test_resolve_mentions_ignores_unknown(db_session, other_user) -> None:
    """Only existing accounts are resolved."""
    found = resolve_mentions(db_session, ["@bob", "ghost"])
    assert list(found) == ["bob"]
    assert found["bob"].id == other_user.id


def test_validate_mentions_reports_every_missing_name(db_session, other_user) -> None:
    """The error lists each unknown handle."""
    with pytest.raises(InvalidMentionsError) as excinfo:
        validate_mentions(db_session, ["bob", "ghost", "nobody"])
    assert excinfo.value.usernames == ["ghost", "nobody"]


def test_validate_mentions_returns_users(db_session, other_user, third_user) -> None:
    """Valid handles resolve to users in the requested order."""
    users = validate_mentions(db_session, ["carol", "bob"])
    assert [user.id for user in users] == [third_user.id, other_user.id]
