# mypy: ignore-errors
"""Tests for account and follow-graph services."""

import pytest
from sqlalchemy import insert, select

from ripple_stage.core.security import hash_password, verify_password
from ripple_stage.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ripple_stage.models import Notification, UserFollow
from ripple_stage.schemas.user import ProfileUpdateRequest
from ripple_stage.services import accounts
from ripple_stage.services.follows import follow_counts, list_connections, toggle_follow

TEST_PASSWORD = "password123"


def test_register_normalises_and_hashes(db_session) -> None:
    """Usernames and emails are stored lowercase; the password is hashed."""
    user = accounts.register_user(db_session, "Dave_1", "Dave@Example.com", "secret123")

    assert user.username == "dave_1"
    assert user.email == "dave@example.com"
    assert user.password_hash != "secret123"
    assert verify_password("secret123", user.password_hash)


def test_password_hashes_are_salted_argon2() -> None:
    first, second = hash_password("secret123"), hash_password("secret123")

    assert first.startswith("$argon2")
    assert first != second
    assert verify_password("secret123", second)
    assert not verify_password("secret124", first)


@pytest.mark.parametrize("stored", ["", "plaintext", "pbkdf2_sha256$1000$c2FsdA$ZGlnZXN0"])
def test_unrecognised_hashes_never_verify(stored) -> None:
    assert verify_password("secret123", stored) is False


@pytest.mark.parametrize(
    ("username", "email", "password"),
    [
        ("bad name", "x@example.com", "secret123"),
        ("", "x@example.com", "secret123"),
        ("x" * 25, "x@example.com", "secret123"),
        ("dave", "not-an-email", "secret123"),
        ("dave", "x@example.com", "short1"),
        ("dave", "x@example.com", "lettersonly"),
    ],
)
def test_register_rejects_invalid_fields(db_session, username, email, password) -> None:
    with pytest.raises(ValidationError):
        accounts.register_user(db_session, username, email, password)


def test_register_conflicts(db_session, test_user) -> None:
    """Taken usernames and emails are reported separately."""
    with pytest.raises(ConflictError, match="Username"):
        accounts.register_user(db_session, "alice", "new@example.com", "secret123")
    with pytest.raises(ConflictError, match="Email"):
        accounts.register_user(db_session, "alice2", "alice@example.com", "secret123")


def test_authenticate_by_username_or_email(db_session, test_user) -> None:
    assert accounts.authenticate_user(db_session, "alice", TEST_PASSWORD).id == test_user.id
    assert accounts.authenticate_user(db_session, "ALICE@example.com", TEST_PASSWORD).id == test_user.id
    with pytest.raises(AuthenticationError):
        accounts.authenticate_user(db_session, "alice", "wrong-password1")
    with pytest.raises(AuthenticationError):
        accounts.authenticate_user(db_session, "nobody", TEST_PASSWORD)


def test_change_password(db_session, test_user) -> None:
    """The current password must match before a new one is stored."""
    with pytest.raises(ValidationError):
        accounts.change_password(db_session, test_user, "wrong-password1", "newsecret1")

    accounts.change_password(db_session, test_user, TEST_PASSWORD, "newsecret1")

    assert accounts.authenticate_user(db_session, "alice", "newsecret1").id == test_user.id


def test_update_profile_partial(db_session, test_user) -> None:
    """Unset fields are left alone and an empty avatar keeps the current one."""
    original_avatar = test_user.avatar
    accounts.update_profile(db_session, test_user, ProfileUpdateRequest(bio="hi", avatar=""))

    assert test_user.bio == "hi"
    assert test_user.avatar == original_avatar
    assert test_user.location is None


def test_search_users(db_session, test_user, other_user, third_user) -> None:
    """Search matches handle substrings and flags followed users."""
    toggle_follow(db_session, test_user, "bob")

    results = accounts.search_users(db_session, "@B", viewer_id=test_user.id)

    assert [(row.username, row.is_following) for row in results] == [("bob", True)]
    assert accounts.search_users(db_session, "   ") == []


def test_get_user_by_username_missing(db_session) -> None:
    with pytest.raises(NotFoundError):
        accounts.get_user_by_username(db_session, "ghost")


def test_follow_toggle_and_counts(db_session, test_user, other_user) -> None:
    """Following updates both sides; toggling again restores the counts."""
    followed = toggle_follow(db_session, test_user, "bob")

    assert followed.is_following is True
    assert followed.stats.target.followers == 1
    assert followed.stats.current.following == 1
    assert follow_counts(db_session, other_user.id) == (1, 0)
    assert follow_counts(db_session, test_user.id) == (0, 1)
    notes = db_session.scalars(select(Notification)).all()
    assert [(note.type, note.recipient_id) for note in notes] == [("follow", other_user.id)]

    unfollowed = toggle_follow(db_session, test_user, "bob")

    assert unfollowed.is_following is False
    assert follow_counts(db_session, other_user.id) == (0, 0)
    assert follow_counts(db_session, test_user.id) == (0, 0)


def test_follow_rejects_self_and_unknown(db_session, test_user) -> None:
    with pytest.raises(ValidationError):
        toggle_follow(db_session, test_user, "alice")
    with pytest.raises(NotFoundError):
        toggle_follow(db_session, test_user, "ghost")


def test_profile_and_connections(db_session, test_user, other_user, third_user) -> None:
    """Profiles report counts; connection lists flag who the viewer follows."""
    toggle_follow(db_session, test_user, "bob")
    toggle_follow(db_session, third_user, "bob")
    toggle_follow(db_session, test_user, "carol")

    profile = accounts.get_profile(db_session, "bob", viewer_id=test_user.id)
    followers = list_connections(db_session, other_user, "followers", viewer_id=test_user.id)
    following = list_connections(db_session, other_user, "following")

    assert (profile.followers, profile.following, profile.is_following) == (2, 0, True)
    assert [(row.username, row.is_following) for row in followers] == [
        ("alice", False),
        ("carol", True),
    ]
    assert following == []


def test_concurrent_duplicate_follow_is_reported_as_following(
    db_session, test_user, other_user, monkeypatch
) -> None:
    """A follow recorded by another request between lookup and commit is not an error."""
    db_session.execute(
        insert(UserFollow).values(follower_id=test_user.id, followee_id=other_user.id)
    )
    db_session.commit()

    real_get = db_session.get
    stale_lookups = []

    def stale_get(entity, ident, **kwargs):
        if entity is UserFollow and not stale_lookups:
            stale_lookups.append(ident)
            return None
        return real_get(entity, ident, **kwargs)

    monkeypatch.setattr(db_session, "get", stale_get)

    result = toggle_follow(db_session, test_user, "bob")

    assert stale_lookups == [(test_user.id, other_user.id)]
    assert result.is_following is True
    assert result.stats.target.followers == 1
    assert follow_counts(db_session, other_user.id) == (1, 0)
    assert db_session.scalars(select(Notification)).all() == []


def test_update_profile_replaces_custom_avatar(db_session, test_user, media_store, s3_client) -> None:
    """Changing a custom avatar deletes the previous object from storage."""
    old_key = f"{media_store.avatar_prefix(test_user.id)}old.png"
    accounts.update_profile(db_session, test_user, ProfileUpdateRequest(avatar=old_key), media_store)

    assert test_user.avatar == media_store.public_url(old_key)
    assert s3_client.deleted == []

    accounts.update_profile(
        db_session,
        test_user,
        ProfileUpdateRequest(avatar="https://cdn.example/new.png"),
        media_store,
    )

    assert test_user.avatar == "https://cdn.example/new.png"
    assert s3_client.deleted == [old_key]


def test_set_avatar(db_session, test_user, media_store, s3_client) -> None:
    """Uploaded keys become public URLs; the old custom avatar is deleted."""
    prefix = media_store.avatar_prefix(test_user.id)

    first = accounts.set_avatar(db_session, test_user, f"{prefix}1.png", media_store)

    assert first == media_store.public_url(f"{prefix}1.png")
    assert test_user.avatar == first
    assert s3_client.deleted == []

    second = accounts.set_avatar(db_session, test_user, f"{prefix}2.webp", media_store)

    assert test_user.avatar == second
    assert s3_client.deleted == [f"{prefix}1.png"]


def test_set_avatar_rejects_foreign_keys(db_session, test_user, media_store, s3_client) -> None:
    """Keys outside the caller's avatar prefix are refused."""
    for key in ("avatars/999/1.png", "posts/1/1.png", ""):
        with pytest.raises(ValidationError):
            accounts.set_avatar(db_session, test_user, key, media_store)

    assert test_user.has_custom_avatar is False
    assert s3_client.deleted == []
