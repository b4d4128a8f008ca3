# mypy: ignore-errors
"""Tests for the interaction engine."""

import pytest
from sqlalchemy import select

from ripple_stage.errors import DepthExceededError, NotFoundError, ValidationError
from ripple_stage.models import ContentEntity, ContentKind, Notification
from ripple_stage.services.interactions import InteractionService


@pytest.fixture()
def service(db_session, media_store):
    return InteractionService(db_session, media_store)


def _notifications(db_session, **filters):
    query = select(Notification)
    for column, value in filters.items():
        query = query.where(getattr(Notification, column) == value)
    return list(db_session.scalars(query))


def test_comment_thread_scenario(service, test_user, other_user) -> None:
    """Post, comment, reply, then a third level is refused."""
    post = service.create_post(test_user.id, "hello")
    comment = service.create_comment(other_user.id, post.id, "hi")
    reply = service.create_comment(other_user.id, comment.id, "nice")

    assert comment.depth == 1 and comment.root_id == post.id
    assert reply.depth == 2 and reply.root_id == post.id
    assert post.child_ids == [comment.id]
    assert comment.child_ids == [reply.id]

    with pytest.raises(DepthExceededError):
        service.create_comment(test_user.id, reply.id, "too deep")


def test_comment_notifies_parent_author_with_root(service, db_session, test_user, other_user) -> None:
    """The comment notification points at the thread root, not the parent."""
    post = service.create_post(other_user.id, "root")
    comment = service.create_comment(test_user.id, post.id, "first")
    service.create_comment(other_user.id, comment.id, "reply")

    to_alice = _notifications(db_session, recipient_id=test_user.id, type="comment")
    assert len(to_alice) == 1
    assert to_alice[0].sender_id == other_user.id
    assert to_alice[0].related_entity_id == post.id


def test_commenting_on_own_post_is_silent(service, db_session, test_user) -> None:
    """Self-interactions create no notification."""
    post = service.create_post(test_user.id, "mine")
    service.create_comment(test_user.id, post.id, "me again")

    assert _notifications(db_session) == []


def test_comment_on_missing_parent(service, test_user) -> None:
    """Commenting on an unknown entity fails."""
    with pytest.raises(NotFoundError):
        service.create_comment(test_user.id, 12345, "hello?")


def test_toggle_like_is_an_involution(service, db_session, test_user, other_user) -> None:
    """Liking twice restores the original state and retracts the notification."""
    post = service.create_post(test_user.id, "hello")

    liked = service.toggle_like(other_user.id, post.id)
    assert liked.liker_ids == [other_user.id]
    notes = _notifications(db_session, recipient_id=test_user.id, sender_id=other_user.id)
    assert [note.type for note in notes] == ["like"]
    assert notes[0].related_entity_id == post.id

    unliked = service.toggle_like(other_user.id, post.id)
    assert unliked.liker_ids == []
    assert _notifications(db_session, recipient_id=test_user.id) == []


def test_self_like_creates_no_notification(service, db_session, test_user) -> None:
    """An author liking their own post is recorded silently."""
    post = service.create_post(test_user.id, "hello")
    entity = service.toggle_like(test_user.id, post.id)

    assert entity.liker_ids == [test_user.id]
    assert _notifications(db_session) == []


def test_liking_a_comment_sends_comment_like(service, db_session, test_user, other_user) -> None:
    """Comment likes use their own notification type."""
    post = service.create_post(test_user.id, "hello")
    comment = service.create_comment(test_user.id, post.id, "a comment")
    service.toggle_like(other_user.id, comment.id)

    notes = _notifications(db_session, sender_id=other_user.id)
    assert [(note.type, note.related_entity_id) for note in notes] == [("comment_like", comment.id)]


def test_like_missing_entity(service, test_user) -> None:
    """Liking an unknown entity fails."""
    with pytest.raises(NotFoundError):
        service.toggle_like(test_user.id, 999)


def test_toggle_repost_creates_and_removes_copy(service, db_session, test_user, other_user) -> None:
    """Reposting copies the original; undoing it deletes the copy."""
    media = [{"media_type": "image", "url": "https://cdn.test/p.png", "storage_key": "posts/1/p.png"}]
    post = service.create_post(test_user.id, "original", media)

    original = service.toggle_repost(other_user.id, post.id)
    assert original.reposter_ids == [other_user.id]
    repost = service.repo.find_repost(other_user.id, post.id)
    assert repost is not None
    assert repost.kind == ContentKind.REPOST.value
    assert repost.content == "original"
    assert repost.media == media
    assert _notifications(db_session) == []

    original = service.toggle_repost(other_user.id, post.id)
    assert original.reposter_ids == []
    assert service.repo.find_repost(other_user.id, post.id) is None
    assert db_session.get(ContentEntity, post.id) is not None


def test_reposting_a_repost_is_rejected(service, test_user, other_user, third_user) -> None:
    """Reposts are not themselves repostable."""
    post = service.create_post(test_user.id, "original")
    service.toggle_repost(other_user.id, post.id)
    repost = service.repo.find_repost(other_user.id, post.id)

    with pytest.raises(ValidationError):
        service.toggle_repost(third_user.id, repost.id)


def test_mentions_notify_each_user_once(service, db_session, test_user, other_user, third_user) -> None:
    """Mentioned users receive a mention notification for the new entity."""
    post = service.create_post(test_user.id, "hi @bob and @carol", mentioned=[other_user, third_user])

    notes = _notifications(db_session, type="mention")
    assert sorted(note.recipient_id for note in notes) == sorted([other_user.id, third_user.id])
    assert {note.related_entity_id for note in notes} == {post.id}
