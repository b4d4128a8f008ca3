# mypy: ignore-errors
"""Tests for the content entity store."""

import pytest

from ripple_stage.errors import DepthExceededError, NotFoundError, ValidationError
from ripple_stage.models import ContentKind
from ripple_stage.repositories.content_repo import ContentRepository

IMAGE = {"media_type": "image", "url": "https://cdn.test/a.png", "storage_key": "posts/1/a.png"}


@pytest.fixture()
def repo(db_session):
    return ContentRepository(db_session, max_content_length=5000)


def test_create_post_trims_content(repo, test_user) -> None:
    """Posts are stored at depth zero with trimmed text and no references."""
    post = repo.create(kind=ContentKind.POST, author_id=test_user.id, content="  hello  ")

    assert post.id is not None
    assert post.content == "hello"
    assert post.depth == 0
    assert post.parent_id is None
    assert post.root_id is None
    assert post.child_ids == []


@pytest.mark.parametrize("content", ["", "   ", None])
def test_create_requires_content_or_media(repo, test_user, content) -> None:
    """Whitespace-only text without media is rejected."""
    with pytest.raises(ValidationError):
        repo.create(kind=ContentKind.POST, author_id=test_user.id, content=content)


def test_media_only_post_is_allowed(repo, test_user) -> None:
    """A post may have no text when it carries media."""
    post = repo.create(kind=ContentKind.POST, author_id=test_user.id, content="", media=[IMAGE])

    assert post.content == ""
    assert post.media == [IMAGE]
    assert post.storage_keys == ["posts/1/a.png"]


def test_invalid_media_type_rejected(repo, test_user) -> None:
    """Only image and video attachments are accepted."""
    with pytest.raises(ValidationError):
        repo.create(
            kind=ContentKind.POST,
            author_id=test_user.id,
            content="x",
            media=[{**IMAGE, "media_type": "audio"}],
        )


def test_content_length_limit(repo, test_user) -> None:
    """Text longer than the configured maximum is rejected."""
    with pytest.raises(ValidationError):
        repo.create(kind=ContentKind.POST, author_id=test_user.id, content="a" * 5001)


def test_comment_depth_and_root(repo, test_user, other_user) -> None:
    """Depth grows by one per level and root always points at the post."""
    post = repo.create(kind=ContentKind.POST, author_id=test_user.id, content="hello")
    first = repo.create(
        kind=ContentKind.COMMENT, author_id=other_user.id, content="hi", parent=post
    )
    second = repo.create(
        kind=ContentKind.COMMENT, author_id=other_user.id, content="nice", parent=first.id
    )

    assert (first.depth, first.parent_id, first.root_id) == (1, post.id, post.id)
    assert (second.depth, second.parent_id, second.root_id) == (2, first.id, post.id)

    with pytest.raises(DepthExceededError):
        repo.create(kind=ContentKind.COMMENT, author_id=test_user.id, content="no", parent=second)


def test_comment_requires_existing_parent(repo, test_user) -> None:
    """Commenting on a missing entity fails with not found."""
    with pytest.raises(NotFoundError):
        repo.create(kind=ContentKind.COMMENT, author_id=test_user.id, content="hi", parent=9999)


def test_kind_specific_references_are_validated(repo, test_user) -> None:
    """Posts take no parent and reposts need an original."""
    post = repo.create(kind=ContentKind.POST, author_id=test_user.id, content="hello")

    with pytest.raises(ValidationError):
        repo.create(kind=ContentKind.POST, author_id=test_user.id, content="x", parent=post)
    with pytest.raises(ValidationError):
        repo.create(kind=ContentKind.REPOST, author_id=test_user.id, content="x")
    with pytest.raises(ValidationError):
        repo.create(kind=ContentKind.COMMENT, author_id=test_user.id, content="x")


def test_append_and_remove_child_preserve_order(repo, test_user) -> None:
    """Children are kept in insertion order."""
    post = repo.create(kind=ContentKind.POST, author_id=test_user.id, content="hello")
    for child_id in (11, 12, 13):
        repo.append_child(post, child_id)
    repo.remove_child(post.id, 12)

    assert post.child_ids == [11, 13]


def test_find_by_id_missing(repo) -> None:
    """Unknown ids raise not found."""
    with pytest.raises(NotFoundError):
        repo.find_by_id(424242)
