# mypy: ignore-errors
"""Tests for the S3 media store."""

import pytest

from ripple_stage.errors import ValidationError
from ripple_stage.models.content import MediaType
from ripple_stage.services.media import MediaStore, media_type_for


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("posts/1/a.png", "posts/1/a.png"),
        ("/posts/1/a.png", "posts/1/a.png"),
        ("https://test-bucket.s3.eu-west-1.amazonaws.com/posts/1/a.png", "posts/1/a.png"),
        ("https://minio.local/test-bucket/posts/1/a.png", "posts/1/a.png"),
        ("", ""),
        (None, ""),
    ],
)
def test_key_from_normalises_urls(media_store, value, expected) -> None:
    """Virtual-host and path-style URLs reduce to the bare key."""
    assert media_store.key_from(value) == expected


def test_public_url_styles(s3_client) -> None:
    """Custom endpoints use path style; AWS uses virtual-host style."""
    aws = MediaStore("bucket", region="eu-west-1", client=s3_client)
    minio = MediaStore("bucket", endpoint_url="http://minio.local/", client=s3_client)

    assert aws.public_url("k.png") == "https://bucket.s3.eu-west-1.amazonaws.com/k.png"
    assert minio.public_url("k.png") == "http://minio.local/bucket/k.png"


def test_delete_objects_reports_failures(media_store, s3_client) -> None:
    """Failed keys are returned and the rest are deleted."""
    s3_client.failing_keys.add("posts/1/bad.png")

    failed = media_store.delete_objects(["posts/1/good.png", "posts/1/bad.png", ""])

    assert failed == ["posts/1/bad.png"]
    assert s3_client.deleted == ["posts/1/good.png"]


def test_disabled_store_skips_deletion(s3_client) -> None:
    """Without a bucket nothing is sent to S3."""
    store = MediaStore(None, client=s3_client)

    assert store.enabled is False
    assert store.delete_objects(["posts/1/a.png"]) == []
    assert s3_client.deleted == []
    with pytest.raises(ValidationError):
        store.create_upload_url(1, "image/png")


def test_create_upload_url(media_store, s3_client) -> None:
    """Upload URLs are signed for a per-user key with a matching extension."""
    result = media_store.create_upload_url(7, "image/png")

    assert result["storage_key"].startswith("posts/7/")
    assert result["storage_key"].endswith(".png")
    assert result["media_type"] == "image"
    assert result["public_url"].endswith(result["storage_key"])
    assert result["upload_url"].startswith("https://uploads.test/posts/7/")
    assert s3_client.presigned[0]["ContentType"] == "image/png"


@pytest.mark.parametrize("content_type", ["application/pdf", "image/", "text/plain"])
def test_unsupported_upload_types(content_type) -> None:
    """Only images and videos may be uploaded."""
    with pytest.raises(ValidationError):
        media_type_for(content_type)


def test_video_uploads_are_videos() -> None:
    assert media_type_for("video/mp4") is MediaType.VIDEO


def test_create_avatar_upload_url(media_store, s3_client) -> None:
    """Avatar keys live under the user's avatar prefix, named by timestamp."""
    result = media_store.create_avatar_upload_url(7, "image/webp")

    key = result["storage_key"]
    assert key.startswith("avatars/7/")
    assert key.endswith(".webp")
    assert key[len("avatars/7/") : -len(".webp")].isdigit()
    assert result["public_url"] == media_store.public_url(key)
    assert s3_client.presigned[0]["Key"] == key


@pytest.mark.parametrize("content_type", ["image/gif", "video/mp4", "image/svg+xml"])
def test_avatar_upload_rejects_other_types(media_store, content_type) -> None:
    """Avatars must be JPEG, PNG or WebP."""
    with pytest.raises(ValidationError):
        media_store.create_avatar_upload_url(7, content_type)
