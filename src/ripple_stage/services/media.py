"""Object storage for post media and avatars (S3 via boto3)."""
from __future__ import annotations

import logging
import mimetypes
import time
import uuid
from collections.abc import Iterable
from functools import lru_cache
from typing import Any
from urllib.parse import urlsplit

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ripple_stage.core.settings import settings
from ripple_stage.errors import ValidationError
from ripple_stage.models.content import MediaType

logger = logging.getLogger(__name__)

_UPLOAD_PREFIXES: dict[str, MediaType] = {
    "image/": MediaType.IMAGE,
    "video/": MediaType.VIDEO,
}

AVATAR_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/webp"})


def media_type_for(content_type: str) -> MediaType:
    """Map a MIME type to the attachment type it is stored as.

    Raises:
        ValidationError: For anything that is not an image or a video.
    """
    for prefix, media_type in _UPLOAD_PREFIXES.items():
        if content_type.startswith(prefix) and len(content_type) > len(prefix):
            return media_type
    raise ValidationError("Only image and video uploads are supported")


class MediaStore:
    """Thin wrapper around an S3 bucket.

    A store without a bucket is disabled: deletions become no-ops and upload
    URLs cannot be issued.
    """

    def __init__(
        self,
        bucket: str | None,
        *,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        upload_expire_seconds: int = 3600,
        client: Any | None = None,
    ) -> None:
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None
        self.upload_expire_seconds = upload_expire_seconds
        self._client = client

    @property
    def enabled(self) -> bool:
        return bool(self.bucket)

    @property
    def client(self) -> Any:
        """Return the S3 client, creating it on first use."""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                endpoint_url=self.endpoint_url,
            )
        return self._client

    def public_url(self, key: str) -> str:
        """Return the URL an object is served from."""
        if self.endpoint_url:
            return f"{self.endpoint_url}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def key_from(self, url_or_key: str | None) -> str:
        """Normalise a stored URL or key to a bare object key."""
        candidate = (url_or_key or "").strip()
        if not candidate:
            return ""
        parts = urlsplit(candidate)
        if not (parts.scheme and parts.netloc):
            return candidate.lstrip("/")
        path = parts.path.lstrip("/")
        if self.bucket and not parts.netloc.startswith(f"{self.bucket}.") and path.startswith(
            f"{self.bucket}/"
        ):
            path = path[len(self.bucket) + 1 :]
        return path

    def delete_objects(self, keys: Iterable[str]) -> list[str]:
        """Delete each object, logging failures instead of raising.

        Args:
            keys: Storage keys or full object URLs.

        Returns:
            The keys whose deletion failed.
        """
        normalized = [key for key in (self.key_from(item) for item in keys) if key]
        if not normalized:
            return []
        if not self.enabled:
            logger.debug("Media store disabled; skipping deletion of %s objects", len(normalized))
            return []

        failed: list[str] = []
        for key in normalized:
            try:
                self.client.delete_object(Bucket=self.bucket, Key=key)
            except (BotoCoreError, ClientError) as exc:
                logger.warning("Failed to delete media object %s: %s", key, exc)
                failed.append(key)
        return failed

    def create_upload_url(self, user_id: int, content_type: str) -> dict[str, str]:
        """Issue a presigned PUT URL for a new post attachment.

        Returns:
            ``upload_url``, ``public_url``, ``storage_key`` and ``media_type``.

        Raises:
            ValidationError: When storage is disabled, the content type is not
                an image or video, or S3 refuses to sign.
        """
        if not self.enabled:
            raise ValidationError("Media uploads are not configured")
        media_type = media_type_for(content_type)
        extension = (mimetypes.guess_extension(content_type) or ".bin").lstrip(".")
        key = f"posts/{user_id}/{int(time.time() * 1000)}-{uuid.uuid4().hex}.{extension}"

        return {
            "upload_url": self._presign_put(user_id, key, content_type),
            "public_url": self.public_url(key),
            "storage_key": key,
            "media_type": media_type.value,
        }

    def create_avatar_upload_url(self, user_id: int, content_type: str) -> dict[str, str]:
        """Issue a presigned PUT URL for a new profile picture.

        Only JPEG, PNG and WebP images are accepted.

        Returns:
            ``upload_url``, ``public_url`` and ``storage_key``.
        """
        if not self.enabled:
            raise ValidationError("Media uploads are not configured")
        if content_type not in AVATAR_CONTENT_TYPES:
            raise ValidationError("Avatar must be a JPEG, PNG or WebP image")
        extension = content_type.split("/", 1)[1]
        key = f"{self.avatar_prefix(user_id)}{int(time.time() * 1000)}.{extension}"

        return {
            "upload_url": self._presign_put(user_id, key, content_type),
            "public_url": self.public_url(key),
            "storage_key": key,
        }

    @staticmethod
    def avatar_prefix(user_id: int) -> str:
        return f"avatars/{user_id}/"

    def _presign_put(self, user_id: int, key: str, content_type: str) -> str:
        try:
            upload_url: str = self.client.generate_presigned_url(
                ClientMethod="put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=self.upload_expire_seconds,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.warning("Failed to presign upload for user %s: %s", user_id, exc)
            raise ValidationError("Could not create upload URL") from exc
        return upload_url


@lru_cache
def get_media_store() -> MediaStore:
    """Return the process-wide media store built from settings."""
    return MediaStore(
        settings.media_bucket,
        region=settings.media_region,
        endpoint_url=settings.media_endpoint_url,
        upload_expire_seconds=settings.media_upload_expire_seconds,
    )
