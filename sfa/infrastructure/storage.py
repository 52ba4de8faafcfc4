"""
Blob storage for visit photos over the S3 API.

Works against any S3-compatible endpoint (Backblaze B2, MinIO, AWS). Objects
are addressed by public URL: ``upload`` returns one and ``delete`` accepts one.
"""

from functools import lru_cache
from typing import Optional, Protocol
from urllib.parse import quote, unquote, urlparse

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from sfa.config import get_settings
from sfa.core.exceptions import CompensationError, UploadError

logger = structlog.get_logger(__name__)
settings = get_settings()


class BlobStorage(Protocol):
    """Interface for the external object store."""

    def upload(self, data: bytes, key: str, content_type: str) -> str:
        """Store ``data`` under ``key`` and return its public URL."""
        ...

    def delete(self, url: str) -> None:
        """Remove the object behind a URL previously returned by ``upload``."""
        ...


class S3BlobStorage:
    """BlobStorage implementation using boto3."""

    def __init__(
        self,
        bucket: str,
        endpoint_url: str = "",
        access_key_id: str = "",
        secret_access_key: str = "",
        region: str = "us-east-1",
        public_base_url: str = "",
        client=None,
    ):
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.public_base_url = public_base_url.rstrip("/")
        # Path-style addressing and v4 signatures keep MinIO and B2 happy
        self.client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url or None,
            aws_access_key_id=access_key_id or None,
            aws_secret_access_key=secret_access_key or None,
            region_name=region,
            config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
        )

    def url_for(self, key: str) -> str:
        base = self.public_base_url or f"{self.endpoint_url.rstrip('/')}/{self.bucket}"
        return f"{base}/{quote(key)}"

    def key_from_url(self, url: str) -> str:
        """Recover the object key from a public URL.

        Handles the configured public base, path-style ``/<bucket>/<key>`` and
        B2 download URLs of the form ``/file/<bucket>/<key>``.
        """
        if self.public_base_url and url.startswith(self.public_base_url + "/"):
            return unquote(url[len(self.public_base_url) + 1:])

        path = unquote(urlparse(url).path).lstrip("/")
        for prefix in (f"file/{self.bucket}/", f"{self.bucket}/"):
            if path.startswith(prefix):
                return path[len(prefix):]
        return path

    def upload(self, data: bytes, key: str, content_type: str) -> str:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data or b"",
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as e:
            raise UploadError(f"Image upload failed: {e}", details={"key": key}) from e

        url = self.url_for(key)
        logger.debug("Object uploaded", key=key, url=url)
        return url

    def delete(self, url: str) -> None:
        key = self.key_from_url(url)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise CompensationError(f"Failed to delete {url}: {e}", details={"key": key}) from e
        logger.debug("Object deleted", key=key)


@lru_cache
def get_blob_storage() -> Optional[S3BlobStorage]:
    """Storage configured from settings; None when no bucket is configured."""
    if not settings.S3_BUCKET:
        return None
    return S3BlobStorage(
        bucket=settings.S3_BUCKET,
        endpoint_url=settings.S3_ENDPOINT_URL,
        access_key_id=settings.S3_ACCESS_KEY_ID,
        secret_access_key=settings.S3_SECRET_ACCESS_KEY,
        region=settings.S3_REGION,
        public_base_url=settings.S3_PUBLIC_BASE_URL,
    )
