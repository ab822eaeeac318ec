"""S3-compatible object storage (Cloudflare R2 by default)."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config

from pdfraster.exceptions import SettingsError
from pdfraster.logging import get_logger

if TYPE_CHECKING:
    from pdfraster.settings import Settings

logger = get_logger(__name__)


def build_client_config(settings: Settings) -> Config:
    """Build the botocore client configuration from settings.

    Args:
        settings (Settings): Runtime settings.

    Returns:
        Config: Client configuration with timeouts, pool size and proxies.
    """
    return Config(
        region_name=settings.region,
        connect_timeout=settings.timeout,
        read_timeout=settings.timeout,
        max_pool_connections=settings.max_connections,
        proxies=settings.proxies or None,
        retries={"max_attempts": 1, "mode": "standard"},
    )


class S3ObjectStore:
    """Object store backed by one shared boto3 client.

    boto3 clients are thread-safe, so blocking `put_object` calls are pushed to
    worker threads and may run concurrently.
    """

    def __init__(self, client: Any, bucket: str) -> None:
        self._client = client
        self._bucket = bucket

    @property
    def bucket(self) -> str:
        """Return the target bucket name."""
        return self._bucket

    @classmethod
    def from_settings(cls, settings: Settings) -> S3ObjectStore:
        """Create a store from runtime settings.

        Args:
            settings (Settings): Runtime settings.

        Raises:
            SettingsError: If bucket, credentials or endpoint are missing.

        Returns:
            S3ObjectStore: Configured store.
        """
        missing = [
            name
            for name, value in (
                ("PDF_BUCKET", settings.bucket),
                ("PDF_KEY_ID", settings.key_id),
                ("PDF_SECRET", settings.secret),
                ("PDF_ACCOUNT_ID or PDF_ENDPOINT_URL", settings.storage_endpoint),
            )
            if not value
        ]
        if missing:
            raise SettingsError(message=f"Missing storage settings: {', '.join(missing)}")

        client = boto3.client(
            "s3",
            endpoint_url=settings.storage_endpoint,
            aws_access_key_id=settings.key_id,
            aws_secret_access_key=settings.secret,
            verify=settings.cert_path or True,
            config=build_client_config(settings),
        )
        logger.info(
            "Object store configured",
            extra={"endpoint": settings.storage_endpoint, "bucket": settings.bucket},
        )
        return cls(client, settings.bucket or "")

    async def put_object(self, key: str, data: bytes, *, content_type: str) -> None:
        """Write bytes at key.

        Args:
            key (str): Object key.
            data (bytes): Object payload.
            content_type (str): MIME type stored with the object.
        """
        await asyncio.to_thread(
            self._client.put_object,
            Bucket=self._bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
        logger.debug("Object stored", extra={"key": key, "bytes": len(data)})
