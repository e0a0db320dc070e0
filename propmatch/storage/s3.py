"""
S3-compatible object store.
Uses a boto3 client; blocking calls run in a worker thread.
"""

import asyncio
import logging
from typing import Optional
import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from propmatch.storage.base import ObjectStore
from propmatch.utils.exceptions import UploadFailureError, CleanupFailureError

logger = logging.getLogger(__name__)


class S3ObjectStore(ObjectStore):
    """Object store backed by an S3 bucket."""

    def __init__(
        self,
        bucket: str,
        public_base_url: str,
        region: str = "eu-north-1",
        endpoint_url: Optional[str] = None,
        cache_control: str = "max-age=3600",
        client=None
    ):
        super().__init__(bucket, public_base_url)
        self.cache_control = cache_control
        self._client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            config=Config(
                region_name=region,
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "standard"},
            ),
        )

    async def _exists(self, path: str) -> bool:
        try:
            await asyncio.to_thread(self._client.head_object, Bucket=self.bucket, Key=path)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise

    async def upload(self, path: str, content: bytes, content_type: Optional[str] = None) -> str:
        try:
            if await self._exists(path):
                raise UploadFailureError(path, "object already exists")

            extra = {"CacheControl": self.cache_control}
            if content_type:
                extra["ContentType"] = content_type

            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=path,
                Body=content,
                **extra
            )
        except (BotoCoreError, ClientError) as e:
            raise UploadFailureError(path, str(e))

        logger.debug(f"Stored {len(content)} bytes at s3://{self.bucket}/{path}")
        return self.public_url(path)

    async def delete(self, path: str) -> None:
        try:
            await asyncio.to_thread(self._client.delete_object, Bucket=self.bucket, Key=path)
        except (BotoCoreError, ClientError) as e:
            raise CleanupFailureError(path, str(e))

        logger.debug(f"Removed s3://{self.bucket}/{path}")
