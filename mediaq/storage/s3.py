"""
S3-compatible object store (MinIO in development).

boto3 is synchronous, so every call runs in a worker thread to keep the
event loop free.
"""

import asyncio
import logging
from typing import Optional

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

from ..errors import EmptyObjectError
from ..settings import MediaQSettings

logger = logging.getLogger(__name__)


class ObjectStore:
    """Key-addressed blob storage for originals and thumbnails."""

    def __init__(self, settings: MediaQSettings, client=None):
        self.bucket = settings.storage_bucket
        self.public_endpoint = settings.public_storage_endpoint
        self.presign_ttl = settings.presign_ttl
        self._client = client or boto3.client(
            "s3",
            region_name=settings.storage_region,
            endpoint_url=settings.storage_endpoint,
            aws_access_key_id=settings.storage_access_key,
            aws_secret_access_key=settings.storage_secret_key,
            config=Config(
                signature_version="s3v4",
                s3={"addressing_style": "path"},
            ),
        )

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """Write bytes under key; returns an s3:// URI."""
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except ClientError as e:
            logger.error(f"Failed to upload file {key}: {e}")
            raise
        logger.info(f"File uploaded successfully: {key}")
        return f"s3://{self.bucket}/{key}"

    async def get(self, key: str) -> bytes:
        """Read the full object body."""
        try:
            response = await asyncio.to_thread(
                self._client.get_object, Bucket=self.bucket, Key=key
            )
        except ClientError as e:
            logger.error(f"Failed to retrieve file {key}: {e}")
            raise

        body = response.get("Body")
        if body is None:
            raise EmptyObjectError(key)
        try:
            data = await asyncio.to_thread(body.read)
        finally:
            body.close()
        if not data:
            raise EmptyObjectError(key)
        return data

    async def presign(self, key: str, ttl: Optional[int] = None) -> str:
        """Time-limited GET URL for key."""
        return await asyncio.to_thread(
            self._client.generate_presigned_url,
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=ttl or self.presign_ttl,
        )

    def source_url(self, key: str) -> str:
        """URL at which the transform service can fetch the object."""
        return f"{self.public_endpoint}/{self.bucket}/{key}"

    async def ensure_bucket(self) -> None:
        """Create the bucket if it does not exist yet."""
        try:
            await asyncio.to_thread(self._client.head_bucket, Bucket=self.bucket)
        except ClientError as e:
            code = (e.response.get("Error") or {}).get("Code")
            if code not in ("404", "NoSuchBucket", "NotFound"):
                raise
            await asyncio.to_thread(self._client.create_bucket, Bucket=self.bucket)
            logger.info(f"Created bucket {self.bucket}")
