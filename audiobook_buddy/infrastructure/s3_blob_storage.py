"""S3 implementation of Blob Storage."""

import asyncio
import io
import logging
import threading
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..domain.entities.errors import BlobNotFoundError, TransientError
from ..domain.interfaces.blob_storage import BlobStorage, ProgressCallback

logger = logging.getLogger(__name__)

PRESIGNED_URL_EXPIRY_SECONDS = 7 * 24 * 60 * 60


class _UploadProgress:
    """boto3 transfer callback converting byte counts to percentages."""

    def __init__(self, total: int, on_progress: ProgressCallback):
        self._total = total or 1
        self._seen = 0
        self._lock = threading.Lock()
        self._on_progress = on_progress

    def __call__(self, bytes_amount: int) -> None:
        with self._lock:
            self._seen += bytes_amount
            percent = min(100.0, 100.0 * self._seen / self._total)
        self._on_progress(percent)


class S3BlobStorage(BlobStorage):
    """Stores blobs in an S3 bucket under ``s3://bucket/key`` locations."""

    def __init__(
        self,
        bucket_name: str,
        region_name: str = "us-east-1",
        presign_expiry: int = PRESIGNED_URL_EXPIRY_SECONDS,
    ):
        """Initialize the S3 blob storage.

        Args:
            bucket_name: The name of the S3 bucket.
            region_name: AWS region name (default: us-east-1).
            presign_expiry: Lifetime of public URLs in seconds (default: 7 days).
        """
        self.bucket_name = bucket_name
        self.region_name = region_name
        self.presign_expiry = presign_expiry
        self.s3_client = boto3.client("s3", region_name=region_name)

    def location_for(self, key: str) -> str:
        return f"s3://{self.bucket_name}/{key}"

    def _parse(self, location: str) -> tuple[str, str]:
        if not location.startswith("s3://"):
            raise BlobNotFoundError(f"Not an S3 location: {location}")
        s3_path = location.replace("s3://", "", 1)
        bucket_name = s3_path.split("/")[0]
        object_key = "/".join(s3_path.split("/")[1:])
        return bucket_name, object_key

    async def upload(
        self,
        key: str,
        data: bytes,
        content_type: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        callback = _UploadProgress(len(data), on_progress) if on_progress else None
        try:
            await asyncio.to_thread(
                self.s3_client.upload_fileobj,
                io.BytesIO(data),
                self.bucket_name,
                key,
                ExtraArgs={"ContentType": content_type},
                Callback=callback,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Upload of {key} to S3 failed: {e}")
            raise TransientError("Upload failed. Please check your connection and try again.") from e

        logger.info(f"Uploaded {len(data)} bytes to s3://{self.bucket_name}/{key}")
        return self.location_for(key)

    async def fetch(self, location: str) -> bytes:
        bucket_name, object_key = self._parse(location)
        try:
            response = await asyncio.to_thread(self.s3_client.get_object, Bucket=bucket_name, Key=object_key)
            return await asyncio.to_thread(response["Body"].read)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Fetching {location} failed: {e}")
            raise BlobNotFoundError(f"Could not fetch {location}") from e

    async def delete(self, location: str) -> None:
        bucket_name, object_key = self._parse(location)
        try:
            await asyncio.to_thread(self.s3_client.delete_object, Bucket=bucket_name, Key=object_key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                logger.debug(f"Blob already absent: {location}")
                return
            logger.error(f"Deleting {location} failed: {e}")
            raise TransientError("Could not delete the stored file. Please try again.") from e
        logger.info(f"Deleted {location}")

    async def public_location(self, location: str) -> str:
        bucket_name, object_key = self._parse(location)
        return await asyncio.to_thread(
            self.s3_client.generate_presigned_url,
            "get_object",
            Params={"Bucket": bucket_name, "Key": object_key},
            ExpiresIn=self.presign_expiry,
        )
