"""
MinIO Object Storage Service

Stores supporting documents uploaded with restriction submissions and
hands out presigned download links for notifications.
"""

import asyncio
import logging
import os
from datetime import datetime, timedelta
from io import BytesIO
from typing import Optional

from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import MaxRetryError

from core.config import MinIOSettings
from core.exceptions import StorageError

logger = logging.getLogger(__name__)


class AttachmentStorage:
    """Supporting-document storage backed by a single MinIO bucket."""

    def __init__(self, config: MinIOSettings, client: Optional[Minio] = None):
        self.config = config
        self._client = client
        self._bucket_initialized = False

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    @property
    def max_file_size(self) -> int:
        return self.config.max_file_size_mb * 1024 * 1024

    def get_client(self) -> Minio:
        """
        Get or create the MinIO client for this storage.

        Returns:
            Minio: Configured MinIO client
        """
        if self._client is None:
            self._client = Minio(
                endpoint=self.config.endpoint,
                access_key=self.config.access_key,
                secret_key=self.config.secret_key,
                secure=self.config.secure,
                region=self.config.region,
            )
            logger.info(f"MinIO client initialized: {self.config.endpoint}")

        return self._client

    async def ensure_bucket_exists(self) -> None:
        """
        Ensure the configured bucket exists, create if it doesn't.
        Called on application startup and before the first upload.
        """
        if self._bucket_initialized:
            return

        client = self.get_client()
        bucket_name = self.config.bucket_name

        try:
            if not client.bucket_exists(bucket_name):
                client.make_bucket(bucket_name, location=self.config.region)
                logger.info(f"Created MinIO bucket: {bucket_name}")
            else:
                logger.info(f"MinIO bucket already exists: {bucket_name}")

            self._bucket_initialized = True

        except (S3Error, MaxRetryError) as e:
            logger.error(f"Failed to ensure bucket exists: {e}")
            raise

    def build_object_key(self, filename: str, now: Optional[datetime] = None) -> str:
        """
        Build the object key for an uploaded document.

        Format: {prefix}/{YYYYmmddHHMMSS}_{filename}
        Example: restrictions/20240315143000_doctor_note.pdf

        Only the base name of the client-supplied filename is kept.
        """
        now = now or datetime.now()
        safe_name = os.path.basename(filename.replace("\\", "/")) or "document"
        return f"{self.config.object_prefix}/{now.strftime('%Y%m%d%H%M%S')}_{safe_name}"

    async def upload_file(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Upload a document with retry logic.

        Args:
            filename: Original filename from the client
            content: File content bytes
            content_type: MIME type

        Returns:
            str: Object key of the uploaded file

        Raises:
            StorageError: If the upload fails after all retries
        """
        object_key = self.build_object_key(filename)

        try:
            await self.ensure_bucket_exists()
        except (S3Error, MaxRetryError) as e:
            raise StorageError(f"Bucket unavailable: {e}") from e

        client = self.get_client()
        bucket_name = self.config.bucket_name

        data = BytesIO(content)
        data_length = len(content)

        for attempt in range(self.config.max_retries):
            try:
                client.put_object(
                    bucket_name=bucket_name,
                    object_name=object_key,
                    data=data,
                    length=data_length,
                    content_type=content_type or "application/octet-stream",
                )

                logger.info(
                    f"Uploaded file to MinIO: {bucket_name}/{object_key} "
                    f"({data_length} bytes, attempt {attempt + 1})"
                )

                return object_key

            except (S3Error, MaxRetryError) as e:
                if attempt < self.config.max_retries - 1:
                    wait_time = self.config.retry_backoff_factor**attempt
                    logger.warning(
                        f"Upload failed (attempt {attempt + 1}), "
                        f"retrying in {wait_time}s: {e}"
                    )
                    await asyncio.sleep(wait_time)
                else:
                    logger.error(
                        f"Upload failed after {self.config.max_retries} attempts: {e}"
                    )
                    raise StorageError(f"Upload of {object_key} failed: {e}") from e

            # Reset BytesIO position for retry
            data.seek(0)

        raise StorageError(f"Upload of {object_key} was not attempted")

    def generate_presigned_url(
        self, object_key: str, expiry_seconds: Optional[int] = None
    ) -> Optional[str]:
        """
        Generate a presigned download URL.

        Returns:
            str: Presigned URL, or None when it cannot be generated
        """
        client = self.get_client()
        expiry = expiry_seconds or self.config.presigned_url_expiry_seconds

        try:
            url = client.presigned_get_object(
                self.config.bucket_name,
                object_key,
                expires=timedelta(seconds=expiry),
            )
        except (S3Error, MaxRetryError, ValueError) as e:
            logger.error(f"Failed to generate presigned URL for {object_key}: {e}")
            return None

        logger.debug(
            f"Generated presigned URL for {self.config.bucket_name}/{object_key} "
            f"(expires in {expiry}s)"
        )
        return url

    async def health_check(self) -> bool:
        """
        Perform MinIO health check.

        Returns:
            bool: True if healthy, False otherwise
        """
        try:
            await self.ensure_bucket_exists()
            self.get_client().bucket_exists(self.config.bucket_name)
            logger.debug("MinIO health check passed")
            return True

        except Exception as e:
            logger.error(f"MinIO health check failed: {e}")
            return False
