"""
MinIO Object Storage Service
Keeps uploaded medical documents in an S3-compatible bucket
Source: https://min.io/docs/minio/linux/developers/python/minio-py.html
"""

from datetime import timedelta
from functools import lru_cache, partial
from io import BytesIO
from typing import Any, BinaryIO, Callable

from anyio import to_thread
from minio import Minio
from minio.error import S3Error

from claimportal.api.config import settings
from claimportal.utils.logging import get_logger

logger = get_logger(__name__)

# S3 error codes meaning the object or bucket is absent
_MISSING_CODES = {"NoSuchKey", "NoSuchBucket", "NoSuchObject"}


class ObjectNotFoundError(Exception):
    """Raised when a stored object does not exist."""

    def __init__(self, object_name: str):
        super().__init__(f"Object not found: {object_name}")
        self.object_name = object_name


class StorageService:
    """
    Document file storage.

    The minio client is synchronous, so every call is pushed to a worker
    thread with anyio. S3 failures are logged with the operation name and
    re-raised; a missing key on download becomes ObjectNotFoundError.
    """

    def __init__(self, client: Minio | None = None, bucket_name: str | None = None):
        if client is None:
            client = Minio(
                settings.MINIO_ENDPOINT,
                access_key=settings.MINIO_ACCESS_KEY,
                secret_key=settings.MINIO_SECRET_KEY,
                secure=settings.MINIO_SECURE,
                region=settings.MINIO_REGION,
            )
            logger.info(f"Connected storage client to {settings.MINIO_ENDPOINT}")
        self.client = client
        self.bucket_name = bucket_name or settings.MINIO_BUCKET_DOCUMENTS

    def object_url(self, object_name: str) -> str:
        """URL recorded on the Document row."""
        return f"{settings.storage_base_url}/{object_name}"

    async def _run(self, operation: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return await to_thread.run_sync(partial(func, *args, **kwargs))
        except S3Error as e:
            logger.error(f"Storage {operation} failed for bucket {self.bucket_name}: {e}")
            raise

    def _create_bucket_if_missing(self) -> None:
        if self.client.bucket_exists(self.bucket_name):
            return
        self.client.make_bucket(self.bucket_name)
        logger.info(f"Bucket {self.bucket_name} created")

    async def upload_file(
        self,
        object_name: str,
        file_data: BinaryIO,
        content_type: str = "application/octet-stream",
        metadata: dict | None = None,
    ) -> str:
        """
        Store a file under `object_name`.

        Args:
            object_name: Object key
            file_data: Seekable file-like object
            content_type: MIME type saved with the object
            metadata: Extra object metadata

        Returns:
            URL of the stored object
        """

        def put() -> None:
            self._create_bucket_if_missing()
            size = file_data.seek(0, 2)
            file_data.seek(0)
            self.client.put_object(
                self.bucket_name,
                object_name,
                file_data,
                size,
                content_type=content_type,
                metadata=metadata or {},
            )

        await self._run("upload", put)
        logger.info(f"Stored {object_name} in {self.bucket_name}")
        return self.object_url(object_name)

    async def download_file(self, object_name: str) -> BytesIO:
        """
        Read a stored file into memory.

        Raises:
            ObjectNotFoundError: The key does not exist
        """

        def get() -> BytesIO:
            response = self.client.get_object(self.bucket_name, object_name)
            try:
                return BytesIO(response.read())
            finally:
                response.close()
                response.release_conn()

        try:
            return await to_thread.run_sync(get)
        except S3Error as e:
            if e.code in _MISSING_CODES:
                raise ObjectNotFoundError(object_name) from e
            logger.error(f"Storage download failed for {object_name}: {e}")
            raise

    async def delete_file(self, object_name: str) -> None:
        await self._run("delete", self.client.remove_object, self.bucket_name, object_name)
        logger.info(f"Removed {object_name} from {self.bucket_name}")

    async def get_presigned_upload_url(self, object_name: str, expires_seconds: int) -> str:
        """Signed PUT URL a client can upload to directly."""

        def sign() -> str:
            self._create_bucket_if_missing()
            return self.client.presigned_put_object(
                self.bucket_name, object_name, expires=timedelta(seconds=expires_seconds)
            )

        return await self._run("presign", sign)


@lru_cache
def get_storage() -> StorageService:
    """FastAPI dependency returning the shared storage service."""
    return StorageService()
