"""S3-compatible object storage for invoice files using MinIO.

Implementation notes:
- Lazy client creation with credential checks
- Bucket auto-creation with an anonymous read policy so URLs are public
- Content-type detection when the client sends none
- One put per file, no retry

Based on MinIO Python SDK:
https://min.io/docs/minio/linux/developers/python/API.html
"""

import io
import json
import logging
import mimetypes
from urllib.parse import quote

from minio import Minio
from minio.error import S3Error

from invoicehub.blobs.base import DEFAULT_NAMESPACE, BlobStore, StoredBlob, build_object_path
from invoicehub.shared.config import Settings
from invoicehub.shared.errors import BackendError, ConfigurationError

logger = logging.getLogger(__name__)


def public_read_policy(bucket: str) -> str:
    """Bucket policy granting anonymous GetObject on every object."""
    return json.dumps(
        {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Principal": {"AWS": ["*"]},
                    "Action": ["s3:GetObject"],
                    "Resource": [f"arn:aws:s3:::{bucket}/*"],
                }
            ],
        }
    )


class MinioBlobStore(BlobStore):
    """S3-compatible object storage returning publicly dereferenceable URLs."""

    def __init__(self, settings: Settings) -> None:
        """Initialize storage service.

        Args:
            settings: Application settings with storage configuration
        """
        super().__init__(settings)
        self._client: Minio | None = None
        self._bucket_exists_cache: set[str] = set()

    @property
    def backend_name(self) -> str:
        return "minio"

    def _get_client(self) -> Minio:
        """Get or create MinIO client (lazy initialization).

        Returns:
            Configured Minio client instance

        Raises:
            ConfigurationError: If storage credentials are not configured
        """
        if self._client is None:
            if not self.settings.storage_access_key:
                raise ConfigurationError(
                    "Storage access key not configured. "
                    "Set APP_STORAGE_ACCESS_KEY environment variable."
                )
            if not self.settings.storage_secret_key:
                raise ConfigurationError(
                    "Storage secret key not configured. "
                    "Set APP_STORAGE_SECRET_KEY environment variable."
                )

            self._client = Minio(
                endpoint=self.settings.storage_endpoint,
                access_key=self.settings.storage_access_key,
                secret_key=self.settings.storage_secret_key,
                secure=self.settings.storage_secure,
            )
            logger.info(f"MinIO client initialized for endpoint: {self.settings.storage_endpoint}")

        return self._client

    def is_available(self) -> bool:
        """Check if storage credentials are set."""
        return bool(self.settings.storage_access_key and self.settings.storage_secret_key)

    def health_check(self) -> bool:
        """Check if storage backend is reachable.

        Returns:
            True if MinIO server responds to list_buckets
        """
        if not self.is_available():
            return False

        try:
            client = self._get_client()
            client.list_buckets()
            return True
        except Exception as e:
            logger.warning(f"Storage health check failed: {e}")
            return False

    def _ensure_bucket(self, bucket: str) -> None:
        """Ensure bucket exists and is publicly readable, create if missing."""
        if bucket in self._bucket_exists_cache:
            return

        client = self._get_client()
        if not client.bucket_exists(bucket):
            client.make_bucket(bucket)
            client.set_bucket_policy(bucket, public_read_policy(bucket))
            logger.info(f"Created public bucket: {bucket}")

        self._bucket_exists_cache.add(bucket)

    @staticmethod
    def _detect_content_type(filename: str) -> str:
        """Detect content type from filename.

        Args:
            filename: File name with extension

        Returns:
            MIME type string
        """
        content_type, _ = mimetypes.guess_type(filename)
        return content_type or "application/octet-stream"

    def public_url(self, object_name: str) -> str:
        """URL under which an object in the configured bucket is served."""
        base = self.settings.storage_public_url
        if not base:
            scheme = "https" if self.settings.storage_secure else "http"
            base = f"{scheme}://{self.settings.storage_endpoint}"
        return f"{base.rstrip('/')}/{self.settings.storage_bucket}/{quote(object_name, safe='/')}"

    def store(
        self,
        data: bytes,
        filename: str | None,
        content_type: str | None,
        namespace: str = DEFAULT_NAMESPACE,
    ) -> StoredBlob:
        bucket = self.settings.storage_bucket
        object_name = build_object_path(namespace, filename)
        if not content_type:
            content_type = self._detect_content_type(object_name)

        # Raises ConfigurationError before any network call
        client = self._get_client()

        try:
            self._ensure_bucket(bucket)
            client.put_object(
                bucket_name=bucket,
                object_name=object_name,
                data=io.BytesIO(data),
                length=len(data),
                content_type=content_type,
            )
        except S3Error as e:
            logger.error(f"S3 error uploading {object_name}: {e.code} - {e.message}")
            raise BackendError("Failed to upload file to storage") from e
        except Exception as e:
            logger.error(f"Error uploading {object_name}: {e}")
            raise BackendError("Failed to upload file to storage") from e

        logger.info(f"Uploaded {object_name} to {bucket} ({len(data)} bytes)")

        return StoredBlob(
            filename=filename or object_name.rsplit("/", 1)[-1],
            path=object_name,
            url=self.public_url(object_name),
            size=len(data),
            content_type=content_type,
        )
