"""Factory for creating the blob store based on configuration.

Allows switching between local filesystem and MinIO storage at startup.
"""

import logging

from invoicehub.blobs.base import BlobStore
from invoicehub.shared.config import Settings

logger = logging.getLogger(__name__)


def create_blob_store(settings: Settings) -> BlobStore:
    """Factory function to create blob store based on configuration.

    Args:
        settings: Application settings with blob_backend field

    Returns:
        Configured blob store instance

    Raises:
        ValueError: If configured backend is unknown
    """
    backend = settings.blob_backend

    if backend == "local":
        from invoicehub.blobs.local_store import LocalBlobStore

        logger.info(f"Created blob store: local ({settings.uploads_dir})")
        return LocalBlobStore(settings)

    elif backend == "minio":
        from invoicehub.blobs.minio_store import MinioBlobStore

        store = MinioBlobStore(settings)
        if not store.is_available():
            logger.warning(
                "MinIO credentials not configured. "
                "Set APP_STORAGE_ACCESS_KEY and APP_STORAGE_SECRET_KEY; uploads will fail."
            )
        logger.info(f"Created blob store: minio ({settings.storage_endpoint})")
        return store

    else:
        available = ["local", "minio"]
        raise ValueError(f"Unknown blob backend: '{backend}'. Available: {', '.join(available)}")
