"""Blob store writing to the local filesystem.

Returned URLs are paths relative to the uploads directory; the presentation
layer serves them under ``Settings.uploads_url_prefix``.
"""

import logging

from invoicehub.blobs.base import DEFAULT_NAMESPACE, BlobStore, StoredBlob, build_object_path
from invoicehub.shared.config import Settings
from invoicehub.shared.errors import BackendError

logger = logging.getLogger(__name__)


class LocalBlobStore(BlobStore):
    """Files written under ``Settings.uploads_dir``."""

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.root = settings.uploads_dir

    @property
    def backend_name(self) -> str:
        return "local"

    def is_available(self) -> bool:
        return True

    def store(
        self,
        data: bytes,
        filename: str | None,
        content_type: str | None,
        namespace: str = DEFAULT_NAMESPACE,
    ) -> StoredBlob:
        object_path = build_object_path(namespace, filename)
        target = self.root / object_path

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error(f"Error writing {target}: {e}")
            raise BackendError("Failed to store uploaded file") from e

        logger.info(f"Stored {object_path} locally ({len(data)} bytes)")

        return StoredBlob(
            filename=filename or target.name,
            path=object_path,
            url=object_path,
            size=len(data),
            content_type=content_type or "application/octet-stream",
        )
