"""Blob store interface, object path derivation and upload checks."""

import logging
from abc import ABC, abstractmethod
from pathlib import PurePath

from pydantic import BaseModel

from invoicehub.shared.clock import next_timestamp_ms
from invoicehub.shared.config import Settings
from invoicehub.shared.errors import FileTooLargeError, MissingFileError, UnsupportedFileTypeError

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "invoices"


class StoredBlob(BaseModel):
    """Result of a successful blob store call.

    Attributes:
        filename: Original file name supplied by the client
        path: Object path inside the store (``<namespace>/<ts>-<name>``)
        url: Public URL, or a path relative to the uploads directory for local storage
        size: Stored size in bytes
        content_type: MIME type the blob was stored with
    """

    filename: str
    path: str
    url: str
    size: int
    content_type: str


def safe_filename(filename: str | None) -> str:
    """Strip any directory part from a client-supplied file name."""
    name = PurePath((filename or "").replace("\\", "/")).name
    return name or "upload.bin"


def build_object_path(namespace: str, filename: str | None) -> str:
    """Derive a collision-free object path.

    The timestamp is strictly increasing within the process, so two files
    with the same name stored back to back still get distinct paths.

    Args:
        namespace: Logical folder, e.g. ``invoices/INV-1``
        filename: Original file name

    Returns:
        ``<namespace>/<timestamp_ms>-<basename>``
    """
    prefix = "/".join(part for part in namespace.split("/") if part and part not in (".", ".."))
    name = f"{next_timestamp_ms()}-{safe_filename(filename)}"
    return f"{prefix}/{name}" if prefix else name


def check_upload(
    data: bytes,
    filename: str | None,
    content_type: str | None,
    settings: Settings,
) -> None:
    """Reject a file before any store call is made.

    Raises:
        MissingFileError: If the file is empty
        FileTooLargeError: If the file exceeds ``settings.upload_max_bytes``
        UnsupportedFileTypeError: If images are required and the type is not image/*
    """
    if not data:
        raise MissingFileError(f"Uploaded file is empty: {safe_filename(filename)}")
    if len(data) > settings.upload_max_bytes:
        limit_mb = settings.upload_max_bytes / (1024 * 1024)
        logger.warning(f"Rejected upload {filename}: {len(data)} bytes exceeds limit")
        raise FileTooLargeError(f"File exceeds the {limit_mb:g} MB upload limit")
    if settings.upload_images_only and not (content_type or "").startswith("image/"):
        logger.warning(f"Rejected upload {filename}: content type {content_type}")
        raise UnsupportedFileTypeError()


class BlobStore(ABC):
    """Abstract base class for blob stores.

    Implementations store each file with exactly one backend call and raise
    ``ConfigurationError`` for missing credentials or ``BackendError`` for
    failed calls.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @abstractmethod
    def store(
        self,
        data: bytes,
        filename: str | None,
        content_type: str | None,
        namespace: str = DEFAULT_NAMESPACE,
    ) -> StoredBlob:
        """Store raw bytes and return where they can be fetched from.

        Args:
            data: File content
            filename: Suggested (original) file name
            content_type: MIME type
            namespace: Logical folder prefix for the object path

        Returns:
            StoredBlob with the resolved URL
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this store is configured and can be used."""
        pass

    def health_check(self) -> bool:
        """Check if the store can be reached; defaults to the configuration check."""
        return self.is_available()

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Store identifier for logging/metrics (e.g., 'local', 'minio')."""
        pass
