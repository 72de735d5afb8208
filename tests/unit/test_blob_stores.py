"""Unit tests for blob path derivation, upload checks and local storage."""

from pathlib import Path
from unittest.mock import patch

import pytest

from invoicehub.blobs.base import build_object_path, check_upload, safe_filename
from invoicehub.blobs.factory import create_blob_store
from invoicehub.blobs.local_store import LocalBlobStore
from invoicehub.blobs.minio_store import MinioBlobStore
from invoicehub.shared.config import Settings
from invoicehub.shared.errors import (
    BackendError,
    FileTooLargeError,
    MissingFileError,
    UnsupportedFileTypeError,
)


@pytest.fixture
def local_settings(tmp_path: Path) -> Settings:
    return Settings(_env_file=None, uploads_dir=tmp_path / "uploads")


class TestObjectPaths:
    """Path derivation."""

    def test_path_layout(self) -> None:
        path = build_object_path("invoices/INV-1", "scan.png")

        folder, name = path.rsplit("/", 1)
        timestamp, original = name.split("-", 1)
        assert folder == "invoices/INV-1"
        assert timestamp.isdigit()
        assert original == "scan.png"

    def test_same_name_gets_distinct_paths(self) -> None:
        paths = {build_object_path("invoices", "scan.png") for _ in range(50)}

        assert len(paths) == 50

    def test_directory_parts_are_stripped(self) -> None:
        path = build_object_path("invoices/../INV-1", "../../etc/passwd")

        assert ".." not in path.split("/")
        assert path.startswith("invoices/INV-1/")
        assert path.endswith("-passwd")

    def test_safe_filename(self) -> None:
        assert safe_filename("C:\\Users\\me\\scan.png") == "scan.png"
        assert safe_filename(None) == "upload.bin"
        assert safe_filename("") == "upload.bin"


class TestCheckUpload:
    """Checks run before any store call."""

    def test_accepts_image_within_limit(self, local_settings: Settings) -> None:
        check_upload(b"x" * 100, "scan.png", "image/png", local_settings)

    def test_rejects_empty_file(self, local_settings: Settings) -> None:
        with pytest.raises(MissingFileError):
            check_upload(b"", "scan.png", "image/png", local_settings)

    def test_rejects_file_over_limit(self) -> None:
        settings = Settings(_env_file=None, upload_max_bytes=10)

        with pytest.raises(FileTooLargeError, match="upload limit"):
            check_upload(b"x" * 11, "scan.png", "image/png", settings)

    def test_default_limit_is_five_megabytes(self, local_settings: Settings) -> None:
        check_upload(b"x" * (5 * 1024 * 1024), "scan.png", "image/png", local_settings)

        with pytest.raises(FileTooLargeError):
            check_upload(b"x" * (5 * 1024 * 1024 + 1), "scan.png", "image/png", local_settings)

    def test_rejects_non_image_when_filter_enabled(self, local_settings: Settings) -> None:
        with pytest.raises(UnsupportedFileTypeError):
            check_upload(b"%PDF", "invoice.pdf", "application/pdf", local_settings)

    def test_accepts_non_image_when_filter_disabled(self) -> None:
        settings = Settings(_env_file=None, upload_images_only=False)

        check_upload(b"%PDF", "invoice.pdf", "application/pdf", settings)


class TestLocalBlobStore:
    """Filesystem storage."""

    def test_store_writes_file(self, local_settings: Settings) -> None:
        store = LocalBlobStore(local_settings)

        blob = store.store(b"png bytes", "scan.png", "image/png", namespace="invoices/INV-1")

        assert (local_settings.uploads_dir / blob.path).read_bytes() == b"png bytes"
        assert blob.url == blob.path
        assert blob.path.startswith("invoices/INV-1/")
        assert blob.filename == "scan.png"
        assert blob.size == 9

    def test_same_name_files_do_not_overwrite(self, local_settings: Settings) -> None:
        store = LocalBlobStore(local_settings)

        first = store.store(b"one", "scan.png", "image/png")
        second = store.store(b"two", "scan.png", "image/png")

        assert first.path != second.path
        assert (local_settings.uploads_dir / first.path).read_bytes() == b"one"
        assert (local_settings.uploads_dir / second.path).read_bytes() == b"two"

    def test_write_failure_raises_backend_error(self, local_settings: Settings) -> None:
        store = LocalBlobStore(local_settings)

        with patch.object(Path, "write_bytes", side_effect=OSError("read-only")):
            with pytest.raises(BackendError):
                store.store(b"data", "scan.png", "image/png")


class TestBlobStoreFactory:
    """Backend selection."""

    def test_creates_local_store(self, local_settings: Settings) -> None:
        assert isinstance(create_blob_store(local_settings), LocalBlobStore)

    def test_creates_minio_store(self) -> None:
        settings = Settings(_env_file=None, blob_backend="minio")

        assert isinstance(create_blob_store(settings), MinioBlobStore)

    def test_warns_when_minio_unconfigured(self, caplog: pytest.LogCaptureFixture) -> None:
        settings = Settings(_env_file=None, blob_backend="minio", storage_access_key="")

        create_blob_store(settings)

        assert "MinIO credentials not configured" in caplog.text
