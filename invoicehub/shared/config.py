"""Shared configuration management for the invoice service.

Based on Pydantic Settings v2 best practices:
https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with the prefix 'APP_'.
    Example: APP_RECORD_BACKEND=supabase
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Service configuration
    service_name: str = Field(
        default="invoice-hub",
        description="Service identifier for metrics and logs",
    )
    service_version: str = Field(
        default="0.1.0",
        description="Service version",
    )
    host: str = Field(default="127.0.0.1", description="Bind address for the HTTP server")
    port: int = Field(default=3000, description="Bind port for the HTTP server")

    # Backend selection (resolved once at startup)
    record_backend: Literal["memory", "supabase"] = Field(
        default="memory",
        description="Record store: memory (in-process list, optional JSON mirror), supabase",
    )
    blob_backend: Literal["local", "minio"] = Field(
        default="local",
        description="Blob store: local (filesystem), minio (S3-compatible object storage)",
    )
    persistent_filesystem: bool = Field(
        default=True,
        description=(
            "Whether the local filesystem survives restarts. When false the JSON mirror "
            "and spreadsheet summary are skipped"
        ),
    )

    # Local filesystem layout
    data_dir: Path = Field(default=Path("data"), description="Directory for JSON/xlsx files")
    uploads_dir: Path = Field(default=Path("uploads"), description="Directory for local blobs")
    uploads_url_prefix: str = Field(
        default="/uploads",
        description="URL prefix under which local blobs are served",
    )
    records_filename: str = Field(default="invoices.json", description="JSON mirror file name")
    summary_filename: str = Field(
        default="invoices_summary.xlsx",
        description="Spreadsheet summary file name",
    )

    # Supabase configuration (for record_backend="supabase")
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_key: str = Field(
        default="",
        description="Supabase service key (use env var APP_SUPABASE_KEY)",
    )
    supabase_table: str = Field(default="invoices", description="Table holding invoice rows")

    # Storage configuration (for blob_backend="minio")
    storage_endpoint: str = Field(
        default="localhost:9000",
        description="S3-compatible storage endpoint (host:port)",
    )
    storage_access_key: str = Field(
        default="",
        description="Storage access key (use env var APP_STORAGE_ACCESS_KEY)",
    )
    storage_secret_key: str = Field(
        default="",
        description="Storage secret key (use env var APP_STORAGE_SECRET_KEY)",
    )
    storage_bucket: str = Field(
        default="invoices",
        description="Bucket name for uploaded invoice files",
    )
    storage_secure: bool = Field(
        default=False,
        description="Use HTTPS for storage connections",
    )
    storage_public_url: str = Field(
        default="",
        description="Public base URL for stored objects (defaults to the storage endpoint)",
    )

    # Upload rules
    upload_max_bytes: int = Field(
        default=5 * 1024 * 1024,
        description="Maximum accepted size of a single uploaded file",
        gt=0,
    )
    upload_images_only: bool = Field(
        default=True,
        description="Reject uploads whose content type is not image/*",
    )

    # Record defaults
    default_currency: str = Field(default="CNY", description="Currency used when none is given")
    default_invoice_type: str = Field(
        default="增值税普通发票",
        description="Invoice type used when none is given",
    )

    @property
    def records_path(self) -> Path:
        """Location of the JSON mirror of the memory record store."""
        return self.data_dir / self.records_filename

    @property
    def summary_path(self) -> Path:
        """Location of the regenerated spreadsheet summary."""
        return self.data_dir / self.summary_filename


def get_settings() -> Settings:
    """Factory function to get settings instance.

    Returns:
        Configured Settings instance
    """
    return Settings()
