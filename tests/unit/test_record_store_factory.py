"""Unit tests for record store factory.

Tests cover:
- Registry lookups
- Configuration-based selection
- Error handling for unknown backends
"""

import logging
from pathlib import Path

import pytest

from invoicehub.records.factory import RecordStoreRegistry, create_record_store
from invoicehub.records.memory_store import MemoryRecordStore
from invoicehub.records.supabase_store import SupabaseRecordStore
from invoicehub.shared.config import Settings


@pytest.mark.parametrize(
    ("name", "store_class"),
    [("memory", MemoryRecordStore), ("supabase", SupabaseRecordStore)],
)
def test_registry_default_stores(name: str, store_class: type) -> None:
    """Test that registry resolves both default stores."""
    assert RecordStoreRegistry.get_store_class(name) is store_class


def test_registry_unknown_backend() -> None:
    """Test that unknown backend raises ValueError listing the available ones."""
    with pytest.raises(ValueError, match="Available backends: memory, supabase"):
        RecordStoreRegistry.get_store_class("nonexistent")


def test_create_memory_store(tmp_path: Path) -> None:
    """Test factory creates the memory store by default."""
    settings = Settings(_env_file=None, data_dir=tmp_path)

    store = create_record_store(settings)

    assert isinstance(store, MemoryRecordStore)
    assert store.backend_name == "memory"


def test_create_supabase_store_warns_if_unconfigured(caplog: pytest.LogCaptureFixture) -> None:
    """Test that factory warns when Supabase credentials are missing."""
    settings = Settings(_env_file=None, record_backend="supabase", supabase_url="", supabase_key="")

    with caplog.at_level(logging.WARNING):
        store = create_record_store(settings)

    assert isinstance(store, SupabaseRecordStore)
    assert "not fully available" in caplog.text


def test_create_ephemeral_memory_store_warns(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Test that factory warns when invoices will not survive a restart."""
    settings = Settings(_env_file=None, data_dir=tmp_path, persistent_filesystem=False)

    with caplog.at_level(logging.WARNING):
        create_record_store(settings)

    assert "lost on restart" in caplog.text
