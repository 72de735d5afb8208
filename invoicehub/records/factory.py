"""Factory for creating record stores based on configuration.

Implements Factory Pattern with a registry so the store is chosen once at
startup from ``Settings.record_backend`` instead of being checked per request.

Based on:
- Factory Pattern: https://refactoring.guru/design-patterns/factory-method/python
- Registry Pattern: Python Cookbook 3rd Edition, Recipe 9.22
"""

import logging

from invoicehub.records.base import RecordStore
from invoicehub.records.memory_store import MemoryRecordStore
from invoicehub.records.supabase_store import SupabaseRecordStore
from invoicehub.shared.config import Settings

logger = logging.getLogger(__name__)


class RecordStoreRegistry:
    """Registry of available record stores.

    Maintains a mapping of backend names to their implementation classes.
    """

    _stores: dict[str, type[RecordStore]] = {
        "memory": MemoryRecordStore,
        "supabase": SupabaseRecordStore,
    }

    @classmethod
    def get_store_class(cls, name: str) -> type[RecordStore]:
        """Get store class by name.

        Raises:
            ValueError: If backend not found in registry
        """
        if name not in cls._stores:
            available = ", ".join(cls._stores.keys())
            raise ValueError(f"Unknown record backend: '{name}'. Available backends: {available}")
        return cls._stores[name]


def create_record_store(settings: Settings) -> RecordStore:
    """Create the record store selected by configuration.

    Logs a warning if the store is not fully configured (e.g., missing
    Supabase key); the first operation will then raise ConfigurationError.

    Args:
        settings: Application settings with record_backend field

    Returns:
        Configured record store instance
    """
    backend = settings.record_backend
    store = RecordStoreRegistry.get_store_class(backend)(settings)

    if not store.is_available():
        logger.warning(
            f"Record store '{backend}' is not fully available. "
            f"Check configuration (e.g., APP_SUPABASE_URL, APP_SUPABASE_KEY)."
        )
    if not store.persists_across_restarts:
        logger.warning("Invoices are kept in memory only and will be lost on restart")

    logger.info(f"Created record store: {backend}")
    return store
