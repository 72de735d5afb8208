"""Abstract base class for invoice record stores.

Enables switching between an in-process store and a remote table while the
submission and listing handlers stay unchanged.

Based on Strategy Pattern:
https://refactoring.guru/design-patterns/strategy/python
"""

from abc import ABC, abstractmethod

from invoicehub.invoices.schema import InvoiceRecord
from invoicehub.shared.config import Settings


class RecordStore(ABC):
    """Abstract base class for invoice record stores.

    Contract:
    - ``create`` appends exactly one record or raises ``BackendError``
    - ``list_all`` returns every record in the store's order
    - ``get_by_id`` returns the record or raises ``NotFoundError``

    Records are never updated or deleted.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize store with settings.

        Args:
            settings: Application settings
        """
        self.settings = settings

    @abstractmethod
    def create(self, record: InvoiceRecord) -> InvoiceRecord:
        """Persist a new record.

        Args:
            record: Fully assembled record

        Returns:
            The record as stored (store-generated fields may differ)

        Raises:
            BackendError: If the store rejected or could not take the write
        """
        pass

    @abstractmethod
    def list_all(self) -> list[InvoiceRecord]:
        """Return all records.

        Raises:
            BackendError: If the store could not be read
        """
        pass

    @abstractmethod
    def get_by_id(self, invoice_id: str) -> InvoiceRecord:
        """Look up a single record.

        Raises:
            NotFoundError: If no record has this id
            BackendError: If the store could not be read
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this store is configured and can be used."""
        pass

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Store identifier for logging/metrics (e.g., 'memory', 'supabase')."""
        pass

    @property
    def persists_across_restarts(self) -> bool:
        """Whether records survive a process restart."""
        return True
