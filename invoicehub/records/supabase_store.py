"""Record store backed by a Supabase (PostgREST) table.

One network call per operation, no caching and no retry: a failed call is
reported once as a BackendError with the cause logged.

Based on supabase-py:
https://supabase.com/docs/reference/python/introduction
"""

import logging
from typing import Any

from postgrest.exceptions import APIError
from supabase import Client, create_client

from invoicehub.invoices.schema import InvoiceRecord
from invoicehub.records.base import RecordStore
from invoicehub.shared.config import Settings
from invoicehub.shared.errors import BackendError, ConfigurationError, NotFoundError

logger = logging.getLogger(__name__)

# PostgreSQL error for a value that does not parse as the column type
INVALID_TEXT_REPRESENTATION = "22P02"


class SupabaseRecordStore(RecordStore):
    """Invoices stored as rows of a Supabase table.

    The table uses snake_case columns matching ``InvoiceRecord`` fields. ``id``
    is generated by the database and ``created_at`` is used for ordering.
    """

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self._client: Client | None = None

    @property
    def backend_name(self) -> str:
        return "supabase"

    def is_available(self) -> bool:
        return bool(self.settings.supabase_url and self.settings.supabase_key)

    def _get_client(self) -> Client:
        """Get or create Supabase client (lazy initialization).

        Raises:
            ConfigurationError: If the project URL or key is not configured
        """
        if self._client is None:
            if not self.settings.supabase_url:
                raise ConfigurationError(
                    "Database is not configured. Set APP_SUPABASE_URL environment variable."
                )
            if not self.settings.supabase_key:
                raise ConfigurationError(
                    "Database is not configured. Set APP_SUPABASE_KEY environment variable."
                )

            self._client = create_client(self.settings.supabase_url, self.settings.supabase_key)
            logger.info(f"Supabase client initialized for {self.settings.supabase_url}")

        return self._client

    def _table(self):  # type: ignore[no-untyped-def]
        return self._get_client().table(self.settings.supabase_table)

    def _to_row(self, record: InvoiceRecord) -> dict[str, Any]:
        # NaN amounts are serialized as None by the model
        return record.model_dump(mode="json", exclude={"id"})

    def _to_record(self, row: dict[str, Any]) -> InvoiceRecord:
        data = {key: value for key, value in row.items() if value is not None}
        data.setdefault("currency", self.settings.default_currency)
        data.setdefault("invoice_type", self.settings.default_invoice_type)
        return InvoiceRecord.model_validate(data)

    def create(self, record: InvoiceRecord) -> InvoiceRecord:
        try:
            response = self._table().insert(self._to_row(record)).execute()
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Supabase insert failed for invoice {record.invoice_number}: {e}")
            raise BackendError() from e

        rows = response.data or []
        if not rows:
            logger.error(f"Supabase insert returned no row for invoice {record.invoice_number}")
            raise BackendError()

        stored = self._to_record(rows[0])
        logger.info(f"Stored invoice {stored.id} ({stored.invoice_number}) in Supabase")
        return stored

    def list_all(self) -> list[InvoiceRecord]:
        try:
            response = self._table().select("*").order("created_at", desc=True).execute()
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Supabase select failed: {e}")
            raise BackendError("Failed to load invoices") from e

        return [self._to_record(row) for row in response.data or []]

    def get_by_id(self, invoice_id: str) -> InvoiceRecord:
        try:
            response = self._table().select("*").eq("id", invoice_id).limit(1).execute()
        except ConfigurationError:
            raise
        except Exception as e:
            if isinstance(e, APIError) and e.code == INVALID_TEXT_REPRESENTATION:
                # The id cannot name any row of the id column's type
                raise NotFoundError() from e
            logger.error(f"Supabase lookup failed for invoice {invoice_id}: {e}")
            raise BackendError("Failed to load invoice") from e

        rows = response.data or []
        if not rows:
            raise NotFoundError()
        return self._to_record(rows[0])
