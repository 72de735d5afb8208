"""In-process record store with an optional JSON mirror.

The store owns an ordered list of records. When the filesystem is
persistent, the full list is rewritten to a JSON file after every create and
reloaded on startup, and a spreadsheet summary is regenerated. When it is
not, records live only as long as the process.

Single-process, single-writer: there is no locking across processes.
"""

import logging
from pathlib import Path

from pydantic import TypeAdapter

from invoicehub.invoices.schema import InvoiceRecord
from invoicehub.records.base import RecordStore
from invoicehub.records.export import write_summary
from invoicehub.shared.config import Settings
from invoicehub.shared.errors import BackendError, NotFoundError

logger = logging.getLogger(__name__)

_records_adapter = TypeAdapter(list[InvoiceRecord])


class MemoryRecordStore(RecordStore):
    """Ordered in-memory list of invoices, mirrored to disk when possible."""

    def __init__(self, settings: Settings) -> None:
        """Initialize store and load the JSON mirror if one exists.

        Args:
            settings: Application settings with data directory configuration
        """
        super().__init__(settings)
        self._mirror_path: Path | None = None
        self._summary_path: Path | None = None
        if settings.persistent_filesystem:
            self._mirror_path = settings.records_path
            self._summary_path = settings.summary_path

        self._records: list[InvoiceRecord] = self._load()

    @property
    def backend_name(self) -> str:
        return "memory"

    @property
    def persists_across_restarts(self) -> bool:
        return self._mirror_path is not None

    @property
    def summary_path(self) -> Path | None:
        """Spreadsheet summary location, or None when export is disabled."""
        return self._summary_path

    def is_available(self) -> bool:
        return True

    def _load(self) -> list[InvoiceRecord]:
        if self._mirror_path is None or not self._mirror_path.exists():
            return []

        try:
            records = _records_adapter.validate_json(self._mirror_path.read_bytes())
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read invoice data from {self._mirror_path}: {e}")
            return []

        logger.info(f"Loaded {len(records)} invoices from {self._mirror_path}")
        return records

    @staticmethod
    def _write_mirror(path: Path, records: list[InvoiceRecord]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(_records_adapter.dump_json(records, indent=2, by_alias=True))

    def create(self, record: InvoiceRecord) -> InvoiceRecord:
        records = [*self._records, record]

        if self._mirror_path is not None:
            try:
                self._write_mirror(self._mirror_path, records)
            except OSError as e:
                logger.error(f"Failed to write invoice data to {self._mirror_path}: {e}")
                raise BackendError() from e

        self._records = records
        logger.info(f"Stored invoice {record.id} ({record.invoice_number})")

        if self._summary_path is not None:
            try:
                write_summary(records, self._summary_path)
            except Exception as e:
                # The record is already stored; a stale summary is tolerated
                logger.error(f"Failed to update spreadsheet summary: {e}")

        return record

    def list_all(self) -> list[InvoiceRecord]:
        return list(self._records)

    def get_by_id(self, invoice_id: str) -> InvoiceRecord:
        for record in self._records:
            if record.id == invoice_id:
                return record
        raise NotFoundError()
