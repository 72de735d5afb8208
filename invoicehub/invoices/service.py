"""Invoice submission, upload and listing handlers.

Submission runs ``Validating -> (StoringBlob)? -> Persisting``:

1. Every attached file is checked (size, content type) before any store call
2. Files are stored one by one; a failure aborts before a record exists
3. The record is created; if that fails, stored files are left in place

There is no rollback and no retry on any path.
"""

import logging
from dataclasses import dataclass

from invoicehub.blobs.base import BlobStore, StoredBlob, check_upload
from invoicehub.invoices.schema import (
    SUBMITTED_STATUS,
    InvoiceRecord,
    InvoiceSubmission,
    InvoiceSummary,
    amount_or_zero,
)
from invoicehub.records.base import RecordStore
from invoicehub.shared.clock import next_timestamp_ms
from invoicehub.shared.config import Settings
from invoicehub.shared.errors import BackendError, MissingFileError

logger = logging.getLogger(__name__)

# Attachment slot -> record field holding its URL
ATTACHMENT_FIELDS: dict[str, str] = {
    "image": "image_url",
    "invoice": "invoice_url",
    "sign": "sign_url",
}


@dataclass
class Attachment:
    """A file received with a request."""

    data: bytes
    filename: str | None
    content_type: str | None


def invoice_namespace(invoice_number: str) -> str:
    """Blob folder holding the files of one invoice."""
    return f"invoices/{invoice_number}"


def total_amount(records: list[InvoiceRecord]) -> float:
    """Sum of amounts, counting missing or NaN amounts as 0."""
    return sum((amount_or_zero(record.amount) for record in records), 0.0)


class InvoiceService:
    """Handlers over an injected record store and blob store."""

    def __init__(self, settings: Settings, records: RecordStore, blobs: BlobStore) -> None:
        self.settings = settings
        self.records = records
        self.blobs = blobs

    def _check_all(self, attachments: list[Attachment]) -> None:
        for attachment in attachments:
            check_upload(
                attachment.data, attachment.filename, attachment.content_type, self.settings
            )

    def submit(
        self,
        submission: InvoiceSubmission,
        attachments: dict[str, Attachment] | None = None,
    ) -> InvoiceRecord:
        """Store attached files, then persist the invoice record.

        Args:
            submission: Validated invoice fields
            attachments: Files keyed by slot (``image``, ``invoice``, ``sign``)

        Returns:
            The created record, including resolved file URLs

        Raises:
            InvoiceValidationError: If an attachment is rejected
            ConfigurationError: If blob storage credentials are missing
            BackendError: If a blob store or record store call fails
        """
        attachments = {
            slot: attachment
            for slot, attachment in (attachments or {}).items()
            if slot in ATTACHMENT_FIELDS
        }
        self._check_all(list(attachments.values()))

        namespace = invoice_namespace(submission.invoice_number)
        urls = {field: getattr(submission, field) for field in ATTACHMENT_FIELDS.values()}
        stored: list[StoredBlob] = []

        for slot, attachment in attachments.items():
            blob = self.blobs.store(
                attachment.data,
                attachment.filename,
                attachment.content_type,
                namespace=namespace,
            )
            stored.append(blob)
            urls[ATTACHMENT_FIELDS[slot]] = blob.url

        record = InvoiceRecord(
            id=str(next_timestamp_ms()),
            invoice_number=submission.invoice_number,
            invoice_date=submission.invoice_date,
            order_date=submission.order_date,
            amount=submission.amount,
            currency=submission.currency or self.settings.default_currency,
            seller=submission.resolved_seller(),
            seller_option=submission.seller_option,
            seller_other=submission.seller_other,
            buyer=submission.buyer,
            contact=submission.contact,
            invoice_type=submission.invoice_type or self.settings.default_invoice_type,
            description=submission.description,
            notes=submission.notes,
            folder_path=namespace if stored else None,
            status=SUBMITTED_STATUS,
            **urls,
        )

        try:
            created = self.records.create(record)
        except BackendError:
            if stored:
                orphans = ", ".join(blob.path for blob in stored)
                logger.warning(
                    f"Invoice {submission.invoice_number} not saved; orphaned: {orphans}"
                )
            raise

        logger.info(
            f"Invoice {created.invoice_number} submitted as {created.id} "
            f"with {len(stored)} file(s)"
        )
        return created

    def upload_files(self, files: list[Attachment]) -> list[StoredBlob]:
        """Store files independently of any invoice.

        A failure part-way leaves the files stored before it in place.

        Raises:
            MissingFileError: If no file was sent
        """
        if not files:
            raise MissingFileError()
        self._check_all(files)

        return [
            self.blobs.store(file.data, file.filename, file.content_type) for file in files
        ]

    def list_invoices(self) -> InvoiceSummary:
        """All invoices with count and total amount."""
        invoices = self.records.list_all()
        return InvoiceSummary(
            invoices=invoices,
            count=len(invoices),
            total_amount=total_amount(invoices),
        )

    def get_invoice(self, invoice_id: str) -> InvoiceRecord:
        """Single invoice by id.

        Raises:
            NotFoundError: If no invoice has this id
        """
        return self.records.get_by_id(invoice_id)
