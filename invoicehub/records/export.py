"""Spreadsheet summary of all invoices.

The workbook is rewritten from scratch on every call; there is no
incremental update.
"""

import logging
import math
from pathlib import Path

from openpyxl import Workbook

from invoicehub.invoices.schema import InvoiceRecord

logger = logging.getLogger(__name__)

SHEET_TITLE = "Invoice Summary"

COLUMNS: list[tuple[str, str]] = [
    ("Invoice Number", "invoice_number"),
    ("Invoice Date", "invoice_date"),
    ("Order Date", "order_date"),
    ("Amount", "amount"),
    ("Currency", "currency"),
    ("Seller", "seller"),
    ("Buyer", "buyer"),
    ("Contact", "contact"),
    ("Invoice Type", "invoice_type"),
    ("Description", "description"),
    ("Notes", "notes"),
    ("Uploaded At", "created_at"),
    ("Status", "status"),
    ("Image", "image_url"),
]


def _cell_value(record: InvoiceRecord, field: str) -> object:
    value = getattr(record, field)
    if field == "amount" and math.isnan(value):
        return None
    if field == "created_at":
        # openpyxl rejects tz-aware datetimes
        return value.replace(tzinfo=None)
    return value


def write_summary(records: list[InvoiceRecord], path: Path) -> Path:
    """Write all records to an .xlsx workbook.

    Args:
        records: Records to export, in listing order
        path: Target workbook path (parent directories are created)

    Returns:
        Path of the written workbook
    """
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE
    sheet.append([header for header, _ in COLUMNS])

    for record in records:
        sheet.append([_cell_value(record, field) for _, field in COLUMNS])

    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)
    logger.info(f"Spreadsheet summary updated: {path} ({len(records)} invoices)")
    return path
