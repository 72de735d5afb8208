"""Invoice data models.

Wire names are camelCase (``invoiceNumber``, ``imageUrl``), Python names are
snake_case. Both are accepted on input.
"""

import math
import re
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

OTHER_SELLER_OPTIONS = frozenset({"other", "其他"})
SUBMITTED_STATUS = "submitted"


def parse_amount(value: Any) -> float:
    """Parse an amount leniently.

    Leading numeric text is used (``"100.50 CNY"`` -> 100.5). Anything that
    does not start with a number, including a missing value, becomes NaN
    rather than being rejected. So does a number too large for a float.

    Args:
        value: Raw amount from a form field or JSON body

    Returns:
        Parsed finite float, or NaN when nothing usable was supplied
    """
    if isinstance(value, bool) or value is None:
        return math.nan
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if not match:
            return math.nan
        value = match.group(1)
    elif not isinstance(value, int | float):
        return math.nan

    try:
        amount = float(value)
    except OverflowError:
        return math.nan
    # inf has no JSON form and no meaning as an amount
    return amount if math.isfinite(amount) else math.nan


def amount_or_zero(amount: float | None) -> float:
    """Amount as used by aggregates: missing or NaN counts as 0."""
    if amount is None or math.isnan(amount):
        return 0.0
    return amount


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class InvoiceSubmission(_CamelModel):
    """Invoice fields accepted from clients.

    Only ``invoice_number`` is required. Defaults for currency and invoice
    type are applied by the submission handler from settings.
    """

    invoice_number: str = Field(..., description="Invoice identifier supplied by the caller")
    invoice_date: str = ""
    order_date: str = ""
    amount: float = Field(default=math.nan, description="Leniently parsed amount")
    currency: str | None = None

    seller: str = ""
    seller_option: str = ""
    seller_other: str = ""
    buyer: str = ""
    contact: str = ""

    invoice_type: str | None = None
    description: str = ""
    notes: str = ""

    # Set when files were uploaded beforehand through /api/upload
    image_url: str | None = None
    invoice_url: str | None = None
    sign_url: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> float:
        return parse_amount(value)

    @field_validator(
        "invoice_date",
        "order_date",
        "seller",
        "seller_option",
        "seller_other",
        "buyer",
        "contact",
        "description",
        "notes",
        mode="before",
    )
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def resolved_seller(self) -> str:
        """Seller name, falling back to the option/other pair."""
        if self.seller:
            return self.seller
        if self.seller_option.strip().lower() in OTHER_SELLER_OPTIONS:
            return self.seller_other
        return self.seller_option


class InvoiceRecord(_CamelModel):
    """A persisted invoice. Records are append-only and never mutated."""

    model_config = ConfigDict(frozen=True)

    id: str
    invoice_number: str
    invoice_date: str = ""
    order_date: str = ""
    amount: float = math.nan
    currency: str
    seller: str = ""
    seller_option: str = ""
    seller_other: str = ""
    buyer: str = ""
    contact: str = ""
    invoice_type: str
    description: str = ""
    notes: str = ""
    image_url: str | None = None
    invoice_url: str | None = None
    sign_url: str | None = None
    folder_path: str | None = None
    status: str = SUBMITTED_STATUS
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> float:
        return parse_amount(value)

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_serializer("amount")
    def _serialize_amount(self, amount: float) -> float | None:
        # NaN is not valid JSON
        return None if math.isnan(amount) else amount


class InvoiceSummary(_CamelModel):
    """Listing of invoices with aggregates."""

    invoices: list[InvoiceRecord]
    count: int
    total_amount: float

    @field_serializer("total_amount")
    def _serialize_total(self, total: float) -> float | None:
        # A sum of very large amounts can still overflow
        return total if math.isfinite(total) else None
