"""Unit tests for invoice models and amount parsing."""

import json
import math

import pytest
from pydantic import ValidationError

from invoicehub.invoices.schema import (
    InvoiceRecord,
    InvoiceSubmission,
    amount_or_zero,
    parse_amount,
)


class TestParseAmount:
    """Lenient amount parsing."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("100.50", 100.50),
            ("  42 ", 42.0),
            ("-7.5", -7.5),
            ("12.5 CNY", 12.5),
            (".5", 0.5),
            ("1e3", 1000.0),
            (99, 99.0),
            (3.25, 3.25),
        ],
    )
    def test_numeric_input(self, raw: object, expected: float) -> None:
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "abc", "CNY 12", True])
    def test_non_numeric_input_is_nan(self, raw: object) -> None:
        assert math.isnan(parse_amount(raw))

    @pytest.mark.parametrize("raw", [10**400, -(10**400), "1" + "0" * 400, "1e999", math.inf])
    def test_out_of_range_input_is_nan(self, raw: object) -> None:
        assert math.isnan(parse_amount(raw))

    def test_huge_json_amount_accepted(self) -> None:
        payload = '{"invoiceNumber": "INV-1", "amount": 1' + "0" * 400 + "}"

        submission = InvoiceSubmission.model_validate(json.loads(payload))

        assert math.isnan(submission.amount)

    def test_amount_or_zero(self) -> None:
        assert amount_or_zero(math.nan) == 0.0
        assert amount_or_zero(None) == 0.0
        assert amount_or_zero(-3.0) == -3.0


class TestInvoiceSubmission:
    """Input schema validation."""

    def test_accepts_camel_case_fields(self) -> None:
        submission = InvoiceSubmission.model_validate(
            {"invoiceNumber": "INV-1", "amount": "100.50", "currency": "USD", "orderDate": "x"}
        )

        assert submission.invoice_number == "INV-1"
        assert submission.amount == 100.50
        assert submission.currency == "USD"
        assert submission.order_date == "x"

    def test_missing_amount_is_nan(self) -> None:
        submission = InvoiceSubmission.model_validate({"invoiceNumber": "INV-1"})

        assert math.isnan(submission.amount)

    def test_invoice_number_required(self) -> None:
        with pytest.raises(ValidationError):
            InvoiceSubmission.model_validate({"amount": "1"})

    def test_unknown_fields_ignored(self) -> None:
        submission = InvoiceSubmission.model_validate({"invoiceNumber": "A", "extra": "x"})

        assert not hasattr(submission, "extra")

    def test_seller_takes_precedence(self) -> None:
        submission = InvoiceSubmission(invoice_number="A", seller="ACME", seller_option="Other")

        assert submission.resolved_seller() == "ACME"

    @pytest.mark.parametrize("option", ["other", "Other", "其他"])
    def test_seller_other_fallback(self, option: str) -> None:
        submission = InvoiceSubmission(
            invoice_number="A", seller_option=option, seller_other="Small Shop"
        )

        assert submission.resolved_seller() == "Small Shop"

    def test_seller_option_used_directly(self) -> None:
        submission = InvoiceSubmission(invoice_number="A", seller_option="Big Supplier")

        assert submission.resolved_seller() == "Big Supplier"


class TestInvoiceRecord:
    """Stored record model."""

    def _record(self, **overrides: object) -> InvoiceRecord:
        data: dict[str, object] = {
            "id": "1",
            "invoice_number": "INV-1",
            "amount": 10.0,
            "currency": "CNY",
            "invoice_type": "general",
        }
        data.update(overrides)
        return InvoiceRecord.model_validate(data)

    def test_record_is_frozen(self) -> None:
        record = self._record()

        with pytest.raises(ValidationError):
            record.amount = 20.0  # type: ignore[misc]

    def test_nan_amount_serializes_as_null(self) -> None:
        record = self._record(amount="not a number")

        assert math.isnan(record.amount)
        assert json.loads(record.model_dump_json(by_alias=True))["amount"] is None
        assert record.model_dump(mode="json")["amount"] is None

    def test_null_amount_reads_back_as_nan(self) -> None:
        record = self._record(amount=None)

        assert math.isnan(record.amount)

    def test_integer_id_from_store(self) -> None:
        record = self._record(id=17)

        assert record.id == "17"

    def test_wire_names_are_camel_case(self) -> None:
        data = self._record(image_url="a/b.png").model_dump(mode="json", by_alias=True)

        assert data["invoiceNumber"] == "INV-1"
        assert data["imageUrl"] == "a/b.png"
        assert "createdAt" in data
