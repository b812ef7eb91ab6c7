"""Unit tests for response shape checks.

Each rule is tested on its own, then through parse_invoice/parse_classification.
"""

import json
from collections.abc import Callable
from datetime import date
from decimal import Decimal
from typing import Any

import pytest

from invoicing.extraction.shape import (
    ShapeCheck,
    check_classification_shape,
    check_currency_code,
    check_invoice_shape,
    check_iso_date,
    check_line_item,
    check_number,
    check_probability,
    check_required_fields,
    parse_classification,
    parse_invoice,
    parse_json_object,
)
from invoicing.shared.errors import SchemaError


class TestIndividualChecks:
    """Test each shape rule in isolation."""

    def test_shape_check_combines(self) -> None:
        combined = ShapeCheck.passed() + ShapeCheck.failed("a") + ShapeCheck.failed("b")
        assert combined.ok is False
        assert combined.violations == ("a", "b")

    def test_required_fields(self) -> None:
        assert check_required_fields({"a": None}, ("a",), "x").ok is True
        result = check_required_fields({}, ("a", "b"), "invoice")
        assert result.ok is False
        assert result.violations == ("invoice: missing field 'a'", "invoice: missing field 'b'")

    @pytest.mark.parametrize("value", [1, 0, Decimal("12.50"), 3.5])
    def test_number_accepts_json_numbers(self, value: Any) -> None:
        assert check_number(value, "total").ok is True

    @pytest.mark.parametrize("value", ["12.50", True, None, [1]])
    def test_number_rejects_non_numbers(self, value: Any) -> None:
        assert check_number(value, "total").ok is False

    def test_number_nullable(self) -> None:
        assert check_number(None, "tax", nullable=True).ok is True

    def test_number_rejects_nan(self) -> None:
        assert check_number(float("nan"), "total").ok is False

    @pytest.mark.parametrize("value", ["2024-01-15", "2024-02-29"])
    def test_iso_date_valid(self, value: str) -> None:
        assert check_iso_date(value, "invoice_date").ok is True

    @pytest.mark.parametrize(
        "value", ["15/01/2024", "2024-1-15", "2024-01-15T00:00:00", 20240115, "2023-02-29", None]
    )
    def test_iso_date_invalid(self, value: Any) -> None:
        assert check_iso_date(value, "invoice_date").ok is False

    def test_iso_date_nullable(self) -> None:
        assert check_iso_date(None, "due_date", nullable=True).ok is True

    @pytest.mark.parametrize("value", ["USD", "eur", "AUD"])
    def test_currency_valid(self, value: str) -> None:
        assert check_currency_code(value).ok is True

    @pytest.mark.parametrize("value", ["US", "USDX", "U$D", "", None, 840])
    def test_currency_invalid(self, value: Any) -> None:
        assert check_currency_code(value).ok is False

    def test_probability_bounds(self) -> None:
        assert check_probability(0, "confidence").ok is True
        assert check_probability(Decimal("1"), "confidence").ok is True
        assert check_probability(Decimal("1.2"), "confidence").ok is False
        assert check_probability(-0.1, "confidence").ok is False

    def test_line_item_requires_total(self) -> None:
        item = {"description": "Widget", "quantity": None, "unit_price": None, "total": None}
        result = check_line_item(item, 2)
        assert result.ok is False
        assert result.violations == ("line_items[2].total must be a number",)

    def test_line_item_requires_declared_keys(self) -> None:
        result = check_line_item({"description": "Widget", "total": 5}, 0)
        assert result.ok is False
        assert "line_items[0]: missing field 'quantity'" in result.violations

    def test_line_item_must_be_object(self) -> None:
        assert check_line_item("Widget", 0).ok is False


class TestInvoiceShape:
    """Test the aggregate invoice rule set."""

    def test_sample_invoice_passes(self, make_invoice_data: Callable[..., dict[str, Any]]) -> None:
        assert check_invoice_shape(make_invoice_data()).ok is True

    def test_all_violations_are_collected(
        self, make_invoice_data: Callable[..., dict[str, Any]]
    ) -> None:
        data = make_invoice_data(currency="DOLLARS", invoice_date="Jan 15", total="1100")

        result = check_invoice_shape(data)

        assert result.ok is False
        assert len(result.violations) == 3

    def test_missing_field_reported(self, make_invoice_data: Callable[..., dict[str, Any]]) -> None:
        data = make_invoice_data()
        del data["tax"]

        result = check_invoice_shape(data)

        assert result.violations == ("invoice: missing field 'tax'",)

    def test_line_items_must_be_list(
        self, make_invoice_data: Callable[..., dict[str, Any]]
    ) -> None:
        assert check_invoice_shape(make_invoice_data(line_items={"a": 1})).ok is False


class TestParsing:
    """Test parsing raw model responses."""

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_response(self, raw: str | None) -> None:
        with pytest.raises(SchemaError, match="Empty model response"):
            parse_json_object(raw)

    def test_not_json_keeps_raw(self) -> None:
        with pytest.raises(SchemaError) as exc_info:
            parse_json_object("Sure! Here is the invoice")
        assert exc_info.value.raw_response == "Sure! Here is the invoice"

    def test_json_array_rejected(self) -> None:
        with pytest.raises(SchemaError, match="JSON object"):
            parse_json_object("[1, 2]")

    def test_floats_parse_as_decimal(self) -> None:
        assert parse_json_object('{"total": 0.1}')["total"] == Decimal("0.1")

    def test_parse_invoice(self, make_invoice_data: Callable[..., dict[str, Any]]) -> None:
        raw = json.dumps(make_invoice_data(subtotal=1000.10, total=1100.10, due_date=None))

        invoice = parse_invoice(raw)

        assert invoice.vendor_name == "Acme Corp"
        assert invoice.invoice_date == date(2024, 1, 15)
        assert invoice.due_date is None
        assert invoice.subtotal == Decimal("1000.1")
        assert invoice.line_items[1].quantity is None
        assert invoice.line_items[0].quantity == Decimal("10")

    def test_parse_invoice_shape_violation(
        self, make_invoice_data: Callable[..., dict[str, Any]]
    ) -> None:
        raw = json.dumps(make_invoice_data(currency="US"))

        with pytest.raises(SchemaError) as exc_info:
            parse_invoice(raw)

        assert exc_info.value.raw_response == raw
        assert exc_info.value.violations == ["currency must be exactly 3 letters"]

    def test_parse_classification(self) -> None:
        raw = json.dumps(
            {
                "is_invoice": True,
                "vendor_name": "Acme Corp",
                "confidence": 0.92,
                "signals": ["invoice number present", "total amount found"],
                "document_type": "invoice",
            }
        )

        classification = parse_classification(raw)

        assert classification.is_invoice is True
        assert classification.confidence == pytest.approx(0.92)
        assert classification.signals == ("invoice number present", "total amount found")
        assert classification.document_type == "invoice"

    def test_parse_classification_without_document_type(self) -> None:
        raw = '{"is_invoice": false, "vendor_name": null, "confidence": 0.1, "signals": []}'

        classification = parse_classification(raw)

        assert classification.is_invoice is False
        assert classification.document_type is None

    def test_classification_shape_violations(self) -> None:
        data = {"is_invoice": "yes", "vendor_name": 3, "confidence": 2, "signals": "none"}

        result = check_classification_shape(data)

        assert result.ok is False
        assert len(result.violations) == 4
