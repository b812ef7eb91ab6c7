"""Strict shape checks for language model responses.

Each rule is a small function returning a ShapeCheck so it can be tested on
its own. Nothing here coerces: a date in the wrong format, a number sent as a
string or a missing key is a violation, not something to repair.
"""

import json
import math
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from invoicing.extraction.schema import Classification, Invoice, Verification
from invoicing.shared.errors import SchemaError

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
CURRENCY_PATTERN = re.compile(r"^[A-Za-z]{3}$")

INVOICE_FIELDS = (
    "vendor_name",
    "invoice_number",
    "invoice_date",
    "due_date",
    "currency",
    "line_items",
    "subtotal",
    "tax",
    "total",
)
LINE_ITEM_FIELDS = ("description", "quantity", "unit_price", "total")
CLASSIFICATION_FIELDS = ("is_invoice", "vendor_name", "confidence", "signals")
DOCUMENT_TYPES = ("invoice", "expense", "other")
VERIFICATION_FIELDS = ("status", "corrections")
VERIFICATION_STATUSES = ("VERIFIED", "CORRECTED")


@dataclass(frozen=True)
class ShapeCheck:
    """Outcome of one or more shape rules."""

    ok: bool
    violations: tuple[str, ...] = ()

    @classmethod
    def passed(cls) -> "ShapeCheck":
        return cls(ok=True)

    @classmethod
    def failed(cls, *violations: str) -> "ShapeCheck":
        return cls(ok=False, violations=violations)

    def __add__(self, other: "ShapeCheck") -> "ShapeCheck":
        return ShapeCheck(ok=self.ok and other.ok, violations=self.violations + other.violations)


def combine(checks: list[ShapeCheck]) -> ShapeCheck:
    result = ShapeCheck.passed()
    for check in checks:
        result = result + check
    return result


def check_required_fields(data: dict[str, Any], fields: tuple[str, ...], where: str) -> ShapeCheck:
    """Every declared field must be present (null counts as present)."""
    missing = [name for name in fields if name not in data]
    if missing:
        return ShapeCheck.failed(*(f"{where}: missing field '{name}'" for name in missing))
    return ShapeCheck.passed()


def check_string(value: Any, field: str, nullable: bool = False) -> ShapeCheck:
    if value is None and nullable:
        return ShapeCheck.passed()
    if not isinstance(value, str):
        return ShapeCheck.failed(f"{field} must be a string")
    return ShapeCheck.passed()


def check_number(value: Any, field: str, nullable: bool = False) -> ShapeCheck:
    """JSON number check. Booleans and numeric strings are rejected."""
    if value is None and nullable:
        return ShapeCheck.passed()
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return ShapeCheck.failed(f"{field} must be a number")
    if isinstance(value, (float, Decimal)) and not math.isfinite(value):
        return ShapeCheck.failed(f"{field} must be finite")
    return ShapeCheck.passed()


def check_iso_date(value: Any, field: str, nullable: bool = False) -> ShapeCheck:
    """YYYY-MM-DD calendar date (2024-02-30 is rejected)."""
    if value is None and nullable:
        return ShapeCheck.passed()
    if not isinstance(value, str) or not ISO_DATE_PATTERN.match(value):
        return ShapeCheck.failed(f"{field} must be a date in YYYY-MM-DD format")
    try:
        date.fromisoformat(value)
    except ValueError:
        return ShapeCheck.failed(f"{field} is not a valid calendar date: {value}")
    return ShapeCheck.passed()


def check_currency_code(value: Any, field: str = "currency") -> ShapeCheck:
    if not isinstance(value, str) or not CURRENCY_PATTERN.match(value):
        return ShapeCheck.failed(f"{field} must be exactly 3 letters")
    return ShapeCheck.passed()


def check_probability(value: Any, field: str) -> ShapeCheck:
    number = check_number(value, field)
    if not number.ok:
        return number
    if not 0 <= value <= 1:
        return ShapeCheck.failed(f"{field} must be between 0 and 1")
    return ShapeCheck.passed()


def check_line_item(item: Any, index: int) -> ShapeCheck:
    where = f"line_items[{index}]"
    if not isinstance(item, dict):
        return ShapeCheck.failed(f"{where} must be an object")
    present = check_required_fields(item, LINE_ITEM_FIELDS, where)
    if not present.ok:
        return present
    return combine(
        [
            check_string(item["description"], f"{where}.description"),
            check_number(item["quantity"], f"{where}.quantity", nullable=True),
            check_number(item["unit_price"], f"{where}.unit_price", nullable=True),
            check_number(item["total"], f"{where}.total"),
        ]
    )


def check_invoice_shape(data: dict[str, Any]) -> ShapeCheck:
    """All rules for an extracted invoice, collected rather than fail-fast."""
    present = check_required_fields(data, INVOICE_FIELDS, "invoice")
    if not present.ok:
        return present

    checks = [
        check_string(data["vendor_name"], "vendor_name"),
        check_string(data["invoice_number"], "invoice_number"),
        check_iso_date(data["invoice_date"], "invoice_date"),
        check_iso_date(data["due_date"], "due_date", nullable=True),
        check_currency_code(data["currency"]),
        check_number(data["subtotal"], "subtotal"),
        check_number(data["tax"], "tax", nullable=True),
        check_number(data["total"], "total"),
    ]
    line_items = data["line_items"]
    if not isinstance(line_items, list):
        checks.append(ShapeCheck.failed("line_items must be a list"))
    else:
        checks.extend(check_line_item(item, i) for i, item in enumerate(line_items))
    return combine(checks)


def check_classification_shape(data: dict[str, Any]) -> ShapeCheck:
    present = check_required_fields(data, CLASSIFICATION_FIELDS, "classification")
    if not present.ok:
        return present

    checks = [
        ShapeCheck.passed()
        if isinstance(data["is_invoice"], bool)
        else ShapeCheck.failed("is_invoice must be a boolean"),
        check_string(data["vendor_name"], "vendor_name", nullable=True),
        check_probability(data["confidence"], "confidence"),
    ]
    signals = data["signals"]
    if not isinstance(signals, list) or not all(isinstance(s, str) for s in signals):
        checks.append(ShapeCheck.failed("signals must be a list of strings"))
    document_type = data.get("document_type")
    if document_type is not None and document_type not in DOCUMENT_TYPES:
        checks.append(ShapeCheck.failed(f"document_type must be one of {', '.join(DOCUMENT_TYPES)}"))
    return combine(checks)


def check_verification_shape(data: dict[str, Any]) -> ShapeCheck:
    """Rules for an audit response. Corrected data must itself be a valid invoice."""
    present = check_required_fields(data, VERIFICATION_FIELDS, "verification")
    if not present.ok:
        return present

    checks: list[ShapeCheck] = []
    status = data["status"]
    if status not in VERIFICATION_STATUSES:
        checks.append(ShapeCheck.failed(f"status must be one of {', '.join(VERIFICATION_STATUSES)}"))
    corrections = data["corrections"]
    if not isinstance(corrections, list) or not all(isinstance(c, str) for c in corrections):
        checks.append(ShapeCheck.failed("corrections must be a list of strings"))

    if status == "CORRECTED":
        corrected = data.get("data")
        if not isinstance(corrected, dict):
            checks.append(ShapeCheck.failed("data must be an invoice object when status is CORRECTED"))
        else:
            invoice = check_invoice_shape(corrected)
            checks.append(ShapeCheck(invoice.ok, tuple(f"data: {v}" for v in invoice.violations)))
    return combine(checks)


def parse_json_object(raw: str | None) -> dict[str, Any]:
    """Parse a model response as a single JSON object.

    Floats are parsed as Decimal so money keeps the digits the model wrote.

    Raises:
        SchemaError: If the text is empty, not JSON, or not an object
    """
    if raw is None or not raw.strip():
        raise SchemaError("Empty model response", raw_response=raw)
    try:
        data = json.loads(raw, parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise SchemaError(f"Model response is not valid JSON: {e}", raw_response=raw) from e
    if not isinstance(data, dict):
        raise SchemaError("Model response must be a JSON object", raw_response=raw)
    return data


def parse_invoice(raw: str) -> Invoice:
    """Parse and shape-check an extraction response.

    Raises:
        SchemaError: With the raw response and every violated rule
    """
    data = parse_json_object(raw)
    check = check_invoice_shape(data)
    if not check.ok:
        raise SchemaError(
            f"Extraction response violates invoice shape: {'; '.join(check.violations)}",
            raw_response=raw,
            violations=list(check.violations),
        )
    return _invoice_from_checked(data)


def _invoice_from_checked(data: dict[str, Any]) -> Invoice:
    return Invoice(
        vendor_name=data["vendor_name"],
        invoice_number=data["invoice_number"],
        invoice_date=date.fromisoformat(data["invoice_date"]),
        due_date=date.fromisoformat(data["due_date"]) if data["due_date"] is not None else None,
        currency=data["currency"],
        line_items=data["line_items"],
        subtotal=data["subtotal"],
        tax=data["tax"],
        total=data["total"],
    )


def parse_classification(raw: str) -> Classification:
    """Parse and shape-check a classification response.

    Raises:
        SchemaError: With the raw response and every violated rule
    """
    data = parse_json_object(raw)
    check = check_classification_shape(data)
    if not check.ok:
        raise SchemaError(
            f"Classification response violates shape: {'; '.join(check.violations)}",
            raw_response=raw,
            violations=list(check.violations),
        )
    return Classification(
        is_invoice=data["is_invoice"],
        vendor_name=data["vendor_name"],
        confidence=float(data["confidence"]),
        signals=tuple(data["signals"]),
        document_type=data.get("document_type"),
    )


def parse_verification(raw: str) -> Verification:
    """Parse and shape-check an audit response.

    Raises:
        SchemaError: With the raw response and every violated rule
    """
    data = parse_json_object(raw)
    check = check_verification_shape(data)
    if not check.ok:
        raise SchemaError(
            f"Verification response violates shape: {'; '.join(check.violations)}",
            raw_response=raw,
            violations=list(check.violations),
        )
    corrected = data["status"] == "CORRECTED"
    return Verification(
        status=data["status"],
        corrections=tuple(data["corrections"]),
        invoice=_invoice_from_checked(data["data"]) if corrected else None,
    )
