"""Reconciliation engine.

Checks an extracted invoice for internal consistency. Pure and deterministic:
the caller supplies the invoice numbers already on file and gets back every
problem at once, errors (which make the invoice invalid) and warnings (which
never do).

All comparisons use a fixed absolute tolerance of 0.01 regardless of invoice
magnitude.
"""

from collections.abc import Collection
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict, Field

from invoicing.extraction.schema import Invoice

MATH_TOLERANCE = Decimal("0.01")
CENTS = Decimal("0.01")


class ValidationResult(BaseModel):
    """Outcome of reconciliation. ``is_valid`` is False iff errors is non-empty."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def _display(value: Decimal) -> str:
    """Plain rendering without exponent or trailing zeros (1000, 12.5)."""
    return format(value.normalize(), "f")


def _fixed(value: Decimal) -> str:
    return str(value.quantize(CENTS, rounding=ROUND_HALF_UP))


def _is_blank(value: str | None) -> bool:
    return not value or not value.strip()


def check_math(invoice: Invoice) -> str | None:
    """subtotal + (tax or 0) must equal total within the tolerance."""
    tax = invoice.tax if invoice.tax is not None else Decimal(0)
    expected = invoice.subtotal + tax
    difference = abs(expected - invoice.total)
    if difference > MATH_TOLERANCE:
        return (
            f"Math validation failed: subtotal ({_display(invoice.subtotal)}) + "
            f"tax ({_display(tax)}) = {_display(expected)}, but total is "
            f"{_display(invoice.total)} (difference: {_fixed(difference)})"
        )
    return None


def check_line_items(invoice: Invoice) -> str | None:
    """Line items must sum to the subtotal or, for tax-inclusive pricing, the total."""
    if not invoice.line_items:
        return None
    line_total = sum((item.total for item in invoice.line_items), Decimal(0))
    off_subtotal = abs(line_total - invoice.subtotal) > MATH_TOLERANCE
    off_total = abs(line_total - invoice.total) > MATH_TOLERANCE
    if off_subtotal and off_total:
        return (
            f"Line items total ({_fixed(line_total)}) does not match subtotal "
            f"({_display(invoice.subtotal)}) or total ({_display(invoice.total)})"
        )
    return None


def validate(invoice: Invoice, existing_invoice_numbers: Collection[str] = ()) -> ValidationResult:
    """Reconcile an invoice.

    Args:
        invoice: Extracted invoice
        existing_invoice_numbers: Invoice numbers already on file (exact,
            case-sensitive match)

    Returns:
        ValidationResult with every error and warning found
    """
    errors: list[str] = []
    warnings: list[str] = []

    if _is_blank(invoice.vendor_name):
        errors.append("vendor_name is required")

    if _is_blank(invoice.currency):
        errors.append("currency is required")
    elif len(invoice.currency) != 3:
        errors.append("currency must be a valid ISO 4217 code (3 characters)")

    if invoice.total <= 0:
        errors.append("total must be greater than 0")

    if invoice.invoice_number in existing_invoice_numbers:
        errors.append(f'invoice_number "{invoice.invoice_number}" already exists (duplicate)')

    math_error = check_math(invoice)
    if math_error:
        errors.append(math_error)

    if _is_blank(invoice.invoice_number):
        warnings.append("invoice_number is empty")

    if invoice.due_date is None:
        warnings.append("due_date is not specified")

    if not invoice.line_items:
        warnings.append("No line items present")

    line_item_warning = check_line_items(invoice)
    if line_item_warning:
        warnings.append(line_item_warning)

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)
