"""Shared pieces for ledger payload translators.

Translators are pure functions ``(invoice, routing, defaults) -> payload``.
Each payload is a closed pydantic model (unknown fields are rejected) so a
translator validates its own output simply by constructing it.
"""

from collections.abc import Callable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated, Any, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, PlainSerializer, ValidationError

from invoicing.extraction.schema import Invoice, LineItem
from invoicing.shared.errors import TranslationError

CENTS = Decimal("0.01")


def _exact_as_float(value: Decimal) -> Decimal:
    """Reject values a JSON number (IEEE double) would silently round."""
    if Decimal(repr(float(value))) != value:
        raise ValueError(f"{value} cannot be sent as a JSON number without losing digits")
    return value


# Decimal kept in Python, emitted as a JSON number on the wire
JsonNumber = Annotated[
    Decimal,
    AfterValidator(_exact_as_float),
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


class RoutingIds(BaseModel):
    """Caller-supplied identifiers of the invoice's counterparts in a ledger.

    Which ones are required depends on the ledger. The optional codes override
    the configured LedgerDefaults for a single translation.
    """

    model_config = ConfigDict(frozen=True)

    vendor_id: str | None = None
    contact_id: str | None = None
    account_id: str | None = None
    business_id: str | None = None
    account_code: str | None = None
    tax_type: str | None = None
    expense_category_id: str | None = None


class LedgerDefaults(BaseModel):
    """Per-ledger defaults, built from Settings.ledger_defaults()."""

    model_config = ConfigDict(frozen=True)

    quickbooks_expense_account_id: str = "1"
    quickbooks_tax_code: str = "NON"
    quickbooks_tax_line_code: str = "TAX"
    xero_account_code: str = "200"
    xero_tax_type: str = "NONE"
    xero_status: str = "DRAFT"
    wave_status: str = "SAVED"
    freshbooks_expense_category_id: str = "1"


class WireModel(BaseModel):
    """Closed, immutable wire structure; field names map to wire keys via aliases."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class LedgerPayload(WireModel):
    """Base for the top-level payload of each ledger."""

    def to_wire(self) -> dict[str, Any]:
        """Payload as sent to the ledger. Unset optional fields are omitted, not null."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        """Deterministic JSON encoding of ``to_wire()``."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


PayloadT = TypeVar("PayloadT", bound=LedgerPayload)
Translator = Callable[[Invoice, RoutingIds, LedgerDefaults], LedgerPayload]


def require_id(ledger: str, routing: RoutingIds, field: str, value: str | None = None) -> str:
    """Return a required routing identifier or raise TranslationError.

    Args:
        ledger: Ledger name for the error message
        routing: Routing identifiers supplied by the caller
        field: Name of the identifier
        value: Already-resolved value (e.g. after a fallback); read from routing if None
    """
    resolved = value if value is not None else getattr(routing, field)
    if resolved is None or not resolved.strip():
        raise TranslationError(ledger, f"missing required routing identifier '{field}'")
    return resolved


def coerce_invoice(ledger: str, invoice: Invoice | Mapping[str, Any]) -> Invoice:
    """Accept an Invoice or a mapping that must validate as one."""
    if isinstance(invoice, Invoice):
        return invoice
    try:
        return Invoice.model_validate(invoice)
    except ValidationError as e:
        raise TranslationError(ledger, f"invoice does not match the canonical shape: {e}") from e


def build_payload(ledger: str, model: type[PayloadT], data: dict[str, Any]) -> PayloadT:
    """Construct a payload model, reporting shape failures as TranslationError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise TranslationError(ledger, f"payload failed shape validation: {e}") from e


def line_quantity(item: LineItem) -> Decimal:
    return item.quantity if item.quantity is not None else Decimal(1)


def line_unit_price(item: LineItem) -> Decimal:
    return item.unit_price if item.unit_price is not None else item.total


def has_tax(invoice: Invoice) -> bool:
    """Tax is represented only when present and strictly positive."""
    return invoice.tax is not None and invoice.tax > 0


def money_string(value: Decimal) -> str:
    """Fixed-point string with exactly two decimals (Wave, FreshBooks)."""
    return str(value.quantize(CENTS, rounding=ROUND_HALF_UP))
