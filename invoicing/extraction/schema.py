"""Canonical invoice and classification models.

The Invoice type describes shape only. Business invariants (positive total,
subtotal + tax == total, currency length) are observed by the reconciliation
engine, not enforced here, so that an inconsistent extraction can still be
represented and reported on.
"""

from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class LineItem(BaseModel):
    """Single invoice line.

    quantity=None means "not specified, treat as 1"; unit_price=None means
    "derive from total".
    """

    model_config = ConfigDict(frozen=True)

    description: str = Field(description="Item description")
    quantity: Decimal | None = Field(None, description="Quantity if specified")
    unit_price: Decimal | None = Field(None, description="Unit price if specified")
    total: Decimal = Field(description="Line total")


class Invoice(BaseModel):
    """Canonical, provider-agnostic vendor bill. Immutable once extracted."""

    model_config = ConfigDict(frozen=True)

    vendor_name: str = Field(description="Vendor/seller company name")
    invoice_number: str = Field(description="Vendor's invoice reference, used for dedup")
    invoice_date: date = Field(description="Date invoice was issued")
    due_date: date | None = Field(None, description="Payment due date")
    currency: str = Field(description="Currency code (ISO 4217)")
    line_items: tuple[LineItem, ...] = Field(default=(), description="Ordered line items")

    # Financial details
    subtotal: Decimal = Field(description="Subtotal before tax")
    tax: Decimal | None = Field(None, description="Tax amount, None if not applicable")
    total: Decimal = Field(description="Total amount including tax")


class ClassifierInput(BaseModel):
    """Email content submitted for classification."""

    model_config = ConfigDict(frozen=True)

    email_subject: str
    email_body: str
    attachment_text: str | None = None


class Classification(BaseModel):
    """Model's verdict on whether an email carries a vendor invoice.

    Confidence and signals are advisory; only ``is_invoice`` gates processing.
    """

    model_config = ConfigDict(frozen=True)

    is_invoice: bool
    vendor_name: str | None = None
    confidence: float = Field(ge=0, le=1)
    signals: tuple[str, ...] = ()
    document_type: Literal["invoice", "expense", "other"] | None = None


class Verification(BaseModel):
    """Outcome of the audit pass over an extracted invoice.

    ``invoice`` holds the corrected invoice and is set only when status is
    CORRECTED; a VERIFIED extraction is kept as it was.
    """

    model_config = ConfigDict(frozen=True)

    status: Literal["VERIFIED", "CORRECTED"]
    corrections: tuple[str, ...] = ()
    invoice: Invoice | None = None
