"""Xero accounts-payable invoice (ACCPAY) payload.

Numeric money. Tax is carried in the dedicated TotalTax field with
LineAmountTypes "Exclusive"; without positive tax the invoice is "NoTax" and
TotalTax is omitted.

API reference:
https://developer.xero.com/documentation/api/accounting/invoices
"""

from datetime import date
from typing import Any, Literal

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_pascal

from invoicing.extraction.schema import Invoice
from invoicing.ledgers.base import (
    JsonNumber,
    LedgerDefaults,
    LedgerPayload,
    RoutingIds,
    WireModel,
    build_payload,
    coerce_invoice,
    has_tax,
    line_quantity,
    line_unit_price,
    require_id,
)

LEDGER = "xero"


class XeroContact(WireModel):
    contact_id: str = Field(alias="ContactID")


class XeroLineItem(WireModel):
    model_config = ConfigDict(alias_generator=to_pascal)

    description: str
    quantity: JsonNumber
    unit_amount: JsonNumber
    account_code: str
    tax_type: str
    line_amount: JsonNumber


class XeroInvoice(LedgerPayload):
    model_config = ConfigDict(alias_generator=to_pascal)

    type: Literal["ACCPAY"] = "ACCPAY"
    contact: XeroContact
    invoice_date: date = Field(alias="Date")
    due_date: date | None = None
    line_amount_types: Literal["Exclusive", "Inclusive", "NoTax"]
    invoice_number: str
    reference: str | None = None
    currency_code: str
    status: Literal["DRAFT", "SUBMITTED", "AUTHORISED"]
    line_items: list[XeroLineItem]
    sub_total: JsonNumber
    total_tax: JsonNumber | None = None
    total: JsonNumber


def build_xero_payload(
    invoice: Invoice, routing: RoutingIds, defaults: LedgerDefaults | None = None
) -> XeroInvoice:
    """Translate an invoice into a Xero ACCPAY invoice.

    Args:
        invoice: Canonical invoice
        routing: Must carry contact_id (vendor_id is accepted as a fallback)
        defaults: Account code, tax type and status

    Returns:
        Xero invoice payload

    Raises:
        TranslationError: If no contact id is available or the payload fails shape validation
    """
    defaults = defaults or LedgerDefaults()
    invoice = coerce_invoice(LEDGER, invoice)
    contact_id = require_id(LEDGER, routing, "contact_id", routing.contact_id or routing.vendor_id)
    account_code = routing.account_code or defaults.xero_account_code
    tax_type = routing.tax_type or defaults.xero_tax_type
    taxed = has_tax(invoice)

    data: dict[str, Any] = {
        "Type": "ACCPAY",
        "Contact": {"ContactID": contact_id},
        "Date": invoice.invoice_date,
        "LineAmountTypes": "Exclusive" if taxed else "NoTax",
        "InvoiceNumber": invoice.invoice_number,
        "Reference": f"Imported: {invoice.invoice_number}",
        "CurrencyCode": invoice.currency,
        "Status": defaults.xero_status,
        "LineItems": [
            {
                "Description": item.description,
                "Quantity": line_quantity(item),
                "UnitAmount": line_unit_price(item),
                "AccountCode": account_code,
                "TaxType": tax_type,
                "LineAmount": item.total,
            }
            for item in invoice.line_items
        ],
        "SubTotal": invoice.subtotal,
        "Total": invoice.total,
    }
    if taxed:
        data["TotalTax"] = invoice.tax
    if invoice.due_date is not None:
        data["DueDate"] = invoice.due_date

    return build_payload(LEDGER, XeroInvoice, data)
