"""Wave bill payload (GraphQL ``billCreate`` input).

Money as two-decimal strings. Tax is represented as a synthetic "Tax" item
booked to the same account.
"""

from datetime import date
from typing import Any, Literal

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

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
    money_string,
    require_id,
)

LEDGER = "wave"


class WaveModel(WireModel):
    model_config = ConfigDict(alias_generator=to_camel)


class WaveItem(WaveModel):
    account_id: str
    description: str
    quantity: JsonNumber
    unit_price: str
    total_amount: str


class WaveBillInput(WaveModel):
    business_id: str
    vendor_id: str
    bill_number: str
    bill_date: date
    due_date: date | None = None
    currency: str
    memo: str | None = None
    status: Literal["SAVED", "PAID", "PARTIAL", "OVERDUE", "UNPAID"]
    items: list[WaveItem]


class WaveBill(LedgerPayload):
    input: WaveBillInput


def build_wave_payload(
    invoice: Invoice, routing: RoutingIds, defaults: LedgerDefaults | None = None
) -> WaveBill:
    """Translate an invoice into a Wave bill.

    Args:
        invoice: Canonical invoice
        routing: Must carry business_id, vendor_id and account_id
        defaults: Bill status

    Returns:
        Wave bill payload

    Raises:
        TranslationError: If a routing id is missing or the payload fails shape validation
    """
    defaults = defaults or LedgerDefaults()
    invoice = coerce_invoice(LEDGER, invoice)
    business_id = require_id(LEDGER, routing, "business_id")
    vendor_id = require_id(LEDGER, routing, "vendor_id")
    account_id = require_id(LEDGER, routing, "account_id")

    items = [
        {
            "accountId": account_id,
            "description": item.description,
            "quantity": line_quantity(item),
            "unitPrice": money_string(line_unit_price(item)),
            "totalAmount": money_string(item.total),
        }
        for item in invoice.line_items
    ]
    if has_tax(invoice):
        items.append(
            {
                "accountId": account_id,
                "description": "Tax",
                "quantity": 1,
                "unitPrice": money_string(invoice.tax),
                "totalAmount": money_string(invoice.tax),
            }
        )

    bill: dict[str, Any] = {
        "businessId": business_id,
        "vendorId": vendor_id,
        "billNumber": invoice.invoice_number,
        "billDate": invoice.invoice_date,
        "currency": invoice.currency,
        "memo": f"Imported from invoice: {invoice.invoice_number}",
        "status": defaults.wave_status,
        "items": items,
    }
    if invoice.due_date is not None:
        bill["dueDate"] = invoice.due_date

    return build_payload(LEDGER, WaveBill, {"input": bill})
