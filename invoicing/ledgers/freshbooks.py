"""FreshBooks expense payload.

Money as two-decimal strings wrapped in ``{amount, code}`` objects. Tax goes
in the dedicated ``taxAmount1`` field; FreshBooks expenses carry a single
date, so there is no due date.

API reference:
https://www.freshbooks.com/api/expenses
"""

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import Field

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

LEDGER = "freshbooks"


class Money(WireModel):
    amount: str
    code: str


class FreshBooksLine(WireModel):
    category_id: str
    description: str
    amount: Money
    quantity: JsonNumber
    unit_cost: Money


class FreshBooksExpenseBody(WireModel):
    vendorid: str
    vendor: str
    expense_date: date = Field(alias="date")
    currency_code: str
    categoryid: str
    notes: str
    lines: list[FreshBooksLine]
    amount: Money
    tax_amount1: Money | None = Field(None, alias="taxAmount1")
    include_receipt: bool = False
    status: int = 0


class FreshBooksExpense(LedgerPayload):
    expense: FreshBooksExpenseBody


def build_freshbooks_payload(
    invoice: Invoice, routing: RoutingIds, defaults: LedgerDefaults | None = None
) -> FreshBooksExpense:
    """Translate an invoice into a FreshBooks expense.

    Args:
        invoice: Canonical invoice
        routing: Must carry vendor_id; expense_category_id overrides the default
        defaults: Expense category

    Returns:
        FreshBooks expense payload

    Raises:
        TranslationError: If vendor_id is missing or the payload fails shape validation
    """
    defaults = defaults or LedgerDefaults()
    invoice = coerce_invoice(LEDGER, invoice)
    vendor_id = require_id(LEDGER, routing, "vendor_id")
    category_id = routing.expense_category_id or defaults.freshbooks_expense_category_id
    currency = invoice.currency

    def money(value: Decimal) -> dict[str, str]:
        return {"amount": money_string(value), "code": currency}

    expense: dict[str, Any] = {
        "vendorid": vendor_id,
        "vendor": invoice.vendor_name,
        "date": invoice.invoice_date,
        "currency_code": currency,
        "categoryid": category_id,
        "notes": f"Invoice: {invoice.invoice_number}",
        "lines": [
            {
                "category_id": category_id,
                "description": item.description,
                "amount": money(item.total),
                "quantity": line_quantity(item),
                "unit_cost": money(line_unit_price(item)),
            }
            for item in invoice.line_items
        ],
        "amount": money(invoice.total),
        "include_receipt": False,
        "status": 0,
    }
    if has_tax(invoice):
        expense["taxAmount1"] = money(invoice.tax)

    return build_payload(LEDGER, FreshBooksExpense, {"expense": expense})
