"""QuickBooks Online bill payload.

Numeric money, one AccountBasedExpenseLineDetail line per invoice line with
sequential string ids, and tax represented as a final synthetic "Tax" line.

API reference:
https://developer.intuit.com/app/developer/qbo/docs/api/accounting/all-entities/bill
"""

from datetime import date
from typing import Any, Literal

from pydantic import ConfigDict
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
    require_id,
)

LEDGER = "quickbooks"
DETAIL_TYPE = "AccountBasedExpenseLineDetail"


class Ref(WireModel):
    value: str


class QuickBooksModel(WireModel):
    model_config = ConfigDict(alias_generator=to_pascal)


class ExpenseLineDetail(QuickBooksModel):
    account_ref: Ref
    billable_status: Literal["NotBillable"] = "NotBillable"
    tax_code_ref: Ref


class QuickBooksLine(QuickBooksModel):
    id: str
    detail_type: Literal["AccountBasedExpenseLineDetail"] = DETAIL_TYPE
    amount: JsonNumber
    description: str | None = None
    account_based_expense_line_detail: ExpenseLineDetail


class QuickBooksBill(LedgerPayload):
    model_config = ConfigDict(alias_generator=to_pascal)

    vendor_ref: Ref
    line: list[QuickBooksLine]
    doc_number: str
    txn_date: date
    due_date: date | None = None
    currency_ref: Ref
    private_note: str | None = None
    total_amt: JsonNumber


def _line(line_id: int, amount: Any, description: str, account_id: str, tax_code: str) -> dict:
    return {
        "Id": str(line_id),
        "DetailType": DETAIL_TYPE,
        "Amount": amount,
        "Description": description,
        "AccountBasedExpenseLineDetail": {
            "AccountRef": {"value": account_id},
            "BillableStatus": "NotBillable",
            "TaxCodeRef": {"value": tax_code},
        },
    }


def build_quickbooks_payload(
    invoice: Invoice, routing: RoutingIds, defaults: LedgerDefaults | None = None
) -> QuickBooksBill:
    """Translate an invoice into a QuickBooks bill.

    Args:
        invoice: Canonical invoice
        routing: Must carry vendor_id
        defaults: Expense account and tax codes

    Returns:
        QuickBooks bill payload

    Raises:
        TranslationError: If vendor_id is missing or the payload fails shape validation
    """
    defaults = defaults or LedgerDefaults()
    invoice = coerce_invoice(LEDGER, invoice)
    vendor_id = require_id(LEDGER, routing, "vendor_id")
    account_id = routing.account_id or defaults.quickbooks_expense_account_id

    lines = [
        _line(index, item.total, item.description, account_id, defaults.quickbooks_tax_code)
        for index, item in enumerate(invoice.line_items, start=1)
    ]
    if has_tax(invoice):
        lines.append(
            _line(len(lines) + 1, invoice.tax, "Tax", account_id, defaults.quickbooks_tax_line_code)
        )

    data: dict[str, Any] = {
        "VendorRef": {"value": vendor_id},
        "Line": lines,
        "DocNumber": invoice.invoice_number,
        "TxnDate": invoice.invoice_date,
        "CurrencyRef": {"value": invoice.currency},
        "TotalAmt": invoice.total,
        "PrivateNote": f"Imported from invoice: {invoice.invoice_number}",
    }
    if invoice.due_date is not None:
        data["DueDate"] = invoice.due_date

    return build_payload(LEDGER, QuickBooksBill, data)
