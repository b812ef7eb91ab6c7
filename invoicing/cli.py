"""Command line interface for the invoice core.

Usage:
    python -m invoicing.cli classify --subject "Invoice 42" --body email.txt
    python -m invoicing.cli extract document.txt --verify
    python -m invoicing.cli validate invoice.json --existing INV-1 INV-2
    python -m invoicing.cli translate quickbooks invoice.json --vendor-id 56
    python -m invoicing.cli process --subject "Invoice 42" --body email.txt \\
        --ledger xero --contact-id abc-123

Commands that call a language model need the provider configured
(OPENAI_API_KEY, or APP_LLM_PROVIDER=ollama with a running server).
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from invoicing.extraction.classifier import InvoiceClassifier
from invoicing.extraction.extractor import InvoiceExtractor
from invoicing.extraction.schema import ClassifierInput, Invoice
from invoicing.extraction.verifier import InvoiceVerifier
from invoicing.ledgers.base import RoutingIds
from invoicing.ledgers.factory import TranslatorRegistry, translate_invoice
from invoicing.llm.base import JsonCompletionProvider
from invoicing.llm.factory import create_completion_provider
from invoicing.pipeline.service import EMAIL_FAILURES, InvoicePipeline
from invoicing.reconciliation.validator import validate
from invoicing.resilience.invoker import ResilientInvoker
from invoicing.shared.config import Settings, get_settings
from invoicing.shared.errors import SchemaError

logger = logging.getLogger(__name__)

MODEL_COMMANDS = ("classify", "extract", "process")


def _read(path: str | None) -> str | None:
    if path is None:
        return None
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _email(args: argparse.Namespace) -> ClassifierInput:
    return ClassifierInput(
        email_subject=args.subject,
        email_body=_read(args.body) or "",
        attachment_text=_read(args.attachment),
    )


def _routing(args: argparse.Namespace) -> RoutingIds:
    return RoutingIds(
        vendor_id=args.vendor_id,
        contact_id=args.contact_id,
        account_id=args.account_id,
        business_id=args.business_id,
        account_code=args.account_code,
        tax_type=args.tax_type,
        expense_category_id=args.expense_category_id,
    )


def _load_invoice(path: str) -> Invoice:
    raw = _read(path) or ""
    try:
        return Invoice.model_validate_json(raw)
    except ValidationError as e:
        raise SchemaError(f"{path} is not a canonical invoice: {e}", raw_response=raw) from e


def _emit(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _add_email_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--subject", required=True, help="Email subject")
    parser.add_argument("--body", required=True, help="File with the email body ('-' for stdin)")
    parser.add_argument("--attachment", help="File with extracted attachment text")


def _add_routing_args(parser: argparse.ArgumentParser) -> None:
    for name in (
        "vendor-id",
        "contact-id",
        "account-id",
        "business-id",
        "account-code",
        "tax-type",
        "expense-category-id",
    ):
        parser.add_argument(f"--{name}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="invoicing", description=__doc__.splitlines()[0])
    commands = parser.add_subparsers(dest="command", required=True)

    classify = commands.add_parser("classify", help="Classify an email")
    _add_email_args(classify)

    extract = commands.add_parser("extract", help="Extract an invoice from document text")
    extract.add_argument("document", help="Text file ('-' for stdin)")
    extract.add_argument(
        "--verify", action="store_true", help="Run the audit pass on the extracted invoice"
    )

    check = commands.add_parser("validate", help="Reconcile an invoice JSON file")
    check.add_argument("invoice", help="Canonical invoice JSON file")
    check.add_argument("--existing", nargs="*", default=[], help="Invoice numbers on file")

    translate = commands.add_parser("translate", help="Build a ledger payload")
    translate.add_argument("ledger", choices=TranslatorRegistry.list_ledgers())
    translate.add_argument("invoice", help="Canonical invoice JSON file")
    _add_routing_args(translate)

    process = commands.add_parser("process", help="Run the whole pipeline on an email")
    _add_email_args(process)
    process.add_argument("--ledger", required=True, choices=TranslatorRegistry.list_ledgers())
    process.add_argument("--existing", nargs="*", default=[], help="Invoice numbers on file")
    _add_routing_args(process)

    return parser


async def run(
    args: argparse.Namespace, settings: Settings, provider: JsonCompletionProvider | None = None
) -> int:
    if args.command == "validate":
        _emit(validate(_load_invoice(args.invoice), set(args.existing)).model_dump())
        return 0

    if args.command == "translate":
        payload = translate_invoice(
            args.ledger, _load_invoice(args.invoice), _routing(args), settings.ledger_defaults()
        )
        _emit(payload.to_wire())
        return 0

    if provider is None:
        raise ValueError(f"Command '{args.command}' needs a completion provider")

    if args.command == "process":
        pipeline = InvoicePipeline.from_settings(settings, provider)
        result = await pipeline.process(_email(args), set(args.existing), args.ledger, _routing(args))
        _emit(result.model_dump(mode="json"))
        return 0 if result.status != "failed" else 1

    invoker = ResilientInvoker(settings.retry_policy())
    if args.command == "classify":
        classification = await InvoiceClassifier(provider, invoker).classify(_email(args))
        _emit(classification.model_dump(mode="json"))
        return 0

    document_text = _read(args.document) or ""
    invoice = await InvoiceExtractor(provider, invoker).extract(document_text)
    output: dict[str, Any] = {"invoice": invoice.model_dump(mode="json")}
    if args.verify:
        verification = await InvoiceVerifier(provider, invoker).verify(invoice, document_text)
        output["verification"] = verification.model_dump(mode="json")
    _emit(output)
    return 0


async def _run_and_close(
    args: argparse.Namespace, settings: Settings, provider: JsonCompletionProvider | None
) -> int:
    try:
        return await run(args, settings, provider)
    finally:
        if provider is not None:
            await provider.aclose()


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, configure logging and run a command."""
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        # Built outside the event loop: the availability check may block on the network
        provider = (
            create_completion_provider(settings) if args.command in MODEL_COMMANDS else None
        )
        return asyncio.run(_run_and_close(args, settings, provider))
    except EMAIL_FAILURES as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
