"""Invoice extractor.

Turns document text into a canonical Invoice through the completion provider.
The response is shape-checked strictly; anything that does not fit raises
SchemaError with the raw response attached.
"""

import logging

from invoicing.extraction.prompts import EXTRACT_PROMPT
from invoicing.extraction.schema import Invoice
from invoicing.extraction.shape import parse_invoice
from invoicing.llm.base import JsonCompletionProvider
from invoicing.resilience.invoker import ResilientInvoker

logger = logging.getLogger(__name__)


class InvoiceExtractor:
    """Extracts canonical invoices through a language model."""

    def __init__(self, provider: JsonCompletionProvider, invoker: ResilientInvoker) -> None:
        """Initialize extractor.

        Args:
            provider: JSON completion capability
            invoker: Resilient invoker governing the model call
        """
        self._provider = provider
        self._invoker = invoker

    async def extract(self, document_text: str) -> Invoice:
        """Extract an invoice from document text.

        Args:
            document_text: Email body and/or attachment text

        Returns:
            Canonical invoice

        Raises:
            ValueError: If document text is empty
            SchemaError: If the model response is not JSON or violates the shape
            RetriesExhaustedError: If the model stayed unavailable through every retry
        """
        if not document_text or not document_text.strip():
            raise ValueError("Empty document text provided")

        raw = await self._invoker(
            lambda: self._provider.complete_json(EXTRACT_PROMPT, document_text),
            name=f"{self._provider.provider_name}.extract",
        )
        invoice = parse_invoice(raw)

        logger.info(
            f"Extracted invoice {invoice.invoice_number!r} from {invoice.vendor_name!r} "
            f"({len(invoice.line_items)} line items, total {invoice.total} {invoice.currency})"
        )
        return invoice
