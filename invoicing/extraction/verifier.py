"""Audit pass over an extracted invoice.

A second deterministic model call sees the extracted data next to the source
text and either confirms it (VERIFIED) or returns a corrected invoice with a
list of the corrections made (CORRECTED). Corrected data goes through the
same shape rules as a fresh extraction.
"""

import json
import logging
from datetime import date
from decimal import Decimal
from typing import Any

from invoicing.extraction.prompts import VERIFY_PROMPT
from invoicing.extraction.schema import Invoice, Verification
from invoicing.extraction.shape import parse_verification
from invoicing.llm.base import JsonCompletionProvider
from invoicing.resilience.invoker import ResilientInvoker
from invoicing.shared import metrics

logger = logging.getLogger(__name__)


def _prompt_value(value: Any) -> Any:
    # Numbers stay JSON numbers in the prompt so corrected data comes back as numbers
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"Cannot encode {type(value).__name__} for the verification prompt")


def build_verification_content(invoice: Invoice, document_text: str) -> str:
    """User message pairing the extracted data with the document it came from."""
    extracted = json.dumps(invoice.model_dump(), indent=2, default=_prompt_value)
    return f"EXTRACTED DATA:\n{extracted}\n\nORIGINAL DOCUMENT TEXT:\n{document_text}"


class InvoiceVerifier:
    """Cross-checks extractions against their source text."""

    def __init__(self, provider: JsonCompletionProvider, invoker: ResilientInvoker) -> None:
        self._provider = provider
        self._invoker = invoker

    async def verify(self, invoice: Invoice, document_text: str) -> Verification:
        """Audit an extracted invoice.

        Args:
            invoice: Invoice produced by the extractor
            document_text: Text the invoice was extracted from

        Returns:
            Verification; when CORRECTED, ``invoice`` holds the replacement

        Raises:
            SchemaError: If the response is not JSON or the corrected data violates the shape
            RetriesExhaustedError: If the model stayed unavailable through every retry
        """
        content = build_verification_content(invoice, document_text)
        raw = await self._invoker(
            lambda: self._provider.complete_json(VERIFY_PROMPT, content),
            name=f"{self._provider.provider_name}.verify",
        )
        verification = parse_verification(raw)
        metrics.verifications_total.labels(status=verification.status.lower()).inc()

        if verification.status == "CORRECTED":
            logger.info(
                f"Verification corrected {len(verification.corrections)} issues in invoice "
                f"{invoice.invoice_number!r}: {list(verification.corrections)}"
            )
        else:
            logger.debug(f"Verification confirmed invoice {invoice.invoice_number!r}")
        return verification
