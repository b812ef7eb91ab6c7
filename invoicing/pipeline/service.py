"""End-to-end processing of one invoice email.

classify -> extract -> verify -> reconcile -> translate. Each email is
processed independently: a schema, service or translation failure ends that
email with status "failed" and never affects others processed alongside it.
"""

import asyncio
import logging
import re
from collections.abc import Collection
from typing import Any, Literal

import httpx
import openai
from pydantic import BaseModel, Field

from invoicing.extraction.classifier import InvoiceClassifier
from invoicing.extraction.extractor import InvoiceExtractor
from invoicing.extraction.schema import Classification, ClassifierInput, Invoice
from invoicing.extraction.verifier import InvoiceVerifier
from invoicing.ledgers.base import LedgerDefaults, RoutingIds
from invoicing.ledgers.factory import translate_invoice
from invoicing.llm.base import JsonCompletionProvider
from invoicing.reconciliation.validator import ValidationResult, validate
from invoicing.shared import metrics
from invoicing.shared.config import Settings
from invoicing.shared.errors import InvoicingError

logger = logging.getLogger(__name__)

# Business suffixes stripped before building a vendor matching key
BUSINESS_SUFFIXES = re.compile(
    r"\b(pty\.?\s*ltd\.?|ltd\.?|limited|inc\.?|incorporated|llc\.?|l\.l\.c\.?"
    r"|corp\.?|corporation|plc\.?|co\.?(?!\S))(?=\W|$)",
    re.IGNORECASE,
)

# Failures that end one email. Non-retryable HTTP errors (400, 401, 403...)
# reach here unchanged from the invoker.
EMAIL_FAILURES = (InvoicingError, ValueError, httpx.HTTPError, openai.OpenAIError)

PipelineStatus = Literal["skipped", "needs_review", "ready", "failed"]


def normalize_vendor_name(name: str) -> str:
    """Vendor matching key: "Acme Pty Ltd" -> "acme", "Blue Sky Co." -> "blue-sky"."""
    key = BUSINESS_SUFFIXES.sub("", name).lower().strip()
    return re.sub(r"[^a-z0-9]+", "-", key).strip("-")


class PipelineResult(BaseModel):
    """Outcome of processing one email.

    Attributes:
        status: skipped (not an invoice), needs_review (reconciliation errors),
            ready (payload built) or failed (schema/service/translation error)
        classification: Classifier verdict
        invoice: Extracted invoice, after verification corrections
        verification_status: VERIFIED or CORRECTED when the audit pass ran
        corrections: Corrections reported by the audit pass
        validation: Reconciliation result
        ledger: Target ledger name
        payload: Wire payload (only when ready)
        vendor_key: Normalized vendor name for matching
        error: Failure message (only when failed)
    """

    status: PipelineStatus
    classification: Classification | None = None
    invoice: Invoice | None = None
    verification_status: Literal["VERIFIED", "CORRECTED"] | None = None
    corrections: list[str] = Field(default_factory=list)
    validation: ValidationResult | None = None
    ledger: str
    payload: dict[str, Any] | None = None
    vendor_key: str | None = None
    error: str | None = None


class InvoicePipeline:
    """Runs classification, extraction, verification, reconciliation and translation."""

    def __init__(
        self,
        classifier: InvoiceClassifier,
        extractor: InvoiceExtractor,
        defaults: LedgerDefaults | None = None,
        verifier: InvoiceVerifier | None = None,
    ) -> None:
        """Initialize pipeline.

        Args:
            classifier: Email classifier
            extractor: Invoice extractor
            defaults: Per-ledger defaults for translation
            verifier: Audit pass run after extraction (skipped when None)
        """
        self._classifier = classifier
        self._extractor = extractor
        self._defaults = defaults or LedgerDefaults()
        self._verifier = verifier
        self._owned_provider: JsonCompletionProvider | None = None

    @classmethod
    def from_settings(
        cls, settings: Settings, provider: JsonCompletionProvider | None = None
    ) -> "InvoicePipeline":
        """Wire the pipeline from configuration.

        A provider passed in stays owned by the caller; one created here is
        closed by ``aclose()``.
        """
        from invoicing.llm.factory import create_completion_provider
        from invoicing.resilience.invoker import ResilientInvoker

        owned = provider is None
        if provider is None:
            provider = create_completion_provider(settings)
        invoker = ResilientInvoker(settings.retry_policy())
        pipeline = cls(
            InvoiceClassifier(provider, invoker),
            InvoiceExtractor(provider, invoker),
            settings.ledger_defaults(),
            InvoiceVerifier(provider, invoker) if settings.verify_extractions else None,
        )
        if owned:
            pipeline._owned_provider = provider
        return pipeline

    async def aclose(self) -> None:
        """Close the provider created by ``from_settings``, if any."""
        if self._owned_provider is not None:
            await self._owned_provider.aclose()
            self._owned_provider = None

    async def process(
        self,
        email: ClassifierInput,
        existing_invoice_numbers: Collection[str],
        ledger: str,
        routing: RoutingIds,
    ) -> PipelineResult:
        """Process one email end to end.

        Args:
            email: Email subject, body and attachment text
            existing_invoice_numbers: Invoice numbers already on file
            ledger: Target ledger name
            routing: Ledger routing identifiers

        Returns:
            PipelineResult describing how far the email got
        """
        result = PipelineResult(status="failed", ledger=ledger)
        try:
            result.classification = await self._classifier.classify(email)
            if not result.classification.is_invoice:
                result.status = "skipped"
                return self._finish(result)

            document_text = "\n\n".join(
                part for part in (email.email_body, email.attachment_text) if part
            )
            invoice = await self._extractor.extract(document_text)
            result.invoice = invoice

            if self._verifier is not None:
                verification = await self._verifier.verify(invoice, document_text)
                result.verification_status = verification.status
                result.corrections = list(verification.corrections)
                if verification.invoice is not None:
                    invoice = verification.invoice
                    result.invoice = invoice

            vendor_name = invoice.vendor_name or result.classification.vendor_name or ""
            result.vendor_key = normalize_vendor_name(vendor_name) or None

            result.validation = validate(invoice, existing_invoice_numbers)
            metrics.validations_total.labels(
                result="valid" if result.validation.is_valid else "invalid"
            ).inc()
            if not result.validation.is_valid:
                result.status = "needs_review"
                return self._finish(result)

            payload = translate_invoice(ledger, invoice, routing, self._defaults)
            result.payload = payload.to_wire()
            result.status = "ready"

        except EMAIL_FAILURES as e:
            logger.warning(f"Processing '{email.email_subject}' failed: {type(e).__name__}: {e}")
            result.status = "failed"
            result.error = str(e)

        return self._finish(result)

    async def process_many(
        self,
        emails: list[ClassifierInput],
        existing_invoice_numbers: Collection[str],
        ledger: str,
        routing: RoutingIds,
    ) -> list[PipelineResult]:
        """Process several emails concurrently; results keep input order."""
        return list(
            await asyncio.gather(
                *(self.process(email, existing_invoice_numbers, ledger, routing) for email in emails)
            )
        )

    @staticmethod
    def _finish(result: PipelineResult) -> PipelineResult:
        metrics.pipeline_results_total.labels(status=result.status).inc()
        logger.info(f"Pipeline finished with status: {result.status}")
        return result
