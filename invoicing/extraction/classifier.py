"""Invoice classifier.

Asks the completion provider whether an email carries a genuine vendor
invoice. The verdict is advisory apart from ``is_invoice``: low confidence
never blocks processing.
"""

import logging

from invoicing.extraction.prompts import CLASSIFY_PROMPT
from invoicing.extraction.schema import Classification, ClassifierInput
from invoicing.extraction.shape import parse_classification
from invoicing.llm.base import JsonCompletionProvider
from invoicing.resilience.invoker import ResilientInvoker
from invoicing.shared import metrics

logger = logging.getLogger(__name__)


def build_classifier_content(email: ClassifierInput) -> str:
    """Render the email as the user message for classification."""
    if email.attachment_text:
        attachment = f"Attachment Content:\n{email.attachment_text}"
    else:
        attachment = "No attachment content available."
    return f"Email Subject: {email.email_subject}\n\nEmail Body:\n{email.email_body}\n\n{attachment}"


class InvoiceClassifier:
    """Classifies email content through a language model."""

    def __init__(self, provider: JsonCompletionProvider, invoker: ResilientInvoker) -> None:
        """Initialize classifier.

        Args:
            provider: JSON completion capability
            invoker: Resilient invoker governing the model call
        """
        self._provider = provider
        self._invoker = invoker

    async def classify(self, email: ClassifierInput) -> Classification:
        """Classify an email.

        Args:
            email: Subject, body and optional attachment text

        Returns:
            Classification verdict

        Raises:
            SchemaError: If the model response is not JSON or violates the shape
            RetriesExhaustedError: If the model stayed unavailable through every retry
        """
        content = build_classifier_content(email)
        raw = await self._invoker(
            lambda: self._provider.complete_json(CLASSIFY_PROMPT, content),
            name=f"{self._provider.provider_name}.classify",
        )
        classification = parse_classification(raw)

        metrics.classifications_total.labels(
            result="invoice" if classification.is_invoice else "not_invoice"
        ).inc()
        logger.info(
            f"Classified email '{email.email_subject}': is_invoice={classification.is_invoice} "
            f"confidence={classification.confidence:.2f}"
        )
        return classification
