"""Prometheus metrics for the invoice core.

Exposes key metrics for monitoring:
- External call attempts and scheduled retries
- Classification outcomes
- Extraction verification outcomes
- Reconciliation outcomes
- Ledger translation outcomes
- Pipeline outcomes

Based on Prometheus best practices:
https://prometheus.io/docs/practices/naming/
"""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# External call metrics
external_call_attempts_total = Counter(
    "invoice_external_call_attempts_total",
    "Attempts made against external services",
    ["operation", "outcome"],  # success, retryable_error, permanent_error
)

external_call_retries_total = Counter(
    "invoice_external_call_retries_total",
    "Retries scheduled after a transient failure",
    ["operation"],
)

external_call_duration_seconds = Histogram(
    "invoice_external_call_duration_seconds",
    "Duration of a resilient call including retries and backoff",
    ["operation"],
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)

# Document processing metrics
classifications_total = Counter(
    "invoice_classifications_total",
    "Documents classified",
    ["result"],  # invoice, not_invoice
)

verifications_total = Counter(
    "invoice_verifications_total",
    "Extraction audit passes",
    ["status"],  # verified, corrected
)

validations_total = Counter(
    "invoice_validations_total",
    "Invoices reconciled",
    ["result"],  # valid, invalid
)

translations_total = Counter(
    "invoice_translations_total",
    "Ledger payload translations",
    ["ledger", "status"],  # success, failed
)

pipeline_results_total = Counter(
    "invoice_pipeline_results_total",
    "Pipeline runs by final status",
    ["status"],  # skipped, needs_review, ready, failed
)


def get_metrics() -> tuple[bytes, str]:
    """Generate Prometheus metrics in text format.

    Returns:
        Tuple of (metrics bytes, content type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST
