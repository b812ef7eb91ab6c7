"""Registry of ledger translators and dispatch by ledger name.

Mirrors the completion provider registry: translators are looked up by the
name the caller routes an invoice to, and new ledgers can be registered at
runtime.
"""

import logging

from invoicing.extraction.schema import Invoice
from invoicing.ledgers.base import LedgerDefaults, LedgerPayload, RoutingIds, Translator
from invoicing.ledgers.freshbooks import build_freshbooks_payload
from invoicing.ledgers.quickbooks import build_quickbooks_payload
from invoicing.ledgers.wave import build_wave_payload
from invoicing.ledgers.xero import build_xero_payload
from invoicing.shared import metrics
from invoicing.shared.errors import TranslationError

logger = logging.getLogger(__name__)


class TranslatorRegistry:
    """Mapping of ledger names to translator functions."""

    _translators: dict[str, Translator] = {
        "quickbooks": build_quickbooks_payload,
        "xero": build_xero_payload,
        "wave": build_wave_payload,
        "freshbooks": build_freshbooks_payload,
    }

    @classmethod
    def register(cls, name: str, translator: Translator) -> None:
        """Register a translator for a new ledger."""
        cls._translators[name] = translator
        logger.info(f"Registered ledger translator: {name}")

    @classmethod
    def get_translator(cls, name: str) -> Translator:
        """Get translator by ledger name.

        Raises:
            ValueError: If no translator is registered for the ledger
        """
        if name not in cls._translators:
            available = ", ".join(cls._translators.keys())
            raise ValueError(f"Unknown ledger: '{name}'. Available ledgers: {available}")
        return cls._translators[name]

    @classmethod
    def list_ledgers(cls) -> list[str]:
        return list(cls._translators.keys())


def translate_invoice(
    ledger: str,
    invoice: Invoice,
    routing: RoutingIds,
    defaults: LedgerDefaults | None = None,
) -> LedgerPayload:
    """Translate an invoice for the named ledger.

    Args:
        ledger: Ledger name (quickbooks, xero, wave, freshbooks)
        invoice: Canonical invoice
        routing: Ledger routing identifiers
        defaults: Per-ledger defaults

    Returns:
        Ledger payload

    Raises:
        ValueError: If the ledger is unknown
        TranslationError: If the translator rejects the invoice or routing
    """
    translator = TranslatorRegistry.get_translator(ledger)
    try:
        payload = translator(invoice, routing, defaults or LedgerDefaults())
    except TranslationError as e:
        metrics.translations_total.labels(ledger=ledger, status="failed").inc()
        logger.warning(f"Translation to {ledger} failed: {e}")
        raise
    metrics.translations_total.labels(ledger=ledger, status="success").inc()
    return payload
