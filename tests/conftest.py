"""Shared fixtures for invoice core tests."""

from collections.abc import Callable
from typing import Any

import pytest

from invoicing.extraction.schema import Invoice


def invoice_data(**overrides: Any) -> dict[str, Any]:
    """Canonical invoice as plain data: subtotal 1000 + tax 100 = total 1100."""
    data: dict[str, Any] = {
        "vendor_name": "Acme Corp",
        "invoice_number": "INV-001",
        "invoice_date": "2024-01-15",
        "due_date": "2024-02-15",
        "currency": "USD",
        "line_items": [
            {"description": "Consulting", "quantity": 10, "unit_price": 50, "total": 500},
            {"description": "Hosting", "quantity": None, "unit_price": None, "total": 500},
        ],
        "subtotal": 1000,
        "tax": 100,
        "total": 1100,
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_invoice_data() -> Callable[..., dict[str, Any]]:
    """Factory returning the sample invoice as plain data with overrides."""
    return invoice_data


@pytest.fixture
def make_invoice() -> Callable[..., Invoice]:
    """Factory building an Invoice from the sample data with overrides."""

    def _make(**overrides: Any) -> Invoice:
        return Invoice.model_validate(invoice_data(**overrides))

    return _make


@pytest.fixture
def invoice(make_invoice: Callable[..., Invoice]) -> Invoice:
    """Sample consistent invoice."""
    return make_invoice()
