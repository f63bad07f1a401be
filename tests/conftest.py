"""
Shared fixtures for the invoicing tests.
"""

import os

# Must be set before invoicing is imported so no log file is written
os.environ["ENV"] = "test"

import pytest

from invoicing.config import get_config
from invoicing.schemas.catalog import CatalogProduct


@pytest.fixture
def config():
    """Test configuration."""
    return get_config("test")


@pytest.fixture
def sample_items():
    """Two coffee lines, 250,000 IDR before adjustments."""
    return [
        {"productName": "Kopi Arabica Gayo 250g", "quantity": 2, "unitPrice": 100000},
        {"productName": "Teh Melati 100g", "quantity": 1, "unitPrice": 50000},
    ]


@pytest.fixture
def sample_invoice(sample_items):
    """An AI-produced invoice whose stated totals are correct."""
    return {
        "invoiceNumber": "INV-2026-000001-1234",
        "invoiceDate": "2026-01-15",
        "customer": {"name": "Toko Sejahtera", "phone": "+628123456789"},
        "items": sample_items,
        "calculations": {
            "subtotal": 250000,
            "taxRate": 11,
            "taxEnabled": True,
            "taxAmount": 27500,
            "shippingCost": 20000,
            "discount": 0,
            "discountType": "fixed",
            "grandTotal": 297500,
            "currency": "IDR",
        },
    }


@pytest.fixture
def sample_catalog():
    """A small merchant catalog."""
    return [
        CatalogProduct(
            id="prod-001",
            name="Kopi Arabica Gayo 250g",
            sku="KOP-ARB-250",
            unit_price=85000,
            alternative_names=["Gayo Coffee 250g"],
        ),
        CatalogProduct(id="prod-003", name="Teh Melati 100g", sku="TEH-MEL-100", unit_price=25000),
        CatalogProduct(id="prod-004", name="Gula Aren Cair 1L", sku="GUL-ARN-1L", unit_price=60000),
    ]
