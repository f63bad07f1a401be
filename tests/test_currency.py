"""
Tests for currency formatting.
"""

import pytest

from invoicing.errors import InputValidationError
from invoicing.utils.currency import (
    format_breakdown,
    format_currency,
    get_supported_currencies,
    get_symbol,
    is_supported,
    parse_currency,
)


class TestFormatCurrency:
    """Test rendering amounts."""

    @pytest.mark.parametrize("amount, currency, expected", [
        (297500, "IDR", "Rp 297.500"),
        (1234.5, "USD", "$1,234.50"),
        (1234.5, "EUR", "1.234,50 €"),
        (1234.5, "SGD", "S$1,234.50"),
        (1234.5, "MYR", "RM1,234.50"),
        (0, "IDR", "Rp 0"),
    ])
    def test_formats(self, amount, currency, expected):
        assert format_currency(amount, currency) == expected

    def test_idr_drops_decimals(self):
        assert format_currency(1500.5, "IDR") == "Rp 1.501"

    def test_lowercase_code(self):
        assert format_currency(10, "usd") == "$10.00"

    def test_unsupported_currency_falls_back_to_idr(self):
        assert format_currency(297500, "XYZ") == "Rp 297.500"

    def test_locale_override(self):
        assert format_currency(1234.5, "USD", locale="de-DE") == "$1.234,50"

    def test_invalid_amount_rejected(self):
        with pytest.raises(InputValidationError):
            format_currency("abc", "IDR")


class TestParseCurrency:
    """Test reading formatted amounts back."""

    def test_parse(self):
        assert parse_currency("Rp 297.500", "IDR") == 297500.0
        assert parse_currency("$1,234.50", "USD") == 1234.5
        assert parse_currency("1.234,50 €", "EUR") == 1234.5

    def test_numbers_pass_through(self):
        assert parse_currency(1234.5) == 1234.5

    def test_invalid_input_is_zero(self):
        assert parse_currency("abc") == 0.0
        assert parse_currency(None) == 0.0
        assert parse_currency(-5) == 0.0


class TestBreakdown:
    """Test formatting a calculations record."""

    def test_breakdown(self):
        breakdown = format_breakdown({
            "subtotal": 250000,
            "taxAmount": 27500,
            "shippingCost": 20000,
            "discount": 0,
            "grandTotal": 297500,
            "currency": "IDR",
        })

        assert breakdown == {
            "subtotal": "Rp 250.000",
            "taxAmount": "Rp 27.500",
            "shippingCost": "Rp 20.000",
            "discount": "Rp 0",
            "grandTotal": "Rp 297.500",
            "currency": "IDR",
        }

    def test_breakdown_currency_override(self):
        breakdown = format_breakdown({"subtotal": 10, "grandTotal": 10}, "usd")

        assert breakdown["grandTotal"] == "$10.00"
        assert breakdown["currency"] == "USD"


class TestCurrencyHelpers:

    def test_symbols(self):
        assert get_symbol("IDR") == "Rp"
        assert get_symbol("EUR") == "€"

    def test_supported(self):
        assert is_supported("sgd") is True
        assert is_supported("JPY") is False
        assert get_supported_currencies() == ["IDR", "USD", "EUR", "SGD", "MYR"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
