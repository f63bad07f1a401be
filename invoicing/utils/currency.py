"""
Currency formatting for presentation layers.

Rendering only: amounts are expected to have been validated by the
calculation engine already.
"""

import re
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from invoicing.engine.numeric import round_amount, validate_number
from invoicing.utils.logging import setup_logging


logger = setup_logging(__name__)

DEFAULT_CURRENCY = "IDR"

SUPPORTED_CURRENCIES = {
    "IDR": {"locale": "id-ID", "symbol": "Rp", "fraction_digits": 0, "symbol_position": "prefix", "spaced": True},
    "USD": {"locale": "en-US", "symbol": "$", "fraction_digits": 2, "symbol_position": "prefix", "spaced": False},
    "EUR": {"locale": "de-DE", "symbol": "€", "fraction_digits": 2, "symbol_position": "suffix", "spaced": True},
    "SGD": {"locale": "en-SG", "symbol": "S$", "fraction_digits": 2, "symbol_position": "prefix", "spaced": False},
    "MYR": {"locale": "ms-MY", "symbol": "RM", "fraction_digits": 2, "symbol_position": "prefix", "spaced": False},
}

# (thousands separator, decimal separator)
LOCALE_SEPARATORS = {
    "id-ID": (".", ","),
    "de-DE": (".", ","),
    "en-US": (",", "."),
    "en-SG": (",", "."),
    "ms-MY": (",", "."),
}


def _currency_config(currency: str) -> Dict[str, Any]:
    if not is_supported(currency):
        logger.warning(f"Unsupported currency: {currency}, falling back to {DEFAULT_CURRENCY}")
        return SUPPORTED_CURRENCIES[DEFAULT_CURRENCY]
    return SUPPORTED_CURRENCIES[currency.upper()]


def _group_digits(amount: float, fraction_digits: int, locale: str) -> str:
    thousands, decimal = LOCALE_SEPARATORS.get(locale, (",", "."))
    rendered = f"{round_amount(amount, fraction_digits):,.{fraction_digits}f}"
    return rendered.translate(str.maketrans({",": thousands, ".": decimal}))


def format_currency(
    amount: Any,
    currency: str = DEFAULT_CURRENCY,
    locale: Optional[str] = None,
    fraction_digits: Optional[int] = None,
) -> str:
    """
    Format an amount for display.

    IDR renders without decimals and a leading "Rp" (e.g. "Rp 297.500");
    other currencies use two decimals.
    """
    valid_amount = validate_number(amount, "amount", allow_zero=True)
    config = _currency_config(currency)

    digits = config["fraction_digits"] if fraction_digits is None else fraction_digits
    number = _group_digits(valid_amount, digits, locale or config["locale"])

    separator = " " if config["spaced"] else ""
    if config["symbol_position"] == "suffix":
        return f"{number}{separator}{config['symbol']}"
    return f"{config['symbol']}{separator}{number}"


def parse_currency(value: Any, currency: str = DEFAULT_CURRENCY) -> float:
    """Parse a formatted amount back to a number. Unparseable input gives 0."""
    if value is None:
        return 0.0
    if not isinstance(value, str):
        try:
            return validate_number(value, "amount", allow_zero=True)
        except ValueError:
            logger.warning(f"Invalid amount provided to currency parser: {value!r}")
            return 0.0

    config = _currency_config(currency)
    thousands, decimal = LOCALE_SEPARATORS.get(config["locale"], (",", "."))

    cleaned = value.replace(config["symbol"], "").strip()
    cleaned = cleaned.replace(thousands, "").replace(decimal, ".")
    cleaned = re.sub(r"[^\d.-]", "", cleaned)

    try:
        return float(cleaned)
    except ValueError:
        logger.warning(f"Invalid amount provided to currency parser: {value!r}")
        return 0.0


def format_breakdown(calculations: Any, currency: Optional[str] = None) -> Dict[str, str]:
    """Format every monetary field of a calculations record."""
    if not isinstance(calculations, Mapping):
        calculations = calculations.model_dump(by_alias=True)

    currency = (currency or calculations.get("currency") or DEFAULT_CURRENCY).upper()
    tax_amount = calculations.get("taxAmount", calculations.get("totalTax"))

    return {
        "subtotal": format_currency(calculations.get("subtotal") or 0, currency),
        "taxAmount": format_currency(tax_amount or 0, currency),
        "shippingCost": format_currency(calculations.get("shippingCost") or 0, currency),
        "discount": format_currency(calculations.get("discount") or 0, currency),
        "grandTotal": format_currency(calculations.get("grandTotal") or 0, currency),
        "currency": currency,
    }


def get_symbol(currency: str = DEFAULT_CURRENCY) -> str:
    return _currency_config(currency)["symbol"]


def is_supported(currency: str) -> bool:
    return (currency or "").upper() in SUPPORTED_CURRENCIES


def get_supported_currencies() -> List[str]:
    return list(SUPPORTED_CURRENCIES)
