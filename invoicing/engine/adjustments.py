"""
Tax and discount adjustments on a subtotal.

Tax is opt-in per merchant: an absent or zero rate is the normal case and
yields 0 without validation errors. A fixed discount amount takes precedence
over a discount rate; the two are never added together.
"""

from typing import Any, Optional

from invoicing.engine.numeric import DEFAULT_PRECISION, round_amount, validate_number
from invoicing.errors import InputValidationError, InvariantViolationError


def _is_positive(value: Any) -> bool:
    """True when value is a number (or numeric string) greater than zero."""
    if value is None or isinstance(value, bool):
        return False
    try:
        return float(value) > 0
    except (TypeError, ValueError):
        return False


def calculate_tax(subtotal: Any, tax_rate: Optional[Any] = None, precision: int = DEFAULT_PRECISION) -> float:
    """Tax on the subtotal. `tax_rate` is a percentage in [0, 100]."""
    valid_subtotal = validate_number(subtotal, "subtotal", allow_zero=True)

    if tax_rate is None or (not isinstance(tax_rate, str) and tax_rate == 0):
        return 0.0

    valid_tax_rate = validate_number(tax_rate, "taxRate", allow_zero=True)

    if valid_tax_rate > 100:
        raise InputValidationError("Tax rate cannot exceed 100%", "taxRate")

    if valid_tax_rate == 0:
        return 0.0

    return round_amount(valid_subtotal * valid_tax_rate / 100, precision)


def calculate_discount(
    subtotal: Any,
    discount_rate: Optional[Any] = 0,
    discount_amount: Optional[Any] = 0,
    precision: int = DEFAULT_PRECISION,
) -> float:
    """
    Discount on the subtotal.

    A positive discount_amount wins and may not exceed the subtotal. Otherwise
    a positive discount_rate (percent, at most 100) applies. Otherwise 0.
    """
    valid_subtotal = validate_number(subtotal, "subtotal", allow_zero=True)

    discount = 0.0

    if _is_positive(discount_amount):
        discount = validate_number(discount_amount, "discountAmount", allow_zero=True)
        if discount > valid_subtotal:
            raise InvariantViolationError(
                "Discount amount cannot exceed subtotal",
                {"discount_amount": discount, "subtotal": valid_subtotal},
            )
    elif _is_positive(discount_rate):
        valid_discount_rate = validate_number(discount_rate, "discountRate", allow_zero=True)
        if valid_discount_rate > 100:
            raise InputValidationError("Discount rate cannot exceed 100%", "discountRate")
        discount = valid_subtotal * valid_discount_rate / 100

    return round_amount(discount, precision)
