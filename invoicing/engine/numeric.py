"""
Numeric primitives shared by every calculation.
"""

import math
from decimal import Decimal
from typing import Any

from invoicing.errors import InputValidationError


DEFAULT_PRECISION = 2


def validate_number(value: Any, field_name: str = "value", allow_zero: bool = True) -> float:
    """
    Validate a scalar input and return it as a float.

    Accepts ints, floats, Decimals and numeric strings. Rejects None, booleans,
    unparseable or non-finite values, negatives, and zero when allow_zero is False.
    """
    if value is None:
        raise InputValidationError(f"{field_name} cannot be null or undefined", field_name)

    if isinstance(value, bool):
        raise InputValidationError(f"{field_name} must be a valid number", field_name)

    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise InputValidationError(f"{field_name} must be a valid number", field_name)
    elif isinstance(value, (int, float, Decimal)):
        number = float(value)
    else:
        raise InputValidationError(f"{field_name} must be a valid number", field_name)

    if not math.isfinite(number):
        raise InputValidationError(f"{field_name} must be a valid number", field_name)

    if not allow_zero and number <= 0:
        raise InputValidationError(f"{field_name} must be greater than 0", field_name)

    if number < 0:
        raise InputValidationError(f"{field_name} cannot be negative", field_name)

    return number


def round_amount(value: float, precision: int = DEFAULT_PRECISION) -> float:
    """
    Round to `precision` decimal places, halves rounding up.

    Operates on the scaled float exactly like round(x * 10^p) / 10^p, so
    recalculated totals match totals produced by the upstream service bit for bit.
    """
    factor = 10 ** precision
    return math.floor(value * factor + 0.5) / factor
