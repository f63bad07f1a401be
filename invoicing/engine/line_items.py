"""
Line and subtotal calculation.
"""

import json
from collections.abc import Mapping
from typing import Any, Iterable, Optional

from pydantic import BaseModel

from invoicing.engine.numeric import DEFAULT_PRECISION, round_amount, validate_number
from invoicing.errors import StructuralValidationError


def get_item_field(item: Any, *names: str) -> Optional[Any]:
    """Read the first present field from a mapping or model line item."""
    if isinstance(item, Mapping):
        for name in names:
            if name in item:
                return item[name]
        return None

    for name in names:
        value = getattr(item, name, None)
        if value is not None:
            return value
    return None


def describe_item(item: Any) -> str:
    if isinstance(item, BaseModel):
        item = item.model_dump(by_alias=True, exclude_none=True)
    try:
        return json.dumps(item, default=str)
    except (TypeError, ValueError):
        return repr(item)


def calculate_line_total(quantity: Any, unit_price: Any, precision: int = DEFAULT_PRECISION) -> float:
    """Quantity must be positive. A zero unit price is allowed for free items."""
    valid_quantity = validate_number(quantity, "quantity", allow_zero=False)
    valid_unit_price = validate_number(unit_price, "unitPrice", allow_zero=True)

    return round_amount(valid_quantity * valid_unit_price, precision)


def calculate_subtotal(items: Iterable[Any], precision: int = DEFAULT_PRECISION) -> float:
    """
    Sum of line totals, rounded.

    An empty list gives 0. Callers that need at least one item check that
    themselves.

    Raises:
        StructuralValidationError: an item has no usable quantity (missing or
            zero) or no unit price.
    """
    if not items:
        return 0.0

    subtotal = 0.0

    for item in items:
        quantity = get_item_field(item, "quantity")
        unit_price = get_item_field(item, "unitPrice", "unit_price")

        if not quantity or unit_price is None:
            raise StructuralValidationError(
                f"Invalid item: {describe_item(item)}. Missing quantity or unitPrice",
                {"item": describe_item(item)},
            )

        subtotal += calculate_line_total(quantity, unit_price, precision)

    return round_amount(subtotal, precision)
