"""
Grand total assembly and the top-level invoice calculation.
"""

from collections.abc import Mapping
from typing import Any, List, Optional, Sequence, Union

from invoicing.config import Config, get_config
from invoicing.engine.adjustments import calculate_discount, calculate_tax
from invoicing.engine.line_items import calculate_subtotal
from invoicing.engine.numeric import DEFAULT_PRECISION, round_amount, validate_number
from invoicing.errors import InvariantViolationError, StructuralValidationError, classify_error
from invoicing.schemas.invoice import (
    CalculationOptions,
    CalculationResult,
    Calculations,
    ValidationReport,
)
from invoicing.utils.logging import setup_logging


logger = setup_logging(__name__)


def calculate_grand_total(
    subtotal: Any,
    tax_amount: Any = 0,
    shipping_cost: Any = 0,
    discount_amount: Any = 0,
    precision: int = DEFAULT_PRECISION,
) -> float:
    """
    subtotal + tax + shipping - discount.

    Raises:
        InvariantViolationError: the result would be negative. This is never
            clamped to zero.
    """
    valid_subtotal = validate_number(subtotal, "subtotal", allow_zero=True)
    valid_tax_amount = validate_number(tax_amount, "taxAmount", allow_zero=True)
    valid_shipping_cost = validate_number(shipping_cost, "shippingCost", allow_zero=True)
    valid_discount_amount = validate_number(discount_amount, "discountAmount", allow_zero=True)

    grand_total = valid_subtotal + valid_tax_amount + valid_shipping_cost - valid_discount_amount

    if grand_total < 0:
        raise InvariantViolationError(
            "Grand total cannot be negative. Check discount amounts.",
            {"grand_total": grand_total},
        )

    return round_amount(grand_total, precision)


def generate_warnings(
    subtotal: float,
    tax_amount: float,
    shipping_cost: float,
    discount: float,
    grand_total: float,
    config: Optional[Config] = None,
) -> List[str]:
    """Advisory notes for unusual values. Warnings never block an invoice."""
    config = config or get_config()
    warnings = []

    if grand_total == 0:
        warnings.append("Grand total is zero - please verify calculations")

    if discount > subtotal * config.DISCOUNT_WARNING_RATIO:
        warnings.append("Discount is more than 50% of subtotal - please verify")

    if shipping_cost > subtotal:
        warnings.append("Shipping cost exceeds subtotal - please verify")

    if tax_amount == 0 and subtotal > 0:
        warnings.append("No tax applied - this invoice is tax-free")

    if grand_total > config.LARGE_INVOICE_THRESHOLD:
        warnings.append("Large invoice amount - please double-check calculations")

    return warnings


def calculate_invoice_total(
    items: Sequence[Any],
    options: Union[CalculationOptions, Mapping, None] = None,
    config: Optional[Config] = None,
) -> CalculationResult:
    """
    Compute the full calculation breakdown for a list of order lines.

    Never raises: any fault is returned as ``success=False`` with the message,
    so untrusted invoices can be processed in a loop without try/except.
    """
    config = config or get_config()
    precision = config.CALCULATION_PRECISION

    try:
        if options is None:
            options = CalculationOptions()
        elif isinstance(options, Mapping):
            options = CalculationOptions.model_validate(options)

        if not items:
            raise StructuralValidationError("Items array is required and cannot be empty")

        subtotal = calculate_subtotal(items, precision)

        # Tax only applies when explicitly enabled with a rate
        effective_tax_rate = 0.0
        if options.tax_enabled and options.tax_rate is not None:
            effective_tax_rate = validate_number(options.tax_rate, "taxRate", allow_zero=True)
        tax_amount = calculate_tax(subtotal, effective_tax_rate, precision)

        discount = calculate_discount(
            subtotal, options.discount_rate, options.discount_amount, precision
        )
        if (options.discount_amount or 0) > 0:
            discount_type, discount_rate = "fixed", 0.0
        elif (options.discount_rate or 0) > 0:
            discount_type, discount_rate = "percentage", options.discount_rate
        else:
            discount_type, discount_rate = "fixed", 0.0

        shipping_cost = validate_number(options.shipping_cost, "shippingCost", allow_zero=True)

        grand_total = calculate_grand_total(subtotal, tax_amount, shipping_cost, discount, precision)

        calculations = Calculations(
            subtotal=subtotal,
            tax_amount=tax_amount,
            tax_rate=effective_tax_rate,
            tax_enabled=options.tax_enabled and effective_tax_rate > 0,
            shipping_cost=shipping_cost,
            discount=discount,
            discount_type=discount_type,
            discount_rate=discount_rate,
            grand_total=grand_total,
            currency=options.currency,
            item_count=len(items),
        )

        return CalculationResult(
            success=True,
            calculations=calculations,
            validation=ValidationReport(
                is_valid=True,
                warnings=generate_warnings(
                    subtotal, tax_amount, shipping_cost, discount, grand_total, config
                ),
            ),
        )

    except Exception as e:
        logger.warning(f"Invoice calculation failed: {e}")
        return CalculationResult(
            success=False,
            error=str(e),
            error_type=classify_error(e),
            validation=ValidationReport(is_valid=False, errors=[str(e)]),
        )
