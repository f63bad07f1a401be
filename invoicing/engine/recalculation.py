"""
Recalculation and verification of externally produced invoices.

Totals stated by the language model are never trusted: every invoice is
recomputed from its line items and the stated grand total is compared
against the recomputed one.
"""

import copy
from collections.abc import Mapping
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, TypeAdapter, ValidationError

from invoicing.config import Config, get_config
from invoicing.engine.numeric import validate_number
from invoicing.engine.payment_schedule import calculate_due_date, calculate_payment_schedule, is_schedule_complete
from invoicing.engine.totals import calculate_invoice_total
from invoicing.errors import CalculationError, InputValidationError, StructuralValidationError, classify_error
from invoicing.schemas.invoice import CalculationOptions, ClaimedTotals, RecalculationResult
from invoicing.schemas.payment import PaymentScheduleOptions
from invoicing.utils.logging import setup_logging, log_calculation_mismatch


logger = setup_logging(__name__)


def _claimed(calculations: Mapping, *keys: str) -> Any:
    for key in keys:
        value = calculations.get(key)
        if value is not None:
            return value
    return None


def _claimed_number(calculations: Mapping, *keys: str) -> float:
    """A claimed numeric field, with missing/empty/zero values read as 0."""
    value = _claimed(calculations, *keys)
    if not value:
        return 0.0
    return validate_number(value, keys[0], allow_zero=True)


_FLAG = TypeAdapter(bool)


def _claimed_flag(calculations: Mapping, *keys: str) -> Optional[bool]:
    """A claimed boolean. Accepts real booleans and "true"/"false"/"1"/"0" style strings."""
    value = _claimed(calculations, *keys)
    if value is None:
        return None
    try:
        return _FLAG.validate_python(value)
    except ValidationError:
        raise InputValidationError(f"{keys[0]} must be a boolean", keys[0])


def extract_invoice_payload(invoice: Any) -> Dict[str, Any]:
    """Return the invoice body as a plain mapping with camelCase keys."""
    if isinstance(invoice, BaseModel):
        return invoice.model_dump(by_alias=True)

    if not isinstance(invoice, Mapping):
        raise StructuralValidationError("Invalid invoice data structure")

    if "items" not in invoice and isinstance(invoice.get("invoice"), Mapping):
        return dict(invoice["invoice"])

    return dict(invoice)


def options_from_calculations(
    calculations: Optional[Mapping],
    default_currency: str = "IDR",
) -> CalculationOptions:
    """
    Rebuild calculation options from a claimed calculations block.

    Discount mode: a "percentage" discount uses the stored discountRate when
    present, otherwise treats a value of at most 100 as the rate and anything
    larger as an already-computed amount. Every other discount is a fixed amount.
    When taxEnabled is absent, tax is considered enabled if a rate was stated.
    """
    calculations = calculations or {}

    tax_rate = _claimed_number(calculations, "taxRate", "tax_rate")
    tax_enabled = _claimed_flag(calculations, "taxEnabled", "tax_enabled")
    if tax_enabled is None:
        tax_enabled = tax_rate > 0

    discount_value = _claimed_number(calculations, "discount")
    discount_type = _claimed(calculations, "discountType", "discount_type") or "fixed"
    stored_rate = _claimed_number(calculations, "discountRate", "discount_rate")

    discount_rate = 0.0
    discount_amount = 0.0
    if discount_value > 0:
        if discount_type == "percentage":
            if stored_rate > 0:
                discount_rate = stored_rate
            elif discount_value <= 100:
                discount_rate = discount_value
            else:
                discount_amount = discount_value
        else:
            discount_amount = discount_value

    return CalculationOptions(
        tax_enabled=tax_enabled,
        tax_rate=tax_rate,
        shipping_cost=_claimed_number(calculations, "shippingCost", "shipping_cost"),
        discount_rate=discount_rate,
        discount_amount=discount_amount,
        currency=_claimed(calculations, "currency") or default_currency,
    )


def recalculate_invoice(invoice: Any, config: Optional[Config] = None) -> RecalculationResult:
    """
    Recompute an invoice from its line items and compare grand totals.

    A mismatch is a normal outcome reported through ``is_accurate``; only an
    unusable invoice (no items, malformed items or adjustments) fails.
    """
    config = config or get_config()

    try:
        payload = extract_invoice_payload(invoice)
        items = payload.get("items") or []
        calculations = payload.get("calculations") or {}

        if not items:
            raise StructuralValidationError("Invoice must contain at least one item")

        options = options_from_calculations(calculations, config.DEFAULT_CURRENCY)
        recalculated = calculate_invoice_total(items, options, config)

        if not recalculated.success:
            return RecalculationResult(
                success=False,
                error=recalculated.error,
                error_type=recalculated.error_type,
            )

        original = ClaimedTotals(
            grand_total=_claimed_number(calculations, "grandTotal", "grand_total"),
            subtotal=_claimed_number(calculations, "subtotal"),
            tax_amount=_claimed_number(calculations, "totalTax", "taxAmount", "tax_amount"),
        )

        difference = abs(original.grand_total - recalculated.calculations.grand_total)
        is_accurate = difference < config.RECALCULATION_TOLERANCE

        if not is_accurate:
            log_calculation_mismatch(
                logger,
                invoice_id=payload.get("invoiceNumber") or "unnumbered",
                claimed_total=original.grand_total,
                recalculated_total=recalculated.calculations.grand_total,
                difference=difference,
            )

        return RecalculationResult(
            success=True,
            is_accurate=is_accurate,
            difference=difference,
            original=original,
            recalculated=recalculated.calculations,
            recommendations=[] if is_accurate else ["Invoice calculations need to be updated"],
        )

    except Exception as e:
        logger.warning(f"Invoice recalculation failed: {e}")
        return RecalculationResult(
            success=False,
            error=str(e),
            error_type=classify_error(e),
        )


def _schedule_needs_regeneration(schedule: Mapping, grand_total: float, tolerance: float) -> bool:
    if not is_schedule_complete(schedule):
        return True

    payment_status = schedule.get("paymentStatus") or {}
    if payment_status.get("paymentHistory"):
        # Payments were already applied against this schedule; keep it
        return False

    total_amount = schedule.get("totalAmount")
    if not isinstance(total_amount, (int, float, Decimal)) or isinstance(total_amount, bool):
        return True
    return abs(float(total_amount) - grand_total) >= tolerance


def validate_and_recalculate_invoice(
    invoice_data: Any,
    config: Optional[Config] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Recompute an invoice and replace its claimed totals with the recomputed ones.

    Works on a copy. A down-payment schedule that is incomplete, or whose total
    no longer matches the recomputed grand total, is regenerated, keeping any
    due dates it already had.
    A missing invoice due date is derived from invoiceDate and paymentTerms.

    Returns:
        {"invoice": ..., "validation": ..., "recalculated": True, "recalculatedAt": ...}

    Raises:
        StructuralValidationError: no invoice body or no items
        InputValidationError: a claimed adjustment is not a usable number
        CalculationError: the items or adjustments cannot be calculated
    """
    config = config or get_config()

    if isinstance(invoice_data, Mapping) and isinstance(invoice_data.get("invoice"), Mapping):
        result = copy.deepcopy(dict(invoice_data))
        invoice = result["invoice"]
    else:
        invoice = copy.deepcopy(extract_invoice_payload(invoice_data))
        result = {"invoice": invoice}

    items = invoice.get("items") or []
    if not items:
        raise StructuralValidationError("Invoice must contain at least one item")

    claimed = invoice.get("calculations") or {}
    options = options_from_calculations(claimed, config.DEFAULT_CURRENCY)
    calculation = calculate_invoice_total(items, options, config)

    if not calculation.success:
        error = CalculationError(calculation.error)
        error.error_type = calculation.error_type or error.error_type
        raise error

    invoice["calculations"] = {**claimed, **calculation.calculations.to_record()}

    if not invoice.get("dueDate") and invoice.get("invoiceDate"):
        invoice["dueDate"] = calculate_due_date(
            invoice["invoiceDate"], invoice.get("paymentTerms") or "NET_30"
        ).isoformat()

    schedule = invoice.get("paymentSchedule")
    grand_total = calculation.calculations.grand_total
    if (
        isinstance(schedule, Mapping)
        and schedule.get("scheduleType", "down_payment") == "down_payment"
        and _schedule_needs_regeneration(schedule, grand_total, config.RECALCULATION_TOLERANCE)
    ):
        logger.info("Regenerating down payment schedule from recalculated grand total")
        invoice["paymentSchedule"] = _regenerate_schedule(
            schedule, grand_total, invoice.get("invoiceDate"), config, today
        )

    result["validation"] = calculation.validation.to_record()
    result["recalculated"] = True
    result["recalculatedAt"] = datetime.now(timezone.utc).isoformat()

    return result


def _regenerate_schedule(
    schedule: Mapping,
    grand_total: float,
    invoice_date: Any,
    config: Config,
    today: Optional[date],
) -> Dict[str, Any]:
    down_payment = schedule.get("downPayment") or {}
    remaining_balance = schedule.get("remainingBalance") or {}

    options = PaymentScheduleOptions(
        down_payment_percentage=down_payment.get("percentage") or config.DEFAULT_DOWN_PAYMENT_PERCENTAGE,
        invoice_date=invoice_date or today or date.today(),
    )
    regenerated = calculate_payment_schedule(grand_total, options, config)
    if not regenerated.success:
        raise CalculationError(f"Could not regenerate payment schedule: {regenerated.error}")

    record = regenerated.payment_schedule.to_record()
    if down_payment.get("dueDate"):
        record["downPayment"]["dueDate"] = down_payment["dueDate"]
    if remaining_balance.get("dueDate"):
        record["remainingBalance"]["dueDate"] = remaining_balance["dueDate"]
    return record
