"""
Down-payment schedules and payment tracking.

A schedule is derived once from a verified grand total and afterwards only
changes through update_payment_status, which returns an updated copy.
Status moves pending -> partial -> paid and never back.
"""

from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Optional, Tuple, Union

from invoicing.config import Config, get_config
from invoicing.engine.numeric import DEFAULT_PRECISION, validate_number
from invoicing.errors import InputValidationError, InvariantViolationError, classify_error
from invoicing.schemas.invoice import ValidationReport
from invoicing.schemas.payment import (
    DownPayment,
    PaymentRecord,
    PaymentSchedule,
    PaymentScheduleOptions,
    PaymentScheduleResult,
    PaymentStatus,
    PaymentUpdateResult,
    RemainingBalance,
)
from invoicing.utils import safe_divide
from invoicing.utils.logging import setup_logging


logger = setup_logging(__name__)

PAYMENT_TERMS_DAYS = {
    "NET_15": 15,
    "NET_30": 30,
    "NET_45": 45,
    "NET_60": 60,
    "DUE_ON_RECEIPT": 0,
}


def to_money(value: Any, precision: int = DEFAULT_PRECISION) -> Decimal:
    """Exact cent amount of a number, halves rounding up."""
    quantum = Decimal(1).scaleb(-precision)
    return Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)


def split_down_payment(
    total_amount: Any,
    percentage: float,
    precision: int = DEFAULT_PRECISION,
) -> Tuple[Decimal, Decimal]:
    """
    Split a total into (down payment, remaining balance).

    The remaining balance is the total minus the rounded down payment, so the
    two parts always add back up to the total exactly.
    """
    total = to_money(total_amount, precision)
    down_payment = to_money(total * Decimal(str(percentage)) / Decimal(100), precision)
    return down_payment, total - down_payment


def generate_payment_schedule_warnings(
    down_payment_amount: float,
    remaining_balance: float,
    grand_total: float,
    config: Optional[Config] = None,
) -> List[str]:
    config = config or get_config()
    warnings = []

    down_payment_ratio = safe_divide(down_payment_amount, grand_total)

    if down_payment_ratio < config.DOWN_PAYMENT_MIN_RATIO:
        warnings.append("Down payment is less than 10% of total - consider increasing for better cash flow")

    if down_payment_ratio > config.DOWN_PAYMENT_MAX_RATIO:
        warnings.append("Down payment is more than 80% of total - consider reducing to improve customer experience")

    if remaining_balance < config.SMALL_REMAINING_BALANCE:
        warnings.append("Remaining balance is very small - consider requesting full payment upfront")

    return warnings


def calculate_payment_schedule(
    grand_total: Any,
    options: Union[PaymentScheduleOptions, Mapping, None] = None,
    config: Optional[Config] = None,
) -> PaymentScheduleResult:
    """
    Split a verified grand total into a down payment and a remaining balance.

    Never raises; faults come back as ``success=False``.
    """
    config = config or get_config()

    try:
        if options is None:
            options = PaymentScheduleOptions()
        elif isinstance(options, Mapping):
            options = PaymentScheduleOptions.model_validate(options)

        total_amount = to_money(
            validate_number(grand_total, "grandTotal", allow_zero=False), config.CALCULATION_PRECISION
        )
        if total_amount <= 0:
            raise InputValidationError("grandTotal must be greater than 0", "grandTotal")

        percentage = validate_number(
            options.down_payment_percentage, "downPaymentPercentage", allow_zero=False
        )

        if percentage > 100:
            raise InputValidationError(
                "Down payment percentage cannot exceed 100%", "downPaymentPercentage"
            )

        down_payment_amount, remaining_amount = split_down_payment(
            total_amount, percentage, config.CALCULATION_PRECISION
        )

        invoice_date = options.invoice_date or date.today()

        schedule = PaymentSchedule(
            schedule_type=options.schedule_type,
            total_amount=total_amount,
            down_payment=DownPayment(
                percentage=percentage,
                amount=down_payment_amount,
                due_date=invoice_date + timedelta(days=options.down_payment_days),
            ),
            remaining_balance=RemainingBalance(
                amount=remaining_amount,
                due_date=invoice_date + timedelta(days=options.final_payment_days),
            ),
            payment_status=PaymentStatus(remaining_amount=total_amount),
        )

        return PaymentScheduleResult(
            success=True,
            payment_schedule=schedule,
            validation=ValidationReport(
                is_valid=True,
                warnings=generate_payment_schedule_warnings(
                    float(down_payment_amount), float(remaining_amount), float(total_amount), config
                ),
            ),
        )

    except Exception as e:
        logger.warning(f"Payment schedule calculation failed: {e}")
        return PaymentScheduleResult(
            success=False,
            error=str(e),
            error_type=classify_error(e),
            validation=ValidationReport(is_valid=False, errors=[str(e)]),
        )


def update_payment_status(
    schedule: Union[PaymentSchedule, Mapping],
    payment_amount: Any,
    payment_date: Union[datetime, str, None] = None,
    config: Optional[Config] = None,
) -> PaymentUpdateResult:
    """
    Apply a confirmed payment and return the updated schedule.

    The input schedule is not modified. Overpayment is rejected, not clamped.
    """
    config = config or get_config()
    precision = config.CALCULATION_PRECISION

    try:
        if isinstance(schedule, PaymentSchedule):
            updated = schedule.model_copy(deep=True)
        else:
            updated = PaymentSchedule.model_validate(schedule)

        payment = Decimal(str(validate_number(payment_amount, "paymentAmount", allow_zero=False)))
        total_amount = updated.total_amount
        total_paid = updated.payment_status.total_paid

        # Checked before rounding: a fraction of a cent over is still an overpayment
        if total_paid + payment > total_amount:
            raise InvariantViolationError(
                "Payment amount exceeds remaining balance",
                {"total_paid": float(total_paid), "payment": float(payment)},
            )

        amount = to_money(payment, precision)
        if amount <= 0:
            raise InputValidationError("paymentAmount must be greater than 0", "paymentAmount")
        new_total_paid = total_paid + amount

        record = PaymentRecord(
            amount=amount,
            date=payment_date or datetime.now(timezone.utc),
        )

        if new_total_paid >= total_amount:
            status = "paid"
        elif new_total_paid > 0:
            status = "partial"
        else:
            status = "pending"

        if new_total_paid >= updated.down_payment.amount and updated.down_payment.status == "pending":
            updated.down_payment.status = "paid"

        if new_total_paid >= total_amount and updated.remaining_balance.status == "pending":
            updated.remaining_balance.status = "paid"

        updated.payment_status = PaymentStatus(
            status=status,
            total_paid=new_total_paid,
            remaining_amount=total_amount - new_total_paid,
            last_payment_date=record.date,
            payment_history=[*updated.payment_status.payment_history, record],
        )

        logger.info(f"Applied payment of {amount}; schedule is now {status}")

        return PaymentUpdateResult(success=True, updated_schedule=updated)

    except Exception as e:
        logger.warning(f"Payment update rejected: {e}")
        return PaymentUpdateResult(
            success=False,
            error=str(e),
            error_type=classify_error(e),
        )


def is_schedule_complete(schedule: Mapping) -> bool:
    """Check that a claimed down-payment schedule has amounts and due dates."""
    def _is_number(value: Any) -> bool:
        return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)

    down_payment = schedule.get("downPayment")
    remaining_balance = schedule.get("remainingBalance")

    if not isinstance(down_payment, Mapping) or not isinstance(remaining_balance, Mapping):
        return False

    return (
        _is_number(down_payment.get("amount"))
        and _is_number(down_payment.get("percentage"))
        and bool(down_payment.get("dueDate"))
        and _is_number(remaining_balance.get("amount"))
        and bool(remaining_balance.get("dueDate"))
    )


def calculate_due_date(invoice_date: Union[date, str], payment_terms: str = "NET_30") -> date:
    """Due date for standard payment terms. Unknown terms fall back to 30 days."""
    if isinstance(invoice_date, str):
        invoice_date = date.fromisoformat(invoice_date[:10])
    elif isinstance(invoice_date, datetime):
        invoice_date = invoice_date.date()

    days = PAYMENT_TERMS_DAYS.get(payment_terms, 30)
    return invoice_date + timedelta(days=days)
