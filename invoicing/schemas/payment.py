"""
Payment schedule schema.
A down-payment split of a verified grand total and its payment history.
"""

from decimal import Decimal
from typing import Annotated, Optional, List, Literal
from pydantic import BeforeValidator, Field, PlainSerializer
from datetime import date, datetime

from invoicing.config import get_config
from invoicing.errors import ErrorType
from invoicing.schemas.base import CamelModel
from invoicing.schemas.invoice import ValidationReport


# Schedule amounts are exact to the cent so the parts always add up to the
# total. Records carry them as plain JSON numbers; floats are read by their
# shortest repr, so 0.07 stays 0.07.
Money = Annotated[
    Decimal,
    BeforeValidator(lambda value: Decimal(str(value)) if isinstance(value, float) else value),
    PlainSerializer(float, return_type=float, when_used="json"),
]


class DownPayment(CamelModel):
    percentage: float
    amount: Money
    due_date: date
    status: Literal["pending", "paid"] = "pending"


class RemainingBalance(CamelModel):
    amount: Money
    due_date: date
    status: Literal["pending", "paid"] = "pending"


class PaymentRecord(CamelModel):
    """A single applied payment. Records are only ever appended."""
    amount: Money
    date: datetime
    type: str = "payment"


class PaymentStatus(CamelModel):
    status: Literal["pending", "partial", "paid"] = "pending"
    total_paid: Money = Decimal("0")
    remaining_amount: Money
    last_payment_date: Optional[datetime] = None
    payment_history: List[PaymentRecord] = Field(default_factory=list)


class PaymentSchedule(CamelModel):
    schedule_type: Literal["down_payment"] = "down_payment"
    total_amount: Money
    down_payment: DownPayment
    remaining_balance: RemainingBalance
    payment_status: PaymentStatus


class PaymentScheduleOptions(CamelModel):
    """Options for splitting a grand total. Day offsets count from invoice_date."""
    schedule_type: Literal["down_payment"] = "down_payment"
    down_payment_percentage: float = Field(
        default_factory=lambda: get_config().DEFAULT_DOWN_PAYMENT_PERCENTAGE
    )
    down_payment_days: int = Field(default_factory=lambda: get_config().DEFAULT_DOWN_PAYMENT_DAYS)
    final_payment_days: int = Field(default_factory=lambda: get_config().DEFAULT_FINAL_PAYMENT_DAYS)
    invoice_date: Optional[date] = None  # today when omitted


class PaymentScheduleResult(CamelModel):
    success: bool
    payment_schedule: Optional[PaymentSchedule] = None
    validation: ValidationReport
    error: Optional[str] = None
    error_type: Optional[ErrorType] = None


class PaymentUpdateResult(CamelModel):
    success: bool
    updated_schedule: Optional[PaymentSchedule] = None
    error: Optional[str] = None
    error_type: Optional[ErrorType] = None
