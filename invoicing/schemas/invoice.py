"""
Invoice schema and calculation records.
"""

from typing import Optional, List, Dict, Any
from pydantic import ConfigDict, Field
from datetime import date, datetime, timezone

from invoicing.config import get_config
from invoicing.errors import ErrorType
from invoicing.schemas.base import CamelModel


class LineItem(CamelModel):
    """
    A single order line.

    Only quantity and unit_price take part in calculation. Descriptive fields
    and any extra keys supplied by the extractor are carried through untouched.
    Values are validated by the calculation engine, not here, so malformed
    lines are reported with the engine's messages.
    """
    model_config = ConfigDict(extra="allow")

    quantity: Optional[float] = None
    unit_price: Optional[float] = None
    product_name: Optional[str] = None
    sku: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[str] = None


class CalculationOptions(CamelModel):
    """Adjustments applied on top of the subtotal."""
    tax_enabled: bool = False
    tax_rate: Optional[float] = None
    shipping_cost: float = 0.0
    discount_rate: Optional[float] = 0.0  # percent, ignored when discount_amount > 0; None means no discount
    discount_amount: Optional[float] = 0.0
    currency: str = Field(default_factory=lambda: get_config().DEFAULT_CURRENCY)


class Calculations(CamelModel):
    """Calculation breakdown for one invoice."""
    subtotal: float
    tax_amount: float
    tax_rate: float
    tax_enabled: bool
    shipping_cost: float
    discount: float
    discount_type: str = "fixed"  # fixed, percentage
    discount_rate: float = 0.0
    grand_total: float
    currency: str
    item_count: int
    calculated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ValidationReport(CamelModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class CalculationResult(CamelModel):
    """Outcome of calculate_invoice_total. Failures carry the message instead of raising."""
    success: bool
    calculations: Optional[Calculations] = None
    validation: ValidationReport
    error: Optional[str] = None
    error_type: Optional[ErrorType] = None


class ClaimedTotals(CamelModel):
    """Totals as stated by the invoice before recalculation."""
    grand_total: float = 0.0
    subtotal: float = 0.0
    tax_amount: float = 0.0


class RecalculationResult(CamelModel):
    """Outcome of recomputing an externally produced invoice from its line items."""
    success: bool
    is_accurate: bool = False
    difference: Optional[float] = None
    original: Optional[ClaimedTotals] = None
    recalculated: Optional[Calculations] = None
    recommendations: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[ErrorType] = None


class Invoice(CamelModel):
    """
    An invoice as produced upstream (typically by the language model).

    The calculations and payment schedule blocks are kept as raw mappings:
    they are claims to be verified, not trusted records.
    """
    model_config = ConfigDict(extra="allow")

    invoice_number: Optional[str] = None
    invoice_date: Optional[date] = None
    customer: Optional[Dict[str, Any]] = None
    items: List[LineItem] = Field(default_factory=list)
    calculations: Dict[str, Any] = Field(default_factory=dict)
    payment_schedule: Optional[Dict[str, Any]] = None
    payment_terms: Optional[str] = None
