"""
Invoice Calculation Engine
"""

__version__ = "1.0.0"
__description__ = "Deterministic invoice calculation and verification for AI-produced invoices"

from invoicing.main import process_invoice, process_invoices_batch
from invoicing.engine.totals import calculate_invoice_total
from invoicing.engine.recalculation import recalculate_invoice, validate_and_recalculate_invoice
from invoicing.engine.payment_schedule import (
    calculate_due_date,
    calculate_payment_schedule,
    update_payment_status,
)
from invoicing.utils.currency import format_breakdown, format_currency, parse_currency
from invoicing.state import InvoiceProcessingState
from invoicing.schemas.output import ProcessingOutput

__all__ = [
    "process_invoice",
    "process_invoices_batch",
    "calculate_invoice_total",
    "recalculate_invoice",
    "validate_and_recalculate_invoice",
    "calculate_payment_schedule",
    "update_payment_status",
    "calculate_due_date",
    "format_currency",
    "format_breakdown",
    "parse_currency",
    "InvoiceProcessingState",
    "ProcessingOutput",
]
