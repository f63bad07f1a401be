"""
Verification Stage
Recomputes the invoice from its line items and compares the stated totals.
"""

from invoicing.state import InvoiceProcessingState
from invoicing.engine.recalculation import recalculate_invoice
from invoicing.engine.totals import generate_warnings
from invoicing.utils.logging import setup_logging


logger = setup_logging(__name__)

STAGE_NAME = "Verification"


async def verification_node(state: InvoiceProcessingState) -> InvoiceProcessingState:
    """
    Recalculate the invoice using the enriched items.

    Updates state:
    - recalculation
    - calculation_warnings
    - verification_error
    """
    logger.info(f"[{STAGE_NAME}] Verifying invoice {state.invoice_id}")

    invoice = dict(state.invoice_payload)
    invoice["items"] = state.enriched_items

    result = recalculate_invoice(invoice)
    state.recalculation = result

    if not result.success:
        state.verification_error = result.error
        logger.error(f"[{STAGE_NAME}] Invoice {state.invoice_id} cannot be calculated: {result.error}")
        state.add_reasoning(STAGE_NAME, f"Invoice cannot be calculated: {result.error}", action="verification_failed")
        return state

    calculations = result.recalculated
    state.calculation_warnings = generate_warnings(
        calculations.subtotal,
        calculations.tax_amount,
        calculations.shipping_cost,
        calculations.discount,
        calculations.grand_total,
    )

    if result.is_accurate:
        state.add_reasoning(
            STAGE_NAME,
            f"Stated grand total {result.original.grand_total} matches the line items.",
            action="verified",
        )
    else:
        state.add_reasoning(
            STAGE_NAME,
            f"Stated grand total {result.original.grand_total} does not match the line items "
            f"({calculations.grand_total}, difference {result.difference:.2f}).",
            action="mismatch",
        )

    return state
