"""
Review Stage
Decides whether the invoice can go to the customer as is.
"""

from typing import Tuple

from invoicing.state import InvoiceProcessingState
from invoicing.utils.logging import setup_logging


logger = setup_logging(__name__)

STAGE_NAME = "Review"


def make_decision(state: InvoiceProcessingState) -> Tuple[str, str]:
    """
    DECISION POLICY:
    - reject: the invoice cannot be calculated from its items
    - confirm_with_merchant: stated totals disagree with the items, or the
      requested schedule could not be built. Never auto-corrected silently.
    - approve: totals verified (warnings are informational only)

    Returns:
        (decision, explanation)
    """
    result = state.recalculation

    if result is None or not result.success:
        return "reject", f"Invoice cannot be calculated: {state.verification_error or 'not verified'}"

    if not result.is_accurate:
        return (
            "confirm_with_merchant",
            f"Stated grand total {result.original.grand_total} differs from the recalculated "
            f"{result.recalculated.grand_total}. Show the recalculated invoice to the merchant for confirmation.",
        )

    if state.schedule_error:
        return "confirm_with_merchant", f"Totals verified but the payment schedule failed: {state.schedule_error}"

    return "approve", "Totals verified against the line items."


async def review_node(state: InvoiceProcessingState) -> InvoiceProcessingState:
    """
    Updates state:
    - decision
    - decision_reasoning
    """
    decision, explanation = make_decision(state)

    reasoning_lines = [explanation]
    for warning in state.calculation_warnings + state.schedule_warnings:
        reasoning_lines.append(f"Note: {warning}")

    state.decision = decision
    state.decision_reasoning = "\n".join(reasoning_lines)

    logger.info(f"[{STAGE_NAME}] Invoice {state.invoice_id}: {decision}")
    state.add_reasoning(STAGE_NAME, f"Decision: {decision}. {explanation}", action=decision)

    return state
