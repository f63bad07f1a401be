"""
Scheduling Stage
Derives the down-payment schedule from the recalculated grand total.
"""

from invoicing.state import InvoiceProcessingState
from invoicing.engine.payment_schedule import calculate_payment_schedule
from invoicing.utils.logging import setup_logging


logger = setup_logging(__name__)

STAGE_NAME = "Scheduling"


async def scheduling_node(state: InvoiceProcessingState) -> InvoiceProcessingState:
    """
    Only reached after a successful recalculation, so the schedule is always
    based on the recomputed total rather than the stated one.

    Updates state:
    - payment_schedule
    - schedule_warnings
    - schedule_error
    """
    grand_total = state.recalculation.recalculated.grand_total
    result = calculate_payment_schedule(grand_total, state.schedule_options)

    if not result.success:
        state.schedule_error = result.error
        logger.warning(f"[{STAGE_NAME}] No schedule for {state.invoice_id}: {result.error}")
        state.add_reasoning(STAGE_NAME, f"Payment schedule rejected: {result.error}", action="schedule_failed")
        return state

    schedule = result.payment_schedule
    state.payment_schedule = schedule
    state.schedule_warnings = result.validation.warnings

    state.add_reasoning(
        STAGE_NAME,
        f"Down payment {schedule.down_payment.amount} due {schedule.down_payment.due_date}, "
        f"remaining {schedule.remaining_balance.amount} due {schedule.remaining_balance.due_date}.",
        action="schedule_created",
    )
    return state
