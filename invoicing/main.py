"""
Main entry point for processing AI-produced invoices.
"""

import asyncio
import json
import random
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Union

from invoicing.state import InvoiceProcessingState
from invoicing.graph import get_processing_graph
from invoicing.engine.catalog import load_catalog_from_file
from invoicing.engine.recalculation import extract_invoice_payload
from invoicing.schemas.catalog import CatalogProduct
from invoicing.schemas.output import ProcessingOutput, VerificationDetail
from invoicing.schemas.payment import PaymentScheduleOptions
from invoicing.utils.logging import setup_logging
from invoicing.utils import dict_to_json_string
from invoicing.config import get_config


logger = setup_logging(__name__)
config = get_config()


def generate_invoice_number(now: Optional[datetime] = None) -> str:
    """INV-<year>-<last 6 digits of epoch millis>-<4 random digits>."""
    now = now or datetime.now(timezone.utc)
    timestamp = str(int(now.timestamp() * 1000))[-6:]
    return f"INV-{now.year}-{timestamp}-{random.randint(1000, 9999)}"


def load_invoices_from_file(invoice_file: str) -> List[Dict[str, Any]]:
    """Load invoice payloads from a JSON file holding one invoice or a list."""
    with open(invoice_file, 'r') as f:
        data = json.load(f)

    invoices = data if isinstance(data, list) else [data]
    logger.info(f"Loaded {len(invoices)} invoices from {invoice_file}")
    return invoices


def build_output(state: InvoiceProcessingState) -> ProcessingOutput:
    """Build final output from state."""
    result = state.recalculation

    if result is not None:
        verification = VerificationDetail(
            success=result.success,
            is_accurate=result.is_accurate,
            difference=result.difference,
            original=result.original,
            error=result.error,
        )
    else:
        verification = VerificationDetail(success=False, error=state.verification_error or "Not verified")

    return ProcessingOutput(
        invoice_id=state.invoice_id,
        processing_timestamp=datetime.now(timezone.utc),
        decision=state.decision,
        decision_reasoning=state.decision_reasoning,
        verification=verification,
        calculations=result.recalculated if result is not None else None,
        payment_schedule=state.payment_schedule,
        catalog_matches=state.catalog_matches,
        warnings=state.calculation_warnings + state.schedule_warnings,
        stage_reasoning=state.get_stage_reasoning(),
    )


async def process_invoice(
    invoice: Any,
    invoice_id: str = None,
    catalog: Optional[Sequence[CatalogProduct]] = None,
    catalog_path: str = None,
    schedule_options: Union[PaymentScheduleOptions, Mapping, None] = None,
) -> ProcessingOutput:
    """
    Process a single AI-produced invoice through the pipeline.

    Args:
        invoice: Invoice model or mapping (optionally wrapped as {"invoice": {...}})
        invoice_id: Optional invoice ID (taken from the invoice or generated if not provided)
        catalog: Merchant catalog products
        catalog_path: Path to a catalog JSON file, used when catalog is not given
        schedule_options: Request a down payment schedule with these options

    Returns:
        ProcessingOutput with the decision, recalculated totals and schedule
    """
    payload = extract_invoice_payload(invoice)

    if not invoice_id:
        invoice_id = payload.get("invoiceNumber") or generate_invoice_number()

    if catalog is None:
        catalog = load_catalog_from_file(catalog_path) if catalog_path else []

    if isinstance(schedule_options, Mapping):
        schedule_options = PaymentScheduleOptions.model_validate(schedule_options)

    state = InvoiceProcessingState(
        invoice_id=invoice_id,
        processing_timestamp=datetime.now(timezone.utc),
        invoice_payload=payload,
        catalog=list(catalog),
        schedule_options=schedule_options,
    )

    logger.info(f"Starting invoice processing for {invoice_id}")
    logger.info(f"Items: {len(payload.get('items') or [])}, catalog products: {len(state.catalog)}")

    graph = get_processing_graph()

    try:
        result = await graph.ainvoke(state, config={"recursion_limit": config.GRAPH_RECURSION_LIMIT})
        final_state = InvoiceProcessingState(**result) if isinstance(result, dict) else result
    except Exception as e:
        logger.error(f"Error running processing graph: {e}")
        state.verification_error = state.verification_error or str(e)
        state.decision = "reject"
        state.decision_reasoning = f"Processing failed: {e}"
        final_state = state

    output = build_output(final_state)

    logger.info(f"Invoice processing complete. Decision: {output.decision}")

    return output


async def process_invoices_batch(
    invoices: Sequence[Any],
    catalog: Optional[Sequence[CatalogProduct]] = None,
    catalog_path: str = None,
    schedule_options: Union[PaymentScheduleOptions, Mapping, None] = None,
) -> List[ProcessingOutput]:
    """
    Process multiple invoices in batch.

    Invoices that cannot be read at all are logged and skipped; invoices that
    fail verification are still returned with a reject decision.
    """
    if catalog is None and catalog_path:
        catalog = load_catalog_from_file(catalog_path)

    results = []

    for idx, invoice in enumerate(invoices, 1):
        try:
            logger.info(f"Processing invoice {idx}/{len(invoices)}")

            output = await process_invoice(
                invoice,
                catalog=catalog,
                schedule_options=schedule_options,
            )

            results.append(output)

        except Exception as e:
            logger.error(f"Error processing invoice {idx}: {e}")
            continue

    logger.info(f"Batch processing complete. Processed {len(results)}/{len(invoices)} invoices.")

    return results


def format_output_json(output: ProcessingOutput) -> str:
    """Format output as JSON string."""
    return dict_to_json_string(output.to_record())


if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1:
        invoice_file = sys.argv[1]
        catalog_file = sys.argv[2] if len(sys.argv) > 2 else None

        outputs = asyncio.run(
            process_invoices_batch(load_invoices_from_file(invoice_file), catalog_path=catalog_file)
        )
        for output in outputs:
            print(format_output_json(output))
    else:
        print("Usage: python -m invoicing.main <invoices.json> [catalog.json]")
