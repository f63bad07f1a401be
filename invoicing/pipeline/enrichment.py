"""
Catalog Enrichment Stage
Fills missing unit prices from the merchant catalog before verification.
"""

from invoicing.state import InvoiceProcessingState
from invoicing.engine.catalog import enrich_items_with_catalog
from invoicing.utils.logging import setup_logging, log_stage_action


logger = setup_logging(__name__)

STAGE_NAME = "CatalogEnrichment"


async def catalog_enrichment_node(state: InvoiceProcessingState) -> InvoiceProcessingState:
    """
    Match order lines to the merchant catalog.

    Updates state:
    - enriched_items
    - catalog_matches
    """
    items = state.invoice_payload.get("items") or []

    if not state.catalog:
        state.enriched_items = list(items)
        state.add_reasoning(STAGE_NAME, "No merchant catalog supplied; items passed through unchanged.")
        return state

    enrichment = enrich_items_with_catalog(items, state.catalog)
    state.enriched_items = enrichment.items
    state.catalog_matches = enrichment.matches

    filled = [m for m in enrichment.matches if m.price_filled]
    unmatched = enrichment.unmatched

    log_stage_action(
        logger,
        STAGE_NAME,
        "catalog_lookup_complete",
        {
            "invoice_id": state.invoice_id,
            "items": len(items),
            "prices_filled": len(filled),
            "unmatched": len(unmatched),
        },
    )

    message = f"Matched {len(items) - len(unmatched)}/{len(items)} items to the catalog"
    if filled:
        message += f", filled {len(filled)} missing price(s)"
    if unmatched:
        names = ", ".join(repr(m.item_name) for m in unmatched)
        message += f". Not in catalog: {names}"

    state.add_reasoning(STAGE_NAME, message, action="catalog_lookup_complete")
    return state
