"""
LangGraph orchestration for the invoice processing pipeline.
Defines the graph structure and node routing logic.
"""

from typing import Literal
from langgraph.graph import StateGraph, END
from invoicing.state import InvoiceProcessingState
from invoicing.pipeline.enrichment import catalog_enrichment_node
from invoicing.pipeline.verification import verification_node
from invoicing.pipeline.scheduling import scheduling_node
from invoicing.pipeline.review import review_node


def route_after_verification(state: InvoiceProcessingState) -> Literal["scheduling", "review"]:
    """A schedule is only derived from a successfully recalculated total."""
    if state.schedule_options is None:
        return "review"
    if state.recalculation is None or not state.recalculation.success:
        return "review"
    return "scheduling"


def build_processing_graph():
    """
    Build the LangGraph workflow for invoice processing.

    Flow:
    1. Catalog enrichment - fill missing prices
    2. Verification - recompute totals from line items
    3. (Optional) Scheduling - down payment split of the recomputed total
    4. Review - approve, confirm with merchant, or reject
    """

    graph = StateGraph(InvoiceProcessingState)

    graph.add_node("enrichment", catalog_enrichment_node)
    graph.add_node("verification", verification_node)
    graph.add_node("scheduling", scheduling_node)
    graph.add_node("review", review_node)

    graph.set_entry_point("enrichment")

    graph.add_edge("enrichment", "verification")
    graph.add_conditional_edges(
        "verification",
        route_after_verification,
        {
            "scheduling": "scheduling",
            "review": "review",
        }
    )
    graph.add_edge("scheduling", "review")
    graph.add_edge("review", END)

    return graph.compile()


# Compiled graphs are immutable, so one instance is shared
_processing_graph = None


def get_processing_graph():
    """Get or create the compiled processing graph."""
    global _processing_graph
    if _processing_graph is None:
        _processing_graph = build_processing_graph()
    return _processing_graph
