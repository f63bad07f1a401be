"""
Shared state object for the invoice processing pipeline.
Every stage reads from and writes to this state.
"""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from datetime import datetime, timezone

from invoicing.schemas.catalog import CatalogMatch, CatalogProduct
from invoicing.schemas.invoice import RecalculationResult
from invoicing.schemas.payment import PaymentSchedule, PaymentScheduleOptions


class ReasoningLogEntry(BaseModel):
    """A single entry in the stage reasoning log."""
    timestamp: datetime
    stage_name: str
    message: str
    action: Optional[str] = None


class InvoiceProcessingState(BaseModel):
    """
    State for one AI-produced invoice moving through the pipeline.

    Stages:
    1. Catalog enrichment fills missing prices from the merchant catalog
    2. Verification recomputes totals from the line items
    3. Scheduling splits the verified total (only when requested)
    4. Review decides whether the invoice can be shown to the customer
    """

    # Workflow identification
    invoice_id: str
    processing_timestamp: datetime
    invoice_payload: Dict[str, Any]  # invoice as received, untrusted

    # Inputs
    catalog: List[CatalogProduct] = Field(default_factory=list)
    schedule_options: Optional[PaymentScheduleOptions] = None

    # Enrichment phase
    enriched_items: List[Any] = Field(default_factory=list)
    catalog_matches: List[CatalogMatch] = Field(default_factory=list)

    # Verification phase
    recalculation: Optional[RecalculationResult] = None
    calculation_warnings: List[str] = Field(default_factory=list)
    verification_error: Optional[str] = None

    # Scheduling phase
    payment_schedule: Optional[PaymentSchedule] = None
    schedule_warnings: List[str] = Field(default_factory=list)
    schedule_error: Optional[str] = None

    # Review phase
    decision: str = "confirm_with_merchant"  # approve, confirm_with_merchant, reject
    decision_reasoning: str = ""

    # Audit trail
    reasoning_log: List[ReasoningLogEntry] = Field(default_factory=list)

    def add_reasoning(
        self,
        stage_name: str,
        message: str,
        action: Optional[str] = None
    ) -> None:
        """Add an entry to the reasoning log."""
        self.reasoning_log.append(
            ReasoningLogEntry(
                timestamp=datetime.now(timezone.utc),
                stage_name=stage_name,
                message=message,
                action=action,
            )
        )

    def get_stage_reasoning(self) -> str:
        """Get a human-readable summary of the stage reasoning."""
        if not self.reasoning_log:
            return "No reasoning available."

        return "\n".join(f"[{entry.stage_name}] {entry.message}" for entry in self.reasoning_log)

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of the current state."""
        return {
            "invoice_id": self.invoice_id,
            "verification_status": "completed" if self.recalculation else "pending",
            "is_accurate": self.recalculation.is_accurate if self.recalculation else None,
            "schedule_status": "completed" if self.payment_schedule else "not_requested",
            "unmatched_items": len([m for m in self.catalog_matches if m.match_type == "not_matched"]),
            "decision": self.decision,
        }
