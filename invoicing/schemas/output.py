"""
Output schema for processed invoices.
"""

from typing import Optional, List
from pydantic import ConfigDict, Field
from datetime import datetime

from invoicing.schemas.base import CamelModel
from invoicing.schemas.catalog import CatalogMatch
from invoicing.schemas.invoice import Calculations, ClaimedTotals
from invoicing.schemas.payment import PaymentSchedule


class VerificationDetail(CamelModel):
    success: bool
    is_accurate: bool = False
    difference: Optional[float] = None
    original: Optional[ClaimedTotals] = None
    error: Optional[str] = None


class ProcessingOutput(CamelModel):
    """Final result for one invoice."""
    invoice_id: str
    processing_timestamp: datetime
    decision: str  # approve, confirm_with_merchant, reject
    decision_reasoning: str
    verification: VerificationDetail
    calculations: Optional[Calculations] = None
    payment_schedule: Optional[PaymentSchedule] = None
    catalog_matches: List[CatalogMatch] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    stage_reasoning: str = ""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "invoiceId": "INV-2026-123456-4821",
                "processingTimestamp": "2026-10-19T10:30:00Z",
                "decision": "approve",
                "decisionReasoning": "Totals verified against the line items.",
                "verification": {"success": True, "isAccurate": True, "difference": 0.0},
                "calculations": {},
                "paymentSchedule": None,
                "catalogMatches": [],
                "warnings": ["No tax applied - this invoice is tax-free"],
                "stageReasoning": "...",
            }
        },
    )
