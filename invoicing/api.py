"""
Optional FastAPI REST endpoints for the invoicing engine.
Can be run with: uvicorn invoicing.api:app --reload
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from invoicing import __version__
from invoicing.config import get_config
from invoicing.engine.payment_schedule import (
    PAYMENT_TERMS_DAYS,
    calculate_due_date,
    calculate_payment_schedule,
    update_payment_status,
)
from invoicing.engine.recalculation import recalculate_invoice
from invoicing.engine.totals import calculate_invoice_total
from invoicing.errors import InputValidationError
from invoicing.main import process_invoice
from invoicing.schemas.base import CamelModel
from invoicing.schemas.catalog import CatalogProduct
from invoicing.schemas.invoice import CalculationOptions
from invoicing.schemas.payment import PaymentScheduleOptions
from invoicing.utils.currency import (
    format_breakdown,
    format_currency,
    get_supported_currencies,
    get_symbol,
    parse_currency,
)
from invoicing.utils.logging import setup_logging


logger = setup_logging(__name__)
config = get_config()

app = FastAPI(
    title="Invoice Calculation API",
    description="Deterministic invoice calculation, verification and payment schedules",
    version=__version__,
)


class CalculateRequest(CamelModel):
    items: List[Dict[str, Any]]
    options: CalculationOptions = CalculationOptions()


class ProcessRequest(CamelModel):
    invoice: Dict[str, Any]
    invoice_id: Optional[str] = None
    catalog: Optional[List[CatalogProduct]] = None
    schedule_options: Optional[PaymentScheduleOptions] = None


class PaymentScheduleRequest(CamelModel):
    grand_total: Union[float, str]
    options: Optional[PaymentScheduleOptions] = None


class PaymentRequest(CamelModel):
    schedule: Dict[str, Any]
    payment_amount: Union[float, str]
    payment_date: Optional[datetime] = None


def _result_response(result: CamelModel) -> JSONResponse:
    """200 for successful results, 400 for rejected ones."""
    return JSONResponse(
        content=result.to_record(),
        status_code=200 if result.success else 400,
    )


@app.post("/calculate")
async def calculate_endpoint(request: CalculateRequest):
    """Calculate totals for a list of order lines."""
    return _result_response(calculate_invoice_total(request.items, request.options))


@app.post("/recalculate")
async def recalculate_endpoint(invoice: Dict[str, Any]):
    """
    Verify an externally produced invoice against its line items.
    A mismatch is still a 200; check isAccurate.
    """
    return _result_response(recalculate_invoice(invoice))


@app.post("/process")
async def process_endpoint(request: ProcessRequest):
    """Run an invoice through enrichment, verification, scheduling and review."""
    try:
        output = await process_invoice(
            request.invoice,
            invoice_id=request.invoice_id,
            catalog=request.catalog,
            catalog_path=None if request.catalog is not None else config.CATALOG_PATH,
            schedule_options=request.schedule_options,
        )
        return JSONResponse(content=output.to_record(), status_code=200)

    except Exception as e:
        logger.error(f"Failed to process invoice: {e}")
        return JSONResponse(
            content={
                "error": str(e),
                "message": "Failed to process invoice",
            },
            status_code=500,
        )


@app.post("/payment-schedule")
async def payment_schedule_endpoint(request: PaymentScheduleRequest):
    """Split a verified grand total into a down payment and remaining balance."""
    return _result_response(calculate_payment_schedule(request.grand_total, request.options))


@app.post("/payment-schedule/payments")
async def apply_payment_endpoint(request: PaymentRequest):
    """Apply one confirmed payment to a schedule and return the updated copy."""
    return _result_response(
        update_payment_status(request.schedule, request.payment_amount, request.payment_date)
    )


@app.get("/format-currency")
async def format_currency_endpoint(amount: float, currency: str = "IDR", locale: Optional[str] = None):
    """Render an amount for display."""
    try:
        return {"formatted": format_currency(amount, currency, locale), "currency": currency.upper()}
    except InputValidationError as e:
        return JSONResponse(content={"error": str(e)}, status_code=400)


@app.get("/parse-currency")
async def parse_currency_endpoint(value: str, currency: str = "IDR"):
    """Read a formatted amount back into a number. Unreadable input gives 0."""
    return {"amount": parse_currency(value, currency), "currency": currency.upper()}


@app.post("/format-breakdown")
async def format_breakdown_endpoint(calculations: Dict[str, Any], currency: Optional[str] = None):
    """Render every monetary field of a calculations record."""
    try:
        return format_breakdown(calculations, currency)
    except InputValidationError as e:
        return JSONResponse(content={"error": str(e)}, status_code=400)


@app.get("/currencies")
async def currencies_endpoint():
    """List supported currencies with their symbols."""
    return [{"code": code, "symbol": get_symbol(code)} for code in get_supported_currencies()]


@app.get("/due-date")
async def due_date_endpoint(invoice_date: date, payment_terms: str = "NET_30"):
    """Due date for standard payment terms (NET_15/30/45/60, DUE_ON_RECEIPT)."""
    return {
        "dueDate": calculate_due_date(invoice_date, payment_terms).isoformat(),
        "paymentTerms": payment_terms,
        "termsDays": PAYMENT_TERMS_DAYS.get(payment_terms, 30),
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.get("/config")
async def get_config_endpoint():
    """Get current configuration (sanitized)."""
    return {
        "default_currency": config.DEFAULT_CURRENCY,
        "default_tax_rate": config.DEFAULT_TAX_RATE,
        "calculation_precision": config.CALCULATION_PRECISION,
        "recalculation_tolerance": config.RECALCULATION_TOLERANCE,
        "default_down_payment_percentage": config.DEFAULT_DOWN_PAYMENT_PERCENTAGE,
        "catalog_match_threshold": config.CATALOG_MATCH_THRESHOLD,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=config.API_HOST,
        port=config.API_PORT,
        log_level=config.LOG_LEVEL.lower(),
    )
