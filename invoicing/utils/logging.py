"""
Structured logging for the invoicing engine.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Optional
from invoicing.config import get_config


config = get_config()


class StructuredFormatter(logging.Formatter):
    """Formats log records as structured JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "extra"):
            log_obj.update(record.extra)

        return json.dumps(log_obj, default=str)


def setup_logging(name: str = __name__) -> logging.Logger:
    """Setup and return a configured logger."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, config.LOG_LEVEL))

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, config.LOG_LEVEL))
    console_handler.setFormatter(logging.Formatter(config.LOG_FORMAT))
    logger.addHandler(console_handler)

    # File handler with structured JSON
    if config.LOG_FILE:
        file_handler = logging.FileHandler(config.LOG_FILE)
        file_handler.setLevel(getattr(logging, config.LOG_LEVEL))
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


def log_stage_action(
    logger: logging.Logger,
    stage_name: str,
    action: str,
    details: Optional[dict] = None,
) -> None:
    """Log a pipeline stage action with context."""
    extra = {
        "stage": stage_name,
        "action": action,
    }
    if details:
        extra.update(details)

    logger.info(
        f"[{stage_name}] {action}",
        extra={"extra": extra}
    )


def log_calculation_mismatch(
    logger: logging.Logger,
    invoice_id: str,
    claimed_total: float,
    recalculated_total: float,
    difference: float,
) -> None:
    """Log a grand total that disagrees with its line items."""
    extra = {
        "type": "calculation_mismatch",
        "invoice_id": invoice_id,
        "claimed_total": claimed_total,
        "recalculated_total": recalculated_total,
        "difference": difference,
    }
    logger.warning(
        f"Calculation mismatch on {invoice_id}: claimed {claimed_total}, "
        f"recalculated {recalculated_total} (difference {difference})",
        extra={"extra": extra}
    )
