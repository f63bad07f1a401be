"""
Error taxonomy for the invoicing engine.

Leaf calculations raise these exceptions; the top-level entry points catch
them and turn them into ``success=False`` results tagged with an ErrorType.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorType(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CALCULATION_ERROR = "CALCULATION_ERROR"
    AI_SERVICE_ERROR = "AI_SERVICE_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class InvoiceError(Exception):
    """Base class for faults raised by the invoicing engine."""

    error_type: ErrorType = ErrorType.UNKNOWN_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InputValidationError(InvoiceError, ValueError):
    """A scalar input is missing, not a number, negative or out of range."""

    error_type = ErrorType.VALIDATION_ERROR

    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(message, {"field": field_name} if field_name else None)
        self.field_name = field_name


class StructuralValidationError(InvoiceError, ValueError):
    """A line item or invoice is missing a required field."""

    error_type = ErrorType.VALIDATION_ERROR


class CalculationError(InvoiceError):
    """An invoice could not be recalculated."""

    error_type = ErrorType.CALCULATION_ERROR


class InvariantViolationError(CalculationError):
    """A business rule would be broken, e.g. a negative total or an overpayment."""


def classify_error(error: BaseException) -> ErrorType:
    """
    Classify an exception into an ErrorType.

    Engine exceptions carry their own type. Anything else is classified from
    its message, the same way upstream service failures are.
    """
    if isinstance(error, InvoiceError):
        return error.error_type

    message = str(error).lower()
    status = getattr(error, "status_code", None) or getattr(error, "status", None)

    if "validation" in message or type(error).__name__ == "ValidationError":
        return ErrorType.VALIDATION_ERROR
    if "calculation" in message or isinstance(error, ArithmeticError):
        return ErrorType.CALCULATION_ERROR
    if "rate limit" in message or status == 429:
        return ErrorType.RATE_LIMIT_ERROR
    if "invalid api key" in message or status == 401:
        return ErrorType.AUTHENTICATION_ERROR
    if "timeout" in message or isinstance(error, (TimeoutError, ConnectionError)):
        return ErrorType.NETWORK_ERROR
    if "database" in message:
        return ErrorType.DATABASE_ERROR
    return ErrorType.UNKNOWN_ERROR
