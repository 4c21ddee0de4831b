"""
Domain exceptions for CashBus.

Validation problems are raised; delivery failures and optimistic-concurrency
conflicts are returned as values by the services that meet them.
"""

from typing import Any, Dict, Optional


class CashBusError(Exception):
    """Base exception for CashBus domain errors."""

    code = "cashbus_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class CompensationValidationError(CashBusError, ValueError):
    """Raised when incident facts cannot be priced (unknown kind, negative amounts)."""

    code = "compensation_validation_error"

    def __init__(self, field: str, message: str):
        super().__init__(message, details={field: [message]})
        self.field = field


class ClaimError(CashBusError):
    """Raised when a claim cannot be opened or resolved as requested."""

    code = "claim_error"
