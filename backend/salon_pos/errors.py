# Overview: Operational error taxonomy shared by services and routes.

"""
Every error a service raises on purpose derives from BillingError and carries
an HTTP-style status code plus a machine-readable code. Routes render these
unchanged; anything else is an internal error and is never shown verbatim.
"""

from __future__ import annotations


class BillingError(Exception):
    """Base class for operational errors."""
    status_code = 400
    code = "ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(BillingError):
    """400-level input problem."""
    status_code = 400
    code = "VALIDATION_ERROR"


class AccessDeniedError(BillingError):
    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(BillingError):
    status_code = 404
    code = "NOT_FOUND"


class PaymentMismatchError(BillingError):
    """Tendered payments do not add up to the bill total."""
    status_code = 422
    code = "PAYMENT_MISMATCH"


class InsufficientStockError(BillingError):
    status_code = 422
    code = "INSUFFICIENT_STOCK"


class InvalidStatusError(BillingError):
    status_code = 422
    code = "INVALID_STATUS"


class BusinessRuleViolation(BillingError):
    status_code = 422
    code = "BUSINESS_RULE_VIOLATION"


class InvalidAdjustmentTypeError(BillingError):
    status_code = 422
    code = "INVALID_ADJUSTMENT_TYPE"
