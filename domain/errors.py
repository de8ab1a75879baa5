"""
Domain: error taxonomy for the Sale aggregate.

All errors are raised synchronously by the operation that received bad input
and carry enough context (field, kind) for callers to build user-facing
messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ValidationErrorKind(str, Enum):
    REQUIRED = "required"
    LENGTH_EXCEEDED = "length-exceeded"
    QUANTITY_OUT_OF_RANGE = "quantity-out-of-range"
    QUANTITY_LIMIT_EXCEEDED = "quantity-limit-exceeded"
    PRICE_OUT_OF_RANGE = "price-out-of-range"


class SaleDomainError(Exception):
    """Base class for errors raised by the Sale aggregate."""


class ValidationError(SaleDomainError, ValueError):
    """Input violates a field constraint (empty, over-length, out of range)."""

    def __init__(self, field: str, kind: ValidationErrorKind, message: Optional[str] = None) -> None:
        self.field = field
        self.kind = kind
        self.message = message or f"{field}: {kind.value}"
        super().__init__(self.message)


class NotFoundError(SaleDomainError, LookupError):
    """A referenced item does not exist in the aggregate's item collection."""

    def __init__(self, kind: str = "item-not-found", message: str = "Item not found") -> None:
        self.kind = kind
        self.message = message
        super().__init__(message)


__all__ = ["NotFoundError", "SaleDomainError", "ValidationError", "ValidationErrorKind"]
