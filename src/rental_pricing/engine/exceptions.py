"""
Custom exception classes for the rental pricing engine.

Callers (owner preview, renter checkout, the HTTP API) catch these to show
a friendly message instead of displaying a wrong price.
"""
from typing import Optional


class RentalPricingError(Exception):
    """Base class for all pricing errors."""

    def __init__(self, message: str = "Error: pricing failed") -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:  # pragma: no cover
        return self.message


class InvalidInputError(RentalPricingError, ValueError):
    """Raised on a non-positive rate, bad day count or out-of-range discount rule."""

    def __init__(self, message: str = "Error: invalid pricing input", field: Optional[str] = None) -> None:
        self.field = field
        super().__init__(message)
