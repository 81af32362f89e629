"""
Currency formatting for prices and discount descriptions.

The formatter is passed into the engine instead of being hardcoded, so the
owner rule list and the renter breakdown render amounts identically.
"""
from decimal import Decimal
from typing import Any, Callable, Optional

from .models import to_decimal


class CurrencyFormatter:
    """Formats amounts with a currency symbol and thousands separators."""

    def __init__(self, symbol: str = "₱", code: str = "PHP"):
        self.symbol = symbol
        self.code = code

    def format_currency(self, amount: Any) -> str:
        """Full display form with two decimals, e.g. ₱1,500.00."""
        value = to_decimal(amount, "amount")
        return f"{self.symbol}{value:,.2f}"

    def format_compact(self, amount: Any) -> str:
        """Short form without .00 on whole amounts, e.g. ₱500 or ₱499.50."""
        value = to_decimal(amount, "amount")
        if value == value.to_integral_value():
            return f"{self.symbol}{value:,.0f}"
        return f"{self.symbol}{value:,.2f}"

    def __call__(self, amount: Any) -> str:
        return self.format_compact(amount)


def format_number(value: Decimal) -> str:
    """Plain number without trailing zeros: 10 → '10', 12.50 → '12.5'."""
    return format(value.normalize(), 'f')


def default_formatter(formatter: Optional[Callable[[Any], str]] = None) -> Callable[[Any], str]:
    """Return the given formatter, or one built from the current settings."""
    if formatter is not None:
        return formatter
    from ..config.settings import get_settings
    settings = get_settings()
    return CurrencyFormatter(symbol=settings.currency_symbol, code=settings.currency_code)
