"""Engine subpackage - tiered discount pricing."""
from .pricing_engine import PricingEngine, calculate_rental_price, format_discount_description, get_engine
from .models import DiscountRule, DiscountType, PriceBreakdown
from .exceptions import InvalidInputError, RentalPricingError
from .formatting import CurrencyFormatter
from .duration import rental_days

__all__ = [
    'PricingEngine', 'calculate_rental_price', 'format_discount_description', 'get_engine',
    'DiscountRule', 'DiscountType', 'PriceBreakdown',
    'InvalidInputError', 'RentalPricingError',
    'CurrencyFormatter', 'rental_days',
]
