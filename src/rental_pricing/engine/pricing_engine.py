"""
Pricing Engine - Tiered duration discounts for car rentals.

One engine serves both the owner's pricing preview and the renter's booking
form, so both surfaces show the same numbers:
- Structured PriceBreakdown output with an execution trace
- Decimal arithmetic, cents rounded once with a single rounding rule
- Typed errors instead of silently charging a wrong price
"""
import logging
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional

import pandas as pd

from ..config.settings import get_settings, Settings
from .exceptions import InvalidInputError
from .formatting import default_formatter, format_number
from .models import DiscountRule, PriceBreakdown, to_decimal
from .rule_matcher import RuleMatcher, check_rule_range, quantize_money, HUNDRED


logger = logging.getLogger(__name__)


class PricingEngine:
    """
    Stateless rental price calculator.

    Resolution order:
    1. Validate daily rate and day count
    2. Base price = daily rate × days
    3. Select the deepest active tier the rental qualifies for
    4. Discount = percentage of base or fixed amount (capped at base)
    5. Final price = base − discount
    """

    def __init__(self, settings: Optional[Settings] = None, formatter: Optional[Callable[[Any], str]] = None):
        self.settings = settings or get_settings()
        self.rule_matcher = RuleMatcher(rounding=self.settings.rounding)
        self.formatter = formatter

    def _check_inputs(self, daily_rate: Any, days: Any) -> tuple[Decimal, int]:
        rate = to_decimal(daily_rate, "daily_rate")
        if rate <= 0:
            raise InvalidInputError("Daily rate must be greater than 0", field="daily_rate")
        if isinstance(days, bool) or not isinstance(days, int):
            raise InvalidInputError(f"Rental days must be a whole number, got {days!r}", field="days")
        if days < 1:
            raise InvalidInputError("Rental must be at least 1 day", field="days")
        try:
            quantize_money(rate * days, self.settings.rounding)
        except InvalidInputError:
            raise InvalidInputError(f"Daily rate {rate} is too large to price", field="daily_rate")
        return rate, days

    def base_price(self, daily_rate: Any, days: Any) -> Decimal:
        """Undiscounted price for the rental, rounded to cents."""
        rate, days = self._check_inputs(daily_rate, days)
        return quantize_money(rate * days, self.settings.rounding)

    def select_applicable_rule(
        self,
        rules: Iterable[Any],
        days: Any,
        daily_rate: Any = None,
    ) -> Optional[DiscountRule]:
        """
        Return the rule a rental of `days` days gets, or None.

        `daily_rate` is needed when several active rules share the deepest
        qualifying tier, so the tie is broken on the actual discount amount
        exactly as `compute` does.
        """
        if daily_rate is not None:
            base = self.base_price(daily_rate, days)
        else:
            _, days = self._check_inputs(1, days)
            base = None
        return self.rule_matcher.select_applicable_rule(rules, days, base_price=base)

    def compute_discount_amount(self, rule: DiscountRule, base_price: Any) -> Decimal:
        """Discount amount a rule yields on `base_price`, in cents."""
        return self.rule_matcher.compute_discount_amount(rule, to_decimal(base_price, "base_price"))

    def compute(self, daily_rate: Any, days: Any, rules: Optional[Iterable[Any]] = None) -> PriceBreakdown:
        """
        Calculate the price breakdown for a rental.

        Args:
            daily_rate: Listing's daily rate (> 0)
            days: Rental duration in whole days (>= 1)
            rules: Discount rules for the listing (active or not)

        Returns:
            PriceBreakdown with base price, discount, final price and trace
        """
        rate, days = self._check_inputs(daily_rate, days)
        base = quantize_money(rate * days, self.settings.rounding)

        breakdown = PriceBreakdown(
            daily_rate=rate,
            days=days,
            base_price=base,
            discount=Decimal('0.00'),
            final_price=base,
        )
        breakdown.add_trace("Base Price", f"{days} day(s) × {format_number(rate)}", f"{base}")

        rule = self.rule_matcher.select_applicable_rule(rules or [], days, base_price=base)
        if rule is None:
            breakdown.add_trace("Discount", "No discount tier applies")
            return breakdown

        discount = self.rule_matcher.compute_discount_amount(rule, base)
        breakdown.applied_rule = rule
        breakdown.discount = discount
        breakdown.final_price = max(Decimal('0.00'), base - discount)
        if base > 0:
            breakdown.discount_percentage = quantize_money(discount / base * HUNDRED, self.settings.rounding)

        breakdown.add_trace("Tier Selected", f"{rule.min_days}+ day tier ({rule.id or 'unsaved'})", rule.discount_type.value)
        breakdown.add_trace("Discount", self.format_discount_description(rule), f"-{discount}")
        breakdown.add_trace("Final Price", f"{base} − {discount}", f"{breakdown.final_price}")

        logger.debug("Priced %d day(s) at %s: %s", days, rate, breakdown.final_price)
        return breakdown

    def format_discount_description(self, rule: DiscountRule, formatter: Optional[Callable[[Any], str]] = None) -> str:
        """
        Describe a rule for display, e.g. "Book 7+ days and save 10%".

        Fixed amounts are rendered by `formatter` (falling back to the
        engine's formatter, then to the configured currency).
        """
        check_rule_range(rule)
        unit = "day" if rule.min_days == 1 else "days"
        if rule.is_percentage:
            saving = f"{format_number(rule.discount_value)}%"
        else:
            saving = default_formatter(formatter or self.formatter)(rule.discount_value)
        return f"Book {rule.min_days}+ {unit} and save {saving}"

    def price_schedule(self, daily_rate: Any, rules: Optional[Iterable[Any]] = None, max_days: Optional[int] = None) -> pd.DataFrame:
        """
        Breakdown for every duration from 1 to `max_days`, one row per day count.

        Used by the owner preview to show what renters will pay per tier.
        """
        if max_days is None:
            max_days = self.settings.default_schedule_days
        if max_days < 1:
            raise InvalidInputError("Schedule needs at least 1 day", field="max_days")
        rules = list(rules or [])
        rows = []
        for days in range(1, max_days + 1):
            b = self.compute(daily_rate, days, rules)
            rows.append({
                'Days': days,
                'Base Price': float(b.base_price),
                'Discount': float(b.discount),
                'Final Price': float(b.final_price),
                'Per Day': float(quantize_money(b.final_price / days, self.settings.rounding)),
                'Rule': b.applied_rule.id if b.applied_rule else None,
            })
        return pd.DataFrame(rows).set_index('Days')


_default_engine: Optional[PricingEngine] = None


def get_engine() -> PricingEngine:
    """Get the shared default engine."""
    global _default_engine
    if _default_engine is None:
        _default_engine = PricingEngine()
    return _default_engine


def calculate_rental_price(daily_rate: Any, rental_days: Any, pricing_rules: Optional[Iterable[Any]] = None) -> PriceBreakdown:
    """Calculate a rental price with the default engine."""
    return get_engine().compute(daily_rate, rental_days, pricing_rules)


def format_discount_description(rule: DiscountRule, formatter: Optional[Callable[[Any], str]] = None) -> str:
    """Describe a rule with the default engine."""
    return get_engine().format_discount_description(rule, formatter)
