"""
Rule Matcher - Selects and applies duration discount tiers.

Used by the pricing engine to pick the deepest tier a rental qualifies for
and to turn that tier into a currency amount.
"""
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Mapping, Optional

from .exceptions import InvalidInputError
from .models import DiscountRule, DiscountType


logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
HUNDRED = Decimal('100')


def quantize_money(amount: Decimal, rounding: str = ROUND_HALF_UP) -> Decimal:
    """Round to the smallest currency subunit (2 decimal places)."""
    try:
        return amount.quantize(CENT, rounding=rounding)
    except InvalidOperation:
        raise InvalidInputError(f"Amount {amount} is too large to price", field="amount")


def check_rule_range(rule: DiscountRule):
    """Fail fast on a discount value no booking should ever see."""
    if rule.discount_value <= 0:
        raise InvalidInputError(
            f"Rule {rule.id or '?'}: discount value must be greater than 0",
            field="discount_value",
        )
    if rule.discount_type is DiscountType.PERCENTAGE and rule.discount_value > HUNDRED:
        raise InvalidInputError(
            f"Rule {rule.id or '?'}: percentage discount cannot exceed 100%",
            field="discount_value",
        )


def coerce_rules(rules: Optional[Iterable[Any]]) -> list[DiscountRule]:
    """Accept DiscountRule objects or raw store rows; anything else is rejected."""
    if rules is None:
        return []
    coerced = []
    for rule in rules:
        if isinstance(rule, DiscountRule):
            coerced.append(rule)
        elif isinstance(rule, Mapping):
            coerced.append(DiscountRule.from_row(rule))
        else:
            raise InvalidInputError(f"Expected a discount rule, got {type(rule).__name__}", field="rules")
    return coerced


class RuleMatcher:
    """
    Matches discount tiers against a rental duration.

    Selection order:
    1. Drop inactive rules and rules whose min_days exceeds the rental
    2. Keep the largest min_days (deepest tier reached)
    3. Among duplicates at that tier, take the largest discount amount
    4. Still tied: smallest rule id, so input order never matters
    """

    def __init__(self, rounding: str = ROUND_HALF_UP):
        self.rounding = rounding

    def compute_discount_amount(self, rule: DiscountRule, base_price: Decimal) -> Decimal:
        """
        Discount a rule gives on a base price, rounded to cents.

        Fixed discounts are capped at the base price so the total never
        goes negative.
        """
        check_rule_range(rule)
        if rule.discount_type is DiscountType.PERCENTAGE:
            discount = base_price * (rule.discount_value / HUNDRED)
        else:
            discount = min(rule.discount_value, base_price)
        return quantize_money(discount, self.rounding)

    def find_qualifying_rules(self, rules: Iterable[Any], days: int) -> list[DiscountRule]:
        """Return active rules with min_days <= days, sorted deepest tier first."""
        qualifying = []
        for rule in coerce_rules(rules):
            if not rule.is_active:
                continue
            check_rule_range(rule)
            if rule.min_days <= days:
                qualifying.append(rule)

        qualifying.sort(key=lambda r: r.min_days, reverse=True)
        return qualifying

    def select_applicable_rule(
        self,
        rules: Iterable[Any],
        days: int,
        base_price: Optional[Decimal] = None,
    ) -> Optional[DiscountRule]:
        """
        Pick the rule to apply for a rental of `days` days.

        `base_price` is only used to break ties between rules sharing the
        same min_days; resolving such a tie without it raises
        InvalidInputError, since percentage and fixed values only compare
        as amounts.
        """
        qualifying = self.find_qualifying_rules(rules, days)
        if not qualifying:
            logger.debug("No active rule qualifies for %d day(s)", days)
            return None

        deepest = qualifying[0].min_days
        tier = [r for r in qualifying if r.min_days == deepest]
        if len(tier) == 1:
            return tier[0]

        if base_price is None:
            raise InvalidInputError(
                f"{len(tier)} active rules share the {deepest}-day tier; a daily rate is needed to pick one",
                field="daily_rate",
            )
        best = min(tier, key=lambda r: (-self.compute_discount_amount(r, base_price), r.id))
        logger.debug(
            "%d active rules share the %d-day tier; picked %s",
            len(tier), deepest, best.id,
        )
        return best
