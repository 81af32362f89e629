"""
Pricing engine tests.

These capture the breakdowns shown in the owner preview and renter checkout
and should fail if pricing logic changes unexpectedly.
"""
import sys
import os
from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from rental_pricing.config.settings import Settings
from rental_pricing.engine import (
    CurrencyFormatter,
    DiscountRule,
    InvalidInputError,
    PricingEngine,
)


@pytest.fixture(scope="module")
def engine():
    """Engine with default settings, independent of the environment."""
    return PricingEngine(Settings(project_root=Path('.')), formatter=CurrencyFormatter("₱"))


def pct(min_days, value, rule_id=None, active=True):
    return DiscountRule(
        id=rule_id or f"pct-{min_days}-{value}",
        min_days=min_days,
        discount_type="percentage",
        discount_value=value,
        is_active=active,
    )


def fixed(min_days, value, rule_id=None, active=True):
    return DiscountRule(
        id=rule_id or f"fixed-{min_days}-{value}",
        min_days=min_days,
        discount_type="fixed",
        discount_value=value,
        is_active=active,
    )


def test_percentage_scenario(engine):
    """10 days at 1,500/day with a 7+ day 10% tier."""
    result = engine.compute(1500, 10, [pct(7, 10)])

    assert result.base_price == Decimal('15000.00')
    assert result.discount == Decimal('1500.00')
    assert result.final_price == Decimal('13500.00')
    assert result.applied_rule.min_days == 7
    assert result.discount_percentage == Decimal('10.00')


def test_fixed_discount_capped_at_base_price(engine):
    result = engine.compute(100, 1, [fixed(1, 500)])

    assert result.base_price == Decimal('100.00')
    assert result.discount == Decimal('100.00')
    assert result.final_price == Decimal('0.00')
    assert result.discount_percentage == Decimal('100.00')


def test_below_threshold_gets_no_discount(engine):
    result = engine.compute(1000, 3, [pct(7, 20)])

    assert result.applied_rule is None
    assert result.discount == 0
    assert result.final_price == Decimal('3000.00')


def test_no_rules_identity(engine):
    for days in (1, 5, 30):
        result = engine.compute(850, days, [])
        assert result.applied_rule is None
        assert result.discount == 0
        assert result.final_price == result.base_price == Decimal(850 * days)


def test_none_rules_same_as_empty(engine):
    assert engine.compute(850, 4, None) == engine.compute(850, 4, [])


def test_best_tier_selected(engine):
    """Deepest qualifying tier wins, whatever the input order."""
    rules = [pct(7, 15), pct(3, 5)]

    result = engine.compute(1000, 10, rules)
    assert result.applied_rule.min_days == 7
    assert result.discount == Decimal('1500.00')

    reversed_result = engine.compute(1000, 10, list(reversed(rules)))
    assert reversed_result == result


def test_deeper_tier_wins_even_with_smaller_discount(engine):
    """Selection is by tier depth, not by which tier saves more."""
    rules = [pct(3, 30), pct(7, 10)]
    result = engine.compute(1000, 8, rules)
    assert result.applied_rule.min_days == 7


def test_min_days_is_inclusive(engine):
    result = engine.compute(1000, 7, [pct(7, 10)])
    assert result.applied_rule is not None
    assert result.final_price == Decimal('6300.00')


def test_inactive_rule_never_selected(engine):
    rules = [pct(3, 5), pct(7, 50, active=False)]
    result = engine.compute(1000, 10, rules)

    assert result.applied_rule.min_days == 3
    assert result.final_price == Decimal('9500.00')


def test_only_inactive_rules_means_no_discount(engine):
    result = engine.compute(1000, 10, [pct(3, 5, active=False)])
    assert result.applied_rule is None
    assert result.final_price == Decimal('10000.00')


def test_non_negative_for_any_valid_input(engine):
    rules = [fixed(1, 250), fixed(3, 10000), pct(5, 100)]
    for rate in (1, 99.99, 1500):
        for days in range(1, 12):
            result = engine.compute(rate, days, rules)
            assert result.final_price >= 0, f"negative price for {rate} × {days}"
            assert result.discount <= result.base_price


def test_per_day_price_non_increasing_across_tiers(engine):
    rules = [pct(3, 5), pct(7, 10), pct(14, 15)]
    previous_total = Decimal('0')
    previous_per_day = None

    for days in range(1, 31):
        result = engine.compute(1000, days, rules)
        per_day = result.final_price / days

        assert result.final_price >= previous_total, f"total dropped at {days} days"
        if previous_per_day is not None:
            assert per_day <= previous_per_day, f"daily price rose at {days} days"

        previous_total = result.final_price
        previous_per_day = per_day


def test_idempotent(engine):
    rules = [pct(3, 5), fixed(7, 700), pct(14, 12.5)]
    first = engine.compute(1234.56, 15, rules)
    second = engine.compute(1234.56, 15, rules)

    assert first == second
    assert first.to_dict() == second.to_dict()


def test_rounding_is_half_up_to_cents(engine):
    """5% of 10.10 is 0.505, which rounds up to 0.51."""
    result = engine.compute(Decimal('10.10'), 1, [pct(1, 5)])

    assert result.discount == Decimal('0.51')
    assert result.final_price == Decimal('9.59')


def test_float_rates_do_not_leak_binary_error(engine):
    result = engine.compute(0.1, 3, [])
    assert result.base_price == Decimal('0.30')


def test_fractional_rate_with_percentage(engine):
    result = engine.compute(33.33, 3, [pct(3, 15)])

    assert result.base_price == Decimal('99.99')
    assert result.discount == Decimal('15.00')
    assert result.final_price == Decimal('84.99')


def test_same_tier_duplicates_pick_biggest_discount(engine):
    """At 1,000/day for 7 days, 10% (700) beats a flat 500."""
    rules = [fixed(7, 500, "flat"), pct(7, 10, "pct")]

    assert engine.compute(1000, 7, rules).applied_rule.id == "pct"
    assert engine.compute(1000, 7, list(reversed(rules))).applied_rule.id == "pct"

    # At 100/day the flat 500 is worth more than 10% of 700
    assert engine.compute(100, 7, rules).applied_rule.id == "flat"


def test_same_tier_identical_discounts_pick_smallest_id(engine):
    rules = [pct(7, 10, "b"), pct(7, 10, "a")]
    assert engine.compute(1000, 7, rules).applied_rule.id == "a"
    assert engine.compute(1000, 7, list(reversed(rules))).applied_rule.id == "a"


def test_select_applicable_rule_directly(engine):
    rules = [pct(3, 5), pct(7, 15)]

    assert engine.select_applicable_rule(rules, 10).min_days == 7
    assert engine.select_applicable_rule(rules, 5).min_days == 3
    assert engine.select_applicable_rule(rules, 2) is None
    assert engine.select_applicable_rule([], 10) is None


def test_select_uses_daily_rate_for_ties(engine):
    rules = [fixed(7, 500, "flat"), pct(7, 10, "pct")]
    assert engine.select_applicable_rule(rules, 7, daily_rate=1000).id == "pct"
    assert engine.select_applicable_rule(rules, 7, daily_rate=100).id == "flat"


def test_compute_discount_amount(engine):
    assert engine.compute_discount_amount(pct(1, 10), 15000) == Decimal('1500.00')
    assert engine.compute_discount_amount(fixed(1, 500), 15000) == Decimal('500.00')
    assert engine.compute_discount_amount(fixed(1, 500), 300) == Decimal('300.00')


def test_rule_rows_accepted_as_input(engine):
    rows = [
        {"id": "r7", "min_days": "7", "discount_type": "percentage", "discount_value": "10", "is_active": "true"},
        {"id": "r3", "min_days": 3, "discount_type": "percentage", "discount_value": 5, "is_active": True},
    ]
    result = engine.compute(1500, 10, rows)
    assert result.applied_rule.id == "r7"
    assert result.final_price == Decimal('13500.00')


@pytest.mark.parametrize("rate, days", [
    (0, 3),
    (-100, 3),
    (float('nan'), 3),
    (float('inf'), 3),
    ("abc", 3),
    (None, 3),
    (100, 0),
    (100, -2),
    (100, 2.5),
    (100, "3"),
    (100, True),
])
def test_invalid_inputs_raise(engine, rate, days):
    with pytest.raises(InvalidInputError):
        engine.compute(rate, days, [])


@pytest.mark.parametrize("rule", [
    pct(3, 0),
    pct(3, -5),
    pct(3, 150),
    fixed(3, 0),
    fixed(3, -100),
])
def test_out_of_range_rules_raise(engine, rule):
    with pytest.raises(InvalidInputError):
        engine.compute(1000, 10, [rule])


def test_out_of_range_rule_raises_even_when_not_qualifying(engine):
    with pytest.raises(InvalidInputError):
        engine.compute(1000, 2, [pct(7, 150)])


def test_out_of_range_inactive_rule_is_ignored(engine):
    result = engine.compute(1000, 10, [pct(7, 150, active=False)])
    assert result.applied_rule is None


def test_malformed_rule_entries_raise(engine):
    with pytest.raises(InvalidInputError):
        engine.compute(1000, 10, ["7 days 10%"])

    with pytest.raises(InvalidInputError):
        engine.compute(1000, 10, [{"id": "x", "discount_type": "percentage", "discount_value": 10}])


def test_percentage_of_exactly_100_is_allowed(engine):
    result = engine.compute(500, 2, [pct(2, 100)])
    assert result.final_price == Decimal('0.00')


def test_breakdown_to_dict(engine):
    result = engine.compute(1500, 10, [pct(7, 10, "r7")]).to_dict()

    assert result["basePrice"] == 15000.0
    assert result["discount"] == 1500.0
    assert result["discountPercentage"] == 10.0
    assert result["finalPrice"] == 13500.0
    assert result["appliedRule"]["id"] == "r7"
    assert result["appliedRule"]["discount_type"] == "percentage"


def test_breakdown_trace(engine):
    result = engine.compute(1500, 10, [pct(7, 10)])
    text = result.get_trace_text()

    assert "Base Price" in text
    assert "Book 7+ days and save 10%" in text
    assert "13500.00" in text

    plain = engine.compute(1500, 2, [pct(7, 10)])
    assert "No discount tier applies" in plain.get_trace_text()


def test_price_schedule(engine):
    df = engine.price_schedule(1000, [pct(3, 5), pct(7, 10)], max_days=10)

    assert list(df.index) == list(range(1, 11))
    assert df.loc[2, 'Final Price'] == 2000.0
    assert df.loc[3, 'Final Price'] == 2850.0
    assert df.loc[7, 'Per Day'] == 900.0
    assert pd.isna(df.loc[1, 'Rule'])
    assert df.loc[3, 'Rule'] == 'pct-3-5'


def test_price_schedule_rejects_bad_rate(engine):
    with pytest.raises(InvalidInputError):
        engine.price_schedule(0, [], max_days=5)


def test_rate_too_large_to_price_is_rejected(engine):
    with pytest.raises(InvalidInputError) as exc_info:
        engine.compute(Decimal('1e27'), 10, [])
    assert exc_info.value.field == "daily_rate"


def test_select_agrees_with_compute_across_discount_types(engine):
    """At 10/day, a flat 20 (capped to 10) beats 50% (5)."""
    rules = [pct(1, 50, "p"), fixed(1, 20, "f")]

    assert engine.compute(10, 1, rules).applied_rule.id == "f"
    assert engine.select_applicable_rule(rules, 1, daily_rate=10).id == "f"


def test_select_tie_without_daily_rate_raises(engine):
    rules = [pct(1, 50, "p"), fixed(1, 20, "f")]
    with pytest.raises(InvalidInputError) as exc_info:
        engine.select_applicable_rule(rules, 1)
    assert exc_info.value.field == "daily_rate"


def test_price_schedule_rejects_zero_days(engine):
    with pytest.raises(InvalidInputError):
        engine.price_schedule(100, [], max_days=0)


def test_price_schedule_defaults_to_configured_days(engine):
    df = engine.price_schedule(100, [])
    assert len(df) == engine.settings.default_schedule_days
