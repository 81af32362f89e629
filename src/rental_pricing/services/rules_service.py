"""
Rules Service - manage a listing's discount tiers.

Mirrors the owner's pricing rules manager: validate, add, toggle, delete and
list rules per car. Rules live in memory; callers that persist them do so on
their own side and can preload a CSV export with `load_csv`.
"""
import logging
import uuid
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from ..engine.exceptions import InvalidInputError
from ..engine.models import DiscountRule, DiscountType, to_decimal
from ..engine.rule_matcher import HUNDRED


logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of rule validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class RulesService:
    """Service for managing discount rules per listing."""

    CSV_COLUMNS = [
        'id', 'car_id', 'rule_type', 'min_days', 'discount_type',
        'discount_value', 'is_active',
    ]

    def __init__(self, rules: Optional[list[DiscountRule]] = None):
        self._rules: dict[str, DiscountRule] = {}
        for rule in rules or []:
            if not rule.id:
                rule = replace(rule, id=self._generate_rule_id())
            self._rules[rule.id] = rule

    def load_csv(self, path: Path) -> int:
        """
        Load rules from a CSV export of the rule store.

        Rows that fail validation are skipped with a warning. Returns the
        number of rules loaded.
        """
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
        df.columns = [c.strip() for c in df.columns]

        loaded = 0
        for row in df.to_dict(orient='records'):
            try:
                rule = DiscountRule.from_row(row)
            except InvalidInputError as e:
                logger.warning("Skipping rule row %s: %s", row.get('id', '?'), e)
                continue
            if not rule.id:
                rule = replace(rule, id=self._generate_rule_id())
            self._rules[rule.id] = rule
            loaded += 1

        logger.info("Loaded %d discount rule(s) from %s", loaded, path)
        return loaded

    def list_rules(self, car_id: Optional[str] = None, include_inactive: bool = True) -> list[DiscountRule]:
        """List rules, optionally for one car, ordered by min_days."""
        rules = [
            r for r in self._rules.values()
            if (car_id is None or r.car_id == str(car_id))
            and (include_inactive or r.is_active)
        ]
        rules.sort(key=lambda r: (r.min_days, r.id))
        return rules

    def get_rule(self, rule_id: str) -> Optional[DiscountRule]:
        """Get a single rule by ID."""
        return self._rules.get(str(rule_id))

    def create_rule(self, rule: DiscountRule, daily_rate: Any = None) -> DiscountRule:
        """Create a new rule after validating it against the listing's rules."""
        if not rule.id:
            rule = replace(rule, id=self._generate_rule_id())

        if rule.id in self._rules:
            raise ValueError(f"Rule with ID '{rule.id}' already exists")

        validation = self.validate_rule(rule, daily_rate=daily_rate)
        if not validation.valid:
            raise ValueError("; ".join(validation.errors))

        self._rules[rule.id] = rule
        logger.info("Created rule %s for car %s (%s+ days)", rule.id, rule.car_id, rule.min_days)
        return rule

    def update_rule(self, rule_id: str, updates: dict) -> DiscountRule:
        """Update an existing rule; the result is re-validated."""
        existing = self.get_rule(rule_id)
        if existing is None:
            raise LookupError(f"Rule with ID '{rule_id}' not found")

        row = existing.to_row()
        row['discount_value'] = existing.discount_value
        for key, value in updates.items():
            if key in row and key != 'id':
                row[key] = value

        try:
            updated = DiscountRule.from_row(row)
        except InvalidInputError as e:
            raise ValueError(str(e))

        validation = self.validate_rule(updated)
        if not validation.valid:
            raise ValueError("; ".join(validation.errors))

        self._rules[existing.id] = updated
        logger.info("Updated rule %s", existing.id)
        return updated

    def toggle_rule(self, rule_id: str) -> DiscountRule:
        """Flip a rule between active and inactive."""
        existing = self.get_rule(rule_id)
        if existing is None:
            raise LookupError(f"Rule with ID '{rule_id}' not found")
        return self.update_rule(rule_id, {'is_active': not existing.is_active})

    def delete_rule(self, rule_id: str) -> bool:
        """Delete a rule."""
        if self._rules.pop(str(rule_id), None) is None:
            raise LookupError(f"Rule with ID '{rule_id}' not found")
        logger.info("Deleted rule %s", rule_id)
        return True

    def validate_rule(self, rule: DiscountRule, daily_rate: Any = None) -> ValidationResult:
        """Validate a rule before saving."""
        result = ValidationResult(valid=True)

        if rule.min_days < 1:
            result.errors.append("Minimum days must be at least 1")
            result.valid = False

        if rule.discount_value <= 0:
            result.errors.append("Discount value must be greater than 0")
            result.valid = False

        if rule.discount_type is DiscountType.PERCENTAGE and rule.discount_value > HUNDRED:
            result.errors.append("Percentage discount cannot exceed 100%")
            result.valid = False

        siblings = [
            r for r in self._rules.values()
            if r.car_id == rule.car_id and r.id != rule.id and r.is_active
        ]

        # Only one active tier per min_days on a listing
        if rule.is_active and any(r.min_days == rule.min_days for r in siblings):
            result.errors.append(f"A rule for {rule.min_days}+ days already exists")
            result.valid = False

        if result.valid:
            result.warnings.extend(self._check_tiers(rule, siblings, daily_rate))

        return result

    def _check_tiers(self, rule: DiscountRule, siblings: list[DiscountRule], daily_rate: Any) -> list[str]:
        """Warn about tiers that would surprise renters."""
        warnings = []

        if daily_rate is not None and rule.discount_type is DiscountType.FIXED:
            rate = to_decimal(daily_rate, "daily_rate")
            if rule.discount_value >= rate * rule.min_days:
                warnings.append(
                    f"Fixed discount covers the whole {rule.min_days}-day rental; "
                    "renters at this tier pay nothing"
                )

        # Percentage tiers are comparable regardless of the rate
        if rule.is_percentage:
            for other in siblings:
                if not other.is_percentage:
                    continue
                if other.min_days < rule.min_days and other.discount_value > rule.discount_value:
                    warnings.append(
                        f"Shorter {other.min_days}+ day tier gives a bigger discount "
                        f"({other.discount_value}%) than this one"
                    )
                elif other.min_days > rule.min_days and other.discount_value < rule.discount_value:
                    warnings.append(
                        f"Longer {other.min_days}+ day tier gives a smaller discount "
                        f"({other.discount_value}%) than this one"
                    )

        return warnings

    def _generate_rule_id(self) -> str:
        """Generate a unique rule ID."""
        candidate = str(uuid.uuid4())
        while candidate in self._rules:
            candidate = str(uuid.uuid4())
        return candidate

    def clear(self):
        """Drop every rule."""
        self._rules.clear()

    def to_dataframe(self, car_id: Optional[str] = None) -> pd.DataFrame:
        """Rules as a DataFrame with the rule-store columns."""
        rows = [r.to_row() for r in self.list_rules(car_id)]
        return pd.DataFrame(rows, columns=self.CSV_COLUMNS)

    def get_stats(self) -> dict:
        """Get statistics about rules."""
        rules = self.list_rules()
        active = [r for r in rules if r.is_active]
        by_car = {}
        for r in rules:
            car = r.car_id or 'Unassigned'
            by_car[car] = by_car.get(car, 0) + 1

        return {
            'total': len(rules),
            'active': len(active),
            'inactive': len(rules) - len(active),
            'percentage': sum(1 for r in rules if r.is_percentage),
            'fixed': sum(1 for r in rules if not r.is_percentage),
            'by_car': by_car,
        }
