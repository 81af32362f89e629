"""
Data models for the rental pricing engine.

Uses dataclasses for structured, type-safe data representation. Rows coming
from the rule store are loosely typed, so `DiscountRule` coerces and checks
them once at the boundary and the engine only has to range-check values.
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Optional

from .exceptions import InvalidInputError


RULE_TYPE_DURATION = "duration_discount"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


def parse_bool(value: Any) -> bool:
    """Parse a boolean from a DB/CSV value."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ('true', '1', 'yes', 'on', 't')


def to_decimal(value: Any, field_name: str = "value") -> Decimal:
    """Convert a number or numeric string to a finite Decimal."""
    if isinstance(value, bool) or value is None:
        raise InvalidInputError(f"{field_name} must be a number, got {value!r}", field=field_name)
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # str() first so floats like 0.1 keep their short repr
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise InvalidInputError(f"{field_name} must be a number, got {value!r}", field=field_name)
    if not result.is_finite():
        raise InvalidInputError(f"{field_name} must be finite, got {value!r}", field=field_name)
    return result


def to_int(value: Any, field_name: str = "value") -> int:
    """Convert an integral number or digit string to int; bools are rejected."""
    if isinstance(value, bool):
        raise InvalidInputError(f"{field_name} must be a whole number, got {value!r}", field=field_name)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, Decimal) and value.is_finite() and value == value.to_integral_value():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip('-').isdigit():
        return int(value.strip())
    raise InvalidInputError(f"{field_name} must be a whole number, got {value!r}", field=field_name)


@dataclass(frozen=True)
class DiscountRule:
    """A duration discount tier on a listing."""
    id: str
    min_days: int
    discount_type: DiscountType
    discount_value: Decimal
    is_active: bool = True
    car_id: Optional[str] = None
    rule_type: str = RULE_TYPE_DURATION

    def __post_init__(self):
        min_days = to_int(self.min_days, "min_days")
        if min_days < 1:
            raise InvalidInputError("Minimum days must be at least 1", field="min_days")

        try:
            discount_type = DiscountType(str(getattr(self.discount_type, 'value', self.discount_type)).strip().lower())
        except ValueError:
            raise InvalidInputError(
                f"discount_type must be 'percentage' or 'fixed', got {self.discount_type!r}",
                field="discount_type",
            )

        if self.rule_type != RULE_TYPE_DURATION:
            raise InvalidInputError(f"Unsupported rule type {self.rule_type!r}", field="rule_type")

        # frozen: assign the coerced values through object.__setattr__
        object.__setattr__(self, 'id', str(self.id))
        object.__setattr__(self, 'min_days', min_days)
        object.__setattr__(self, 'discount_type', discount_type)
        object.__setattr__(self, 'discount_value', to_decimal(self.discount_value, "discount_value"))
        object.__setattr__(self, 'is_active', parse_bool(self.is_active))

    @property
    def is_percentage(self) -> bool:
        return self.discount_type is DiscountType.PERCENTAGE

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'DiscountRule':
        """
        Create a DiscountRule from a rule-store row.

        Accepts the snake_case column names of the `car_pricing_rules` table
        and their camelCase equivalents. Raises InvalidInputError when a
        required column is missing or malformed.
        """
        def pick(*keys, default=None):
            for key in keys:
                if key in row and row[key] is not None and row[key] != '':
                    return row[key]
            return default

        missing = [
            name for name, keys in (
                ('min_days', ('min_days', 'minDays')),
                ('discount_type', ('discount_type', 'discountType')),
                ('discount_value', ('discount_value', 'discountValue')),
            )
            if pick(*keys) is None
        ]
        if missing:
            raise InvalidInputError(f"Rule row is missing {', '.join(missing)}", field=missing[0])

        car_id = pick('car_id', 'carId')
        return cls(
            id=str(pick('id', 'rule_id', default='')),
            min_days=pick('min_days', 'minDays'),
            discount_type=pick('discount_type', 'discountType'),
            discount_value=pick('discount_value', 'discountValue'),
            is_active=pick('is_active', 'isActive', default=True),
            car_id=str(car_id) if car_id is not None else None,
            rule_type=pick('rule_type', 'ruleType', default=RULE_TYPE_DURATION),
        )

    def to_row(self) -> dict:
        """Convert to rule-store row format."""
        return {
            'id': self.id,
            'car_id': self.car_id,
            'rule_type': self.rule_type,
            'min_days': self.min_days,
            'discount_type': self.discount_type.value,
            'discount_value': float(self.discount_value),
            'is_active': self.is_active,
        }


@dataclass
class TraceStep:
    """A single step in the pricing resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class PriceBreakdown:
    """Complete result of a rental price computation."""
    daily_rate: Decimal
    days: int
    base_price: Decimal
    discount: Decimal
    final_price: Decimal
    applied_rule: Optional[DiscountRule] = None
    discount_percentage: Decimal = Decimal('0.00')
    trace: list[TraceStep] = field(default_factory=list)

    @property
    def has_discount(self) -> bool:
        return self.applied_rule is not None and self.discount > 0

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Convert to the camelCase shape the booking pages consume."""
        return {
            "dailyRate": float(self.daily_rate),
            "days": self.days,
            "basePrice": float(self.base_price),
            "discount": float(self.discount),
            "discountPercentage": float(self.discount_percentage),
            "finalPrice": float(self.final_price),
            "appliedRule": self.applied_rule.to_row() if self.applied_rule else None,
        }
