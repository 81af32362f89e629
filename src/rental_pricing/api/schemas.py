"""
Pydantic request/response models for the pricing API.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from ..engine.models import DiscountRule, DiscountType


class RuleIn(BaseModel):
    """A discount rule as sent by the booking pages."""
    id: Optional[str] = None
    car_id: Optional[str] = None
    min_days: int
    discount_type: DiscountType
    discount_value: Decimal
    is_active: bool = True

    def to_rule(self) -> DiscountRule:
        return DiscountRule(
            id=self.id or "",
            car_id=self.car_id,
            min_days=self.min_days,
            discount_type=self.discount_type,
            discount_value=self.discount_value,
            is_active=self.is_active,
        )


class RuleUpdate(BaseModel):
    """Request model for updating a rule."""
    min_days: Optional[int] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = None
    is_active: Optional[bool] = None


class RuleResponse(BaseModel):
    """Response model for a rule."""
    id: str
    car_id: Optional[str]
    rule_type: str
    min_days: int
    discount_type: str
    discount_value: float
    is_active: bool
    description: str


class QuoteRequest(BaseModel):
    """Price a rental from a day count or a pickup/return pair."""
    daily_rate: Decimal
    days: Optional[int] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    rules: list[RuleIn] = Field(default_factory=list)


class ValidationResponse(BaseModel):
    """Response model for validation."""
    valid: bool
    errors: list[str]
    warnings: list[str]
