"""
Rules API - FastAPI router for discount rule management.
"""
from typing import Optional

from fastapi import APIRouter, HTTPException

from ..engine import DiscountRule, InvalidInputError
from .schemas import RuleIn, RuleUpdate, RuleResponse, ValidationResponse
from .state import engine, rules_service

router = APIRouter(prefix="/api/rules", tags=["rules"])


def describe(rule: DiscountRule) -> str:
    return engine.format_discount_description(rule)


def to_response(rule: DiscountRule) -> RuleResponse:
    return RuleResponse(**rule.to_row(), description=describe(rule))


# Endpoints

@router.get("", response_model=list[RuleResponse])
async def list_rules(car_id: Optional[str] = None, include_inactive: bool = True):
    """List discount rules, optionally for one car."""
    rules = rules_service.list_rules(car_id, include_inactive=include_inactive)
    return [to_response(rule) for rule in rules]


@router.get("/stats")
async def get_stats():
    """Get rule statistics."""
    return rules_service.get_stats()


@router.get("/{rule_id}", response_model=RuleResponse)
async def get_rule(rule_id: str):
    """Get a single rule by ID."""
    rule = rules_service.get_rule(rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail=f"Rule '{rule_id}' not found")
    return to_response(rule)


@router.post("", response_model=RuleResponse)
async def create_rule(rule_data: RuleIn, daily_rate: Optional[float] = None):
    """Create a new discount rule."""
    rule = rule_data.to_rule()
    try:
        created = rules_service.create_rule(rule, daily_rate=daily_rate)
        return to_response(created)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{rule_id}", response_model=RuleResponse)
async def update_rule(rule_id: str, updates: RuleUpdate):
    """Update an existing rule."""
    update_dict = updates.model_dump(exclude_unset=True)
    try:
        updated = rules_service.update_rule(rule_id, update_dict)
        return to_response(updated)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{rule_id}/toggle", response_model=RuleResponse)
async def toggle_rule(rule_id: str):
    """Activate or deactivate a rule."""
    try:
        return to_response(rules_service.toggle_rule(rule_id))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{rule_id}")
async def delete_rule(rule_id: str):
    """Delete a rule."""
    try:
        rules_service.delete_rule(rule_id)
        return {"success": True, "message": f"Rule '{rule_id}' deleted"}
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/validate", response_model=ValidationResponse)
async def validate_rule(rule_data: RuleIn, daily_rate: Optional[float] = None):
    """Validate a rule without saving."""
    try:
        rule = rule_data.to_rule()
    except InvalidInputError as e:
        return ValidationResponse(valid=False, errors=[e.message], warnings=[])
    result = rules_service.validate_rule(rule, daily_rate=daily_rate)
    return ValidationResponse(
        valid=result.valid,
        errors=result.errors,
        warnings=result.warnings,
    )
