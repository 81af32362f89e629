import logging
from typing import Optional

import pandas as pd
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..engine import InvalidInputError, rental_days
from .rules_api import router as rules_router, describe
from .schemas import QuoteRequest
from .state import engine, rules_service


logger = logging.getLogger(__name__)

app = FastAPI(
    title="Rental Pricing API",
    description="Discount tier pricing for owner previews and renter checkout",
    version="1.0.0"
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include rules management API
app.include_router(rules_router)


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=400, content={"detail": exc.message, "field": exc.field})


def _json_value(value):
    """numpy scalars and NaN to plain JSON values."""
    if pd.isna(value):
        return None
    return value.item() if hasattr(value, "item") else value


@app.get("/")
async def root():
    return {"status": "online", "message": "Rental Pricing API Active"}


@app.post("/quote")
async def quote(req: QuoteRequest):
    """Price a rental against the rules sent with the request."""
    if req.days is not None:
        days = req.days
    elif req.start is not None and req.end is not None:
        days = rental_days(req.start, req.end)
    else:
        raise HTTPException(status_code=400, detail="Provide days or both start and end")

    rules = [r.to_rule() for r in req.rules]
    breakdown = engine.compute(req.daily_rate, days, rules)
    result = breakdown.to_dict()
    result["description"] = describe(breakdown.applied_rule) if breakdown.applied_rule else None
    return result


@app.get("/api/listings/{car_id}/quote")
async def listing_quote(car_id: str, daily_rate: float, days: int):
    """Price a rental against the listing's stored rules."""
    rules = rules_service.list_rules(car_id)
    breakdown = engine.compute(daily_rate, days, rules)
    result = breakdown.to_dict()
    result["trace"] = breakdown.get_trace_text()
    return result


@app.get("/api/listings/{car_id}/discounts")
async def listing_discounts(car_id: str):
    """Active discount tiers for a listing, shortest first."""
    return [
        {"id": r.id, "min_days": r.min_days, "description": describe(r)}
        for r in rules_service.list_rules(car_id, include_inactive=False)
    ]


@app.get("/api/listings/{car_id}/schedule")
async def listing_schedule(car_id: str, daily_rate: float, max_days: Optional[int] = None):
    """Owner preview: what renters pay for each duration."""
    rules = rules_service.list_rules(car_id)
    df = engine.price_schedule(daily_rate, rules, max_days)
    return [
        {key: _json_value(value) for key, value in row.items()}
        for row in df.reset_index().to_dict(orient="records")
    ]


@app.get("/system/status")
async def get_status():
    stats = rules_service.get_stats()
    return {
        "engine_active": True,
        "currency": engine.settings.currency_code,
        "rounding": engine.settings.rounding,
        "rules_count": stats["total"],
        "active_rules": stats["active"],
    }
