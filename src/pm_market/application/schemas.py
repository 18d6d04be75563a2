"""Pydantic schemas for pm_market API requests/responses.

All amounts are fixed-point integers (SCALE = 1e18) with a *_display
companion rendered for humans. Cursor is an opaque Base64 of {"id": N}.
"""

import base64
import json
from datetime import datetime
from typing import Annotated

from fastapi import Path
from pydantic import BaseModel, Field

from src.pm_common.enums import Side
from src.pm_common.fixed_point import MAX_ID, MAX_NUMERIC, to_display
from src.pm_market.domain.models import ClaimResult, Market, MarketEvent, TradeResult
from src.pm_pricing.domain import lmsr

# ---------------------------------------------------------------------------
# Cursor utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    return base64.b64encode(json.dumps({"id": last_id}).encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        last_id = int(json.loads(base64.b64decode(cursor.encode()).decode())["id"])
    except Exception:
        return None
    return last_id if 0 < last_id <= MAX_ID else None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

# market_id path parameter; ids are BIGINT
MarketIdPath = Annotated[int, Path(ge=1, le=MAX_ID)]


class CreateMarketRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=500)
    resolution_time: datetime
    resolver: str | None = Field(
        None, max_length=128, description="Account allowed to resolve. Default: creator."
    )


class TradeRequest(BaseModel):
    side: Side
    amount: int = Field(..., gt=0, le=MAX_NUMERIC, description="Shares to buy, fixed-point")
    max_cost: int | None = Field(
        None,
        ge=0,
        le=MAX_NUMERIC,
        description="Reject if the cost exceeds this. Omit for no cap.",
    )


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class MarketDetail(BaseModel):
    id: int
    question: str
    status: str
    resolution_time: str
    creator: str
    resolver: str
    liquidity_param: int
    yes_exposure: int
    no_exposure: int
    yes_price: int
    no_price: int
    collateral: int
    collateral_display: str
    paid_out: int
    resolved: bool
    outcome: str | None
    resolved_at: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, m: Market, now: datetime) -> "MarketDetail":
        return cls(
            id=m.id,
            question=m.question,
            status=m.status_at(now).value,
            resolution_time=m.resolution_time.isoformat(),
            creator=m.creator,
            resolver=m.resolver,
            liquidity_param=m.liquidity_param,
            yes_exposure=m.yes_exposure,
            no_exposure=m.no_exposure,
            yes_price=lmsr.marginal_price(m.yes_exposure, m.liquidity_param),
            no_price=lmsr.marginal_price(m.no_exposure, m.liquidity_param),
            collateral=m.collateral,
            collateral_display=to_display(m.collateral),
            paid_out=m.paid_out,
            resolved=m.resolved,
            outcome=m.outcome.value if m.outcome else None,
            resolved_at=m.resolved_at.isoformat() if m.resolved_at else None,
            created_at=m.created_at.isoformat() if m.created_at else None,
        )


class MarketListResponse(BaseModel):
    items: list[MarketDetail]
    next_cursor: str | None
    has_more: bool


class CreateMarketResponse(BaseModel):
    market_id: int


class QuoteResponse(BaseModel):
    market_id: int
    side: str
    amount: int
    cost: int
    cost_display: str
    price_before: int      # marginal price, fixed-point fraction of one unit
    price_after: int


class TradeResponse(BaseModel):
    market_id: int
    account_id: str
    side: str
    amount: int
    cost: int
    cost_display: str
    exposure_after: int
    yes_amount: int
    no_amount: int

    @classmethod
    def from_result(cls, r: TradeResult) -> "TradeResponse":
        return cls(
            market_id=r.market_id,
            account_id=r.account_id,
            side=r.side.value,
            amount=r.amount,
            cost=r.cost,
            cost_display=to_display(r.cost),
            exposure_after=r.exposure_after,
            yes_amount=r.position.yes_amount,
            no_amount=r.position.no_amount,
        )


class ClaimResponse(BaseModel):
    market_id: int
    account_id: str
    outcome: str
    payout: int
    payout_display: str

    @classmethod
    def from_result(cls, r: ClaimResult) -> "ClaimResponse":
        return cls(
            market_id=r.market_id,
            account_id=r.account_id,
            outcome=r.outcome.value,
            payout=r.payout,
            payout_display=to_display(r.payout),
        )


class MarketEventItem(BaseModel):
    id: int
    event_type: str
    payload: dict[str, object]
    created_at: str | None

    @classmethod
    def from_domain(cls, e: MarketEvent) -> "MarketEventItem":
        return cls(
            id=e.id,
            event_type=e.event_type,
            payload=e.payload,
            created_at=e.created_at.isoformat() if e.created_at else None,
        )


class MarketEventListResponse(BaseModel):
    items: list[MarketEventItem]
    next_cursor: str | None
    has_more: bool
