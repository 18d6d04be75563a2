"""Pydantic schemas and cursor utilities for pm_account API."""

import base64
import json

from pydantic import BaseModel, Field

from src.pm_account.domain.models import LedgerEntry
from src.pm_common.fixed_point import MAX_ID, MAX_NUMERIC, to_display
from src.pm_position.domain.models import Position

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        last_id = int(payload["id"])
    except Exception:
        return None
    return last_id if 0 < last_id <= MAX_ID else None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class DepositRequest(BaseModel):
    amount: int = Field(
        ..., gt=0, le=MAX_NUMERIC, description="Collateral to deposit, fixed-point"
    )


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    account_id: str
    balance: int
    balance_display: str

    @classmethod
    def from_amount(cls, account_id: str, balance: int) -> "BalanceResponse":
        return cls(account_id=account_id, balance=balance, balance_display=to_display(balance))


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    amount: int
    amount_display: str
    balance_after: int
    reference_type: str | None
    reference_id: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, e: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=e.id,
            entry_type=e.entry_type,
            amount=e.amount,
            amount_display=to_display(e.amount),
            balance_after=e.balance_after,
            reference_type=e.reference_type,
            reference_id=e.reference_id,
            created_at=e.created_at.isoformat() if e.created_at else None,
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool


class PositionResponse(BaseModel):
    market_id: int
    yes_amount: int
    no_amount: int
    yes_cost: int
    no_cost: int
    claimed: bool
    payout: int

    @classmethod
    def from_domain(cls, p: Position) -> "PositionResponse":
        return cls(
            market_id=p.market_id,
            yes_amount=p.yes_amount,
            no_amount=p.no_amount,
            yes_cost=p.yes_cost,
            no_cost=p.no_cost,
            claimed=p.claimed,
            payout=p.payout,
        )


class PositionListResponse(BaseModel):
    items: list[PositionResponse]
    total: int
