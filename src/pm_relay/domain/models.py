"""Domain models for pm_relay — pure dataclasses."""

from dataclasses import dataclass
from datetime import datetime

from src.pm_common.enums import Side


@dataclass
class RelayMessage:
    source_domain_id: int
    nonce: int
    source_address: str
    market_id: int
    account_id: str
    amount: int
    side: Side
    cost: int | None = None       # filled in once the trade has been priced
    applied_at: datetime | None = None


@dataclass
class RelayResult:
    source_domain_id: int
    nonce: int
    market_id: int
    account_id: str
    side: Side
    amount: int
    cost: int
