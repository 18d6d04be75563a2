"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class Side(str, Enum):
    YES = "YES"
    NO = "NO"


class MarketStatus(str, Enum):
    """Derived from resolved flag and resolution_time; never stored."""

    OPEN = "OPEN"
    EXPIRED = "EXPIRED"
    RESOLVED = "RESOLVED"


class MarketEventType(str, Enum):
    MARKET_CREATED = "MARKET_CREATED"
    BET_PLACED = "BET_PLACED"
    MARKET_RESOLVED = "MARKET_RESOLVED"
    CLAIMED = "CLAIMED"


class LedgerEntryType(str, Enum):
    DEPOSIT = "DEPOSIT"
    TRADE_COST = "TRADE_COST"
    CLAIM_PAYOUT = "CLAIM_PAYOUT"
