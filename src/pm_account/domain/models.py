"""Domain models for pm_account — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    account_id: str
    balance: int             # fixed-point collateral
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    account_id: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # positive=income negative=expense
    balance_after: int
    reference_type: str | None = None
    reference_id: str | None = None
    created_at: datetime | None = None
