"""Ledger capability — collateral custody as seen by the market core.

The core only ever debits or credits; both calls run inside the caller's
transaction so a failure anywhere rolls the transfer back with the state
change it backs.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.models import Account, LedgerEntry


class LedgerProtocol(Protocol):
    async def debit(
        self,
        db: AsyncSession,
        account_id: str,
        amount: int,
        entry_type: str,
        reference_id: str,
    ) -> Account:
        """Raises InsufficientFundsError if balance < amount."""
        ...

    async def credit(
        self,
        db: AsyncSession,
        account_id: str,
        amount: int,
        entry_type: str,
        reference_id: str,
    ) -> Account: ...


class AccountRepositoryProtocol(LedgerProtocol, Protocol):
    async def get_account(self, db: AsyncSession, account_id: str) -> Account | None: ...

    async def list_ledger_entries(
        self, db: AsyncSession, account_id: str, cursor_id: int | None, limit: int
    ) -> list[LedgerEntry]: ...
