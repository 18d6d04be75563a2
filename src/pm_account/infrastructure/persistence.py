"""AccountRepository — PostgreSQL Ledger capability.

Debits use an atomic UPDATE ... WHERE balance >= :amount RETURNING; zero rows
means insufficient funds. Credits create the account row on first use, so
remote accounts can receive payouts without registering first.

Transaction ownership: the CALLER holds the transaction/savepoint.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.models import Account, LedgerEntry
from src.pm_common.errors import InsufficientFundsError

_ACCOUNT_COLUMNS = "account_id, balance, version, created_at, updated_at"

_DEBIT_SQL = text(f"""
    UPDATE accounts
    SET balance = balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE account_id = :account_id AND balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

_CREDIT_SQL = text(f"""
    INSERT INTO accounts (account_id, balance)
    VALUES (:account_id, :amount)
    ON CONFLICT (account_id) DO UPDATE
        SET balance = accounts.balance + :amount,
            version = accounts.version + 1,
            updated_at = NOW()
    RETURNING {_ACCOUNT_COLUMNS}
""")

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE account_id = :account_id
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (account_id, entry_type, amount, balance_after, reference_type, reference_id)
    VALUES
        (:account_id, :entry_type, :amount, :balance_after, :reference_type, :reference_id)
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, account_id, entry_type, amount, balance_after,
           reference_type, reference_id, created_at
    FROM ledger_entries
    WHERE account_id = :account_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
    ORDER BY id DESC
    LIMIT :limit
""")

_REFERENCE_TYPE = "MARKET"


class AccountRepository:
    async def debit(
        self,
        db: AsyncSession,
        account_id: str,
        amount: int,
        entry_type: str,
        reference_id: str,
    ) -> Account:
        row = (
            await db.execute(_DEBIT_SQL, {"account_id": account_id, "amount": amount})
        ).fetchone()
        if row is None:
            current = await self.get_account(db, account_id)
            raise InsufficientFundsError(amount, current.balance if current else 0)
        account = _row_to_account(row)
        await self._write_entry(db, account, entry_type, -amount, reference_id)
        return account

    async def credit(
        self,
        db: AsyncSession,
        account_id: str,
        amount: int,
        entry_type: str,
        reference_id: str,
    ) -> Account:
        row = (
            await db.execute(_CREDIT_SQL, {"account_id": account_id, "amount": amount})
        ).fetchone()
        account = _row_to_account(row)
        await self._write_entry(db, account, entry_type, amount, reference_id)
        return account

    async def get_account(self, db: AsyncSession, account_id: str) -> Account | None:
        row = (await db.execute(_GET_ACCOUNT_SQL, {"account_id": account_id})).fetchone()
        if row is None:
            return None
        return _row_to_account(row)

    async def list_ledger_entries(
        self, db: AsyncSession, account_id: str, cursor_id: int | None, limit: int
    ) -> list[LedgerEntry]:
        rows = (
            await db.execute(
                _LIST_LEDGER_SQL,
                {"account_id": account_id, "cursor_id": cursor_id, "limit": limit},
            )
        ).fetchall()
        return [_row_to_entry(r) for r in rows]

    async def _write_entry(
        self,
        db: AsyncSession,
        account: Account,
        entry_type: str,
        amount: int,
        reference_id: str,
    ) -> None:
        await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "account_id": account.account_id,
                "entry_type": entry_type,
                "amount": amount,
                "balance_after": account.balance,
                "reference_type": _REFERENCE_TYPE,
                "reference_id": reference_id,
            },
        )


def _row_to_account(row: Any) -> Account:
    return Account(
        account_id=row.account_id,
        balance=int(row.balance),
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_entry(row: Any) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,
        account_id=row.account_id,
        entry_type=row.entry_type,
        amount=int(row.amount),
        balance_after=int(row.balance_after),
        reference_type=row.reference_type,
        reference_id=row.reference_id,
        created_at=row.created_at,
    )
