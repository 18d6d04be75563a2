"""AccountApplicationService — thin composition layer.

Deposit commits or rolls back around the Ledger credit. Other operations
(get_balance, list_ledger, positions) are read-only and run without an
explicit transaction.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.application.schemas import (
    BalanceResponse,
    LedgerEntryItem,
    LedgerResponse,
    PositionListResponse,
    PositionResponse,
    cursor_decode,
    cursor_encode,
)
from src.pm_account.domain.repository import AccountRepositoryProtocol
from src.pm_account.infrastructure.persistence import AccountRepository
from src.pm_common.enums import LedgerEntryType
from src.pm_position.domain.repository import PositionLedgerProtocol
from src.pm_position.infrastructure.persistence import PositionRepository


class AccountApplicationService:
    def __init__(
        self,
        repo: AccountRepositoryProtocol | None = None,
        positions: PositionLedgerProtocol | None = None,
    ) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()
        self._positions: PositionLedgerProtocol = positions or PositionRepository()

    async def get_balance(self, db: AsyncSession, account_id: str) -> BalanceResponse:
        account = await self._repo.get_account(db, account_id)
        return BalanceResponse.from_amount(account_id, account.balance if account else 0)

    async def deposit(self, db: AsyncSession, account_id: str, amount: int) -> BalanceResponse:
        try:
            account = await self._repo.credit(
                db, account_id, amount, LedgerEntryType.DEPOSIT.value, "deposit"
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return BalanceResponse.from_amount(account_id, account.balance)

    async def list_ledger(
        self, db: AsyncSession, account_id: str, cursor: str | None, limit: int
    ) -> LedgerResponse:
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_ledger_entries(
            db, account_id, cursor_decode(cursor), limit + 1
        )
        has_more = len(entries) > limit
        page = entries[:limit]
        return LedgerResponse(
            items=[LedgerEntryItem.from_domain(e) for e in page],
            next_cursor=cursor_encode(page[-1].id) if has_more and page else None,
            has_more=has_more,
        )

    async def list_positions(self, db: AsyncSession, account_id: str) -> PositionListResponse:
        positions = await self._positions.list_by_account(db, account_id)
        return PositionListResponse(
            items=[PositionResponse.from_domain(p) for p in positions],
            total=len(positions),
        )

    async def get_position(
        self, db: AsyncSession, account_id: str, market_id: int
    ) -> PositionResponse:
        position = await self._positions.read(db, market_id, account_id)
        return PositionResponse.from_domain(position)
