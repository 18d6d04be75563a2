"""Market invariant verification after each mutation."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_market.domain.models import Market
from src.pm_position.domain.repository import PositionLedgerProtocol

logger = logging.getLogger(__name__)


async def verify_market_invariants(
    market: Market, positions: PositionLedgerProtocol, db: AsyncSession
) -> None:
    """Verify critical market invariants. Raises AssertionError if violated.

    INV-1: yes_exposure / no_exposure == sum of account holdings on that side
    INV-2: 0 <= paid_out <= collateral
    INV-3: outcome is set iff resolved
    """
    totals = await positions.totals(db, market.id)
    assert market.yes_exposure == totals.yes_amount, (
        f"INV-1 violated: yes_exposure={market.yes_exposure} != positions={totals.yes_amount}"
    )
    assert market.no_exposure == totals.no_amount, (
        f"INV-1 violated: no_exposure={market.no_exposure} != positions={totals.no_amount}"
    )
    assert 0 <= market.paid_out <= market.collateral, (
        f"INV-2 violated: paid_out={market.paid_out} collateral={market.collateral}"
    )
    assert market.resolved == (market.outcome is not None), (
        f"INV-3 violated: resolved={market.resolved} outcome={market.outcome}"
    )

    logger.debug(
        "Invariants OK: market=%s, collateral=%d, paid_out=%d",
        market.id, market.collateral, market.paid_out,
    )
