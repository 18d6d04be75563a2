"""Pari-mutuel settlement: winners split the whole pool pro rata.

    payout = floor(winning_holding * collateral / winning_exposure)

Rounding down on every claim means the sum of payouts can never exceed the
collateral collected; the dust stays in the market.
"""

from src.pm_common.fixed_point import mul_div_down
from src.pm_market.domain.models import Market
from src.pm_position.domain.models import Position


def claim_payout(market: Market, position: Position) -> int:
    if not market.resolved or market.outcome is None:
        raise ValueError(f"market {market.id} is not resolved")
    winning_exposure = market.exposure_on(market.outcome)
    holding = position.amount_on(market.outcome)
    if winning_exposure == 0 or holding == 0:
        return 0
    return mul_div_down(holding, market.collateral, winning_exposure)
