"""Logarithmic cost curve used as the market maker for each side.

Each side of a binary market is priced against a zero reference inventory
on the opposite side, so the cost function collapses to a softplus:

    C(q)            = b * ln(1 + exp(q / b))
    cost(q, x)      = C(q + x) - C(q)
    marginal(q)     = 1 / (1 + exp(-q / b))

Properties:
  - marginal(0) == 1/2: an untouched side still has a positive price
  - marginal(q) < 1: a share never costs more than a full collateral unit,
    so cost(q, x) <= x and the maker's loss per share is bounded
  - cost is strictly increasing in both q and x

Inputs and outputs are fixed-point ints (SCALE = 1e18). The transcendental
part runs in Decimal at 60 significant digits and only the final result is
quantized: cost rounds up (trader pays), marginal price rounds down.
"""

from decimal import ROUND_CEILING, ROUND_FLOOR, Context, Decimal, localcontext

from src.pm_common.fixed_point import SCALE

_PRECISION = 60
_SCALE_D = Decimal(SCALE)


def _context() -> Context:
    ctx = Context(prec=_PRECISION, Emax=10**9, Emin=-(10**9))
    return ctx


def _softplus(z: Decimal) -> Decimal:
    """ln(1 + e^z), split at zero so exp() never sees a large positive argument."""
    if z > 0:
        return z + (1 + (-z).exp()).ln()
    return (1 + z.exp()).ln()


def _check_non_negative(**values: int) -> None:
    for name, value in values.items():
        if value < 0:
            raise ValueError(f"{name} must be >= 0, got {value}")


def cost(exposure: int, amount: int, liquidity: int) -> int:
    """Collateral required to buy `amount` shares on a side holding `exposure`.

    Pure and deterministic; result is rounded up to the nearest fixed-point unit.
    """
    _check_non_negative(exposure=exposure, amount=amount)
    if liquidity <= 0:
        raise ValueError(f"liquidity must be > 0, got {liquidity}")
    if amount == 0:
        return 0

    with localcontext(_context()):
        b = Decimal(liquidity)
        before = _softplus(Decimal(exposure) / b)
        after = _softplus(Decimal(exposure + amount) / b)
        raw = (after - before) * b
        charged = int(raw.to_integral_value(rounding=ROUND_CEILING))
    # Never below one unit for a non-zero buy, never above the face value.
    return min(max(charged, 1), amount)


def marginal_price(exposure: int, liquidity: int) -> int:
    """Instantaneous price of one share, fixed-point in [SCALE/2, SCALE)."""
    _check_non_negative(exposure=exposure)
    if liquidity <= 0:
        raise ValueError(f"liquidity must be > 0, got {liquidity}")

    with localcontext(_context()):
        z = Decimal(exposure) / Decimal(liquidity)
        price = _SCALE_D / (1 + (-z).exp())
        return int(price.to_integral_value(rounding=ROUND_FLOOR))

