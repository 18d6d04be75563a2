"""Fixed-point integer arithmetic for collateral and share amounts.

All amounts are int scaled by SCALE (1e18). No float anywhere in the ledger.
Multiply before divide; round up whatever the trader pays, round down
whatever the trader receives.
"""

SCALE = 10**18

# Column bounds: ids are BIGINT, amounts and nonces NUMERIC(78,0)
MAX_ID = 2**63 - 1
MAX_NUMERIC = 10**78 - 1


def units(whole: int) -> int:
    """Whole units -> fixed-point: units(3) == 3 * SCALE."""
    return whole * SCALE


def mul_div_down(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator)."""
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")
    return (a * b) // denominator


def to_display(amount: int, decimals: int = 4) -> str:
    """Render a fixed-point amount: 1_500_000_000_000_000_000 -> '1.5000'."""
    sign = "-" if amount < 0 else ""
    whole, frac = divmod(abs(amount), SCALE)
    frac_digits = str(frac).rjust(18, "0")[:decimals]
    if decimals == 0:
        return f"{sign}{whole:,}"
    return f"{sign}{whole:,}.{frac_digits}"
