"""Clock helpers. Every timestamp in the ledger is timezone-aware UTC."""

from collections.abc import Callable
from datetime import UTC, datetime

# Injected into MarketEngine so tests can move time without sleeping
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def is_aware(dt: datetime) -> bool:
    return dt.tzinfo is not None and dt.tzinfo.utcoffset(dt) is not None


def to_utc(dt: datetime) -> datetime:
    """Normalize an aware datetime to UTC. Naive input is a caller bug."""
    if not is_aware(dt):
        raise ValueError(f"naive datetime: {dt.isoformat()}")
    return dt.astimezone(UTC)
