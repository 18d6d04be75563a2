"""OracleApplicationService — commits or rolls back around OracleResolver."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import Side
from src.pm_market.application.service import get_market_engine
from src.pm_oracle.domain.resolver import OracleResolver

_resolver: OracleResolver | None = None


def get_oracle_resolver() -> OracleResolver:
    global _resolver  # noqa: PLW0603
    if _resolver is None:
        _resolver = OracleResolver(get_market_engine())
    return _resolver


class OracleApplicationService:
    def __init__(self, resolver: OracleResolver | None = None) -> None:
        self._resolver = resolver or get_oracle_resolver()

    async def resolve_market(
        self, db: AsyncSession, market_id: int, outcome: Side, caller: str
    ) -> dict[str, object]:
        try:
            market = await self._resolver.resolve(db, market_id, outcome, caller)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return {
            "market_id": market.id,
            "outcome": outcome.value,
            "resolved_at": market.resolved_at.isoformat() if market.resolved_at else None,
        }
