"""Nonce store Protocol — the relay's only durable state.

record() must run in the same transaction as the replayed trade: a message
is applied and remembered together, or neither.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_relay.domain.models import RelayMessage


class RelayMessageRepositoryProtocol(Protocol):
    async def record(self, db: AsyncSession, message: RelayMessage) -> bool:
        """Insert the message. False if (source_domain_id, nonce) already exists."""
        ...

    async def set_cost(
        self, db: AsyncSession, source_domain_id: int, nonce: int, cost: int
    ) -> None: ...
