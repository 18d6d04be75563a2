"""Shared test fixtures."""

import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "0")

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.pm_market.engine.engine import MarketEngine
from src.pm_oracle.domain.resolver import OracleResolver
from src.pm_relay.domain.relay import CrossDomainRelay
from tests.fakes import (
    LIQUIDITY,
    TRUSTED_CHANNEL,
    FakeClock,
    FakeSession,
    InMemoryEventLog,
    InMemoryLedger,
    InMemoryMarketRepository,
    InMemoryPositionLedger,
    InMemoryRelayMessages,
    InMemoryState,
)


@pytest.fixture
def state() -> InMemoryState:
    return InMemoryState()


@pytest.fixture
def db(state: InMemoryState) -> FakeSession:
    return FakeSession(state)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ledger(state: InMemoryState) -> InMemoryLedger:
    return InMemoryLedger(state)


@pytest.fixture
def positions(state: InMemoryState) -> InMemoryPositionLedger:
    return InMemoryPositionLedger(state)


@pytest.fixture
def event_log(state: InMemoryState) -> InMemoryEventLog:
    return InMemoryEventLog(state)


@pytest.fixture
def relay_messages(state: InMemoryState) -> InMemoryRelayMessages:
    return InMemoryRelayMessages(state)


@pytest.fixture
def engine(
    state: InMemoryState,
    positions: InMemoryPositionLedger,
    ledger: InMemoryLedger,
    event_log: InMemoryEventLog,
    clock: FakeClock,
) -> MarketEngine:
    return MarketEngine(
        markets=InMemoryMarketRepository(state),
        positions=positions,
        ledger=ledger,
        events=event_log,
        liquidity_param=LIQUIDITY,
        clock=clock,
    )


@pytest.fixture
def resolver(engine: MarketEngine) -> OracleResolver:
    return OracleResolver(engine)


@pytest.fixture
def relay(engine: MarketEngine, relay_messages: InMemoryRelayMessages) -> CrossDomainRelay:
    return CrossDomainRelay(
        engine=engine,
        messages=relay_messages,
        trusted_channels=[TRUSTED_CHANNEL],
        trusted_remotes={10: "0xAbC0000000000000000000000000000000000001"},
    )


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
