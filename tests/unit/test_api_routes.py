"""HTTP surface tests: routers wired to in-memory services through ASGITransport."""

import base64
import json
from datetime import timedelta

import pytest

import src.pm_account.api.positions_router as positions_api
import src.pm_account.api.router as account_api
import src.pm_market.api.router as market_api
import src.pm_oracle.api.router as oracle_api
import src.pm_relay.api.router as relay_api
from src.main import app
from src.pm_account.application.service import AccountApplicationService
from src.pm_common.database import get_db_session
from src.pm_common.enums import Side
from src.pm_common.fixed_point import SCALE, units
from src.pm_gateway.auth.jwt_handler import CHANNEL_TOKEN, create_token
from src.pm_market.application.service import MarketApplicationService
from src.pm_oracle.application.service import OracleApplicationService
from src.pm_relay.application.service import RelayApplicationService
from src.pm_relay.domain.codec import RemoteBet, encode_payload
from tests.fakes import START, TRUSTED_CHANNEL

REMOTE = "0xAbC0000000000000000000000000000000000001"


def _auth(subject: str, token_type: str = "access") -> dict[str, str]:
    return {"Authorization": f"Bearer {create_token(subject, token_type=token_type)}"}


ALICE = _auth("alice")
BOB = _auth("bob")
CHANNEL = _auth(TRUSTED_CHANNEL, CHANNEL_TOKEN)


@pytest.fixture
async def api(client, db, engine, resolver, relay, ledger, positions, monkeypatch):
    async def _session_override():
        yield db

    app.dependency_overrides[get_db_session] = _session_override
    accounts = AccountApplicationService(repo=ledger, positions=positions)
    monkeypatch.setattr(account_api, "_service", accounts)
    monkeypatch.setattr(positions_api, "_service", accounts)
    monkeypatch.setattr(market_api, "_service", MarketApplicationService(engine))
    monkeypatch.setattr(oracle_api, "_service", OracleApplicationService(resolver))
    monkeypatch.setattr(relay_api, "_service", RelayApplicationService(relay))
    yield client
    app.dependency_overrides.clear()


async def _create_market(api, headers=ALICE) -> int:
    resp = await api.post(
        "/api/v1/markets",
        json={
            "question": "Will it rain?",
            "resolution_time": (START + timedelta(hours=1)).isoformat(),
        },
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["market_id"]


async def _deposit(api, headers, amount: int) -> None:
    resp = await api.post("/api/v1/account/deposit", json={"amount": amount}, headers=headers)
    assert resp.status_code == 200, resp.text


class TestGateway:
    @pytest.mark.asyncio
    async def test_health(self, api) -> None:
        resp = await api.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    @pytest.mark.asyncio
    async def test_missing_token(self, api) -> None:
        resp = await api.get("/api/v1/markets")
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_channel_token_is_not_an_account(self, api) -> None:
        resp = await api.get("/api/v1/account/balance", headers=CHANNEL)
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_request_id_is_propagated(self, api) -> None:
        resp = await api.get(
            "/api/v1/account/balance", headers={**ALICE, "X-Request-ID": "bridge-42"}
        )
        assert resp.headers["X-Request-ID"] == "bridge-42"
        assert resp.json()["request_id"] == "bridge-42"


class TestMarketFlow:
    @pytest.mark.asyncio
    async def test_create_quote_trade_resolve_claim(self, api, clock) -> None:
        await _deposit(api, ALICE, units(100))
        market_id = await _create_market(api)

        quote = await api.get(
            f"/api/v1/markets/{market_id}/quote",
            params={"side": "YES", "amount": units(10)},
            headers=ALICE,
        )
        assert quote.status_code == 200
        q = quote.json()["data"]
        assert q["price_before"] == SCALE // 2
        assert q["price_after"] > q["price_before"]

        trade = await api.post(
            f"/api/v1/markets/{market_id}/trades",
            json={"side": "YES", "amount": units(10), "max_cost": q["cost"]},
            headers=ALICE,
        )
        assert trade.status_code == 200, trade.text
        assert trade.json()["data"]["cost"] == q["cost"]

        detail = (await api.get(f"/api/v1/markets/{market_id}", headers=ALICE)).json()["data"]
        assert detail["yes_exposure"] == units(10)
        assert detail["collateral"] == q["cost"]
        assert detail["status"] == "OPEN"

        held = (await api.get("/api/v1/positions", headers=ALICE)).json()["data"]
        assert held["total"] == 1

        clock.advance(hours=1)
        resolved = await api.post(
            f"/api/v1/oracle/markets/{market_id}/resolve", json={"outcome": "YES"}, headers=ALICE
        )
        assert resolved.status_code == 200, resolved.text

        claim = await api.post(f"/api/v1/markets/{market_id}/claim", headers=ALICE)
        assert claim.status_code == 200
        assert claim.json()["data"]["payout"] == q["cost"]

        again = await api.post(f"/api/v1/markets/{market_id}/claim", headers=ALICE)
        assert again.status_code == 409
        assert again.json()["code"] == 5002

        balance = (await api.get("/api/v1/account/balance", headers=ALICE)).json()["data"]
        assert balance["balance"] == units(100)

        events = (await api.get(f"/api/v1/markets/{market_id}/events", headers=ALICE)).json()
        assert [e["event_type"] for e in events["data"]["items"]] == [
            "MARKET_CREATED", "BET_PLACED", "MARKET_RESOLVED", "CLAIMED",
        ]

    @pytest.mark.asyncio
    async def test_unknown_market(self, api) -> None:
        resp = await api.post(
            "/api/v1/markets/99/trades", json={"side": "NO", "amount": 1}, headers=ALICE
        )
        assert resp.status_code == 404
        assert resp.json()["code"] == 3001

    @pytest.mark.asyncio
    async def test_insufficient_funds(self, api, db) -> None:
        market_id = await _create_market(api)
        resp = await api.post(
            f"/api/v1/markets/{market_id}/trades",
            json={"side": "NO", "amount": units(1)},
            headers=BOB,
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 2001
        db.rollback.assert_awaited()

    @pytest.mark.asyncio
    async def test_zero_amount_rejected_by_schema(self, api) -> None:
        market_id = await _create_market(api)
        resp = await api.post(
            f"/api/v1/markets/{market_id}/trades",
            json={"side": "YES", "amount": 0},
            headers=ALICE,
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_past_resolution_time(self, api) -> None:
        resp = await api.post(
            "/api/v1/markets",
            json={"question": "Q?", "resolution_time": START.isoformat()},
            headers=ALICE,
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 3002

    @pytest.mark.asyncio
    async def test_only_resolver_may_resolve(self, api, clock) -> None:
        market_id = await _create_market(api)
        clock.advance(hours=2)
        resp = await api.post(
            f"/api/v1/oracle/markets/{market_id}/resolve", json={"outcome": "NO"}, headers=BOB
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == 6001

    @pytest.mark.asyncio
    async def test_invalid_outcome(self, api, clock) -> None:
        market_id = await _create_market(api)
        clock.advance(hours=2)
        resp = await api.post(
            f"/api/v1/oracle/markets/{market_id}/resolve",
            json={"outcome": "MAYBE"},
            headers=ALICE,
        )
        assert resp.status_code == 422


class TestRelay:
    def _body(self, market_id: int, nonce: int = 1, payload_hex: str | None = None) -> dict:
        bet = RemoteBet(market_id, "remote:carol", units(5), Side.NO)
        return {
            "source_domain_id": 10,
            "source_address": REMOTE,
            "nonce": nonce,
            "payload_hex": payload_hex or "0x" + encode_payload(bet).hex(),
        }

    @pytest.mark.asyncio
    async def test_delivery_then_redelivery(self, api, ledger, state) -> None:
        ledger.fund("remote:carol", units(50))
        market_id = await _create_market(api)

        first = await api.post("/api/v1/relay/messages", json=self._body(market_id), headers=CHANNEL)
        assert first.status_code == 200, first.text
        assert first.json()["data"]["applied"] is True

        second = await api.post(
            "/api/v1/relay/messages", json=self._body(market_id), headers=CHANNEL
        )
        assert second.status_code == 200
        assert second.json()["data"] == {
            "applied": False, "duplicate": True, "source_domain_id": 10, "nonce": 1,
            "market_id": None, "account_id": None, "side": None, "amount": None, "cost": None,
        }
        assert state.markets[market_id].no_exposure == units(5)

    @pytest.mark.asyncio
    async def test_sender_request_id_is_echoed(self, api, ledger) -> None:
        ledger.fund("remote:carol", units(50))
        market_id = await _create_market(api)
        resp = await api.post(
            "/api/v1/relay/messages",
            json=self._body(market_id, nonce=7),
            headers={**CHANNEL, "X-Request-ID": "bridge:msg-7"},
        )
        assert resp.status_code == 200, resp.text
        assert resp.headers["X-Request-ID"] == "bridge:msg-7"
        assert resp.json()["request_id"] == "bridge:msg-7"

    @pytest.mark.asyncio
    async def test_account_token_cannot_deliver(self, api) -> None:
        market_id = await _create_market(api)
        resp = await api.post("/api/v1/relay/messages", json=self._body(market_id), headers=ALICE)
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_untrusted_channel(self, api) -> None:
        market_id = await _create_market(api)
        resp = await api.post(
            "/api/v1/relay/messages",
            json=self._body(market_id),
            headers=_auth("rogue", CHANNEL_TOKEN),
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == 7001

    @pytest.mark.asyncio
    async def test_bad_hex(self, api) -> None:
        market_id = await _create_market(api)
        resp = await api.post(
            "/api/v1/relay/messages",
            json=self._body(market_id, payload_hex="0xzz"),
            headers=CHANNEL,
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 7002


    @pytest.mark.asyncio
    async def test_oversized_payload_market_id_is_malformed(self, api, state) -> None:
        await _create_market(api)
        payload = encode_payload(RemoteBet(2**70, "remote:carol", units(5), Side.NO))
        resp = await api.post(
            "/api/v1/relay/messages",
            json=self._body(1, payload_hex=payload.hex()),
            headers=CHANNEL,
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 7002
        assert state.relay_messages == {}

    @pytest.mark.asyncio
    async def test_nonce_beyond_column_rejected(self, api, state) -> None:
        market_id = await _create_market(api)
        body = {**self._body(market_id), "nonce": 10**78}
        resp = await api.post("/api/v1/relay/messages", json=body, headers=CHANNEL)
        assert resp.status_code == 422
        assert state.relay_messages == {}


class TestIdBounds:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method, path",
        [
            ("GET", "/api/v1/markets/9223372036854775808"),
            ("GET", "/api/v1/markets/0"),
            ("POST", "/api/v1/markets/1180591620717411303424/claim"),
            ("POST", "/api/v1/oracle/markets/9223372036854775808/resolve"),
            ("GET", "/api/v1/positions/9223372036854775808"),
        ],
    )
    async def test_out_of_range_market_id_is_422(self, api, method, path) -> None:
        resp = await api.request(method, path, json={"outcome": "YES"}, headers=ALICE)
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_quote_amount_beyond_column_is_422(self, api) -> None:
        market_id = await _create_market(api)
        resp = await api.get(
            f"/api/v1/markets/{market_id}/quote",
            params={"side": "YES", "amount": str(10**78)},
            headers=ALICE,
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_oversized_cursor_starts_from_newest(self, api) -> None:
        await _create_market(api)
        cursor = base64.b64encode(json.dumps({"id": 2**70}).encode()).decode()
        resp = await api.get("/api/v1/markets", params={"cursor": cursor}, headers=ALICE)
        assert resp.status_code == 200
        assert len(resp.json()["data"]["items"]) == 1


class TestInvariantBreach:
    @pytest.mark.asyncio
    async def test_breach_returns_internal_error_and_rolls_back(
        self, api, ledger, state, monkeypatch
    ) -> None:
        async def broken_invariants(*args, **kwargs):
            raise AssertionError("INV-1 violated: test")

        monkeypatch.setattr(
            "src.pm_market.engine.engine.verify_market_invariants", broken_invariants
        )
        await _deposit(api, ALICE, units(10))
        market_id = await _create_market(api)

        resp = await api.post(
            f"/api/v1/markets/{market_id}/trades",
            json={"side": "YES", "amount": units(1)},
            headers=ALICE,
        )

        assert resp.status_code == 500
        assert resp.json()["code"] == 9002
        assert ledger.balance("alice") == units(10)
        assert state.markets[market_id].yes_exposure == 0
