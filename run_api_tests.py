import json
import time
import urllib.error
import urllib.request
from datetime import UTC, datetime, timedelta

from src.pm_common.fixed_point import units
from src.pm_gateway.auth.jwt_handler import CHANNEL_TOKEN, create_token

BASE = "http://localhost:8000/api/v1"
CHANNEL_ID = "bridge-mainnet"  # must be listed in RELAY_TRUSTED_CHANNELS


def post(path, body=None, token=None):
    data = json.dumps(body or {}).encode()
    req = urllib.request.Request(
        f"{BASE}{path}",
        data=data,
        headers={"Content-Type": "application/json"}
    )
    if token:
        req.add_header("Authorization", f"Bearer {token}")
    try:
        with urllib.request.urlopen(req) as r:
            return json.loads(r.read())
    except urllib.error.HTTPError as e:
        return json.loads(e.read())

def get(path, token=None, params=None):
    url = f"{BASE}{path}"
    if params:
        url += "?" + "&".join(f"{k}={v}" for k, v in params.items())
    req = urllib.request.Request(url)
    if token:
        req.add_header("Authorization", f"Bearer {token}")
    try:
        with urllib.request.urlopen(req) as r:
            return json.loads(r.read())
    except urllib.error.HTTPError as e:
        return json.loads(e.read())

def section(title):
    print(f"\n{'='*60}")
    print(f"### {title} ###")
    print('='*60)

def label(name):
    print(f"\n--- {name} ---")

def out(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))

# ── Tokens ─────────────────────────────────────────────────────
# Minted locally with the server's JWT_SECRET (read from .env)
section("TOKENS")
ALICE = create_token("smoke_alice")
BOB = create_token("smoke_bob")
CHANNEL = create_token(CHANNEL_ID, token_type=CHANNEL_TOKEN)
print(f"  ALICE   = {ALICE[:40]}...")
print(f"  BOB     = {BOB[:40]}...")
print(f"  CHANNEL = {CHANNEL[:40]}...")

# ── T1 Account ─────────────────────────────────────────────────
section("T1 — ACCOUNT")

label("T1-1: Deposit 100 (alice)")
out(post("/account/deposit", {"amount": units(100)}, token=ALICE))

label("T1-2: Deposit 100 (bob)")
out(post("/account/deposit", {"amount": units(100)}, token=BOB))

label("T1-3: Deposit zero (expect 422)")
out(post("/account/deposit", {"amount": 0}, token=ALICE))

label("T1-4: Balance without token (expect 401)")
out(get("/account/balance"))

# ── T2 Market lifecycle ────────────────────────────────────────
section("T2 — MARKET LIFECYCLE")

resolution_time = datetime.now(UTC) + timedelta(seconds=5)
label("T2-1: Create market resolving in 5s (alice)")
r = post("/markets", {"question": "Smoke test: heads?", "resolution_time": resolution_time.isoformat()}, token=ALICE)
out(r)
MARKET_ID = r.get("data", {}).get("market_id")

label("T2-2: Create market in the past (expect 3002)")
out(post("/markets", {"question": "Too late", "resolution_time": "2000-01-01T00:00:00Z"}, token=ALICE))

label("T2-3: Quote YES 10")
r = get(f"/markets/{MARKET_ID}/quote", token=ALICE, params={"side": "YES", "amount": units(10)})
out(r)
COST = r.get("data", {}).get("cost", 0)

label("T2-4: Trade YES 10 with max_cost = quote (alice)")
out(post(f"/markets/{MARKET_ID}/trades", {"side": "YES", "amount": units(10), "max_cost": COST}, token=ALICE))

label("T2-5: Same trade with stale max_cost (expect 4002)")
out(post(f"/markets/{MARKET_ID}/trades", {"side": "YES", "amount": units(10), "max_cost": COST}, token=BOB))

label("T2-6: Trade NO 5 (bob)")
out(post(f"/markets/{MARKET_ID}/trades", {"side": "NO", "amount": units(5)}, token=BOB))

label("T2-7: Resolve before resolution time (expect 6003)")
out(post(f"/oracle/markets/{MARKET_ID}/resolve", {"outcome": "YES"}, token=ALICE))

# ── T3 Relay ───────────────────────────────────────────────────
section("T3 — RELAY")

payload = json.dumps([MARKET_ID, "smoke_bob", units(1), "NO"]).encode().hex()
nonce = int(time.time())
body = {"source_domain_id": 10, "source_address": "0xsmoke", "nonce": nonce, "payload_hex": "0x" + payload}

label("T3-1: Deliver remote bet")
out(post("/relay/messages", body, token=CHANNEL))

label("T3-2: Redeliver same nonce (expect duplicate=true)")
out(post("/relay/messages", body, token=CHANNEL))

label("T3-3: Deliver with account token (expect 401)")
out(post("/relay/messages", body, token=ALICE))

# ── T4 Resolution & claims ─────────────────────────────────────
section("T4 — RESOLUTION & CLAIMS")

print("\nWaiting for resolution time...")
time.sleep(6)

label("T4-1: Trade after expiry (expect 3005)")
out(post(f"/markets/{MARKET_ID}/trades", {"side": "YES", "amount": units(1)}, token=ALICE))

label("T4-2: Resolve by non-resolver (expect 6001)")
out(post(f"/oracle/markets/{MARKET_ID}/resolve", {"outcome": "YES"}, token=BOB))

label("T4-3: Resolve YES (alice)")
out(post(f"/oracle/markets/{MARKET_ID}/resolve", {"outcome": "YES"}, token=ALICE))

label("T4-4: Claim (alice)")
out(post(f"/markets/{MARKET_ID}/claim", token=ALICE))

label("T4-5: Claim again (expect 5002)")
out(post(f"/markets/{MARKET_ID}/claim", token=ALICE))

label("T4-6: Claim losing side (bob, payout 0)")
out(post(f"/markets/{MARKET_ID}/claim", token=BOB))

label("T4-7: Event stream")
out(get(f"/markets/{MARKET_ID}/events", token=ALICE))

label("T4-8: Final balances")
out(get("/account/balance", token=ALICE))
out(get("/account/balance", token=BOB))
