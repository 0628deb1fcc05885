"""Demo: walk a full checkout against the API using FastAPI TestClient.

create order → wallet connect/approve/transfer → confirm payment →
release settlement → issue SBT → verify it on-chain

The wallet fails at random like a real one would; each step is retried a
few times before giving up.

Run with:
    python scripts/demo_checkout_flow.py
"""

from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from assetflowx.main import app
from assetflowx.models.order import PayIntent, TokenType
from assetflowx.services.payment_rail import (
    FakeWallet,
    PaymentRailError,
    PaymentReceipt,
    RandomLatency,
)

COURSE_ID = "course_web3_101"
USER_ID = "u_alice"
MAX_ATTEMPTS = 3


async def _pay(wallet: FakeWallet, intent: PayIntent) -> PaymentReceipt:
    for attempt in range(1, MAX_ATTEMPTS + 1):
        try:
            return await wallet.full_payment_flow(intent)
        except PaymentRailError as e:
            print(f"   wallet {e.operation} failed ({e}), attempt {attempt}/{MAX_ATTEMPTS}")
    raise SystemExit("Payment failed, giving up")


def main() -> None:
    client = TestClient(app)
    # Short delays keep the demo snappy.
    wallet = FakeWallet(
        latency=RandomLatency(ranges={"connect": (50, 150), "approve": (50, 150), "transfer": (50, 150)})
    )

    # ── Step 1: create the order ────────────────────────────────────
    r = client.post(
        "/api/orders",
        json={"courseId": COURSE_ID, "token": "USDC", "chain": "base-sepolia"},
        headers={"Idempotency-Key": "demo-checkout-order"},
    )
    created = r.json()
    order_id = created["orderId"]
    print(f"1. POST /api/orders               → {r.status_code}  {order_id} expires {created['expiresAt']}")

    # ── Step 2: run the wallet ──────────────────────────────────────
    pi = created["payIntent"]
    intent = PayIntent(to=pi["to"], token=TokenType(pi["token"]), amount=pi["amount"], data=pi.get("data"))
    receipt = asyncio.run(_pay(wallet, intent))
    print(f"2. wallet transfer                → {receipt.tx_hash[:18]}…")

    # ── Step 3: confirm payment ─────────────────────────────────────
    r = client.post(
        "/api/payments/confirm",
        json={"orderId": order_id, "txHash": receipt.tx_hash},
        headers={"Idempotency-Key": f"demo-confirm-{order_id}"},
    )
    print(f"3. POST /api/payments/confirm     → {r.status_code}  {r.json()['status']}")

    # ── Step 4: replaying the confirm is harmless ───────────────────
    r = client.post(
        "/api/payments/confirm",
        json={"orderId": order_id, "txHash": receipt.tx_hash},
        headers={"Idempotency-Key": f"demo-confirm-{order_id}"},
    )
    print(f"4. POST /api/payments/confirm     → {r.status_code}  (replayed)")

    # ── Step 5: release settlement ──────────────────────────────────
    r = client.post("/api/settlements/release", json={"orderId": order_id})
    settlement = r.json()["settlement"]
    print(
        f"5. POST /api/settlements/release  → {r.status_code}  "
        f"platform {settlement['platformShare']} / instructor {settlement['instructorShare']}"
    )

    # ── Step 6: issue a soulbound credential ────────────────────────
    r = client.post(
        "/api/credentials",
        json={"userId": USER_ID, "courseId": COURSE_ID, "mode": "SBT"},
    )
    issued = r.json()
    print(f"6. POST /api/credentials          → {r.status_code}  {issued['credentialId']}")

    # ── Step 7: verify it on-chain, as its owner ────────────────────
    owner = client.get(f"/api/users/{USER_ID}").json()["wallet"]
    r = client.post(
        "/api/credentials/verify",
        json={"contract": issued["contract"], "tokenId": issued["tokenId"], "wallet": owner},
    )
    print(f"7. POST /api/credentials/verify   → {r.status_code}  valid={r.json()['valid']}")

    asyncio.run(wallet.disconnect())


if __name__ == "__main__":
    main()
