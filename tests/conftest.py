from __future__ import annotations

import asyncio
import datetime
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import assetflowx` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from assetflowx.core.clock import FrozenClock, utcnow  # noqa: E402
from assetflowx.main import app  # noqa: E402
from assetflowx.services.credential_service import credential_service  # noqa: E402
from assetflowx.services.idempotency import idempotency_store  # noqa: E402
from assetflowx.services.order_service import order_service  # noqa: E402

START = datetime.datetime(2025, 10, 19, 9, 30, tzinfo=datetime.UTC)


@pytest.fixture(autouse=True)
def reset_ledger() -> None:
    """Empty the order, settlement and credential stores between tests."""
    order_service.reset()
    credential_service.reset()


@pytest.fixture(autouse=True)
def reset_idempotency_cache() -> None:
    asyncio.run(idempotency_store.clear())


@pytest.fixture(autouse=True)
def restore_clocks() -> Iterator[None]:
    """Put the real clock back on every service a test may have frozen."""
    yield
    for service in (order_service, credential_service):
        service.clock = utcnow
        service.idempotency.clock = utcnow


@pytest.fixture
def clock() -> FrozenClock:
    """Freeze time for the services and their idempotency gates."""
    frozen = FrozenClock(START)
    for service in (order_service, credential_service):
        service.clock = frozen
        service.idempotency.clock = frozen
    return frozen


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


# ---------------------------------------------------------------------------
# Checkout helpers
# ---------------------------------------------------------------------------


def create_order(
    client: TestClient,
    course_id: str = "course_web3_101",
    token: str = "USDC",
    chain: str = "base-sepolia",
    headers: dict[str, str] | None = None,
) -> dict:
    resp = client.post(
        "/api/orders",
        json={"courseId": course_id, "token": token, "chain": chain},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def pay_order(client: TestClient, order_id: str, tx_hash: str = "0xabc") -> dict:
    resp = client.post(
        "/api/payments/confirm", json={"orderId": order_id, "txHash": tx_hash}
    )
    assert resp.status_code == 200, resp.text
    return resp.json()
