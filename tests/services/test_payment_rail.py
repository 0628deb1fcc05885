from __future__ import annotations

import asyncio
import random
import re

import pytest
from prometheus_client import REGISTRY

from assetflowx.models.order import PayIntent, TokenType
from assetflowx.services.payment_rail import (
    APPROVE,
    CONNECT,
    TRANSFER,
    AlwaysFail,
    FakeWallet,
    NeverFail,
    NoLatency,
    PaymentRailError,
    RandomFailurePolicy,
    RandomLatency,
)

INTENT = PayIntent(to="0xVault", token=TokenType.USDC, amount="99.00", data="0xord_1")
TX_HASH = re.compile(r"^0x[0-9a-f]{64}$")


def _wallet(policy=None) -> FakeWallet:
    return FakeWallet(
        failure_policy=policy or NeverFail(),
        latency=NoLatency(),
        rng=random.Random(3),
    )


def test_full_flow_returns_receipt() -> None:
    receipt = asyncio.run(_wallet().full_payment_flow(INTENT))
    assert receipt.address.startswith("0xMockUser")
    assert TX_HASH.match(receipt.tx_hash)
    assert TX_HASH.match(receipt.approval_hash)
    assert receipt.tx_hash != receipt.approval_hash


def test_each_transfer_gets_a_new_hash() -> None:
    wallet = _wallet()
    first = asyncio.run(wallet.transfer(INTENT))["txHash"]
    second = asyncio.run(wallet.transfer(INTENT))["txHash"]
    assert first != second


@pytest.mark.parametrize(
    ("operation", "message"),
    [
        (CONNECT, "User rejected wallet connection"),
        (APPROVE, "User rejected token approval"),
        (TRANSFER, "Transaction failed: insufficient gas"),
    ],
)
def test_forced_failure_names_the_step(operation: str, message: str) -> None:
    wallet = _wallet(AlwaysFail(frozenset({operation})))
    with pytest.raises(PaymentRailError, match=message) as exc_info:
        asyncio.run(wallet.full_payment_flow(INTENT))
    assert exc_info.value.operation == operation


def test_always_fail_without_operations_fails_everything() -> None:
    policy = AlwaysFail()
    assert all(policy.should_fail(op) for op in (CONNECT, APPROVE, TRANSFER))


def test_random_policy_uses_configured_rates() -> None:
    never = RandomFailurePolicy(rates={CONNECT: 0.0}, rng=random.Random(0))
    always = RandomFailurePolicy(rates={CONNECT: 1.0}, rng=random.Random(0))
    assert not any(never.should_fail(CONNECT) for _ in range(100))
    assert all(always.should_fail(CONNECT) for _ in range(100))
    assert not always.should_fail("disconnect")


def test_default_random_rates() -> None:
    assert RandomFailurePolicy().rates == {CONNECT: 0.10, APPROVE: 0.05, TRANSFER: 0.05}


def test_random_latency_stays_in_range() -> None:
    latency = RandomLatency(ranges={CONNECT: (10, 20)}, rng=random.Random(5))
    for _ in range(50):
        assert 0.010 <= latency.delay_seconds(CONNECT) <= 0.020


def test_failures_are_counted() -> None:
    labels = {"operation": APPROVE, "result": "failed"}
    before = REGISTRY.get_sample_value("payment_rail_operations_total", labels) or 0.0
    with pytest.raises(PaymentRailError):
        asyncio.run(_wallet(AlwaysFail(frozenset({APPROVE}))).full_payment_flow(INTENT))
    after = REGISTRY.get_sample_value("payment_rail_operations_total", labels) or 0.0
    assert after - before == 1


def test_disconnect_is_quiet() -> None:
    asyncio.run(_wallet().disconnect())
