"""Simulated wallet used by the checkout flow.

Nothing here touches a chain.  ``FakeWallet`` imitates what a browser
wallet does during checkout: connect, approve the token spend, transfer,
each after a short delay and each able to fail the way a real user or
network would (rejected prompt, out of gas).

Randomness sits behind two seams so callers and tests can pin it down:

  FailurePolicy   decides whether an operation fails
                  (RandomFailurePolicy, NeverFail, AlwaysFail)
  LatencyPolicy   decides how long an operation takes
                  (RandomLatency, NoLatency)

The order service never calls the wallet.  A checkout client runs the
wallet, then hands the resulting tx hash to confirm_payment, and decides
itself whether to retry a ``PaymentRailError`` or surface it to the user.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import random
from dataclasses import dataclass, field
from typing import Protocol

from assetflowx.core.metrics import PAYMENT_RAIL_OPERATIONS
from assetflowx.models.order import PayIntent
from assetflowx.services.ids import random_base36

logger = logging.getLogger(__name__)

MOCK_WALLET_ADDRESS = "0xMockUser1234567890abcdef1234567890abcdef"

CONNECT = "connect"
APPROVE = "approve"
TRANSFER = "transfer"

_FAILURE_MESSAGES = {
    CONNECT: "User rejected wallet connection",
    APPROVE: "User rejected token approval",
    TRANSFER: "Transaction failed: insufficient gas",
}


class PaymentRailError(Exception):
    def __init__(self, operation: str, message: str) -> None:
        super().__init__(message)
        self.operation = operation


class FailurePolicy(Protocol):
    def should_fail(self, operation: str) -> bool: ...


class LatencyPolicy(Protocol):
    def delay_seconds(self, operation: str) -> float: ...


@dataclass
class RandomFailurePolicy:
    rates: dict[str, float] = field(
        default_factory=lambda: {CONNECT: 0.10, APPROVE: 0.05, TRANSFER: 0.05}
    )
    rng: random.Random = field(default_factory=random.Random)

    def should_fail(self, operation: str) -> bool:
        return self.rng.random() < self.rates.get(operation, 0.0)


class NeverFail:
    def should_fail(self, operation: str) -> bool:
        return False


@dataclass
class AlwaysFail:
    """Fail the listed operations (all of them when empty)."""

    operations: frozenset[str] = frozenset()

    def should_fail(self, operation: str) -> bool:
        return not self.operations or operation in self.operations


@dataclass
class RandomLatency:
    # (min_ms, max_ms) per operation
    ranges: dict[str, tuple[int, int]] = field(
        default_factory=lambda: {
            CONNECT: (800, 1500),
            APPROVE: (1000, 2500),
            TRANSFER: (1500, 3000),
        }
    )
    rng: random.Random = field(default_factory=random.Random)

    def delay_seconds(self, operation: str) -> float:
        low, high = self.ranges.get(operation, (100, 300))
        return self.rng.randint(low, high) / 1000


class NoLatency:
    def delay_seconds(self, operation: str) -> float:
        return 0.0


@dataclass(frozen=True, slots=True)
class PaymentReceipt:
    address: str
    approval_hash: str
    tx_hash: str


class FakeWallet:
    def __init__(
        self,
        *,
        failure_policy: FailurePolicy | None = None,
        latency: LatencyPolicy | None = None,
        rng: random.Random | None = None,
        address: str = MOCK_WALLET_ADDRESS,
    ) -> None:
        self._failures = failure_policy or RandomFailurePolicy()
        self._latency = latency or RandomLatency()
        self._rng = rng or random.Random()
        self.address = address

    async def connect(self) -> dict[str, str]:
        await self._step(CONNECT)
        logger.info("Wallet connected address=%s", self.address)
        return {"address": self.address}

    async def approve_or_permit(self, intent: PayIntent) -> dict[str, str]:
        await self._step(APPROVE)
        approval_hash = self._tx_hash(f"approve_{intent.token}_{intent.amount}")
        logger.info("Approval confirmed %s %s hash=%s", intent.amount, intent.token, approval_hash)
        return {"approvalHash": approval_hash}

    async def transfer(self, intent: PayIntent) -> dict[str, str]:
        await self._step(TRANSFER)
        tx_hash = self._tx_hash(
            f"transfer_{intent.to}_{intent.token}_{intent.amount}_{intent.data or ''}"
        )
        logger.info("Transfer confirmed %s %s to=%s tx=%s", intent.amount, intent.token, intent.to, tx_hash)
        return {"txHash": tx_hash}

    async def disconnect(self) -> None:
        await asyncio.sleep(self._latency.delay_seconds("disconnect"))
        logger.info("Wallet disconnected")

    async def full_payment_flow(self, intent: PayIntent) -> PaymentReceipt:
        address = (await self.connect())["address"]
        approval_hash = (await self.approve_or_permit(intent))["approvalHash"]
        tx_hash = (await self.transfer(intent))["txHash"]
        return PaymentReceipt(address=address, approval_hash=approval_hash, tx_hash=tx_hash)

    async def _step(self, operation: str) -> None:
        await asyncio.sleep(self._latency.delay_seconds(operation))
        if self._failures.should_fail(operation):
            PAYMENT_RAIL_OPERATIONS.labels(operation=operation, result="failed").inc()
            logger.warning("Wallet %s failed", operation)
            raise PaymentRailError(operation, _FAILURE_MESSAGES[operation])
        PAYMENT_RAIL_OPERATIONS.labels(operation=operation, result="ok").inc()

    def _tx_hash(self, seed: str) -> str:
        # 0x + 64 hex chars, unique per call
        salt = random_base36(self._rng, 13)
        return "0x" + hashlib.sha256(f"{seed}{salt}".encode()).hexdigest()
