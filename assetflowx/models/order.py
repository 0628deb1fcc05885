from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass


class ChainId(enum.StrEnum):
    BASE_SEPOLIA = "base-sepolia"
    POLYGON_AMOY = "polygon-amoy"
    SOLANA_DEVNET = "solana-devnet"


class TokenType(enum.StrEnum):
    USDC = "USDC"
    USDT = "USDT"
    ETH = "ETH"


class OrderStatus(enum.StrEnum):
    PENDING = "PENDING"  # created, awaiting payment
    PAID = "PAID"  # payment confirmed on-chain
    SETTLED = "SETTLED"  # funds released to instructor
    REFUNDED = "REFUNDED"
    EXPIRED = "EXPIRED"  # payment deadline passed


# Statuses in which the order carries a confirmed transaction hash.
TX_BEARING_STATUSES = frozenset(
    {OrderStatus.PAID, OrderStatus.SETTLED, OrderStatus.REFUNDED}
)


@dataclass(frozen=True, slots=True)
class Order:
    """A purchase intent for a course.

    ``price`` and ``platform_fee_bps`` are captured at creation and never
    change; settlement is always computed from them.
    """

    id: str
    course_id: str
    user_id: str
    chain: ChainId
    token: TokenType
    price: str
    platform_fee_bps: int
    status: OrderStatus
    created_at: datetime.datetime
    updated_at: datetime.datetime
    onchain_tx: str | None = None
    expires_at: datetime.datetime | None = None

    def __post_init__(self) -> None:
        has_tx = self.onchain_tx is not None
        if has_tx != (self.status in TX_BEARING_STATUSES):
            raise ValueError(
                f"onchain_tx must be set iff status is PAID/SETTLED/REFUNDED "
                f"(order={self.id} status={self.status} onchain_tx={self.onchain_tx!r})"
            )

    def is_expired(self, now: datetime.datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now


@dataclass(frozen=True, slots=True)
class PayIntent:
    """What the payment rail is asked to execute for an order."""

    to: str
    token: TokenType
    amount: str
    data: str | None = None


@dataclass(frozen=True, slots=True)
class Settlement:
    order_id: str
    platform_share: str
    instructor_share: str
    released_at: datetime.datetime | None = None
