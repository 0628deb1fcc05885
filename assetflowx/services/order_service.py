"""Order, payment and settlement lifecycle.

Flow driven by a checkout client:

  create_order        PENDING, price snapshot, 15-minute payment deadline,
                      pay intent for the wallet to execute
  (wallet transfer)   happens outside this service, yields a tx hash
  confirm_payment     PENDING -> PAID (or -> EXPIRED past the deadline)
  release_settlement  PAID -> SETTLED, records the fee split

All mutations and their idempotency bookkeeping run under one asyncio.Lock,
so two concurrent confirm/release calls on the same order cannot both pass
the status check.  Every precondition is checked before anything is
written.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
import random
from dataclasses import dataclass
from typing import Any

from assetflowx.core.clock import Clock, isoformat_z, utcnow
from assetflowx.core.config import SETTINGS
from assetflowx.core.errors import InvalidStateError, NotFoundError, OrderExpiredError
from assetflowx.core.metrics import ORDERS_CREATED, SETTLEMENTS_RELEASED
from assetflowx.models.order import (
    ChainId,
    Order,
    OrderStatus,
    PayIntent,
    Settlement,
    TokenType,
)
from assetflowx.repos.order_repo import InMemoryOrderRepo, OrderRepo
from assetflowx.repos.reference_repo import ReferenceRepo, reference_data
from assetflowx.repos.settlement_repo import InMemorySettlementRepo, SettlementRepo
from assetflowx.services.idempotency import IdempotencyGate, idempotency_store
from assetflowx.services.ids import new_order_id
from assetflowx.services.order_state import transition
from assetflowx.services.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, Page, paginate
from assetflowx.services.settlement import compute_fee_split, format_amount

logger = logging.getLogger(__name__)

# Orders are placed on behalf of this user until checkout carries an identity.
DEFAULT_USER_ID = "u_alice"


@dataclass(frozen=True, slots=True)
class OrderFilters:
    statuses: frozenset[OrderStatus] | None = None
    token: TokenType | None = None
    chain: ChainId | None = None
    start_date: datetime.datetime | None = None
    end_date: datetime.datetime | None = None

    def matches(self, order: Order) -> bool:
        if self.statuses and order.status not in self.statuses:
            return False
        if self.token is not None and order.token != self.token:
            return False
        if self.chain is not None and order.chain != self.chain:
            return False
        if self.start_date is not None and order.created_at < self.start_date:
            return False
        if self.end_date is not None and order.created_at > self.end_date:
            return False
        return True


# ---------------------------------------------------------------------------
# Wire shapes (camelCase, as cached for idempotent replay)
# ---------------------------------------------------------------------------


def order_to_dict(order: Order) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": order.id,
        "courseId": order.course_id,
        "userId": order.user_id,
        "chain": order.chain.value,
        "token": order.token.value,
        "price": order.price,
        "platformFeeBps": order.platform_fee_bps,
        "status": order.status.value,
        "createdAt": isoformat_z(order.created_at),
        "updatedAt": isoformat_z(order.updated_at),
    }
    if order.onchain_tx is not None:
        data["onchainTx"] = order.onchain_tx
    if order.expires_at is not None:
        data["expiresAt"] = isoformat_z(order.expires_at)
    return data


def pay_intent_to_dict(intent: PayIntent) -> dict[str, Any]:
    data: dict[str, Any] = {
        "to": intent.to,
        "token": intent.token.value,
        "amount": intent.amount,
    }
    if intent.data is not None:
        data["data"] = intent.data
    return data


def settlement_to_dict(settlement: Settlement) -> dict[str, Any]:
    return {
        "orderId": settlement.order_id,
        "instructorShare": settlement.instructor_share,
        "platformShare": settlement.platform_share,
        "releasedAt": (
            isoformat_z(settlement.released_at) if settlement.released_at else None
        ),
    }


class OrderService:
    def __init__(
        self,
        *,
        orders: OrderRepo,
        settlements: SettlementRepo,
        reference: ReferenceRepo,
        idempotency: IdempotencyGate,
        clock: Clock = utcnow,
        platform_fee_bps: int = 1000,
        order_ttl_seconds: int = 15 * 60,
        vault_address: str = "0xMockVaultAddress1234567890abcdef1234567890",
        rng: random.Random | None = None,
    ) -> None:
        self.orders = orders
        self.settlements = settlements
        self.reference = reference
        self.idempotency = idempotency
        self.clock = clock
        self.platform_fee_bps = platform_fee_bps
        self.order_ttl = datetime.timedelta(seconds=order_ttl_seconds)
        self.vault_address = vault_address
        self._rng = rng or random.SystemRandom()
        self._lock = asyncio.Lock()

    # -- commands -----------------------------------------------------------

    async def create_order(
        self,
        course_id: str,
        token: TokenType,
        chain: ChainId,
        *,
        user_id: str = DEFAULT_USER_ID,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        async with self._lock:
            return await self.idempotency.run(
                "orders.create",
                idempotency_key,
                lambda: self._create_order(course_id, token, chain, user_id),
            )

    async def confirm_payment(
        self,
        order_id: str,
        tx_hash: str,
        *,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        async with self._lock:
            return await self.idempotency.run(
                "payments.confirm",
                idempotency_key,
                lambda: self._confirm_payment(order_id, tx_hash),
            )

    async def release_settlement(
        self,
        order_id: str,
        *,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        async with self._lock:
            return await self.idempotency.run(
                "settlements.release",
                idempotency_key,
                lambda: self._release_settlement(order_id),
            )

    # -- queries ------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        order = self.orders.get(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def get_settlement(self, order_id: str) -> Settlement:
        settlement = self.settlements.get(order_id)
        if settlement is None:
            raise NotFoundError("Settlement not found")
        return settlement

    def list_orders(
        self,
        filters: OrderFilters | None = None,
        *,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> Page[Order]:
        filters = filters or OrderFilters()
        matching = [o for o in self.orders.list_all() if filters.matches(o)]
        matching.sort(key=lambda o: o.created_at, reverse=True)
        return paginate(matching, page, limit)

    def reset(self) -> None:
        self.orders.clear()
        self.settlements.clear()

    # -- internals (called with the lock held) ------------------------------

    def _create_order(
        self,
        course_id: str,
        token: TokenType,
        chain: ChainId,
        user_id: str,
    ) -> dict[str, Any]:
        course = self.reference.get_course_by_id(course_id)
        if course is None:
            logger.warning("Order rejected: unknown course=%s", course_id)
            raise NotFoundError("Course not found")
        if self.reference.get_user_by_id(user_id) is None:
            logger.warning("Order rejected: unknown user=%s", user_id)
            raise NotFoundError("User not found")

        now = self.clock()
        expires_at = now + self.order_ttl
        order = Order(
            id=new_order_id(now, self._rng),
            course_id=course.id,
            user_id=user_id,
            chain=chain,
            token=token,
            price=format_amount(course.price),
            platform_fee_bps=self.platform_fee_bps,
            status=OrderStatus.PENDING,
            created_at=now,
            updated_at=now,
            expires_at=expires_at,
        )
        self.orders.add(order)
        ORDERS_CREATED.labels(token=token.value, chain=chain.value).inc()
        logger.info(
            "Order created course=%s price=%s %s on %s",
            course.id,
            order.price,
            token,
            chain,
            extra={"order_id": order.id},
        )

        intent = PayIntent(
            to=self.vault_address,
            token=token,
            amount=order.price,
            data=f"0x{order.id}",
        )
        return {
            "orderId": order.id,
            "payIntent": pay_intent_to_dict(intent),
            "expiresAt": isoformat_z(expires_at),
        }

    def _confirm_payment(self, order_id: str, tx_hash: str) -> dict[str, Any]:
        order = self.get_order(order_id)

        if order.status != OrderStatus.PENDING:
            logger.warning(
                "Payment rejected: order is %s",
                order.status,
                extra={"order_id": order.id},
            )
            raise InvalidStateError(f"Order is already {order.status}")

        now = self.clock()
        if order.is_expired(now):
            self.orders.save(transition(order, OrderStatus.EXPIRED, now))
            logger.warning("Payment rejected: order expired", extra={"order_id": order.id})
            raise OrderExpiredError("Order has expired")

        paid = transition(order, OrderStatus.PAID, now, onchain_tx=tx_hash)
        self.orders.save(paid)
        return {"status": paid.status.value, "onchainTx": tx_hash}

    def _release_settlement(self, order_id: str) -> dict[str, Any]:
        order = self.get_order(order_id)

        if order.status != OrderStatus.PAID:
            logger.warning(
                "Settlement rejected: order is %s",
                order.status,
                extra={"order_id": order.id},
            )
            raise InvalidStateError(
                f"Cannot release settlement for order with status {order.status}"
            )

        now = self.clock()
        split = compute_fee_split(order.price, order.platform_fee_bps)
        settlement = Settlement(
            order_id=order.id,
            platform_share=split.platform_share,
            instructor_share=split.instructor_share,
            released_at=now,
        )
        settled = transition(order, OrderStatus.SETTLED, now)

        self.settlements.add(settlement)
        self.orders.save(settled)
        SETTLEMENTS_RELEASED.inc()
        logger.info(
            "Settlement released platform=%s instructor=%s",
            settlement.platform_share,
            settlement.instructor_share,
            extra={"order_id": order.id},
        )
        return {"status": settled.status.value, "settlement": settlement_to_dict(settlement)}


# ---------------------------------------------------------------------------
# Process-wide ledger used by the API routers
# ---------------------------------------------------------------------------

order_service = OrderService(
    orders=InMemoryOrderRepo(),
    settlements=InMemorySettlementRepo(),
    reference=reference_data,
    idempotency=IdempotencyGate(
        idempotency_store, ttl_seconds=SETTINGS.idempotency_ttl_seconds
    ),
    platform_fee_bps=SETTINGS.platform_fee_bps,
    order_ttl_seconds=SETTINGS.order_ttl_seconds,
    vault_address=SETTINGS.vault_address,
)
