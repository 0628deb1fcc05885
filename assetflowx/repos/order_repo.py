from __future__ import annotations

from typing import Protocol

from assetflowx.models.order import Order


class OrderRepo(Protocol):
    def get(self, order_id: str) -> Order | None: ...
    def add(self, order: Order) -> None: ...
    def save(self, order: Order) -> None: ...
    def list_all(self) -> list[Order]: ...
    def clear(self) -> None: ...


class InMemoryOrderRepo:
    """Append-only order ledger: orders are replaced on transition, never removed."""

    def __init__(self) -> None:
        self._by_id: dict[str, Order] = {}

    def get(self, order_id: str) -> Order | None:
        return self._by_id.get(order_id)

    def add(self, order: Order) -> None:
        if order.id in self._by_id:
            raise ValueError(f"order {order.id} already exists")
        self._by_id[order.id] = order

    def save(self, order: Order) -> None:
        if order.id not in self._by_id:
            raise KeyError("order not found")
        self._by_id[order.id] = order

    def list_all(self) -> list[Order]:
        return list(self._by_id.values())

    def clear(self) -> None:
        self._by_id.clear()
