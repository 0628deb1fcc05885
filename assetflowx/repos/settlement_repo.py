from __future__ import annotations

from typing import Protocol

from assetflowx.models.order import Settlement


class SettlementRepo(Protocol):
    def get(self, order_id: str) -> Settlement | None: ...
    def add(self, settlement: Settlement) -> None: ...
    def list_all(self) -> list[Settlement]: ...
    def clear(self) -> None: ...


class InMemorySettlementRepo:
    def __init__(self) -> None:
        self._by_order_id: dict[str, Settlement] = {}

    def get(self, order_id: str) -> Settlement | None:
        return self._by_order_id.get(order_id)

    def add(self, settlement: Settlement) -> None:
        # One settlement per order, never rewritten.
        if settlement.order_id in self._by_order_id:
            raise ValueError(f"settlement for order {settlement.order_id} already exists")
        self._by_order_id[settlement.order_id] = settlement

    def list_all(self) -> list[Settlement]:
        return list(self._by_order_id.values())

    def clear(self) -> None:
        self._by_order_id.clear()
