from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Course:
    id: str
    name: str
    price: str  # decimal string, e.g. "99.00"


@dataclass(frozen=True, slots=True)
class User:
    id: str
    name: str
    wallet: str | None = None
