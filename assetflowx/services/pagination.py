from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    data: list[T]
    page: int
    limit: int
    total: int
    total_pages: int


def paginate(items: Sequence[T], page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> Page[T]:
    """Slice one 1-based page out of an already sorted sequence."""
    if page < 1:
        raise ValueError("page must be >= 1")
    if limit < 1:
        raise ValueError("limit must be >= 1")

    total = len(items)
    start = (page - 1) * limit
    return Page(
        data=list(items[start : start + limit]),
        page=page,
        limit=limit,
        total=total,
        total_pages=math.ceil(total / limit),
    )
