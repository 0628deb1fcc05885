"""Request plumbing shared by the routers.

  IdempotencyKey   optional ``Idempotency-Key`` header on every POST
  Pagination       ``page`` / ``limit`` query params, validated here
  parse_enum_list  ``?status=PAID&status=SETTLED`` or ``?status=PAID,SETTLED``
"""

from __future__ import annotations

import datetime
import enum
import logging
from dataclasses import dataclass
from typing import Annotated, TypeVar

from fastapi import Depends, Header, HTTPException, Query, status

from assetflowx.services.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, Page

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=enum.Enum)

MAX_LIMIT = 100

IdempotencyKey = Annotated[str | None, Header(alias="Idempotency-Key")]


@dataclass(frozen=True, slots=True)
class PageParams:
    page: int
    limit: int


def _page_params(
    page: Annotated[int, Query(ge=1)] = DEFAULT_PAGE,
    limit: Annotated[int, Query(ge=1, le=MAX_LIMIT)] = DEFAULT_LIMIT,
) -> PageParams:
    return PageParams(page=page, limit=limit)


Pagination = Annotated[PageParams, Depends(_page_params)]


def pagination_body(page: Page) -> dict[str, int]:
    return {
        "page": page.page,
        "limit": page.limit,
        "total": page.total,
        "totalPages": page.total_pages,
    }


def parse_enum_list(
    raw: list[str] | None, enum_type: type[E], param: str
) -> frozenset[E] | None:
    """Collect repeated and comma-separated values into a set of members.

    Returns None when the parameter is absent or empty, so the filter is
    skipped.  An unknown value is a 422.
    """
    if not raw:
        return None
    members: set[E] = set()
    for chunk in raw:
        for value in chunk.split(","):
            value = value.strip()
            if not value:
                continue
            try:
                members.add(enum_type(value))
            except ValueError:
                logger.debug("Rejected %s filter value %r", param, value)
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
                    detail=f"Invalid {param}: {value}",
                ) from None
    return frozenset(members) or None


def as_utc(moment: datetime.datetime | None) -> datetime.datetime | None:
    """Query datetimes without an offset are taken as UTC."""
    if moment is None or moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=datetime.UTC)
