"""Order endpoints.

  POST /api/orders          -> 201 {orderId, payIntent, expiresAt}
  GET  /api/orders          -> {data, pagination}, newest first
  GET  /api/orders/{id}     -> Order
"""

from __future__ import annotations

import datetime
from typing import Annotated

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from assetflowx.api.dependencies import (
    IdempotencyKey,
    Pagination,
    as_utc,
    pagination_body,
    parse_enum_list,
)
from assetflowx.models.order import ChainId, OrderStatus, TokenType
from assetflowx.services.order_service import (
    DEFAULT_USER_ID,
    OrderFilters,
    order_service,
    order_to_dict,
)

router = APIRouter(prefix="/api/orders", tags=["orders"])


class CreateOrderIn(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    course_id: str
    token: TokenType
    chain: ChainId
    user_id: str = DEFAULT_USER_ID


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(body: CreateOrderIn, idempotency_key: IdempotencyKey = None) -> dict:
    return await order_service.create_order(
        body.course_id,
        body.token,
        body.chain,
        user_id=body.user_id,
        idempotency_key=idempotency_key,
    )


@router.get("")
async def list_orders(
    pagination: Pagination,
    status_: Annotated[list[str] | None, Query(alias="status")] = None,
    token: TokenType | None = None,
    chain: ChainId | None = None,
    start_date: Annotated[datetime.datetime | None, Query(alias="startDate")] = None,
    end_date: Annotated[datetime.datetime | None, Query(alias="endDate")] = None,
) -> dict:
    filters = OrderFilters(
        statuses=parse_enum_list(status_, OrderStatus, "status"),
        token=token,
        chain=chain,
        start_date=as_utc(start_date),
        end_date=as_utc(end_date),
    )
    page = order_service.list_orders(
        filters, page=pagination.page, limit=pagination.limit
    )
    return {
        "data": [order_to_dict(o) for o in page.data],
        "pagination": pagination_body(page),
    }


@router.get("/{order_id}")
async def get_order(order_id: str) -> dict:
    return order_to_dict(order_service.get_order(order_id))
