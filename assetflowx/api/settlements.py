from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from assetflowx.api.dependencies import IdempotencyKey
from assetflowx.services.order_service import order_service, settlement_to_dict

router = APIRouter(prefix="/api/settlements", tags=["settlements"])


class ReleaseSettlementIn(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order_id: str = Field(min_length=1)


@router.post("/release")
async def release_settlement(
    body: ReleaseSettlementIn, idempotency_key: IdempotencyKey = None
) -> dict:
    """Split a PAID order's price between platform and instructor."""
    return await order_service.release_settlement(
        body.order_id, idempotency_key=idempotency_key
    )


@router.get("/{order_id}")
async def get_settlement(order_id: str) -> dict:
    return settlement_to_dict(order_service.get_settlement(order_id))
