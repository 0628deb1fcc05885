"""Payment confirmation.

The wallet transfer happens client-side; this endpoint records its tx hash
against a PENDING order.
"""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from assetflowx.api.dependencies import IdempotencyKey
from assetflowx.services.order_service import order_service

router = APIRouter(prefix="/api/payments", tags=["payments"])


class ConfirmPaymentIn(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order_id: str = Field(min_length=1)
    tx_hash: str = Field(min_length=1)


@router.post("/confirm")
async def confirm_payment(
    body: ConfirmPaymentIn, idempotency_key: IdempotencyKey = None
) -> dict:
    return await order_service.confirm_payment(
        body.order_id, body.tx_hash, idempotency_key=idempotency_key
    )
