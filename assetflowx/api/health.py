"""Liveness and readiness probes.

  /health   always 200 while the process answers; ``status`` reports
            "degraded" when Redis is configured but unreachable, and the
            ledger sizes are included for a quick look at the instance.
  /ready    200 unless Redis is configured and down.  The replay cache
            lives there, so an instance without it must not take POSTs.
"""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from assetflowx.db import redis as redis_db
from assetflowx.services.credential_service import credential_service
from assetflowx.services.order_service import order_service

router = APIRouter(tags=["health"])


async def _redis_status() -> str:
    if redis_db.redis_pool is None:
        return "not_configured"
    return "ok" if await redis_db.ping_redis() else "degraded"


@router.get("/health")
async def health() -> dict:
    redis_status = await _redis_status()
    return {
        "status": "degraded" if redis_status == "degraded" else "ok",
        "checks": {"redis": redis_status},
        "ledger": {
            "orders": len(order_service.orders.list_all()),
            "settlements": len(order_service.settlements.list_all()),
            "credentials": len(credential_service.credentials.list_all()),
        },
    }


@router.get("/ready")
async def ready() -> Response:
    if await _redis_status() == "degraded":
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
