"""Prometheus scrape target.

Text exposition format, not JSON.  Besides the HTTP metrics this carries
the ledger counters: order transitions, settlements, credential issuance
and verification, idempotency hits, wallet operations.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
