from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from assetflowx.api.courses import router as courses_router
from assetflowx.api.credentials import router as credentials_router
from assetflowx.api.health import router as health_router
from assetflowx.api.metrics_endpoint import router as metrics_router
from assetflowx.api.orders import router as orders_router
from assetflowx.api.payments import router as payments_router
from assetflowx.api.settlements import router as settlements_router
from assetflowx.api.users import router as users_router
from assetflowx.core.config import SETTINGS
from assetflowx.core.errors import AssetFlowError
from assetflowx.core.logging import setup_logging
from assetflowx.db.redis import lifespan_redis
from assetflowx.middleware.metrics import MetricsMiddleware
from assetflowx.middleware.request_context import RequestContextMiddleware
from assetflowx.services.credential_service import credential_service
from assetflowx.services.order_service import order_service
from assetflowx.services.seed import seed_demo_data

# Before any module logger emits.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    if SETTINGS.seed_demo_data:
        seed_demo_data(order_service, credential_service)
    async with lifespan_redis():
        yield


app = FastAPI(
    title="assetflowx-payments",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last added runs first: RequestContext → Metrics → CORS → route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)


# ---------------------------------------------------------------------------
# Error rendering: every failure leaves as {"error": ..., "details"?: ...}
# ---------------------------------------------------------------------------


@app.exception_handler(AssetFlowError)
async def asset_flow_error_handler(_request: Request, exc: AssetFlowError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    in_body = any(err.get("loc", ("",))[0] == "body" for err in errors)
    logger.info("Rejected invalid request %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=422,
        content={
            "error": "Invalid request body" if in_body else "Invalid request parameters",
            "details": jsonable_encoder(errors),
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(courses_router)
app.include_router(users_router)
app.include_router(orders_router)
app.include_router(payments_router)
app.include_router(settlements_router)
app.include_router(credentials_router)

logger.info(
    "assetflowx started  env=%s log_level=%s port=%d fee_bps=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    SETTINGS.platform_fee_bps,
    "on" if SETTINGS.is_dev else "off",
)
