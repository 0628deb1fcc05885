"""Prometheus metric inventory.

Every metric the service exports is declared here; the owning modules
import and update them at the point of action.

HTTP metrics are fed by MetricsMiddleware.  Ledger metrics are fed by the
order, credential and idempotency services:

  order_transitions_total         one increment per lifecycle edge taken,
                                  e.g. rate(...{to_status="EXPIRED"}[1h])
                                  shows how many checkouts time out.
  idempotency_lookups_total       hit / miss / expired.  A rising hit rate
                                  means clients are retrying a lot.
  credentials_issued_total        by credential type.
  credential_verifications_total  by lookup method and outcome.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Ledger metrics
# ---------------------------------------------------------------------------

ORDER_TRANSITIONS = Counter(
    "order_transitions_total",
    "Order lifecycle transitions",
    ["from_status", "to_status"],
)

ORDERS_CREATED = Counter(
    "orders_created_total",
    "Orders created by token and chain",
    ["token", "chain"],
)

SETTLEMENTS_RELEASED = Counter(
    "settlements_released_total",
    "Settlements released to instructors",
)

IDEMPOTENCY_LOOKUPS = Counter(
    "idempotency_lookups_total",
    "Idempotency cache lookups by result",
    ["result"],  # "hit", "miss" or "expired"
)

CREDENTIALS_ISSUED = Counter(
    "credentials_issued_total",
    "Credentials issued by type",
    ["type"],
)

CREDENTIAL_VERIFICATIONS = Counter(
    "credential_verifications_total",
    "Credential verifications by lookup method and result",
    ["method", "result"],  # method: id|url|onchain, result: valid|invalid
)

PAYMENT_RAIL_OPERATIONS = Counter(
    "payment_rail_operations_total",
    "Simulated wallet operations by result",
    ["operation", "result"],  # result: ok|failed
)
