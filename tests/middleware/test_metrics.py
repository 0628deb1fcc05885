"""Counters in the default registry never reset, so assertions use deltas."""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from tests.conftest import create_order


def _get_sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def test_request_counter_increments(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/health")
    assert _get_sample("http_requests_total", labels) - before == 1


def test_endpoint_label_uses_route_template(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/api/orders/{order_id}", "status_code": "404"}
    before = _get_sample("http_requests_total", labels)
    client.get("/api/orders/ord_a")
    client.get("/api/orders/ord_b")
    assert _get_sample("http_requests_total", labels) - before == 2


def test_request_duration_histogram_observes(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/api/courses"}
    before = _get_sample("http_request_duration_seconds_count", labels)
    client.get("/api/courses")
    assert _get_sample("http_request_duration_seconds_count", labels) - before == 1


def test_scrapes_are_not_counted(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/metrics", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/metrics")
    assert _get_sample("http_requests_total", labels) == before


def test_metrics_endpoint_exposes_ledger_counters(client: TestClient) -> None:
    create_order(client)
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    for name in (
        "http_requests_total",
        "orders_created_total",
        "order_transitions_total",
        "idempotency_lookups_total",
        "credentials_issued_total",
    ):
        assert name in resp.text


def test_orders_created_counter(client: TestClient) -> None:
    labels = {"token": "ETH", "chain": "polygon-amoy"}
    before = _get_sample("orders_created_total", labels)
    create_order(client, "course_nft_art", "ETH", "polygon-amoy")
    assert _get_sample("orders_created_total", labels) - before == 1
