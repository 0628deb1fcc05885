from __future__ import annotations

import dataclasses

import pytest
from fastapi.testclient import TestClient

from assetflowx import main
from assetflowx.db import redis as redis_db
from tests.conftest import create_order


def test_health_returns_ok(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    # No REDIS_URL under test
    assert data["checks"]["redis"] == "not_configured"


def test_health_reports_ledger_sizes(client: TestClient) -> None:
    create_order(client)
    ledger = client.get("/health").json()["ledger"]
    assert ledger == {"orders": 1, "settlements": 0, "credentials": 0}


def test_ready_returns_200(client: TestClient) -> None:
    assert client.get("/ready").status_code == 200


def test_lifespan_seeds_demo_data(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main, "SETTINGS", dataclasses.replace(main.SETTINGS, seed_demo_data=True))
    with TestClient(main.app) as seeded:
        ledger = seeded.get("/health").json()["ledger"]
    assert ledger == {"orders": 10, "settlements": 2, "credentials": 5}


@pytest.fixture
def redis_down(monkeypatch: pytest.MonkeyPatch) -> None:
    async def unreachable() -> bool:
        return False

    monkeypatch.setattr(redis_db, "redis_pool", object())
    monkeypatch.setattr(redis_db, "ping_redis", unreachable)


@pytest.mark.usefixtures("redis_down")
def test_health_degraded_when_redis_unreachable(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "degraded"
    assert resp.json()["checks"]["redis"] == "degraded"


@pytest.mark.usefixtures("redis_down")
def test_ready_is_503_when_redis_unreachable(client: TestClient) -> None:
    assert client.get("/ready").status_code == 503
