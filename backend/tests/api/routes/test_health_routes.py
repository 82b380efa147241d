"""Tests for /health and /health/pools."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from querygate.core.errors import ConnectionLost
from querygate.core.pool import HealthStatus
from querygate.models import HealthState, ServiceEnum
from tests.utils.fakes import FakeDatabase


def test_health_ok(client: TestClient) -> None:
    """GET /health returns 200 with status ok when every pool answers SELECT 1."""
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["dbConnected"] is True
    assert data["timestamp"]


def test_health_unavailable_returns_503(client: TestClient, fake_db: FakeDatabase) -> None:
    """GET /health returns 503 when no connection can be opened."""
    fake_db.connect_error = ConnectionLost()
    r = client.get("/health")
    assert r.status_code == 503
    data = r.json()
    assert data["status"] == "unavailable"
    assert data["dbConnected"] is False


def test_health_degraded_is_200(client: TestClient) -> None:
    with patch(
        "querygate.api.routes.health.check_all",
        return_value=HealthStatus(HealthState.DEGRADED, detail="hr: pool utilization 90%"),
    ):
        r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "degraded"
    assert r.json()["dbConnected"] is True


def test_pool_stats(client: TestClient) -> None:
    client.get("/health")
    r = client.get("/health/pools")
    assert r.status_code == 200
    stats = {p["name"]: p for p in r.json()}
    assert set(stats) == {s.value for s in ServiceEnum}
    assert all(p["in_use"] == 0 for p in stats.values())
