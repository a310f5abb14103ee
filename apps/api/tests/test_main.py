"""
Tests for the root and health endpoints.
"""

from unittest.mock import AsyncMock, patch

from skoolar import __version__


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["message"] == "Skoolar API is running"
    assert body["version"] == __version__


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["uptime"] >= 0
    assert "timestamp" in body


def test_ready_when_database_reachable(client):
    with (
        patch("skoolar.main.init_db", new=AsyncMock()),
        patch("skoolar.main.get_redis", return_value=None),
    ):
        response = client.get("/ready")

    assert response.status_code == 200
    assert response.json()["checks"] == {"database": "ok", "redis": "disabled"}


def test_not_ready_when_database_down(client):
    with (
        patch("skoolar.main.init_db", new=AsyncMock(side_effect=OSError("refused"))),
        patch("skoolar.main.get_redis", return_value=None),
    ):
        response = client.get("/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"
