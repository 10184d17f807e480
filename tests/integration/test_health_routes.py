"""Integration tests for health check endpoints.

Tests the /health, /info, and /metrics endpoints.
"""

from fastapi.testclient import TestClient


class TestHealthEndpoint:
    """Tests for GET /health endpoint."""

    def test_health_returns_ok_when_enabled(self, client_with_health_enabled: TestClient):
        """Health check returns OK when enabled."""
        response = client_with_health_enabled.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OK"

    def test_health_returns_404_when_disabled(self, client_with_health_disabled: TestClient):
        """Health check returns 404 when disabled (graceful shutdown)."""
        response = client_with_health_disabled.get("/health")

        assert response.status_code == 404

    def test_health_returns_404_once_threads_shut_down(
        self, client_with_health_enabled: TestClient
    ):
        """An instance stopping its threads leaves the load balancer pool."""
        manager = client_with_health_enabled.app.state.thread_manager  # type: ignore[attr-defined]
        client_with_health_enabled.portal.call(manager.shutdown)  # type: ignore[union-attr]

        assert client_with_health_enabled.get("/health").status_code == 404


class TestInfoEndpoint:
    """Tests for GET /info endpoint."""

    def test_info_contains_metadata(self, client: TestClient):
        """Info endpoint contains service metadata."""
        response = client.get("/info")

        assert response.status_code == 200
        data = response.json()
        assert "started" in data
        assert "hostname" in data
        assert data["service_name"]

    def test_info_contains_uptime(self, client: TestClient):
        data = client.get("/info").json()
        assert isinstance(data["uptime_seconds"], (int, float))
        assert data["uptime_seconds"] >= 0

    def test_info_counts_threads(self, client: TestClient):
        """Info reports how many threads are running."""
        assert client.get("/info").json()["threads"] == 0

        client.post("/threads", json={"name": "a"})
        client.post("/threads", json={"name": "b"})

        data = client.get("/info").json()
        assert data["threads"] == 2
        assert data["threads_by_status"] == {"ready": 2}


class TestMetricsEndpoint:
    """Tests for GET /metrics endpoint."""

    def test_metrics_prometheus_format(self, client: TestClient):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]

    def test_metrics_contains_thread_gauges(self, client: TestClient):
        """Thread metrics are exported once a thread has been started."""
        client.post("/threads", json={"name": "a"})

        response = client.get("/metrics")

        assert "threads_active" in response.text
