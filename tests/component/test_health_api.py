"""Component tests for health endpoints, error envelopes and CORS."""

import pytest
from fastapi.testclient import TestClient

from app.core.config import EnvironmentMode

FAILING_PATH = "/api/_failing"


@pytest.fixture
def failing_client(celery_tasks):
    """Client for an app with one extra route that always raises."""
    from app.main import app as fastapi_app

    async def explode():
        raise RuntimeError("ledger offline")

    fastapi_app.add_api_route(FAILING_PATH, explode, methods=["GET"])
    route = fastapi_app.router.routes[-1]
    try:
        with TestClient(fastapi_app, raise_server_exceptions=False) as test_client:
            yield test_client
    finally:
        fastapi_app.router.routes.remove(route)


@pytest.mark.component
class TestHealth:
    """Test suite for the health endpoints."""

    def test_root(self, client) -> None:
        """Test that the root endpoint points at the health check."""
        data = client.get("/").json()
        assert data["health"] == "/api/health"
        assert data["environment"] == "development"

    def test_health_ok_without_redis(self, client) -> None:
        """Test that health reports OK while Redis is unreachable."""
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OK"
        assert data["database"] == "healthy"
        assert data["redis"].startswith("unhealthy")
        assert data["uptime"] >= 0

    def test_integrations_in_development(self, client) -> None:
        """Test that development reports the mock providers."""
        data = client.get("/api/health/integrations").json()

        assert data["success"] is True
        assert data["email"] == {"configured": True, "provider": "mock"}
        assert data["whatsapp"] == {"configured": True, "provider": "mock"}


@pytest.mark.component
class TestErrorEnvelopes:
    """Test suite for the shared error responses."""

    def test_unknown_route(self, client) -> None:
        """Test that an unmatched path returns the route-not-found body."""
        response = client.get("/api/nowhere")
        assert response.status_code == 404
        assert response.json() == {"message": "Route not found"}

    def test_wrong_method_is_route_not_found(self, client) -> None:
        """Test that a known path with the wrong method returns route not found."""
        response = client.delete("/api/health")
        assert response.status_code == 404
        assert response.json() == {"message": "Route not found"}

    def test_http_error(self, client) -> None:
        """Test that HTTP errors use the success/message envelope."""
        response = client.get("/api/orders/track/ORD-UNKNOWN")
        assert response.json() == {"success": False, "message": "Order not found"}

    def test_validation_error(self, client) -> None:
        """Test that validation errors list each failing field."""
        response = client.post("/api/orders", json={"resID": "RES1"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        fields = {e["field"] for e in body["errors"]}
        assert {"qrID", "customer", "items"} <= fields

    def test_unhandled_error_in_development(self, failing_client) -> None:
        """Test that an unhandled error includes its text in development."""
        response = failing_client.get(FAILING_PATH)

        assert response.status_code == 500
        assert response.json() == {"message": "Something went wrong!", "error": "ledger offline"}

    def test_unhandled_error_hides_detail_outside_development(self, failing_client, monkeypatch) -> None:
        """Test that an unhandled error hides its text outside development."""
        import app.main as main_module

        monkeypatch.setattr(main_module.settings, "env_mode", EnvironmentMode.PRODUCTION)
        response = failing_client.get(FAILING_PATH)

        assert response.status_code == 500
        assert response.json() == {"message": "Something went wrong!", "error": {}}

@pytest.mark.component
class TestCORS:
    """Test suite for the origin allowlist."""

    def test_allowed_origin(self, client) -> None:
        """Test that a listed origin gets CORS headers with credentials."""
        response = client.get("/api/health", headers={"Origin": "http://localhost:3000"})
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert response.headers["access-control-allow-credentials"] == "true"

    def test_preflight_allowed(self, client) -> None:
        """Test that a preflight from a listed origin succeeds."""
        response = client.options(
            "/api/orders",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )
        assert response.status_code == 200
        assert "POST" in response.headers["access-control-allow-methods"]

    def test_preflight_disallowed(self, client) -> None:
        """Test that a preflight from an unlisted origin is refused."""
        response = client.options(
            "/api/orders",
            headers={"Origin": "https://evil.example.com", "Access-Control-Request-Method": "POST"},
        )
        assert response.status_code == 400
        assert "access-control-allow-origin" not in response.headers

    def test_simple_request_disallowed(self, client) -> None:
        """Test that an unlisted origin gets no CORS headers."""
        response = client.get("/api/health", headers={"Origin": "https://evil.example.com"})
        assert "access-control-allow-origin" not in response.headers
