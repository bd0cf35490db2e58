"""Smoke tests for health and app wiring."""

from httpx import AsyncClient

from solarify.main import app


async def test_health_returns_ok(client: AsyncClient) -> None:
    """GET /api/v1/health returns 200 and status ok."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_root_returns_html(client: AsyncClient) -> None:
    """GET / returns HTML landing page linking the API docs."""
    response = await client.get("/")
    assert response.status_code == 200
    assert "text/html" in response.headers.get("content-type", "")
    assert "/docs" in response.text
    assert "/api/v1/health" in response.text


async def test_detailed_health_with_memory_backend(client: AsyncClient) -> None:
    """Memory store answers pings; no cache outside the lifespan reads as disabled."""
    response = await client.get("/api/v1/health/detailed")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["checks"]["database"]["status"] == "healthy"
    assert data["checks"]["cache"] == {"status": "healthy", "response_time_ms": None, "message": "disabled"}
    assert data["checks"]["realtime_database"]["status"] == "healthy"
    assert data["uptime_seconds"] >= 0


async def test_responses_carry_request_and_security_headers(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"
    assert response.headers["X-Correlation-ID"] == "abc-123"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


async def test_unknown_route_uses_error_body(client: AsyncClient) -> None:
    response = await client.get("/api/v1/nope")
    assert response.status_code == 404
    assert response.json()["error"] == "HTTP_ERROR"


async def test_requests_are_sampled(client: AsyncClient) -> None:
    await client.get("/api/v1/health")
    samples = app.state.performance_monitor.samples()
    assert [(s.method, s.path, s.status) for s in samples] == [("GET", "/api/v1/health", 200)]
