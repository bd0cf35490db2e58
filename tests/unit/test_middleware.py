"""Tests for the raw ASGI middleware on a minimal FastAPI app."""

import asyncio

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from solarify.application.services.performance_monitor import PerformanceMonitor
from solarify.middleware import (
    CorrelationIDMiddleware,
    PerformanceMetricsMiddleware,
    RequestIDMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
    TimeoutMiddleware,
)
from solarify.middleware.request_id import sanitize_request_id


def build_app(monitor: PerformanceMonitor | None = None) -> FastAPI:
    app = FastAPI()

    @app.get("/ids")
    async def ids(request: Request) -> dict:
        return {
            "request_id": request.state.request_id,
            "correlation_id": request.state.correlation_id,
        }

    @app.post("/echo")
    async def echo(request: Request) -> dict:
        return {"size": len(await request.body())}

    @app.get("/slow")
    async def slow() -> dict:
        await asyncio.sleep(1)
        return {"ok": True}

    @app.get("/boom")
    async def boom() -> dict:
        raise RuntimeError("boom")

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_middleware(RequestIDMiddleware)
    if monitor is not None:
        app.add_middleware(PerformanceMetricsMiddleware, monitor=monitor)
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=16)
    app.add_middleware(TimeoutMiddleware, timeout_seconds=0.2)
    return app


@pytest.fixture
async def mw_client():
    async with AsyncClient(transport=ASGITransport(app=build_app()), base_url="http://test") as ac:
        yield ac


def test_sanitize_request_id() -> None:
    assert sanitize_request_id("abc-123_X") == "abc-123_X"
    assert sanitize_request_id("  abc  ") == "abc"
    generated = sanitize_request_id("bad id with spaces")
    assert len(generated) == 36
    assert sanitize_request_id("x" * 65) != "x" * 65
    assert sanitize_request_id(None) != ""


async def test_request_id_generated_and_echoed(mw_client: AsyncClient) -> None:
    response = await mw_client.get("/ids")
    request_id = response.headers["X-Request-ID"]
    assert response.json()["request_id"] == request_id
    # Without a client correlation id the request id is reused
    assert response.headers["X-Correlation-ID"] == request_id


async def test_client_ids_forwarded(mw_client: AsyncClient) -> None:
    response = await mw_client.get("/ids", headers={"X-Request-ID": "req-1", "X-Correlation-ID": "corr-9"})
    assert response.headers["X-Request-ID"] == "req-1"
    assert response.json() == {"request_id": "req-1", "correlation_id": "corr-9"}


async def test_unsafe_request_id_replaced(mw_client: AsyncClient) -> None:
    response = await mw_client.get("/ids", headers={"X-Request-ID": "<script>"})
    assert response.headers["X-Request-ID"] != "<script>"


async def test_security_headers(mw_client: AsyncClient) -> None:
    response = await mw_client.get("/ids")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["Content-Security-Policy"].startswith("default-src 'none'")


async def test_docs_get_relaxed_csp(mw_client: AsyncClient) -> None:
    response = await mw_client.get("/docs")
    assert "cdn.jsdelivr.net" in response.headers["Content-Security-Policy"]


async def test_body_within_limit_passes(mw_client: AsyncClient) -> None:
    response = await mw_client.post("/echo", content=b"x" * 16)
    assert response.status_code == 200
    assert response.json() == {"size": 16}


async def test_body_over_limit_rejected(mw_client: AsyncClient) -> None:
    response = await mw_client.post("/echo", content=b"x" * 17)
    assert response.status_code == 413
    body = response.json()
    assert body["error"] == "PAYLOAD_TOO_LARGE"
    assert body["details"] == {"max_bytes": 16, "content_length": 17}


async def test_chunked_body_over_limit_rejected(mw_client: AsyncClient) -> None:
    async def chunks():
        for _ in range(3):
            yield b"x" * 8

    response = await mw_client.post("/echo", content=chunks())
    assert response.status_code == 413


async def test_slow_request_times_out(mw_client: AsyncClient) -> None:
    response = await mw_client.get("/slow")
    assert response.status_code == 504
    assert response.json()["error"] == "GATEWAY_TIMEOUT"


async def test_performance_metrics_record_requests() -> None:
    monitor = PerformanceMonitor(capacity=10)
    transport = ASGITransport(app=build_app(monitor), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        await ac.get("/ids")
        await ac.get("/missing")
        await ac.get("/boom")

    samples = monitor.samples()
    assert [(s.method, s.path, s.status) for s in samples] == [
        ("GET", "/ids", 200),
        ("GET", "/missing", 404),
        ("GET", "/boom", 500),
    ]
    assert all(s.duration_ms >= 0 for s in samples)
