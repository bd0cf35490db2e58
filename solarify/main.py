"""ASGI entry point: `uvicorn solarify.main:app`.

create_app() reads settings when called, so tests set the environment
before importing this module.
"""

import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from solarify.api.v1 import api_router
from solarify.application.services.performance_monitor import PerformanceMonitor
from solarify.core.config import Settings, get_settings
from solarify.core.exception_handlers import register_exception_handlers
from solarify.core.lifespan import create_lifespan
from solarify.core.limiter import limiter
from solarify.middleware import (
    CorrelationIDMiddleware,
    PerformanceMetricsMiddleware,
    RequestIDMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
    TimeoutMiddleware,
)
from solarify.pages import render_root_page
from solarify.shared.telemetry import setup_logging


def _install_middleware(app: FastAPI, settings: Settings) -> None:
    # add_middleware prepends, so the last one added runs first on a request:
    # timeout, size limit, metrics, request id, correlation id, security headers, CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CorrelationIDMiddleware, header_name=settings.correlation_id_header)
    app.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)
    app.add_middleware(PerformanceMetricsMiddleware, monitor=app.state.performance_monitor)
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size)
    app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging()

    app = FastAPI(
        title="Solarify API",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )
    app.state.limiter = limiter
    app.state.performance_monitor = PerformanceMonitor(settings.performance_buffer_size)
    app.state.started_at = time.monotonic()

    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_exception_handlers(app)
    _install_middleware(app, settings)
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/", response_class=HTMLResponse, include_in_schema=False)
    def landing_page() -> HTMLResponse:
        return HTMLResponse(render_root_page(settings.app_name, settings.app_version))

    return app


app = create_app()
