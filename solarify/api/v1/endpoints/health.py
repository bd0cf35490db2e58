"""Health checks: plain liveness plus a detailed dependency probe."""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from solarify.core.config import get_settings
from solarify.infrastructure.firebase.client import get_firestore_client, get_realtime_db
from solarify.schemas.health import ComponentCheck, DetailedHealthResponse, HealthResponse
from solarify.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()


async def _probe(check: Callable[[], Awaitable[object]], failure_status: str) -> ComponentCheck:
    started = time.perf_counter()
    try:
        result = await check()
    except Exception as e:
        logger.warning("Health probe failed: %s", e)
        return ComponentCheck(
            status=failure_status,
            response_time_ms=round((time.perf_counter() - started) * 1000, 2),
            message=type(e).__name__,
        )
    elapsed = round((time.perf_counter() - started) * 1000, 2)
    if result is False:
        return ComponentCheck(status=failure_status, response_time_ms=elapsed, message="ping failed")
    return ComponentCheck(status="healthy", response_time_ms=elapsed)


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Liveness: the process is up."""
    return HealthResponse()


@router.get(
    "/detailed",
    response_model=DetailedHealthResponse,
    responses={503: {"description": "Unhealthy", "model": DetailedHealthResponse}},
)
async def detailed_health(request: Request) -> DetailedHealthResponse | JSONResponse:
    """Probe Firestore, Redis and the Realtime Database.

    Firestore down makes the service unhealthy (503); cache or realtime
    database trouble only degrades it.
    """
    settings = get_settings()
    checks: dict[str, ComponentCheck] = {}

    firestore = get_firestore_client()
    checks["database"] = (
        await _probe(firestore.ping, "unhealthy")
        if firestore is not None
        else ComponentCheck(status="unhealthy", message="not configured")
    )

    cache = getattr(request.app.state, "cache", None)
    checks["cache"] = (
        await _probe(cache.ping, "degraded")
        if cache is not None
        else ComponentCheck(status="healthy", message="disabled")
    )

    rtdb = get_realtime_db()
    checks["realtime_database"] = (
        await _probe(rtdb.ping, "degraded")
        if rtdb is not None
        else ComponentCheck(status="degraded", message="not configured")
    )

    statuses = {c.status for c in checks.values()}
    overall = "unhealthy" if "unhealthy" in statuses else "degraded" if "degraded" in statuses else "healthy"
    started_at = getattr(request.app.state, "started_at", time.monotonic())
    body = DetailedHealthResponse(
        status=overall,
        version=settings.app_version,
        environment=settings.environment,
        uptime_seconds=round(time.monotonic() - started_at, 1),
        timestamp=utc_now().isoformat(),
        checks=checks,
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
