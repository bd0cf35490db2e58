"""Health check API schemas."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """GET /health (liveness)."""

    status: str = Field(default="ok", description="Service status")


class ComponentCheck(BaseModel):
    status: str = Field(..., description="healthy, degraded or unhealthy")
    response_time_ms: float | None = None
    message: str | None = None


class DetailedHealthResponse(BaseModel):
    """GET /health/detailed; served with 503 when unhealthy."""

    status: str
    version: str
    environment: str
    uptime_seconds: float
    timestamp: str
    checks: dict[str, ComponentCheck]
