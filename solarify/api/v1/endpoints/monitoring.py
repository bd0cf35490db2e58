"""Request performance samples (admin only)."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from solarify.api.v1.dependencies import AdminUser, get_performance_monitor
from solarify.application.services.performance_monitor import PerformanceMonitor

router = APIRouter()


@router.get("/performance")
async def performance(
    admin: AdminUser,
    monitor: Annotated[PerformanceMonitor, Depends(get_performance_monitor)],
) -> dict[str, Any]:
    """Last samples (up to the buffer capacity) with count, average, p95 and error rate."""
    return monitor.snapshot()
