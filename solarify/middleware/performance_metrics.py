"""Records method, path, status and duration of each request into the performance monitor."""

import time
from typing import Callable

from solarify.application.services.performance_monitor import PerformanceMonitor


def PerformanceMetricsMiddleware(app: Callable, monitor: PerformanceMonitor) -> Callable:
    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        started = time.perf_counter()
        status = 500

        async def send_wrapper(message: dict) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
            await send(message)

        try:
            await app(scope, receive, send_wrapper)
        finally:
            monitor.record(
                scope.get("method", ""),
                scope.get("path", ""),
                status,
                (time.perf_counter() - started) * 1000,
            )

    return asgi_app
