"""Request timeout middleware: cancels the app after the configured time and sends 504."""

import asyncio
import logging
from typing import Callable

from solarify.middleware._asgi import send_json

logger = logging.getLogger(__name__)


def TimeoutMiddleware(app: Callable, timeout_seconds: float) -> Callable:
    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        started = False

        async def send_wrapper(message: dict) -> None:
            nonlocal started
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        try:
            await asyncio.wait_for(app(scope, receive, send_wrapper), timeout=float(timeout_seconds))
        except TimeoutError:
            logger.warning(
                "Request timed out after %ss: %s %s",
                timeout_seconds,
                scope.get("method", ""),
                scope.get("path", ""),
            )
            # Once headers are out the status can no longer change.
            if started:
                return
            await send_json(
                send,
                504,
                {
                    "error": "GATEWAY_TIMEOUT",
                    "message": f"Request timed out after {timeout_seconds} seconds",
                    "details": {"timeout_seconds": timeout_seconds},
                },
            )

    return asgi_app
