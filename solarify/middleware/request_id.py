"""Request ID middleware.

Forwards a client X-Request-ID when it is safe to log, otherwise generates a
UUID. The id is stored on scope state and echoed on the response.
"""

import re
import uuid
from typing import Callable

from solarify.middleware._asgi import get_header, with_header

REQUEST_ID_MAX_LENGTH = 64
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,%d}$" % REQUEST_ID_MAX_LENGTH)


def sanitize_request_id(raw: str | None) -> str:
    """Return raw if it is a short token of [A-Za-z0-9_-]; otherwise a fresh UUID."""
    candidate = (raw or "").strip()
    if _REQUEST_ID_PATTERN.match(candidate):
        return candidate
    return str(uuid.uuid4())


def RequestIDMiddleware(app: Callable, header_name: str = "X-Request-ID") -> Callable:
    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        request_id = sanitize_request_id(get_header(scope, header_name))
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                with_header(message, header_name, request_id)
            await send(message)

        await app(scope, receive, send_wrapper)

    return asgi_app
