"""Small helpers shared by the raw ASGI middleware."""

import json
from typing import Any, Callable


def get_header(scope: dict, name: str) -> str | None:
    """First value of header `name` (case-insensitive). ASGI headers are (bytes, bytes)."""
    want = name.lower().encode()
    for key, value in scope.get("headers", []):
        if key.lower() == want:
            return value.decode("utf-8", errors="replace")
    return None


def with_header(message: dict, name: str, value: str) -> dict:
    """Append a header to an http.response.start message."""
    headers = list(message.get("headers", []))
    headers.append((name.encode(), value.encode()))
    message["headers"] = headers
    return message


async def send_json(send: Callable, status: int, payload: dict[str, Any]) -> None:
    """Send a complete JSON response without going through the app."""
    await send({
        "type": "http.response.start",
        "status": status,
        "headers": [(b"content-type", b"application/json")],
    })
    await send({
        "type": "http.response.body",
        "body": json.dumps(payload).encode(),
        "more_body": False,
    })
