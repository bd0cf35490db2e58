"""Request body size limit middleware.

Checks Content-Length up front; bodies without one (chunked uploads) are
buffered up to the limit and replayed to the app.
"""

from typing import Callable

from solarify.middleware._asgi import get_header, send_json


async def _reject(send: Callable, max_bytes: int, actual: int) -> None:
    await send_json(
        send,
        413,
        {
            "error": "PAYLOAD_TOO_LARGE",
            "message": f"Request body must be at most {max_bytes} bytes",
            "details": {"max_bytes": max_bytes, "content_length": actual},
        },
    )


def RequestSizeLimitMiddleware(app: Callable, max_bytes: int) -> Callable:
    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return

        declared = get_header(scope, "content-length")
        if declared is not None:
            if declared.isdigit() and int(declared) > max_bytes:
                await _reject(send, max_bytes, int(declared))
                return
            await app(scope, receive, send)
            return

        chunks: list[bytes] = []
        total = 0
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            if message["type"] != "http.request":
                continue
            body = message.get("body", b"")
            total += len(body)
            if total > max_bytes:
                await _reject(send, max_bytes, total)
                return
            chunks.append(body)
            if not message.get("more_body", False):
                break

        body = b"".join(chunks)
        replayed = False

        async def replay() -> dict:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await app(scope, replay, send)

    return asgi_app
