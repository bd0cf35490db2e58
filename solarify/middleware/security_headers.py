"""Security headers middleware. Headers the app already set are left alone."""

from typing import Callable

API_HEADERS = {
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}

# Swagger UI and the landing page load inline styles and CDN assets.
_RELAXED_CSP_PATHS = ("/docs", "/redoc")
_RELAXED_CSP = (
    "default-src 'self'; style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; img-src 'self' data: https:"
)


def SecurityHeadersMiddleware(app: Callable, headers: dict[str, str] | None = None) -> Callable:
    resolved = dict(headers if headers is not None else API_HEADERS)

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        path = scope.get("path", "")
        relaxed = path == "/" or path.startswith(_RELAXED_CSP_PATHS)

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                existing = list(message.get("headers", []))
                seen = {name.lower() for name, _ in existing}
                for name, value in resolved.items():
                    if name == "Content-Security-Policy" and relaxed:
                        value = _RELAXED_CSP
                    if name.lower().encode() not in seen:
                        existing.append((name.encode(), value.encode()))
                message["headers"] = existing
            await send(message)

        await app(scope, receive, send_wrapper)

    return asgi_app
