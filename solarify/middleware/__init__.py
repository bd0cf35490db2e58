"""Raw ASGI middleware. Order matters in create_app (last added = outermost)."""

from solarify.middleware.correlation_id import CorrelationIDMiddleware
from solarify.middleware.performance_metrics import PerformanceMetricsMiddleware
from solarify.middleware.request_id import RequestIDMiddleware
from solarify.middleware.request_size_limit import RequestSizeLimitMiddleware
from solarify.middleware.security_headers import SecurityHeadersMiddleware
from solarify.middleware.timeout import TimeoutMiddleware

__all__ = [
    "CorrelationIDMiddleware",
    "PerformanceMetricsMiddleware",
    "RequestIDMiddleware",
    "RequestSizeLimitMiddleware",
    "SecurityHeadersMiddleware",
    "TimeoutMiddleware",
]
