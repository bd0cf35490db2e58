"""Span helpers for the calculation engines and external lookups.

Engines decorate their entry points with @traced("utility_rates.search")
and enrich the active span with add_span_attributes(). Without a configured
tracer provider both are no-ops.
"""

import asyncio
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import wraps
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

_tracer = trace.get_tracer("solarify")

# Keyword arguments recorded on spans. Anything else (emails, usage data,
# free text) stays out of the trace.
_RECORDED_KWARGS = frozenset({
    "action", "count", "limit", "month", "year", "projection_years",
    "policy_id", "schedule_id", "zip_code", "state", "customer_class",
    "rfq_id", "quote_id", "order_id", "product_id",
})

AttributeValue = str | int | float | bool


@contextmanager
def _span(name: str, attributes: dict[str, AttributeValue] | None, kwargs: dict[str, Any]) -> Iterator[None]:
    with _tracer.start_as_current_span(name) as span:
        for key, value in (attributes or {}).items():
            span.set_attribute(key, value)
        for key, value in kwargs.items():
            if key in _RECORDED_KWARGS and value is not None:
                span.set_attribute(f"solarify.{key}", str(value))
        try:
            yield
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise
        span.set_status(Status(StatusCode.OK))


def traced(name: str | None = None, attributes: dict[str, AttributeValue] | None = None) -> Callable:
    """Run the decorated function (sync or async) inside a span.

    The span is named `name` or module.function; allow-listed keyword
    arguments become `solarify.<kwarg>` attributes.
    """

    def decorator(func: Callable) -> Callable:
        span_name = name or f"{func.__module__}.{func.__name__}"

        if asyncio.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with _span(span_name, attributes, kwargs):
                    return await func(*args, **kwargs)

            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with _span(span_name, attributes, kwargs):
                return func(*args, **kwargs)

        return sync_wrapper

    return decorator


def add_span_attributes(**attributes: AttributeValue) -> None:
    """Attach `solarify.<name>` attributes to the active span, if it records."""
    span = trace.get_current_span()
    if span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(f"solarify.{key}", value)
