"""Shared plumbing for the action-dispatch routes (solar billing, net metering, utility rates).

Each route picks a handler by `action` and answers with
{success, data, error, message?, timestamp}. Failures inside a handler map
to 400 with the handler's own error label; unknown resources map to 404.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from datetime import date, datetime
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from solarify.core.config import get_settings
from solarify.core.exception_handlers import status_for
from solarify.domain.exceptions import ResourceNotFoundException, SolarifyException
from solarify.schemas.billing import BillingEnvelope
from solarify.shared.utils.datetime import parse_datetime_utc

logger = logging.getLogger(__name__)

Handler = Callable[[], Awaitable[JSONResponse]]


class EnvelopeError(Exception):
    """Short-circuit a handler with a specific status and error label."""

    def __init__(self, status: int, error: str, message: str | None = None) -> None:
        super().__init__(error)
        self.status = status
        self.error = error
        self.message = message


def envelope(
    data: Any = None,
    *,
    status: int = 200,
    error: str | None = None,
    message: str | None = None,
) -> JSONResponse:
    body = BillingEnvelope(success=status < 400, data=jsonable_encoder(data), error=error, message=message)
    return JSONResponse(status_code=status, content=body.model_dump(exclude_none=True) | {"data": body.data})


def method_not_allowed() -> JSONResponse:
    return envelope(status=405, error="Method not allowed")


def require(params: Mapping[str, Any], names: tuple[str, ...], error: str) -> None:
    """Raise a 400 EnvelopeError when any named parameter is missing or empty."""
    if any(params.get(name) in (None, "", [], {}) for name in names):
        raise EnvelopeError(400, error)


def as_int(value: Any, name: str, between: tuple[int, int] | None = None) -> int:
    """Integer parameter, optionally bounded (inclusive); 400 otherwise."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise EnvelopeError(400, f"{name} must be an integer") from None
    if between and not between[0] <= number <= between[1]:
        raise EnvelopeError(400, f"{name} must be between {between[0]} and {between[1]}")
    return number


def as_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise EnvelopeError(400, f"{name} must be a number") from None


def as_date(value: Any, name: str) -> date | None:
    if value in (None, ""):
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise EnvelopeError(400, f"{name} must be an ISO date (YYYY-MM-DD)") from None


def as_datetime(value: Any, name: str) -> datetime:
    try:
        return parse_datetime_utc(str(value))
    except ValueError:
        raise EnvelopeError(400, f"{name} must be an ISO-8601 timestamp") from None


async def dispatch(
    action: str | None,
    handlers: Mapping[str, tuple[str, Handler]],
    invalid_action_error: str,
) -> JSONResponse:
    """Run the handler registered for `action`; handlers map to (failure label, coroutine fn)."""
    entry = handlers.get(action or "")
    if entry is None:
        return envelope(status=400, error=invalid_action_error)
    failure, handler = entry
    try:
        return await handler()
    except EnvelopeError as e:
        return envelope(status=e.status, error=e.error, message=e.message)
    except ResourceNotFoundException as e:
        return envelope(status=404, error=failure, message=e.message)
    except SolarifyException as e:
        status = 502 if status_for(e) == 502 else 400
        return envelope(status=status, error=failure, message=e.message)
    except Exception as e:
        logger.exception("Action %s failed", action)
        return envelope(
            status=500,
            error="Internal server error",
            message=str(e) if get_settings().debug else None,
        )
