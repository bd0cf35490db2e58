"""Envelope used by the billing, net-metering and utility-rate routes.

These routes dispatch on an `action` query parameter and answer
{success, data, error, message?, timestamp} instead of the error shape used
elsewhere in the API.
"""

from typing import Any

from pydantic import BaseModel, Field

from solarify.shared.utils.datetime import utc_now


class BillingEnvelope(BaseModel):
    success: bool
    data: Any = None
    error: str | None = None
    message: str | None = None
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
