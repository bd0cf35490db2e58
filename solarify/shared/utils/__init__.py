"""Datetime, id and text helpers shared across layers."""

from solarify.shared.utils.datetime import (
    ensure_utc,
    from_timestamp_ms_utc,
    parse_datetime_utc,
    to_timestamp_ms,
    utc_now,
    utc_today,
)
from solarify.shared.utils.generators import generate_cuid, generate_prefixed_id
from solarify.shared.utils.sanitization import sanitize_tags, sanitize_text, strip_markup

__all__ = [
    "ensure_utc",
    "from_timestamp_ms_utc",
    "generate_cuid",
    "generate_prefixed_id",
    "parse_datetime_utc",
    "sanitize_tags",
    "sanitize_text",
    "strip_markup",
    "to_timestamp_ms",
    "utc_now",
    "utc_today",
]
