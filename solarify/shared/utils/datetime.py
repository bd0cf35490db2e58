"""Timezone-aware UTC helpers. Stored and compared datetimes are always UTC."""

from datetime import UTC, date, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def utc_today() -> date:
    return utc_now().date()


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Naive values are taken to be UTC already; aware ones are converted."""
    if dt is None:
        return None
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)


def parse_datetime_utc(value: str | datetime) -> datetime:
    """ISO-8601 (trailing Z allowed) to aware UTC; a bare date means midnight UTC.

    Raises:
        ValueError: not ISO-8601.
    """
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    return ensure_utc(value)  # type: ignore[return-value]


# Realtime Database rows use JavaScript-style epoch milliseconds


def from_timestamp_ms_utc(timestamp_ms: int) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)


def to_timestamp_ms(dt: datetime) -> int:
    return int(ensure_utc(dt).timestamp() * 1000)  # type: ignore[union-attr]
