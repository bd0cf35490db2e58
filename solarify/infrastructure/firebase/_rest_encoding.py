"""Python values <-> Firestore REST typed values ({"integerValue": "3"}, ...)."""

import base64
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Any

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def _timestamp(v: datetime) -> dict:
    utc = (v if v.tzinfo else v.replace(tzinfo=UTC)).astimezone(UTC)
    return {"timestampValue": utc.strftime(_TIMESTAMP_FORMAT)}


# Checked in order: bool before int (bool subclasses int), datetime before date.
# Plain dates (valid_until, billing periods) are stored as ISO strings so they
# compare lexically in range filters.
_ENCODERS: tuple[tuple[type | tuple[type, ...], Callable[[Any], dict]], ...] = (
    (bool, lambda v: {"booleanValue": v}),
    (int, lambda v: {"integerValue": str(v)}),
    (float, lambda v: {"doubleValue": v}),
    (datetime, _timestamp),
    (date, lambda v: {"stringValue": v.isoformat()}),
    (str, lambda v: {"stringValue": v}),
    (bytes, lambda v: {"bytesValue": base64.standard_b64encode(v).decode("ascii")}),
    ((list, tuple), lambda v: {"arrayValue": {"values": [to_value(item) for item in v]}}),
    (dict, lambda v: {"mapValue": encode_document(v)}),
)


def to_value(v: Any) -> dict:
    if v is None:
        return {"nullValue": None}
    for types, encode in _ENCODERS:
        if isinstance(v, types):
            return encode(v)
    raise TypeError(f"Cannot store {type(v).__name__} in Firestore")


def from_value(typed: dict) -> Any:
    kind, raw = next(iter(typed.items()), ("nullValue", None))
    if kind == "integerValue":
        return int(raw)
    if kind == "doubleValue":
        return float(raw)
    if kind == "timestampValue":
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if kind == "bytesValue":
        return base64.standard_b64decode(raw)
    if kind == "arrayValue":
        return [from_value(item) for item in (raw or {}).get("values") or []]
    if kind == "mapValue":
        return decode_document((raw or {}).get("fields"))
    if kind in ("booleanValue", "stringValue"):
        return raw
    # nullValue, referenceValue and geoPointValue are not used by the app
    return None


def encode_document(data: dict[str, Any]) -> dict:
    """Request body for create/patch: {"fields": {...}}."""
    return {"fields": {key: to_value(v) for key, v in data.items()}}


def decode_document(fields: dict | None) -> dict:
    """Plain dict from a document's "fields" mapping (empty for None)."""
    return {key: from_value(v) for key, v in (fields or {}).items()}
