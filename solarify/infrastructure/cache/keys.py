"""Cache key builders. Single place for key format.

Key components must not contain CACHE_KEY_SEP to avoid colliding keys.
Coordinates are rounded to 4 decimals (about 11 m) so nearby lookups share
an entry.
"""

from solarify.core.constants import (
    CACHE_KEY_SEP,
    CACHE_PREFIX_RATES,
    CACHE_PREFIX_WEATHER,
)


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value contains the cache key separator."""
    if CACHE_KEY_SEP in value:
        raise ValueError(
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
        )


def weather_key(kind: str, latitude: float, longitude: float, *extra: str | int) -> str:
    """Cache key for a weather lookup (kind: current, forecast, tmy, historical)."""
    _validate_key_component(kind, "kind")
    parts = [CACHE_PREFIX_WEATHER, kind, f"{latitude:.4f}", f"{longitude:.4f}"]
    for value in extra:
        _validate_key_component(str(value), "extra")
        parts.append(str(value))
    return CACHE_KEY_SEP.join(parts)


def rates_key(zip_code: str) -> str:
    """Cache key for utility rate schedules serving a zip code."""
    _validate_key_component(zip_code, "zip_code")
    return f"{CACHE_PREFIX_RATES}{CACHE_KEY_SEP}zip{CACHE_KEY_SEP}{zip_code}"
