"""Cache: Redis service and cache key utilities.

Used for weather responses and utility rate searches. Key format is in keys.py.
"""

from solarify.infrastructure.cache.cache_protocol import CacheProtocol
from solarify.infrastructure.cache.keys import (
    rates_key,
    weather_key,
)
from solarify.infrastructure.cache.redis_cache import CacheService

__all__ = [
    "CacheProtocol",
    "CacheService",
    "rates_key",
    "weather_key",
]
