"""CacheService against a stubbed redis client."""

from datetime import date
from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis

from solarify.infrastructure.cache import CacheService, rates_key, weather_key


def make_cache(**methods) -> tuple[CacheService, AsyncMock]:
    client = AsyncMock(spec=redis.Redis)
    for name, value in methods.items():
        setattr(client, name, value)
    return CacheService(client), client


async def test_get_decodes_json_and_misses_are_none() -> None:
    cache, client = make_cache(get=AsyncMock(side_effect=['{"rate": 0.31}', None]))
    assert await cache.get("k") == {"rate": 0.31}
    assert await cache.get("k") is None


async def test_set_serializes_dates_with_ttl() -> None:
    cache, client = make_cache(setex=AsyncMock(return_value=True))
    assert await cache.set("k", {"day": date(2024, 3, 1)}, ttl=60) is True
    client.setex.assert_awaited_once_with("k", 60, '{"day": "2024-03-01"}')


async def test_redis_errors_degrade_to_miss() -> None:
    cache, _ = make_cache(
        get=AsyncMock(side_effect=redis.ConnectionError("down")),
        setex=AsyncMock(side_effect=redis.ConnectionError("down")),
        ping=AsyncMock(side_effect=redis.ConnectionError("down")),
    )
    assert await cache.get("k") is None
    assert await cache.set("k", 1) is False
    assert await cache.ping() is False


async def test_disabled_cache_is_a_no_op() -> None:
    cache = CacheService()
    assert cache.is_available() is False
    assert await cache.get("k") is None
    assert await cache.set("k", 1) is False
    assert await cache.ping() is False


def test_key_builders_round_coordinates() -> None:
    assert weather_key("tmy", 37.774929, -122.419416) == weather_key("tmy", 37.77493, -122.41942)
    assert "94105" in rates_key("94105")


def test_key_builder_rejects_separator() -> None:
    with pytest.raises(ValueError):
        rates_key("94105:x")
