"""Redis response cache for weather and utility-rate lookups.

Values are JSON; datetimes and dates are stored as ISO strings. The cache is
best effort: when Redis is unreachable reads miss and writes are skipped, so
callers never handle cache errors themselves.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import redis.asyncio as redis

from solarify.core.config import get_settings

logger = logging.getLogger(__name__)


class CacheService:
    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        self.redis = redis_client

    async def connect(self) -> None:
        """Open the connection from settings; on failure the cache stays disabled."""
        if self.redis is not None:
            return
        settings = get_settings()
        client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password.get_secret_value() if settings.redis_password else None,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
        )
        try:
            await client.ping()
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Redis unreachable at %s:%s (%s); caching disabled", settings.redis_host, settings.redis_port, e)
            await client.aclose()
            return
        self.redis = client
        logger.info("Redis cache connected: %s:%s/%s", settings.redis_host, settings.redis_port, settings.redis_db)

    async def disconnect(self) -> None:
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
            logger.info("Redis cache disconnected")

    def is_available(self) -> bool:
        return self.redis is not None

    async def ping(self) -> bool:
        """Used by /health; a disabled cache reports False."""
        if self.redis is None:
            return False
        try:
            return bool(await self.redis.ping())
        except redis.RedisError as e:
            logger.warning("Redis ping failed: %s", e)
            return False

    async def get(self, key: str) -> Any | None:
        if self.redis is None:
            return None
        try:
            raw = await self.redis.get(key)
        except redis.RedisError:
            logger.exception("Cache read failed for %s", key)
            return None
        logger.debug("Cache %s: %s", "MISS" if raw is None else "HIT", key)
        return None if raw is None else json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store value for ttl seconds; False when skipped or failed."""
        if self.redis is None:
            return False
        try:
            await self.redis.setex(key, ttl, json.dumps(value, default=str))
        except redis.RedisError:
            logger.exception("Cache write failed for %s", key)
            return False
        return True
