"""Startup and shutdown of shared infrastructure.

app.state after startup:
    http_client  httpx.AsyncClient for NREL, NOAA and OpenWeather
    cache        CacheService or None (REDIS_ENABLED=false)
    telemetry    Telemetry or None (TELEMETRY_ENABLED=false)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from solarify.core.config import Settings, get_settings
from solarify.infrastructure.firebase.client import close_firebase, init_firebase

logger = logging.getLogger(__name__)


async def _start_cache(settings: Settings):
    if not settings.redis_enabled:
        return None
    from solarify.infrastructure.cache.redis_cache import CacheService

    cache = CacheService()
    await cache.connect()
    return cache


def _start_telemetry(app: FastAPI, settings: Settings):
    if not settings.telemetry_enabled:
        return None
    from solarify.shared.telemetry import Telemetry

    telemetry = Telemetry(settings)
    return telemetry if telemetry.start(app, instrument_redis=settings.redis_enabled) else None


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()

    if not init_firebase():
        logger.error("Firebase not initialized; database endpoints will return 503")
    app.state.http_client = httpx.AsyncClient(timeout=settings.weather_http_timeout_seconds)
    app.state.cache = await _start_cache(settings)
    app.state.telemetry = _start_telemetry(app, settings)
    logger.info("%s %s started (%s)", settings.app_name, settings.app_version, settings.environment)

    try:
        yield
    finally:
        # Reverse order of startup
        if app.state.telemetry is not None:
            app.state.telemetry.shutdown()
            app.state.telemetry = None
        if app.state.cache is not None:
            await app.state.cache.disconnect()
            app.state.cache = None
        await app.state.http_client.aclose()
        app.state.http_client = None
        await close_firebase()
        logger.info("Shutdown complete")
