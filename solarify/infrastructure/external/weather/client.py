"""Weather and irradiance client for NREL, NOAA and OpenWeather.

All HTTP calls use httpx.AsyncClient. Transient failures (transport errors,
429 and 5xx) are retried with exponential backoff; responses are cached in
Redis through CacheProtocol when a cache is supplied.
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
from datetime import UTC, datetime
from typing import Any

import httpx

from solarify.core.config import Settings, get_settings
from solarify.core.constants import USER_AGENT
from solarify.domain.exceptions import ExternalServiceException
from solarify.infrastructure.cache.cache_protocol import CacheProtocol
from solarify.infrastructure.cache.keys import weather_key
from solarify.shared.telemetry.tracing import add_span_attributes, traced

logger = logging.getLogger(__name__)

NREL_TMY_URL = "https://developer.nrel.gov/api/nsrdb/v2/solar/psm3-tmy-download.json"
NREL_HISTORICAL_URL = "https://developer.nrel.gov/api/nsrdb/v2/solar/psm3-download.json"
NOAA_POINTS_URL = "https://api.weather.gov/points/{lat:.4f},{lon:.4f}"
OPENWEATHER_CURRENT_URL = "https://api.openweathermap.org/data/2.5/weather"

NREL_ATTRIBUTES = "ghi,dni,dhi,air_temperature,wind_speed,relative_humidity"
MAX_BACKOFF_SECONDS = 10.0

_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})
_MONTH_KEYS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")
_WIND_DIRECTIONS = {
    "N": 0.0, "NNE": 22.5, "NE": 45.0, "ENE": 67.5, "E": 90.0, "ESE": 112.5,
    "SE": 135.0, "SSE": 157.5, "S": 180.0, "SSW": 202.5, "SW": 225.0, "WSW": 247.5,
    "W": 270.0, "WNW": 292.5, "NW": 315.0, "NNW": 337.5,
}


def fahrenheit_to_celsius(value: float) -> float:
    return (value - 32) * 5 / 9


def mph_to_ms(value: str | float | None) -> float:
    """NOAA wind speeds are strings like '10 mph' or '5 to 10 mph'; the first number wins."""
    if value is None:
        return 0.0
    match = re.search(r"\d+(\.\d+)?", str(value))
    return float(match.group()) * 0.44704 if match else 0.0


def wind_direction_degrees(direction: str | None) -> float:
    return _WIND_DIRECTIONS.get((direction or "").upper(), 0.0)


def dew_point(temperature: float, humidity: float) -> float:
    """Magnus approximation, degrees C."""
    a, b = 17.27, 237.7
    alpha = a * temperature / (b + temperature) + math.log(max(humidity, 1.0) / 100)
    return b * alpha / (a - alpha)


def irradiance_from_cloud_cover(cloud_cover: float) -> dict[str, float]:
    """Rough GHI/DNI/DHI (W/m²) for a cloud cover percentage when no measurement exists."""
    cover = min(max(cloud_cover, 0.0), 100.0) / 100
    return {
        "globalHorizontalIrradiance": 1000 * max(0.1, 1 - cover * 0.8),
        "directNormalIrradiance": 900 * max(0.05, 1 - cover * 0.9),
        "diffuseHorizontalIrradiance": 100 + cover * 200,
    }


def _monthly_values(value: Any) -> list[float]:
    """Twelve monthly values from a list or a {'monthly': {'jan': ...}} mapping."""
    if isinstance(value, dict):
        monthly = value.get("monthly", value)
        return [float(monthly.get(key) or 0.0) for key in _MONTH_KEYS]
    if isinstance(value, list):
        padded = [float(v or 0.0) for v in value[:12]]
        return padded + [0.0] * (12 - len(padded))
    return [0.0] * 12


def parse_nrel_tmy(raw: dict[str, Any], latitude: float, longitude: float) -> dict[str, Any]:
    """Monthly average irradiance (kWh/m²/day) and temperature from an NREL TMY response."""
    metadata = raw.get("metadata") or {}
    outputs = raw.get("outputs") or {}
    ghi = _monthly_values(outputs.get("avg_ghi"))
    dni = _monthly_values(outputs.get("avg_dni"))
    dhi = _monthly_values(outputs.get("avg_dhi"))
    temp = _monthly_values(outputs.get("avg_air_temperature", outputs.get("avg_temp_air")))
    wind = _monthly_values(outputs.get("avg_wind_speed"))
    humidity = _monthly_values(outputs.get("avg_relative_humidity"))
    return {
        "location": {
            "latitude": latitude,
            "longitude": longitude,
            "elevation": metadata.get("elevation", 0),
            "timezone": metadata.get("timezone", "UTC"),
        },
        "monthlyAverages": [
            {
                "month": i + 1,
                "globalHorizontalIrradiance": ghi[i],
                "directNormalIrradiance": dni[i],
                "diffuseHorizontalIrradiance": dhi[i],
                "ambientTemperature": temp[i],
                "windSpeed": wind[i],
                "relativeHumidity": humidity[i],
            }
            for i in range(12)
        ],
        "annualTotals": {
            "globalHorizontalIrradiance": round(sum(ghi) * 365 / 12, 1),
            "directNormalIrradiance": round(sum(dni) * 365 / 12, 1),
            "diffuseHorizontalIrradiance": round(sum(dhi) * 365 / 12, 1),
        },
        "metadata": {"dataSource": "NREL NSRDB", "version": metadata.get("version", "")},
    }


def parse_nrel_series(raw: dict[str, Any], latitude: float, longitude: float) -> dict[str, Any]:
    """Hourly NREL historical points in the common weather point shape."""
    metadata = raw.get("metadata") or {}
    points = [
        {
            "timestamp": p.get("timestamp"),
            "globalHorizontalIrradiance": p.get("ghi") or 0,
            "directNormalIrradiance": p.get("dni") or 0,
            "diffuseHorizontalIrradiance": p.get("dhi") or 0,
            "ambientTemperature": p.get("air_temperature", p.get("temp_air")) or 0,
            "relativeHumidity": p.get("relative_humidity") or 0,
            "windSpeed": p.get("wind_speed") or 0,
        }
        for p in raw.get("data") or []
    ]
    return {
        "location": {"latitude": latitude, "longitude": longitude, "timezone": metadata.get("timezone", "UTC")},
        "data": points,
        "metadata": {"source": "NREL NSRDB", "dataType": "historical", "resolution": "hourly"},
    }


def parse_noaa_forecast(raw: dict[str, Any], latitude: float, longitude: float, hours: int) -> dict[str, Any]:
    """NOAA hourly forecast periods with irradiance estimated from precipitation probability."""
    periods = (raw.get("properties") or {}).get("periods") or []
    points = []
    for period in periods[:hours]:
        temp_f = period.get("temperature")
        temp_c = fahrenheit_to_celsius(float(temp_f)) if temp_f is not None else 0.0
        humidity = float((period.get("relativeHumidity") or {}).get("value") or 50)
        cover = float((period.get("probabilityOfPrecipitation") or {}).get("value") or 0)
        points.append({
            "timestamp": period.get("startTime"),
            **irradiance_from_cloud_cover(cover),
            "ambientTemperature": round(temp_c, 2),
            "relativeHumidity": humidity,
            "windSpeed": round(mph_to_ms(period.get("windSpeed")), 2),
            "windDirection": wind_direction_degrees(period.get("windDirection")),
            "cloudCover": cover,
            "dewPoint": round(dew_point(temp_c, humidity), 2),
        })
    return {
        "location": {"latitude": latitude, "longitude": longitude, "timezone": "UTC"},
        "data": points,
        "metadata": {
            "source": "NOAA",
            "dataType": "forecast",
            "resolution": "hourly",
            "startDate": points[0]["timestamp"] if points else "",
            "endDate": points[-1]["timestamp"] if points else "",
        },
    }


def parse_openweather(raw: dict[str, Any]) -> dict[str, Any]:
    main = raw.get("main") or {}
    cover = float((raw.get("clouds") or {}).get("all") or 0)
    temp = float(main.get("temp", 20))
    humidity = float(main.get("humidity", 50))
    observed = raw.get("dt")
    return {
        "timestamp": datetime.fromtimestamp(observed, UTC).isoformat() if observed else None,
        **irradiance_from_cloud_cover(cover),
        "ambientTemperature": temp,
        "relativeHumidity": humidity,
        "windSpeed": float((raw.get("wind") or {}).get("speed") or 0),
        "windDirection": float((raw.get("wind") or {}).get("deg") or 0),
        "pressure": float(main.get("pressure", 1013.25)),
        "cloudCover": cover,
        "visibility": float(raw.get("visibility", 10000)) / 1000,
        "dewPoint": round(dew_point(temp, humidity), 2),
    }


class WeatherClient:
    """Async client for irradiance (NREL), forecasts (NOAA) and current conditions (OpenWeather)."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        cache: CacheProtocol | None = None,
        settings: Settings | None = None,
        retry_base_delay: float = 1.0,
    ) -> None:
        self._settings = settings or get_settings()
        self._http = http_client or httpx.AsyncClient(timeout=self._settings.weather_http_timeout_seconds)
        self._owns_http = http_client is None
        self._cache = cache
        self._retry_base_delay = retry_base_delay

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _get_json(self, service: str, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET with retries: min(base * 2^(attempt-1), 10s) between attempts."""
        attempts = max(1, self._settings.weather_max_retries)
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        for attempt in range(1, attempts + 1):
            try:
                response = await self._http.get(url, params=params, headers=headers)
            except httpx.TransportError as e:
                reason = f"{type(e).__name__}: {e}"
            else:
                if response.status_code < 400:
                    return response.json()
                reason = f"HTTP {response.status_code}"
                if response.status_code not in _RETRYABLE_STATUS:
                    raise ExternalServiceException(service, reason)
            if attempt < attempts:
                delay = min(self._retry_base_delay * 2 ** (attempt - 1), MAX_BACKOFF_SECONDS)
                logger.warning("%s request failed (%s); retry %d in %.1fs", service, reason, attempt, delay)
                await asyncio.sleep(delay)
        logger.error("%s request failed after %d attempts: %s", service, attempts, reason)
        raise ExternalServiceException(service, reason)

    async def _cached(self, key: str) -> Any | None:
        if self._cache is None:
            return None
        return await self._cache.get(key)

    async def _store(self, key: str, value: Any, ttl: int) -> None:
        if self._cache is not None:
            await self._cache.set(key, value, ttl=ttl)

    def _nrel_key(self) -> str:
        if self._settings.nrel_api_key is None:
            raise ExternalServiceException("nrel", "NREL API key is not configured")
        return self._settings.nrel_api_key.get_secret_value()

    @staticmethod
    def _check_nrel_errors(raw: dict[str, Any]) -> None:
        errors = raw.get("errors") or []
        if errors:
            raise ExternalServiceException("nrel", str(errors[0]))

    @traced("weather.tmy")
    async def get_tmy(self, latitude: float, longitude: float) -> dict[str, Any]:
        """Typical meteorological year monthly averages (cached 24 hours)."""
        key = weather_key("tmy", latitude, longitude)
        cached = await self._cached(key)
        if cached is not None:
            return cached
        raw = await self._get_json(
            "nrel",
            NREL_TMY_URL,
            {
                "api_key": self._nrel_key(),
                "email": self._settings.nrel_api_email,
                "wkt": f"POINT({longitude} {latitude})",
                "names": "tmy",
                "attributes": NREL_ATTRIBUTES,
                "interval": "60",
            },
        )
        self._check_nrel_errors(raw)
        result = parse_nrel_tmy(raw, latitude, longitude)
        await self._store(key, result, self._settings.cache_ttl_weather_tmy)
        return result

    @traced("weather.historical")
    async def get_historical(self, latitude: float, longitude: float, year: int) -> dict[str, Any]:
        """Hourly NREL data for one past year (cached 24 hours)."""
        add_span_attributes(year=year)
        key = weather_key("historical", latitude, longitude, year)
        cached = await self._cached(key)
        if cached is not None:
            return cached
        raw = await self._get_json(
            "nrel",
            NREL_HISTORICAL_URL,
            {
                "api_key": self._nrel_key(),
                "email": self._settings.nrel_api_email,
                "wkt": f"POINT({longitude} {latitude})",
                "names": str(year),
                "attributes": NREL_ATTRIBUTES,
                "interval": "60",
            },
        )
        self._check_nrel_errors(raw)
        result = parse_nrel_series(raw, latitude, longitude)
        await self._store(key, result, self._settings.cache_ttl_weather_tmy)
        return result

    @traced("weather.forecast")
    async def get_forecast(self, latitude: float, longitude: float, hours: int = 168) -> dict[str, Any]:
        """NOAA hourly forecast; points lookup first, then the grid's forecastHourly (cached 1 hour)."""
        key = weather_key("forecast", latitude, longitude, hours)
        cached = await self._cached(key)
        if cached is not None:
            return cached
        grid = await self._get_json("noaa", NOAA_POINTS_URL.format(lat=latitude, lon=longitude))
        forecast_url = (grid.get("properties") or {}).get("forecastHourly")
        if not forecast_url:
            raise ExternalServiceException("noaa", "Unable to get NOAA forecast grid data")
        raw = await self._get_json("noaa", forecast_url)
        result = parse_noaa_forecast(raw, latitude, longitude, hours)
        await self._store(key, result, self._settings.cache_ttl_weather_forecast)
        return result

    @traced("weather.current")
    async def get_current(self, latitude: float, longitude: float) -> dict[str, Any]:
        """OpenWeather current conditions (cached 10 minutes)."""
        if self._settings.openweather_api_key is None:
            raise ExternalServiceException("openweather", "OpenWeather API key is not configured")
        key = weather_key("current", latitude, longitude)
        cached = await self._cached(key)
        if cached is not None:
            return cached
        raw = await self._get_json(
            "openweather",
            OPENWEATHER_CURRENT_URL,
            {
                "lat": latitude,
                "lon": longitude,
                "appid": self._settings.openweather_api_key.get_secret_value(),
                "units": "metric",
            },
        )
        if str(raw.get("cod", 200)) != "200":
            raise ExternalServiceException("openweather", str(raw.get("message", "unknown error")))
        result = parse_openweather(raw)
        await self._store(key, result, self._settings.cache_ttl_weather_current)
        return result
