"""Tests for WeatherClient using httpx.MockTransport (no network)."""

import httpx
import pytest
from pydantic import SecretStr

from solarify.core.config import get_settings
from solarify.domain.exceptions import ExternalServiceException
from solarify.infrastructure.external.weather.client import (
    NREL_TMY_URL,
    WeatherClient,
    dew_point,
    irradiance_from_cloud_cover,
    mph_to_ms,
    parse_nrel_tmy,
    wind_direction_degrees,
)

TMY_RESPONSE = {
    "metadata": {"elevation": 16, "timezone": "America/Los_Angeles", "version": "3.2.2"},
    "outputs": {
        "avg_ghi": {"monthly": {"jan": 2.5, "jun": 7.5}},
        "avg_dni": [3.0] * 12,
        "avg_dhi": [1.0] * 12,
        "avg_air_temperature": [12.0] * 12,
    },
}


def settings_with_keys(**overrides):
    values = {
        "nrel_api_key": SecretStr("nrel-test"),
        "openweather_api_key": SecretStr("ow-test"),
        "weather_max_retries": 3,
    }
    values.update(overrides)
    return get_settings().model_copy(update=values)


def make_client(handler, settings=None, cache=None) -> WeatherClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WeatherClient(http, cache=cache, settings=settings or settings_with_keys(), retry_base_delay=0)


class DictCache:
    def __init__(self) -> None:
        self.data = {}

    def is_available(self) -> bool:
        return True

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ttl=300):
        self.data[key] = value
        return True

    async def delete(self, key):
        return self.data.pop(key, None) is not None


def test_unit_helpers() -> None:
    assert mph_to_ms("5 to 10 mph") == pytest.approx(5 * 0.44704)
    assert mph_to_ms(None) == 0.0
    assert wind_direction_degrees("sw") == 225.0
    assert wind_direction_degrees(None) == 0.0
    assert dew_point(20, 100) == pytest.approx(20, abs=0.01)
    clear = irradiance_from_cloud_cover(0)
    overcast = irradiance_from_cloud_cover(150)
    assert clear["globalHorizontalIrradiance"] == 1000
    assert overcast["globalHorizontalIrradiance"] == pytest.approx(200)


def test_parse_nrel_tmy_monthly_mapping() -> None:
    result = parse_nrel_tmy(TMY_RESPONSE, 37.7, -122.4)
    months = result["monthlyAverages"]
    assert len(months) == 12
    assert months[0]["globalHorizontalIrradiance"] == 2.5
    assert months[1]["globalHorizontalIrradiance"] == 0.0
    assert months[5]["globalHorizontalIrradiance"] == 7.5
    assert months[3]["ambientTemperature"] == 12.0
    assert result["location"]["timezone"] == "America/Los_Angeles"


async def test_get_tmy_sends_point_and_caches() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=TMY_RESPONSE)

    cache = DictCache()
    client = make_client(handler, cache=cache)
    first = await client.get_tmy(37.7, -122.4)
    second = await client.get_tmy(37.7, -122.4)

    assert first == second
    assert len(seen) == 1
    assert str(seen[0].url).startswith(NREL_TMY_URL)
    assert seen[0].url.params["wkt"] == "POINT(-122.4 37.7)"
    assert seen[0].url.params["api_key"] == "nrel-test"


async def test_retries_on_server_error() -> None:
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] < 3:
            return httpx.Response(503)
        return httpx.Response(200, json=TMY_RESPONSE)

    result = await make_client(handler).get_tmy(10, 10)
    assert calls["n"] == 3
    assert len(result["monthlyAverages"]) == 12


async def test_gives_up_after_max_retries() -> None:
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        return httpx.Response(502)

    with pytest.raises(ExternalServiceException) as exc_info:
        await make_client(handler, settings_with_keys(weather_max_retries=2)).get_tmy(10, 10)
    assert calls["n"] == 2
    assert exc_info.value.details["reason"] == "HTTP 502"


async def test_client_errors_are_not_retried() -> None:
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        return httpx.Response(403)

    with pytest.raises(ExternalServiceException):
        await make_client(handler).get_tmy(10, 10)
    assert calls["n"] == 1


async def test_nrel_error_payload_raises() -> None:
    client = make_client(lambda request: httpx.Response(200, json={"errors": ["bad wkt"]}))
    with pytest.raises(ExternalServiceException, match="bad wkt"):
        await client.get_tmy(10, 10)


async def test_missing_keys_raise_without_request() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    client = make_client(handler, settings_with_keys(nrel_api_key=None, openweather_api_key=None))
    with pytest.raises(ExternalServiceException):
        await client.get_tmy(10, 10)
    with pytest.raises(ExternalServiceException):
        await client.get_current(10, 10)


async def test_forecast_follows_points_lookup() -> None:
    forecast_url = "https://api.weather.gov/gridpoints/MTR/85,105/forecast/hourly"

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.startswith("/points/"):
            return httpx.Response(200, json={"properties": {"forecastHourly": forecast_url}})
        assert str(request.url) == forecast_url
        periods = [
            {
                "startTime": f"2024-06-01T{h:02d}:00:00-07:00",
                "temperature": 68,
                "windSpeed": "10 mph",
                "windDirection": "W",
                "relativeHumidity": {"value": 60},
                "probabilityOfPrecipitation": {"value": 20},
            }
            for h in range(5)
        ]
        return httpx.Response(200, json={"properties": {"periods": periods}})

    result = await make_client(handler).get_forecast(37.7749, -122.4194, hours=3)
    assert len(result["data"]) == 3
    point = result["data"][0]
    assert point["ambientTemperature"] == 20.0
    assert point["windDirection"] == 270.0
    assert point["cloudCover"] == 20.0
    assert result["metadata"]["source"] == "NOAA"


async def test_forecast_without_grid_raises() -> None:
    client = make_client(lambda request: httpx.Response(200, json={"properties": {}}))
    with pytest.raises(ExternalServiceException):
        await client.get_forecast(1, 1)


async def test_current_conditions() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["units"] == "metric"
        return httpx.Response(200, json={
            "cod": 200,
            "dt": 1717243200,
            "main": {"temp": 21.5, "humidity": 40, "pressure": 1010},
            "wind": {"speed": 3.2, "deg": 180},
            "clouds": {"all": 50},
            "visibility": 8000,
        })

    current = await make_client(handler).get_current(37.7, -122.4)
    assert current["ambientTemperature"] == 21.5
    assert current["visibility"] == 8.0
    assert current["timestamp"].startswith("2024-06-01T12:00:00")
