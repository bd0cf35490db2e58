"""Weather and irradiance lookups (NREL, NOAA, OpenWeather)."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from solarify.api.v1.dependencies import get_weather_client
from solarify.infrastructure.external.weather.client import WeatherClient

router = APIRouter()

WeatherDep = Annotated[WeatherClient, Depends(get_weather_client)]
Latitude = Annotated[float, Query(ge=-90, le=90, alias="lat")]
Longitude = Annotated[float, Query(ge=-180, le=180, alias="lon")]


@router.get("/current")
async def current_conditions(weather: WeatherDep, latitude: Latitude, longitude: Longitude) -> dict[str, Any]:
    return await weather.get_current(latitude, longitude)


@router.get("/forecast")
async def hourly_forecast(
    weather: WeatherDep,
    latitude: Latitude,
    longitude: Longitude,
    hours: int = Query(168, ge=1, le=168),
) -> dict[str, Any]:
    """NOAA hourly forecast, US locations only."""
    return await weather.get_forecast(latitude, longitude, hours)


@router.get("/tmy")
async def typical_meteorological_year(
    weather: WeatherDep, latitude: Latitude, longitude: Longitude
) -> dict[str, Any]:
    return await weather.get_tmy(latitude, longitude)


@router.get("/historical")
async def historical_irradiance(
    weather: WeatherDep,
    latitude: Latitude,
    longitude: Longitude,
    year: int = Query(..., ge=1998, le=2100),
) -> dict[str, Any]:
    return await weather.get_historical(latitude, longitude, year)
