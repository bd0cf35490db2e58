"""Weather and irradiance data (NREL, NOAA, OpenWeather)."""

from solarify.infrastructure.external.weather.client import WeatherClient

__all__ = ["WeatherClient"]
