"""Weather domain - Open-Meteo forecast lookups.

Backs the ``getWeatherInfo`` tool. The server only depends on the
``forecast(city, country_code) -> ToolOutcome`` contract; ``lookup``
returns the same text for the plain REST route.
"""

from domains.weather.models import DailyForecast
from domains.weather.service import (
    NoResultsError,
    NoWeatherDataError,
    WeatherService,
    WeatherServiceError,
)

__all__ = [
    "DailyForecast",
    "NoResultsError",
    "NoWeatherDataError",
    "WeatherService",
    "WeatherServiceError",
]
