"""Open-Meteo weather lookups.

The lookup is a two-step chain: the geocoding endpoint resolves a city to
coordinates, then the forecast endpoint returns the daily mean
temperatures for those coordinates. Both calls block; callers on an event
loop must run them on a worker thread.
"""

from typing import Optional

import httpx
from pydantic import ValidationError

from shared.config import WeatherSettings
from shared.logging import get_logger
from shared.models import ToolOutcome
from domains.weather.models import (
    CityResponse,
    DailyForecast,
    GeocodingResponse,
    WeatherResponse,
)

logger = get_logger(__name__)


class WeatherServiceError(Exception):
    """Base exception for weather lookup failures."""
    pass


class NoResultsError(WeatherServiceError):
    """Geocoding found no city matching the query."""

    def __init__(self, name: str, country_code: str) -> None:
        super().__init__(f"No results found for {name}, {country_code}")


class NoWeatherDataError(WeatherServiceError):
    """The forecast endpoint returned no daily series."""

    def __init__(self) -> None:
        super().__init__("No weather data available")


class WeatherService:
    """
    Client for the Open-Meteo geocoding and forecast APIs.

    One instance is shared by every request; ``httpx.Client`` is safe to use
    from several worker threads at once.
    """

    def __init__(
        self,
        geocoding_url: str = "https://geocoding-api.open-meteo.com",
        forecast_url: str = "https://api.open-meteo.com",
        language: str = "en",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None
    ) -> None:
        """
        Initialize the weather service.

        Args:
            geocoding_url: Base URL of the geocoding API
            forecast_url: Base URL of the forecast API
            language: Language for geocoding results
            timeout: Per-request timeout in seconds
            transport: Optional transport override, used by tests
        """
        self.language = language
        self._geocoding = httpx.Client(
            base_url=geocoding_url, timeout=timeout, transport=transport
        )
        self._forecast = httpx.Client(
            base_url=forecast_url, timeout=timeout, transport=transport
        )

    @classmethod
    def from_settings(
        cls,
        settings: WeatherSettings,
        transport: Optional[httpx.BaseTransport] = None
    ) -> "WeatherService":
        return cls(
            geocoding_url=settings.geocoding_url,
            forecast_url=settings.forecast_url,
            language=settings.language,
            timeout=settings.request_timeout_seconds,
            transport=transport,
        )

    def geocode(self, name: str, country_code: str) -> CityResponse:
        """
        Resolve a city name to its first geocoding hit.

        Raises:
            NoResultsError: If nothing matches
            httpx.HTTPError: On transport or HTTP status failures
        """
        response = self._geocoding.get(
            "/v1/search",
            params={
                "name": name,
                "countryCode": country_code,
                "language": self.language,
                "format": "json",
            },
        )
        response.raise_for_status()
        geocoding = GeocodingResponse.model_validate(response.json())

        if not geocoding.results:
            raise NoResultsError(name, country_code)

        return geocoding.results[0]

    def get_forecast(self, name: str, country_code: str) -> list[DailyForecast]:
        """
        Fetch the daily mean temperature forecast for a city.

        Dates and temperatures are paired up to the shorter of the two series.

        Raises:
            NoResultsError: If the city cannot be geocoded
            NoWeatherDataError: If the forecast has no daily series
            httpx.HTTPError: On transport or HTTP status failures
            pydantic.ValidationError: On malformed upstream payloads
        """
        city = self.geocode(name, country_code)

        response = self._forecast.get(
            "/v1/forecast",
            params={
                "latitude": city.latitude,
                "longitude": city.longitude,
                "daily": "temperature_2m_mean",
            },
        )
        response.raise_for_status()
        weather = WeatherResponse.model_validate(response.json())

        if weather.daily is None:
            raise NoWeatherDataError()

        return [
            DailyForecast(date=date, temperature=temperature)
            for date, temperature in zip(weather.daily.time, weather.daily.temperature_2m_mean)
        ]

    def forecast(self, name: str, country_code: str) -> ToolOutcome:
        """
        Describe the forecast for a city as a tool outcome.

        Never raises: a failed lookup is a degraded outcome whose text
        describes the failure.

        Returns:
            Ok outcome with ``"<date>: <temp>°C"`` pairs joined by ", ",
            or a degraded outcome with a failure message
        """
        try:
            forecasts = self.get_forecast(name, country_code)
        except WeatherServiceError as e:
            logger.info("Weather lookup found nothing", city=name, country_code=country_code, reason=str(e))
            return ToolOutcome.degraded(str(e))
        except (httpx.HTTPError, ValidationError) as e:
            logger.warning("Weather lookup failed", city=name, country_code=country_code, error=str(e))
            return ToolOutcome.degraded(f"Error fetching weather data for {name}, {country_code}: {e}")
        except Exception as e:
            logger.error("Unexpected weather lookup failure", city=name, error=str(e), exc_info=True)
            return ToolOutcome.degraded(f"Error fetching weather data for {name}, {country_code}: {e}")

        if not forecasts:
            return ToolOutcome.degraded("No forecast data available")

        return ToolOutcome.ok(", ".join(str(forecast) for forecast in forecasts))

    def lookup(self, name: str, country_code: str) -> str:
        """Forecast text for a city; failures come back as a sentence."""
        return self.forecast(name, country_code).text

    def close(self) -> None:
        """Close both HTTP clients."""
        self._geocoding.close()
        self._forecast.close()

    def __enter__(self) -> "WeatherService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
