"""Open-Meteo response models.

Only the fields the forecast lookup reads are declared; anything else in
the upstream payload is ignored.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CityResponse(BaseModel):
    """A single geocoding hit."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[int] = None
    name: Optional[str] = None
    latitude: float
    longitude: float
    elevation: Optional[float] = None
    country_code: Optional[str] = None
    country: Optional[str] = None
    admin1: Optional[str] = None


class GeocodingResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    results: Optional[list[CityResponse]] = None


class DailyWeather(BaseModel):
    """Daily series of the forecast endpoint."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    time: list[str] = Field(default_factory=list)
    temperature_2m_mean: list[Optional[float]] = Field(default_factory=list)


class WeatherResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    daily: Optional[DailyWeather] = None


class DailyForecast(BaseModel):
    """Mean temperature for one day."""
    date: str
    temperature: Optional[float] = None

    def __str__(self) -> str:
        return f"{self.date}: {self.temperature}°C"
