"""Shared fixtures for the Weather MCP Server tests."""

import time
from typing import Optional

import httpx
import pytest

from shared.config import AuthSettings, MCPServerSettings, Settings, WeatherSettings
from shared.models import ToolOutcome

API_KEY = "mcp-weather-api-key-12345"
BEARER_TOKEN = "bearer-token-abcdef123456"
BASIC_AUTH_VALUE = "Basic bWNwOndlYXRoZXI="


class StubLookup:
    """Forecast collaborator returning canned text or raising."""

    def __init__(
        self,
        text: str = "2024-01-01: 5.0°C",
        error: Optional[Exception] = None,
        delay: float = 0.0
    ) -> None:
        self.text = text
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, str]] = []

    def forecast(self, name: str, country_code: str) -> ToolOutcome:
        self.calls.append((name, country_code))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return ToolOutcome.ok(self.text)

    def lookup(self, name: str, country_code: str) -> str:
        return self.forecast(name, country_code).text


def open_meteo_transport(
    results: Optional[list[dict]] = None,
    daily: Optional[dict] = None,
    fail_with: Optional[Exception] = None
) -> httpx.MockTransport:
    """Mock Open-Meteo: one geocoding hit for Paris and a two-day forecast."""
    if results is None:
        results = [{"id": 2988507, "name": "Paris", "latitude": 48.85, "longitude": 2.35, "country_code": "FR"}]
    if daily is None:
        daily = {"time": ["2024-01-01", "2024-01-02"], "temperature_2m_mean": [5.0, 6.2]}

    def handler(request: httpx.Request) -> httpx.Response:
        if fail_with is not None:
            raise fail_with
        if request.url.path == "/v1/search":
            return httpx.Response(200, json={"results": results, "generationtime_ms": 0.5})
        if request.url.path == "/v1/forecast":
            return httpx.Response(200, json={"latitude": 48.85, "longitude": 2.35, "daily": daily})
        return httpx.Response(404)

    return httpx.MockTransport(handler)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        mcp_server=MCPServerSettings(
            enable_audit=False,
            audit_log_path=str(tmp_path / "audit.log"),
        ),
        auth=AuthSettings(
            api_key=API_KEY,
            bearer_token=BEARER_TOKEN,
            basic_auth_value=BASIC_AUTH_VALUE,
            allow_unauthenticated=True,
        ),
        weather=WeatherSettings(worker_pool_size=2, tool_timeout_seconds=5.0),
    )


@pytest.fixture
def stub_lookup() -> StubLookup:
    return StubLookup()
