"""Application Domains.

Each domain wraps one backend that tools delegate to. Domains hold no
protocol logic and are consumed by the MCP Server only through the
narrow contracts declared in ``mcp_server.invoker``.
"""

from domains.weather import WeatherService

__all__ = ["WeatherService"]
