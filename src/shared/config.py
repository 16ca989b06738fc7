"""Configuration management for the Weather MCP Server.

Supports YAML configuration files and environment variable overrides.
Configuration is loaded once and cached for performance.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MCPServerSettings(BaseSettings):
    """MCP Server configuration."""
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)
    server_name: str = Field(default="Weather MCP Server with Auth")
    server_version: str = Field(default="1.0.0")
    enable_audit: bool = Field(default=True)
    audit_log_path: str = Field(default="logs/audit.log")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    model_config = SettingsConfigDict(
        env_prefix="MCP_SERVER_",
        env_file=".env",
        extra="ignore"
    )


class AuthSettings(BaseSettings):
    """
    Credentials accepted by the MCP endpoint.

    Secrets have no defaults; supply them through the YAML file or
    MCP_AUTH_* environment variables. ``basic_auth_value`` is the full
    Authorization header value, including the "Basic " prefix.
    """
    api_key: Optional[str] = Field(default=None)
    bearer_token: Optional[str] = Field(default=None)
    basic_auth_value: Optional[str] = Field(default=None)

    # Requests carrying no credential header at all are let through when set.
    allow_unauthenticated: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_prefix="MCP_AUTH_",
        env_file=".env",
        extra="ignore"
    )


class WeatherSettings(BaseSettings):
    """Open-Meteo collaborator and tool worker pool configuration."""
    geocoding_url: str = Field(default="https://geocoding-api.open-meteo.com")
    forecast_url: str = Field(default="https://api.open-meteo.com")
    language: str = Field(default="en")
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    tool_timeout_seconds: float = Field(default=30.0, gt=0)
    worker_pool_size: int = Field(default=8, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="MCP_WEATHER_",
        env_file=".env",
        extra="ignore"
    )


class Settings(BaseSettings):
    """Main application settings."""
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Component settings
    mcp_server: MCPServerSettings = Field(default_factory=MCPServerSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    weather: WeatherSettings = Field(default_factory=WeatherSettings)

    model_config = SettingsConfigDict(
        env_prefix="MCP_",
        env_file=".env",
        extra="ignore"
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    config_path = os.environ.get("MCP_CONFIG_PATH", "config/settings.yaml")
    return Settings.from_yaml(config_path)
