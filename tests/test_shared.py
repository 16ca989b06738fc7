"""Tests for shared configuration, logging and schema helpers."""

import pytest

from shared.models import SchemaProperty


class TestSettings:
    """Tests for configuration loading."""

    def test_defaults(self):
        from shared.config import Settings

        settings = Settings()

        assert settings.mcp_server.port == 8080
        assert settings.mcp_server.server_name == "Weather MCP Server with Auth"
        assert settings.auth.allow_unauthenticated is True
        assert settings.weather.geocoding_url == "https://geocoding-api.open-meteo.com"

    def test_secrets_have_no_defaults(self, monkeypatch):
        from shared.config import AuthSettings

        for name in ("MCP_AUTH_API_KEY", "MCP_AUTH_BEARER_TOKEN", "MCP_AUTH_BASIC_AUTH_VALUE"):
            monkeypatch.delenv(name, raising=False)

        auth = AuthSettings(_env_file=None)

        assert auth.api_key is None
        assert auth.bearer_token is None
        assert auth.basic_auth_value is None

    def test_from_yaml(self, tmp_path):
        from shared.config import Settings

        path = tmp_path / "settings.yaml"
        path.write_text(
            "log_level: DEBUG\n"
            "auth:\n"
            "  api_key: from-yaml\n"
            "  allow_unauthenticated: false\n"
            "weather:\n"
            "  worker_pool_size: 3\n"
        )

        settings = Settings.from_yaml(path)

        assert settings.log_level == "DEBUG"
        assert settings.auth.api_key == "from-yaml"
        assert settings.auth.allow_unauthenticated is False
        assert settings.weather.worker_pool_size == 3

    def test_missing_yaml_gives_defaults(self, tmp_path):
        from shared.config import Settings

        assert Settings.from_yaml(tmp_path / "absent.yaml").mcp_server.port == 8080

    def test_env_override(self, monkeypatch):
        from shared.config import AuthSettings

        monkeypatch.setenv("MCP_AUTH_BEARER_TOKEN", "from-env")

        assert AuthSettings().bearer_token == "from-env"

    def test_worker_pool_must_be_positive(self):
        from pydantic import ValidationError

        from shared.config import WeatherSettings

        with pytest.raises(ValidationError):
            WeatherSettings(worker_pool_size=0)


class TestLogging:
    """Tests for logging helpers."""

    def test_credentials_are_masked(self):
        from shared.logging import mask_credentials

        event = mask_credentials(None, "info", {
            "event": "request",
            "api_key": "secret-value",
            "Authorization": "Bearer abc",
            "client": "Client: x",
        })

        assert event["api_key"] == "***"
        assert event["Authorization"] == "***"
        assert event["client"] == "Client: x"

    def test_setup_logging(self):
        from shared.logging import get_logger, setup_logging

        setup_logging("DEBUG", json_output=True)
        logger = get_logger(__name__, component="tests")

        logger.info("configured", api_key="hidden")


class TestSchema:
    """Tests for schema helpers."""

    def test_create_tool_schema(self):
        from shared.schema import create_tool_schema

        schema = create_tool_schema([
            {"name": "city", "type": "str", "description": "City"},
            {"name": "days", "type": "int", "description": "Days", "required": False},
        ])

        assert schema.properties["city"] == SchemaProperty(type="string", description="City")
        assert schema.properties["days"].type == "integer"
        assert schema.required == ["city"]

    def test_required_must_be_declared(self):
        from pydantic import ValidationError

        from shared.schema import create_tool_schema

        with pytest.raises(ValidationError):
            create_tool_schema([{"name": "city"}], required=["country"])

    def test_validate_schema(self):
        from shared.schema import validate_schema

        schema = {
            "type": "object",
            "properties": {"name": {"type": "string"}},
            "required": ["name"],
        }

        assert validate_schema({"name": "Paris"}, schema) == (True, [])

        is_valid, errors = validate_schema({"name": 5}, schema)
        assert not is_valid
        assert errors[0].startswith("name:")
