"""Tool Registry for the MCP Server.

Holds the catalog advertised by ``tools/list``. The catalog is built once
at startup and is read-only afterwards, so concurrent requests share it
without locking.
"""

from types import MappingProxyType
from typing import Iterable, Optional

from shared.logging import get_logger
from shared.models import ToolDescriptor
from shared.schema import check_schema, create_tool_schema

logger = get_logger(__name__)

WEATHER_TOOL_NAME = "getWeatherInfo"


class ToolRegistry:
    """
    Immutable catalog of tool descriptors.

    Responsibilities:
    - Reject duplicate tool names
    - Check every input schema is valid JSON Schema
    - List tools in catalog order
    - Lookup tools by name
    """

    def __init__(self, descriptors: Iterable[ToolDescriptor]) -> None:
        """
        Build the catalog.

        Args:
            descriptors: Tool descriptors in the order they are advertised

        Raises:
            ValueError: If two descriptors share a name
            jsonschema.SchemaError: If an input schema is not valid JSON Schema
        """
        tools: dict[str, ToolDescriptor] = {}

        for descriptor in descriptors:
            if descriptor.name in tools:
                raise ValueError(f"Tool '{descriptor.name}' is already registered")

            check_schema(descriptor.input_schema.as_json_schema())
            tools[descriptor.name] = descriptor

            logger.info("Tool registered", tool=descriptor.name)

        self._tools = MappingProxyType(tools)
        self._ordered = tuple(tools.values())

    def list(self) -> tuple[ToolDescriptor, ...]:
        """All descriptors, in catalog order."""
        return self._ordered

    def exists(self, name: str) -> bool:
        return name in self._tools

    def get(self, name: str) -> Optional[ToolDescriptor]:
        """
        Get a tool by name.

        Returns:
            ToolDescriptor if found, None otherwise
        """
        return self._tools.get(name)

    def names(self) -> tuple[str, ...]:
        return tuple(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._ordered)


def weather_tool_descriptor() -> ToolDescriptor:
    """Descriptor of the forecast tool."""
    return ToolDescriptor(
        name=WEATHER_TOOL_NAME,
        description="Get temperature forecast for a city for the next days in celsius",
        input_schema=create_tool_schema(
            [
                {"name": "name", "type": "string", "description": "City name"},
                {
                    "name": "countrycode",
                    "type": "string",
                    "description": "Country code (e.g., CA, US, GB)",
                },
            ],
            required=["name", "countrycode"],
        ),
    )


def build_default_registry() -> ToolRegistry:
    """The catalog shipped with the server."""
    return ToolRegistry([weather_tool_descriptor()])
