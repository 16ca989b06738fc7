"""Tool Invoker for the MCP Server.

Runs ``tools/call`` requests against their handlers. Handlers block on
network I/O, so they run on a bounded thread pool owned by the invoker,
never on the event loop that accepts connections.
"""

import asyncio
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Mapping, Protocol, TypeVar, Union

from shared.logging import get_logger
from shared.models import ToolOutcome, as_text
from shared.schema import validate_schema
from mcp_server.registry import WEATHER_TOOL_NAME, ToolRegistry

logger = get_logger(__name__)

T = TypeVar("T")

# Blocking tool handlers; plain text counts as an ok outcome
ToolHandler = Callable[[dict[str, Any]], Union[ToolOutcome, str]]


class WeatherLookup(Protocol):
    """Forecast collaborator; never raises for upstream failures."""

    def forecast(self, name: str, country_code: str) -> ToolOutcome:
        ...

    def lookup(self, name: str, country_code: str) -> str:
        ...


def build_tool_handlers(lookup: WeatherLookup) -> dict[str, ToolHandler]:
    """
    Bind the shipped catalog to its collaborators.

    Args:
        lookup: Shared forecast collaborator

    Returns:
        Mapping of tool name to handler
    """

    def get_weather_info(arguments: dict[str, Any]) -> ToolOutcome:
        city = as_text(arguments.get("name"))
        country_code = as_text(arguments.get("countrycode"))
        return lookup.forecast(city, country_code)

    return {WEATHER_TOOL_NAME: get_weather_info}


class ToolInvoker:
    """
    Executes registered tools.

    Tool failures never become protocol errors: a handler that raises or
    runs past the timeout yields a degraded outcome whose text describes
    the failure. Handlers may also report a degraded outcome themselves.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        handlers: Mapping[str, ToolHandler],
        max_workers: int = 8,
        timeout_seconds: float = 30.0
    ) -> None:
        """
        Initialize the invoker.

        Args:
            registry: Tool catalog
            handlers: Handler for every registered tool
            max_workers: Size of the worker pool for blocking handlers
            timeout_seconds: Upper bound on a single tool execution

        Raises:
            ValueError: If a registered tool has no handler
        """
        missing = [name for name in registry.names() if name not in handlers]
        if missing:
            raise ValueError(f"No handler for tools: {', '.join(missing)}")

        self.registry = registry
        self.timeout_seconds = timeout_seconds
        self._handlers = dict(handlers)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="tool-worker"
        )

    async def run_blocking(self, func: Callable[..., T], *args: Any) -> T:
        """
        Run a blocking callable on the worker pool.

        Raises:
            asyncio.TimeoutError: If it runs longer than ``timeout_seconds``
        """
        loop = asyncio.get_running_loop()
        return await asyncio.wait_for(
            loop.run_in_executor(self._executor, func, *args),
            timeout=self.timeout_seconds,
        )

    def timeout_text(self, label: str) -> str:
        return f"Error calling {label}: timed out after {self.timeout_seconds:g}s"

    async def invoke(self, tool_name: str, arguments: dict[str, Any]) -> ToolOutcome:
        """
        Execute a registered tool.

        Args:
            tool_name: Name of a registered tool
            arguments: Call arguments; mismatches with the input schema are
                logged, not rejected

        Returns:
            The tool's text, as an ok or degraded outcome
        """
        tool = self.registry.get(tool_name)
        if tool is None:
            raise ValueError(f"Tool '{tool_name}' is not registered")

        is_valid, errors = validate_schema(arguments, tool.input_schema.as_json_schema())
        if not is_valid:
            logger.warning("Tool arguments do not match schema", tool=tool_name, errors=errors)

        start_time = time.time()
        try:
            result = await self.run_blocking(self._handlers[tool_name], arguments)
        except asyncio.TimeoutError:
            logger.warning("Tool execution timed out", tool=tool_name, timeout_seconds=self.timeout_seconds)
            outcome = ToolOutcome.degraded(self.timeout_text(tool_name))
        except Exception as e:
            logger.error("Tool execution failed", tool=tool_name, error=str(e), exc_info=True)
            outcome = ToolOutcome.degraded(f"Error calling {tool_name}: {e}")
        else:
            outcome = result if isinstance(result, ToolOutcome) else ToolOutcome.ok(result)

        logger.debug(
            "Tool executed",
            tool=tool_name,
            outcome=outcome.kind.value,
            execution_time_ms=(time.time() - start_time) * 1000
        )
        return outcome

    def shutdown(self) -> None:
        """Stop the worker pool; running handlers are not interrupted."""
        self._executor.shutdown(wait=False, cancel_futures=True)
