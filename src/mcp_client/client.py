"""MCP Client for the Weather MCP Server.

Speaks JSON-RPC to the ``/mcp`` endpoint. Handles credentials, request
ids and mapping of error responses to exceptions.
"""

import itertools
from typing import Any, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from shared.logging import get_logger
from shared.models import JSONRPC_VERSION, ToolDescriptor

logger = get_logger(__name__)


class MCPClientError(Exception):
    """Base exception for MCP Client errors."""
    pass


class MCPConnectionError(MCPClientError):
    """Connection to MCP Server failed."""
    pass


class MCPAuthError(MCPClientError):
    """Authentication failed."""
    pass


class MCPProtocolError(MCPClientError):
    """The server answered with a JSON-RPC error."""

    def __init__(self, code: int, message: str, data: Optional[str] = None) -> None:
        super().__init__(f"{message} ({code})" + (f": {data}" if data else ""))
        self.code = code
        self.message = message
        self.data = data


class MCPClient:
    """
    Client for the MCP endpoint.

    At most one credential is sent: an API key, a bearer token or a basic
    auth value (the part after "Basic ").
    """

    def __init__(
        self,
        server_url: str = "http://localhost:8080",
        timeout: float = 30.0,
        api_key: Optional[str] = None,
        bearer_token: Optional[str] = None,
        basic_auth: Optional[str] = None,
        client_id: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        """
        Initialize MCP Client.

        Args:
            server_url: MCP Server base URL
            timeout: Request timeout in seconds
            api_key: Sent as X-API-Key
            bearer_token: Sent as "Authorization: Bearer <token>"
            basic_auth: Sent as "Authorization: Basic <value>"
            client_id: Sent as X-Client-ID
            transport: Optional transport override, used by tests

        Raises:
            ValueError: If more than one credential is given
        """
        credentials = [c for c in (api_key, bearer_token, basic_auth) if c is not None]
        if len(credentials) > 1:
            raise ValueError("Only one of api_key, bearer_token or basic_auth may be set")

        self.server_url = server_url.rstrip("/")
        self.timeout = timeout
        self._api_key = api_key
        self._bearer_token = bearer_token
        self._basic_auth = basic_auth
        self._client_id = client_id
        self._transport = transport
        self._ids = itertools.count(1)
        self._client: Optional[httpx.AsyncClient] = None

    def _get_headers(self) -> dict[str, str]:
        """Get request headers including authentication."""
        headers = {"Content-Type": "application/json"}
        if self._api_key is not None:
            headers["X-API-Key"] = self._api_key
        elif self._bearer_token is not None:
            headers["Authorization"] = f"Bearer {self._bearer_token}"
        elif self._basic_auth is not None:
            headers["Authorization"] = f"Basic {self._basic_auth}"
        if self._client_id is not None:
            headers["X-Client-ID"] = self._client_id
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.server_url,
                timeout=self.timeout,
                headers=self._get_headers(),
                transport=self._transport
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "MCPClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def request(self, method: str, params: Optional[dict[str, Any]] = None) -> Any:
        """
        Send one JSON-RPC request and return its result.

        Raises:
            MCPConnectionError: If server is unreachable
            MCPAuthError: If authentication fails
            MCPProtocolError: If the response carries an error
        """
        request_id = next(self._ids)
        logger.debug("Sending MCP request", method=method, request_id=request_id)

        try:
            client = await self._get_client()
            response = await client.post(
                "/mcp",
                json={
                    "jsonrpc": JSONRPC_VERSION,
                    "id": request_id,
                    "method": method,
                    "params": params or {},
                }
            )
        except httpx.TransportError as e:
            raise MCPConnectionError(f"Cannot connect to MCP Server: {e}")

        if response.status_code == 401:
            raise MCPAuthError("Authentication required")

        try:
            data = response.json()
        except ValueError:
            raise MCPClientError(f"Invalid JSON response (HTTP {response.status_code})")

        error = data.get("error")
        if error:
            raise MCPProtocolError(error.get("code", 0), error.get("message", ""), error.get("data"))

        return data.get("result")

    @retry(
        retry=retry_if_exception_type(MCPConnectionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True
    )
    async def initialize(self, client_name: str = "weather-mcp-client") -> dict[str, Any]:
        """Handshake; returns the server's protocol version, capabilities and info."""
        return await self.request(
            "initialize",
            {
                "protocolVersion": "2024-11-05",
                "capabilities": {"tools": {}},
                "clientInfo": {"name": client_name, "version": "1.0.0"},
            }
        )

    @retry(
        retry=retry_if_exception_type(MCPConnectionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True
    )
    async def ping(self) -> bool:
        """Liveness check."""
        return await self.request("ping") == {}

    async def list_tools(self) -> list[ToolDescriptor]:
        """List the tools advertised by the server."""
        result = await self.request("tools/list")
        return [ToolDescriptor.model_validate(tool) for tool in result.get("tools", [])]

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        """
        Call a tool and return its text output.

        Tool failures arrive as ordinary text, not as exceptions.
        """
        result = await self.request("tools/call", {"name": name, "arguments": arguments})
        return "".join(
            item.get("text", "") for item in result.get("content", []) if item.get("type") == "text"
        )

    async def get_weather(self, city: str, country_code: str) -> str:
        """Convenience wrapper around the ``getWeatherInfo`` tool."""
        return await self.call_tool("getWeatherInfo", {"name": city, "countrycode": country_code})
