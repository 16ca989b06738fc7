"""MCP Client - JSON-RPC access to the Weather MCP Server."""

from mcp_client.client import (
    MCPAuthError,
    MCPClient,
    MCPClientError,
    MCPConnectionError,
    MCPProtocolError,
)

__all__ = [
    "MCPAuthError",
    "MCPClient",
    "MCPClientError",
    "MCPConnectionError",
    "MCPProtocolError",
]
