"""MCP Server - authentication, tool catalog, dispatch and invocation.

The server answers JSON-RPC MCP requests on a single endpoint. It
authenticates callers, advertises its tool catalog, runs tools on a
bounded worker pool and audits every tool call.
"""

from mcp_server.registry import ToolRegistry, build_default_registry
from mcp_server.invoker import ToolInvoker, build_tool_handlers
from mcp_server.auth import AuthConfig, AuthGate
from mcp_server.audit import AuditLogger
from mcp_server.dispatcher import ProtocolDispatcher

__all__ = [
    "ToolRegistry",
    "build_default_registry",
    "ToolInvoker",
    "build_tool_handlers",
    "AuthConfig",
    "AuthGate",
    "AuditLogger",
    "ProtocolDispatcher",
]
