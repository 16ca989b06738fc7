"""Shared models, configuration and logging for the Weather MCP Server."""

from shared.models import (
    AuthResult,
    ErrorObject,
    RequestEnvelope,
    ResponseEnvelope,
    SchemaObject,
    ToolCallRequest,
    ToolDescriptor,
    ToolOutcome,
)
from shared.config import Settings, get_settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "AuthResult",
    "ErrorObject",
    "RequestEnvelope",
    "ResponseEnvelope",
    "SchemaObject",
    "ToolCallRequest",
    "ToolDescriptor",
    "ToolOutcome",
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
]
