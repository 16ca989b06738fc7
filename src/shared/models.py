"""Core data models for the Weather MCP Server.

This module defines the JSON-RPC envelopes, MCP result payloads, tool
catalog entries and per-request verdicts shared across the server and
the client. Wire names follow MCP (camelCase); attributes are snake_case.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"


# JSON-RPC envelopes

class ErrorObject(BaseModel):
    """JSON-RPC error member."""
    code: int
    message: str
    data: Optional[str] = None


class RequestEnvelope(BaseModel):
    """
    Decoded JSON-RPC request.

    A missing or null ``id`` becomes 0 and a missing ``method`` becomes the
    empty string, which dispatches to "method not found".
    """
    jsonrpc: str = Field(default=JSONRPC_VERSION)
    id: int = Field(default=0)
    method: str = Field(default="")
    params: Any = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _default_id(cls, value: Any) -> Any:
        if value is None:
            return 0
        if isinstance(value, bool):
            raise ValueError("id must be an integer")
        return value


class ResponseEnvelope(BaseModel):
    """JSON-RPC response carrying exactly one of ``result`` or ``error``."""
    jsonrpc: str = Field(default=JSONRPC_VERSION)
    id: int
    result: Optional[Any] = None
    error: Optional[ErrorObject] = None

    @model_validator(mode="after")
    def _exactly_one_member(self) -> "ResponseEnvelope":
        if (self.result is None) == (self.error is None):
            raise ValueError("response must carry exactly one of result or error")
        return self

    def to_wire(self) -> dict[str, Any]:
        """Render the JSON object sent over HTTP."""
        payload: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            payload["error"] = self.error.model_dump(exclude_none=True)
        else:
            payload["result"] = self.result
        return payload


# Tool catalog

class SchemaProperty(BaseModel):
    """A single input property of a tool."""
    model_config = ConfigDict(frozen=True)

    type: str
    description: str


class SchemaObject(BaseModel):
    """JSON Schema describing a tool's arguments."""
    model_config = ConfigDict(frozen=True)

    type: str = "object"
    properties: dict[str, SchemaProperty] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _required_are_declared(self) -> "SchemaObject":
        unknown = [name for name in self.required if name not in self.properties]
        if unknown:
            raise ValueError(f"required properties not declared: {', '.join(unknown)}")
        return self

    def as_json_schema(self) -> dict[str, Any]:
        return self.model_dump()


class ToolDescriptor(BaseModel):
    """Catalog entry advertised by ``tools/list``."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1)
    description: str
    input_schema: SchemaObject = Field(alias="inputSchema")


class ToolCallRequest(BaseModel):
    """Parameters of a ``tools/call`` request."""
    name: str = ""
    arguments: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_params(cls, params: Any) -> "ToolCallRequest":
        """
        Build a call request from raw ``params``, tolerating odd shapes.

        Non-mapping params or arguments are treated as empty; a non-string
        tool name is used in its text form.
        """
        if not isinstance(params, Mapping):
            return cls()
        arguments = params.get("arguments")
        return cls(
            name=as_text(params.get("name")),
            arguments=dict(arguments) if isinstance(arguments, Mapping) else {},
        )


def as_text(value: Any) -> str:
    """Text form of a scalar JSON value; missing and structured values give ''."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return ""


# MCP results

class ServerInfo(BaseModel):
    name: str
    version: str


class ToolsCapability(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    list_changed: bool = Field(default=True, alias="listChanged")


def _default_experimental() -> dict[str, Any]:
    return {
        "authentication": {
            "supported": True,
            "methods": ["api-key", "bearer", "basic"],
        }
    }


class ServerCapabilities(BaseModel):
    tools: ToolsCapability = Field(default_factory=ToolsCapability)
    experimental: dict[str, Any] = Field(default_factory=_default_experimental)


class InitializeResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    protocol_version: str = Field(default=PROTOCOL_VERSION, alias="protocolVersion")
    capabilities: ServerCapabilities = Field(default_factory=ServerCapabilities)
    server_info: ServerInfo = Field(alias="serverInfo")


class ToolsListResult(BaseModel):
    tools: list[ToolDescriptor]


class TextContent(BaseModel):
    type: str = "text"
    text: str


class ToolCallResult(BaseModel):
    content: list[TextContent]


class OutcomeKind(str, Enum):
    """Whether a tool produced its answer or a failure description."""
    OK = "ok"
    DEGRADED = "degraded"


class ToolOutcome(BaseModel):
    """
    Result of running a tool.

    Both kinds are delivered to the client as successful text content;
    ``DEGRADED`` marks text that describes a failure.
    """
    model_config = ConfigDict(frozen=True)

    kind: OutcomeKind
    text: str

    @classmethod
    def ok(cls, text: str) -> "ToolOutcome":
        return cls(kind=OutcomeKind.OK, text=text)

    @classmethod
    def degraded(cls, text: str) -> "ToolOutcome":
        return cls(kind=OutcomeKind.DEGRADED, text=text)

    @property
    def is_degraded(self) -> bool:
        return self.kind == OutcomeKind.DEGRADED

    def to_result(self) -> ToolCallResult:
        return ToolCallResult(content=[TextContent(text=self.text)])


# Authentication

class AuthMethod(str, Enum):
    """Credential kind that decided an authentication verdict."""
    API_KEY = "api-key"
    BEARER = "bearer"
    BASIC = "basic"
    NONE = "none"


class AuthResult(BaseModel):
    """Verdict of the authentication gate for one request."""
    authenticated: bool
    client_info: Optional[str] = None
    error_message: Optional[str] = None
    method: AuthMethod = AuthMethod.NONE

    @classmethod
    def success(cls, client_info: str, method: AuthMethod) -> "AuthResult":
        return cls(authenticated=True, client_info=client_info, method=method)

    @classmethod
    def failure(cls, error_message: str, client_info: str, method: AuthMethod) -> "AuthResult":
        return cls(
            authenticated=False,
            client_info=client_info,
            error_message=error_message,
            method=method,
        )


# Audit

class AuditEntry(BaseModel):
    """
    Audit log entry for a ``tools/call`` execution.

    Captures client, tool, arguments, timestamp and outcome.
    """
    id: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    request_id: int
    client_info: str
    tool_name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    outcome: OutcomeKind
    execution_time_ms: float = 0
