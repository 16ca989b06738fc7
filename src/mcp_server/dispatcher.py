"""Protocol Dispatcher for the MCP Server.

Turns one HTTP request body into one JSON-RPC response. Authentication
runs first, then the body is decoded and routed by ``method``. Every
failure is converted to a response envelope here; nothing propagates to
the HTTP layer.
"""

import time
from typing import Awaitable, Callable, Mapping, Optional

from shared.logging import bind_context, clear_context, get_logger
from shared.models import (
    InitializeResult,
    RequestEnvelope,
    ResponseEnvelope,
    ServerInfo,
    ToolCallRequest,
    ToolsListResult,
)
from mcp_server.audit import AuditLogger
from mcp_server.auth import AuthGate
from mcp_server.envelope import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    UNAUTHORIZED,
    RequestDecodeError,
    decode_request,
    failure,
    peek_request_id,
    success,
)
from mcp_server.invoker import ToolInvoker
from mcp_server.registry import ToolRegistry

logger = get_logger(__name__)

HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401

MethodHandler = Callable[[RequestEnvelope, str], Awaitable[ResponseEnvelope]]


class ProtocolDispatcher:
    """
    Routes MCP requests to their handlers.

    Supported methods: initialize, tools/list, tools/call, ping. Anything
    else is answered with "method not found". No state is kept between
    requests.
    """

    def __init__(
        self,
        auth_gate: AuthGate,
        registry: ToolRegistry,
        invoker: ToolInvoker,
        server_info: ServerInfo,
        audit_logger: Optional[AuditLogger] = None
    ) -> None:
        self.auth_gate = auth_gate
        self.registry = registry
        self.invoker = invoker
        self.server_info = server_info
        self.audit_logger = audit_logger
        self._methods: dict[str, MethodHandler] = {
            "initialize": self._initialize,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "ping": self._ping,
        }

    async def handle(
        self,
        body: bytes | str,
        headers: Mapping[str, str]
    ) -> tuple[int, ResponseEnvelope]:
        """
        Process one HTTP request.

        Args:
            body: Raw request body
            headers: Request headers

        Returns:
            Tuple of (HTTP status code, response envelope)
        """
        auth = self.auth_gate.authenticate(headers)
        if not auth.authenticated:
            return HTTP_UNAUTHORIZED, failure(
                peek_request_id(body), UNAUTHORIZED, "Unauthorized", "Authentication required"
            )

        try:
            envelope = decode_request(body)
        except RequestDecodeError as e:
            logger.warning("Undecodable request", client=auth.client_info, error=str(e))
            return HTTP_BAD_REQUEST, failure(e.request_id, INTERNAL_ERROR, "Internal error", str(e))

        bind_context(request_id=envelope.id, method=envelope.method, client=auth.client_info)
        try:
            response = await self.dispatch(envelope, auth.client_info or "Unknown client")
        except Exception as e:
            logger.error("Request processing failed", error=str(e), exc_info=True)
            return HTTP_BAD_REQUEST, failure(envelope.id, INTERNAL_ERROR, "Internal error", str(e))
        finally:
            clear_context()

        return HTTP_OK, response

    async def dispatch(
        self,
        envelope: RequestEnvelope,
        client_info: str = "Unknown client"
    ) -> ResponseEnvelope:
        """
        Answer an authenticated, decoded request.

        Args:
            envelope: Decoded request
            client_info: Caller description for logs and the audit trail

        Returns:
            Response envelope echoing the request id
        """
        logger.debug("Dispatching request", method=envelope.method, request_id=envelope.id)

        handler = self._methods.get(envelope.method)
        if handler is None:
            logger.warning("Method not found", method=envelope.method)
            return failure(envelope.id, METHOD_NOT_FOUND, "Method not found", envelope.method)

        return await handler(envelope, client_info)

    async def _initialize(self, envelope: RequestEnvelope, client_info: str) -> ResponseEnvelope:
        logger.info("Client initialized", client=client_info)
        return success(envelope.id, InitializeResult(server_info=self.server_info))

    async def _tools_list(self, envelope: RequestEnvelope, client_info: str) -> ResponseEnvelope:
        return success(envelope.id, ToolsListResult(tools=list(self.registry.list())))

    async def _tools_call(self, envelope: RequestEnvelope, client_info: str) -> ResponseEnvelope:
        call = ToolCallRequest.from_params(envelope.params)

        if not self.registry.exists(call.name):
            logger.warning("Unknown tool requested", tool=call.name)
            return failure(envelope.id, INVALID_PARAMS, "Invalid tool name", call.name)

        start_time = time.time()
        outcome = await self.invoker.invoke(call.name, call.arguments)
        execution_time_ms = (time.time() - start_time) * 1000

        if outcome.is_degraded:
            logger.warning("Tool returned a failure description", tool=call.name, text=outcome.text)

        if self.audit_logger is not None:
            await self.audit_logger.log(envelope.id, client_info, call, outcome, execution_time_ms)

        return success(envelope.id, outcome.to_result())

    async def _ping(self, envelope: RequestEnvelope, client_info: str) -> ResponseEnvelope:
        return success(envelope.id, {})
