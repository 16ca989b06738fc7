"""MCP Server - FastAPI Application.

Serves the MCP endpoint (``POST /mcp``) plus a health check and a plain
REST route to the forecast collaborator. All protocol logic lives in the
dispatcher; this module only wires components and translates to HTTP.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from shared.config import Settings, get_settings
from shared.logging import get_logger, setup_logging
from shared.models import ServerInfo
from domains.weather import WeatherService
from mcp_server.audit import AuditLogger
from mcp_server.auth import AuthConfig, AuthGate
from mcp_server.dispatcher import ProtocolDispatcher
from mcp_server.invoker import ToolInvoker, WeatherLookup, build_tool_handlers
from mcp_server.registry import WEATHER_TOOL_NAME, ToolRegistry, build_default_registry

logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    name: str
    version: str
    tool_count: int


def create_app(
    settings: Optional[Settings] = None,
    lookup: Optional[WeatherLookup] = None,
    registry: Optional[ToolRegistry] = None
) -> FastAPI:
    """
    Build the application and its components.

    Args:
        settings: Settings to use; defaults to the cached global settings
        lookup: Forecast collaborator; defaults to an Open-Meteo client
        registry: Tool catalog; defaults to the shipped catalog

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, json_output=settings.environment == "production")

    owns_lookup = lookup is None
    if lookup is None:
        lookup = WeatherService.from_settings(settings.weather)

    registry = registry or build_default_registry()
    invoker = ToolInvoker(
        registry=registry,
        handlers=build_tool_handlers(lookup),
        max_workers=settings.weather.worker_pool_size,
        timeout_seconds=settings.weather.tool_timeout_seconds,
    )
    audit_logger = AuditLogger(
        log_path=settings.mcp_server.audit_log_path,
        enabled=settings.mcp_server.enable_audit,
    )
    auth_config = AuthConfig.from_settings(settings.auth)
    if auth_config.allow_unauthenticated:
        logger.warning("Requests without credentials will be accepted")

    dispatcher = ProtocolDispatcher(
        auth_gate=AuthGate(auth_config),
        registry=registry,
        invoker=invoker,
        server_info=ServerInfo(
            name=settings.mcp_server.server_name,
            version=settings.mcp_server.server_version,
        ),
        audit_logger=audit_logger,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        logger.info(
            "MCP Server started",
            tools=list(registry.names()),
            port=settings.mcp_server.port
        )

        yield

        logger.info("Shutting down MCP Server")
        await audit_logger.flush()
        invoker.shutdown()
        if owns_lookup and isinstance(lookup, WeatherService):
            lookup.close()

    app = FastAPI(
        title=settings.mcp_server.server_name,
        description="MCP tool server for city temperature forecasts",
        version=settings.mcp_server.server_version,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.mcp_server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.dispatcher = dispatcher
    app.state.invoker = invoker

    @app.post("/mcp", tags=["MCP"])
    async def mcp_endpoint(request: Request) -> JSONResponse:
        """JSON-RPC endpoint for the MCP protocol."""
        body = await request.body()
        status_code, envelope = await dispatcher.handle(body, request.headers)
        return JSONResponse(status_code=status_code, content=envelope.to_wire())

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check():
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            name=settings.mcp_server.server_name,
            version=settings.mcp_server.server_version,
            tool_count=len(registry)
        )

    @app.get("/api/weather", response_class=PlainTextResponse, tags=["Weather"])
    async def get_weather(city: str, country: str) -> str:
        """Forecast for a city, outside the MCP protocol."""
        try:
            return await invoker.run_blocking(lookup.lookup, city, country)
        except asyncio.TimeoutError:
            logger.warning("Weather route timed out", city=city, country_code=country)
            return invoker.timeout_text(WEATHER_TOOL_NAME)

    @app.get("/api/test", response_class=PlainTextResponse, tags=["System"])
    async def smoke_test() -> str:
        return "Simple test works! Your MCP server is responding."

    return app


def main():
    """Run the MCP Server."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "mcp_server.main:create_app",
        factory=True,
        host=settings.mcp_server.host,
        port=settings.mcp_server.port,
        reload=settings.environment == "development"
    )


if __name__ == "__main__":
    main()
