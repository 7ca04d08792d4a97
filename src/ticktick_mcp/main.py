"""FastAPI application wiring for the REST and streamable-HTTP MCP transports.

Terms used in this file:
- Shortcut route: a dedicated ``POST`` path for one tool, generated from the
  registry (for example, POST /api/ticktick/tasks/create).
- Execute route: ``POST /api/ticktick/execute/{tool_name}`` reaches any
  registered tool without adding a path.
- Envelope: every tool response is ``{"success", "tool", "data"}`` or
  ``{"success": false, "error", "error_kind", "details"}``; the status code
  follows the error kind.
- /mcp: the MCP protocol over streamable HTTP, served by the same MCP server
  the stdio transport uses.
- app.state.runtime: the shared settings, client, cache, registry and
  dispatcher.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import Receive, Scope, Send

from .app.errors import HANDLER_ERROR, INVALID_ARGUMENT, UNKNOWN_OPERATION, UPSTREAM_ERROR
from .app.mcp_server import build_mcp_server, build_session_manager
from .app.models import InvocationResult
from .app.runtime import Runtime, build_runtime
from .app.settings import Settings, get_settings

logger = logging.getLogger(__name__)

EXECUTE_ROUTE = "/api/ticktick/execute/{tool_name}"
MCP_ROUTE = "/mcp"
TOP_LEVEL_ROUTES = ["/health", "/", MCP_ROUTE, "/tools", "/api/docs", EXECUTE_ROUTE]

# Internal error kind -> HTTP status.
STATUS_BY_KIND: dict[str, int] = {
    UNKNOWN_OPERATION: 404,
    INVALID_ARGUMENT: 422,
    UPSTREAM_ERROR: 502,
    HANDLER_ERROR: 500,
}


def create_app(
    *,
    settings_override: Settings | None = None,
    runtime: Runtime | None = None,
) -> FastAPI:
    """Application factory; tests pass a prepared runtime."""
    if runtime is None:
        runtime = build_runtime(settings_override or get_settings())
    settings = runtime.settings
    session_manager = build_session_manager(build_mcp_server(runtime))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await asyncio.to_thread(runtime.cache.initialize)
        logger.info(
            "http_server event=start tools=%s token_configured=%s cache_path=%s",
            len(runtime.registry),
            runtime.client.configured,
            runtime.cache.path,
        )
        async with session_manager.run():
            yield

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.runtime = runtime
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.get("/health")
    @app.get("/healthz")
    def health() -> dict[str, str]:
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "timestamp": datetime.now(tz=UTC).isoformat(),
        }

    @app.get("/")
    def home() -> dict[str, Any]:
        return {
            "message": "TickTick MCP Server",
            "status": "running",
            "tools_count": len(runtime.registry),
            "features": ["MCP Protocol", "REST API", "Task Caching"],
        }

    @app.get("/tools")
    def list_tools() -> dict[str, list[dict[str, Any]]]:
        return {"tools": [spec.describe() for spec in runtime.registry.list_specs()]}

    @app.get("/api/docs")
    def api_docs() -> dict[str, Any]:
        shortcuts = {
            spec.name: f"POST {spec.route}"
            for spec in runtime.registry.list_specs()
            if spec.route
        }
        return {
            "message": "TickTick MCP Server - API Documentation",
            "endpoints": {
                "health": "GET /health",
                "status": "GET /",
                "tools": "GET /tools",
                "mcp_protocol": f"POST {MCP_ROUTE}",
                **shortcuts,
                "execute_any_tool": f"POST {EXECUTE_ROUTE}",
            },
            "tools": [spec.describe() for spec in runtime.registry.list_specs()],
            "authentication": {
                "method": "Bearer Token",
                "configured": runtime.client.configured,
            },
        }

    for spec in runtime.registry.list_specs():
        if spec.route:
            app.add_api_route(
                spec.route,
                _shortcut_endpoint(spec.name),
                methods=["POST"],
                name=spec.name,
                summary=spec.description,
            )

    @app.post(EXECUTE_ROUTE)
    async def execute_tool(tool_name: str, request: Request) -> JSONResponse:
        return await _dispatch(request, tool_name)

    app.add_route(
        MCP_ROUTE,
        _StreamableHTTPEndpoint(session_manager),
        methods=["GET", "POST", "DELETE"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def not_found(request: Request, exc: StarletteHTTPException):
        if exc.status_code != 404:
            return await http_exception_handler(request, exc)
        return JSONResponse(
            status_code=404,
            content={
                "error": "Endpoint not found",
                "available_endpoints": TOP_LEVEL_ROUTES,
                "suggestion": "Visit /api/docs for full API documentation",
            },
        )

    return app


def render_http_result(result: InvocationResult) -> JSONResponse:
    if result.ok:
        return JSONResponse(
            content=jsonable_encoder({"success": True, "tool": result.tool, "data": result.payload})
        )
    return JSONResponse(
        status_code=STATUS_BY_KIND.get(result.kind or HANDLER_ERROR, 500),
        content=jsonable_encoder(
            {
                "success": False,
                "tool": result.tool,
                "error": result.message,
                "error_kind": result.kind,
                "details": result.error_body(),
            }
        ),
    )


class _StreamableHTTPEndpoint:
    """Raw ASGI endpoint handing /mcp requests to the MCP session manager."""

    def __init__(self, session_manager: StreamableHTTPSessionManager) -> None:
        self.session_manager = session_manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.session_manager.handle_request(scope, receive, send)


def _shortcut_endpoint(tool_name: str):
    async def endpoint(request: Request) -> JSONResponse:
        return await _dispatch(request, tool_name)

    return endpoint


async def _dispatch(request: Request, tool_name: str) -> JSONResponse:
    runtime: Runtime = request.app.state.runtime
    raw_body = await request.body()
    if not raw_body.strip():
        arguments: Any = {}
    else:
        try:
            arguments = json.loads(raw_body)
        except ValueError:
            return render_http_result(
                InvocationResult.failure(
                    tool_name,
                    INVALID_ARGUMENT,
                    "Request body is not valid JSON",
                    field="body",
                )
            )
    result = await runtime.dispatcher.invoke(tool_name, arguments)
    return render_http_result(result)


# Module-level app for `uvicorn ticktick_mcp.main:app`.
app = create_app()
