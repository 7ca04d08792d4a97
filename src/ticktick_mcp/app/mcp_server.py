"""MCP (JSON-RPC) front end for the tool dispatcher.

Terms used in this file:
- tools/list: the request an MCP client sends to discover the catalog.
- tools/call: the request that runs one tool; its result carries text
  content plus a structured copy of the same payload.
- isError: flag on a tool result. Invalid arguments and handler or upstream
  failures are reported this way, with the JSON-RPC code inside the body.
- McpError: a real JSON-RPC error response; used for unknown tool names.
- stdio / streamable HTTP: the two wire transports. Both drive the same
  ``Server`` built by ``build_mcp_server``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from mcp.shared.exceptions import McpError

from .errors import HANDLER_ERROR, INVALID_ARGUMENT, UNKNOWN_OPERATION, UPSTREAM_ERROR
from .models import InvocationResult
from .runtime import Runtime

logger = logging.getLogger(__name__)

# Internal error kind -> JSON-RPC error code.
ERROR_CODES: dict[str, int] = {
    UNKNOWN_OPERATION: types.METHOD_NOT_FOUND,
    INVALID_ARGUMENT: types.INVALID_PARAMS,
    UPSTREAM_ERROR: types.INTERNAL_ERROR,
    HANDLER_ERROR: types.INTERNAL_ERROR,
}


def tool_definitions(runtime: Runtime) -> list[types.Tool]:
    return [
        types.Tool(
            name=spec.name,
            description=spec.description,
            inputSchema=spec.input_schema(),
        )
        for spec in runtime.registry.list_specs()
    ]


def render_call_result(result: InvocationResult) -> types.CallToolResult:
    """Turn a dispatcher envelope into an MCP tool result."""
    if result.ok:
        structured = (
            result.payload if isinstance(result.payload, dict) else {"result": result.payload}
        )
        return types.CallToolResult(
            content=[
                types.TextContent(
                    type="text", text=json.dumps(result.payload, indent=2, default=str)
                )
            ],
            structuredContent=structured,
            isError=False,
        )

    code = ERROR_CODES.get(result.kind or HANDLER_ERROR, types.INTERNAL_ERROR)
    error: dict[str, Any] = {"code": code}
    error.update(result.error_body())
    body = {"error": error}
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=json.dumps(body, default=str))],
        structuredContent=body,
        isError=True,
    )


def build_mcp_server(runtime: Runtime) -> Server:
    server = Server(runtime.settings.app_name, version=runtime.settings.app_version)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return tool_definitions(runtime)

    # Registered by hand: @server.call_tool() turns raised errors into tool results.
    async def handle_call_tool(req: types.CallToolRequest) -> types.ServerResult:
        result = await runtime.dispatcher.invoke(req.params.name, req.params.arguments)
        if result.kind == UNKNOWN_OPERATION:
            raise McpError(
                types.ErrorData(
                    code=types.METHOD_NOT_FOUND,
                    message=result.message or f"Unknown tool: {req.params.name}",
                    data={"kind": result.kind},
                )
            )
        return types.ServerResult(render_call_result(result))

    server.request_handlers[types.CallToolRequest] = handle_call_tool
    return server


def build_session_manager(server: Server) -> StreamableHTTPSessionManager:
    """Streamable-HTTP session manager for ``POST /mcp``.

    Stateless with plain JSON responses: every request gets a fresh
    transport, so no session id has to be carried between calls.
    ``run()`` must be entered once, for the lifetime of the web app.
    """
    return StreamableHTTPSessionManager(app=server, json_response=True, stateless=True)


async def run_stdio(runtime: Runtime) -> None:
    await asyncio.to_thread(runtime.cache.initialize)
    server = build_mcp_server(runtime)
    logger.info(
        "mcp_server event=start transport=stdio tools=%s token_configured=%s",
        len(runtime.registry),
        runtime.client.configured,
    )
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
