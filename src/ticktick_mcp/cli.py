"""Command line entry point: ``ticktick-mcp stdio`` or ``ticktick-mcp http``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .app.settings import get_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ticktick-mcp",
        description="Serve the TickTick tool catalog over MCP stdio or HTTP.",
    )
    subparsers = parser.add_subparsers(dest="transport")

    subparsers.add_parser("stdio", help="Run as an MCP server on stdin/stdout (default)")

    http = subparsers.add_parser("http", help="Run the REST API with uvicorn")
    http.add_argument("--host", default=None, help="Bind address (default from settings)")
    http.add_argument("--port", type=int, default=None, help="Bind port (default from settings)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    # stdout carries MCP frames in stdio mode, so logs always go to stderr.
    logging.basicConfig(
        stream=sys.stderr,
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    if args.transport == "http":
        import uvicorn

        from .main import create_app

        uvicorn.run(
            create_app(settings_override=settings),
            host=args.host or settings.host,
            port=args.port or settings.port,
            log_level=settings.log_level.lower(),
        )
        return 0

    from .app.mcp_server import run_stdio
    from .app.runtime import build_runtime

    asyncio.run(run_stdio(build_runtime(settings)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
