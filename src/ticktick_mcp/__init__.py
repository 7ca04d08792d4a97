"""TickTick tool catalog exposed over MCP stdio and a REST API."""

__version__ = "1.0.0"
