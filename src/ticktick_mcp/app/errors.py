"""Error taxonomy shared by the registry, dispatcher, cache and upstream client."""

from __future__ import annotations

from typing import Literal

# Failure classifications carried by InvocationResult.
ErrorKind = Literal["UnknownOperation", "InvalidArgument", "UpstreamError", "HandlerError"]

UNKNOWN_OPERATION: ErrorKind = "UnknownOperation"
INVALID_ARGUMENT: ErrorKind = "InvalidArgument"
UPSTREAM_ERROR: ErrorKind = "UpstreamError"
HANDLER_ERROR: ErrorKind = "HandlerError"


class DuplicateToolError(ValueError):
    """Raised when a tool name is registered twice."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool already registered: {name}")
        self.name = name


class ToolNotFoundError(KeyError):
    """Raised when a tool name is not in the registry."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown tool: {self.name}"


class UpstreamError(RuntimeError):
    """The TickTick API returned a non-2xx status or could not be reached."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        status_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.status_code = status_code
        self.reason = reason


class CacheIOError(OSError):
    """Reading or writing the cache document failed. Logged, never propagated."""
