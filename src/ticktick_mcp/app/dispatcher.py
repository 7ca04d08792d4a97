"""Schema-enforcing dispatcher shared by the MCP and HTTP transports.

Terms used in this file:
- Invocation: one call of a named tool with raw, untrusted arguments.
- InvocationResult: the envelope every invocation returns. It is either a
  success with a payload or a failure with a kind and a message.
- Error kinds: UnknownOperation (no such tool), InvalidArgument (arguments
  failed the input model), UpstreamError (the TickTick API failed) and
  HandlerError (anything else the handler raised).
- field: for InvalidArgument, the dotted path of the first rejected field.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from pydantic import ValidationError

from .errors import (
    HANDLER_ERROR,
    INVALID_ARGUMENT,
    UNKNOWN_OPERATION,
    UPSTREAM_ERROR,
    ToolNotFoundError,
    UpstreamError,
)
from .models import InvocationResult
from .registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolDispatcher:
    """Resolve a tool by name, validate its arguments once and run its handler.

    Every outcome, including handler exceptions, comes back as an
    ``InvocationResult``; nothing raised by a handler escapes ``invoke``.
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    async def invoke(self, name: str, raw_args: Any = None) -> InvocationResult:
        started_at = time.perf_counter()
        result = await self._invoke(name, raw_args, started_at)
        logger.info(
            "tool_call event=completed tool=%s status=%s kind=%s duration_ms=%s",
            name,
            result.outcome,
            result.kind,
            result.duration_ms,
        )
        return result

    async def _invoke(self, name: str, raw_args: Any, started_at: float) -> InvocationResult:
        try:
            spec = self.registry.lookup(name)
        except ToolNotFoundError as exc:
            return InvocationResult.failure(
                name, UNKNOWN_OPERATION, str(exc), duration_ms=_duration_ms(started_at)
            )

        if raw_args is None:
            raw_args = {}
        if not isinstance(raw_args, dict):
            return InvocationResult.failure(
                name,
                INVALID_ARGUMENT,
                "Arguments must be a JSON object",
                duration_ms=_duration_ms(started_at),
            )

        try:
            payload = spec.input_model.model_validate(raw_args)
        except ValidationError as exc:
            field, message = _first_validation_error(exc)
            return InvocationResult.failure(
                name,
                INVALID_ARGUMENT,
                f"Invalid argument '{field}': {message}",
                field=field,
                duration_ms=_duration_ms(started_at),
            )

        try:
            output = await spec.handler(payload)
        except UpstreamError as exc:
            return InvocationResult.failure(
                name,
                UPSTREAM_ERROR,
                str(exc),
                status_code=exc.status_code,
                duration_ms=_duration_ms(started_at),
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("tool_call event=handler_error tool=%s", name)
            return InvocationResult.failure(
                name,
                HANDLER_ERROR,
                str(exc) or type(exc).__name__,
                duration_ms=_duration_ms(started_at),
            )

        return InvocationResult.success(name, output, duration_ms=_duration_ms(started_at))


def _first_validation_error(exc: ValidationError) -> tuple[str, str]:
    errors = exc.errors()
    if not errors:
        return "arguments", str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "arguments"
    return location, str(first.get("msg", "invalid value"))


def _duration_ms(started_at: float) -> float:
    return round((time.perf_counter() - started_at) * 1000.0, 2)
