"""Pydantic models shared by the dispatcher, cache and transports."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel

from .errors import ErrorKind

Outcome = Literal["success", "failure"]


class InvocationResult(BaseModel):
    """Transport-neutral envelope for one tool call."""

    tool: str
    outcome: Outcome
    # Set on success only.
    payload: Any = None
    # Set on failure only.
    kind: ErrorKind | None = None
    message: str | None = None
    field: str | None = None
    status_code: int | None = None
    duration_ms: float = 0.0

    @classmethod
    def success(cls, tool: str, payload: Any, *, duration_ms: float = 0.0) -> InvocationResult:
        return cls(tool=tool, outcome="success", payload=payload, duration_ms=duration_ms)

    @classmethod
    def failure(
        cls,
        tool: str,
        kind: ErrorKind,
        message: str,
        *,
        field: str | None = None,
        status_code: int | None = None,
        duration_ms: float = 0.0,
    ) -> InvocationResult:
        return cls(
            tool=tool,
            outcome="failure",
            kind=kind,
            message=message,
            field=field,
            status_code=status_code,
            duration_ms=duration_ms,
        )

    @property
    def ok(self) -> bool:
        return self.outcome == "success"

    def error_body(self) -> dict[str, Any]:
        """Failure details shared by both transports."""
        body: dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.field is not None:
            body["field"] = self.field
        if self.status_code is not None:
            body["status_code"] = self.status_code
        return body


class CacheRecord(BaseModel):
    """One cached task as stored on disk."""

    project_id: str
    title: str
    cached_at: str


class ImportSummary(BaseModel):
    imported: int
    skipped: int
