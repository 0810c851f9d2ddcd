"""Pydantic request and response models for the todo HTTP API.

Every response uses the same JSON envelope:
``{"result": ..., "message": "...", "status": "success" | "error"}``
with ``result`` omitted on errors.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TodoCreate(BaseModel):
    """Request body for POST /todos and POST /todos/queue."""

    title: str
    description: str = ""


class ApiResponse(BaseModel):
    """Response envelope shared by all todo endpoints."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    result: Any = None
    message: str
    status: str = "success"
    fetched_at: Optional[datetime] = None

    @classmethod
    def success(cls, message: str, result: Any, **fields: Any) -> "ApiResponse":
        return cls(result=_dump(result), message=message, status="success", **fields)

    @classmethod
    def error(cls, message: str) -> "ApiResponse":
        return cls(message=message, status="error")

    def to_content(self) -> dict:
        """Serialise to camelCase JSON-ready dict, dropping unset optional keys."""
        exclude = {name for name in ("result", "fetched_at") if getattr(self, name) is None}
        return self.model_dump(by_alias=True, mode="json", exclude=exclude)


class HealthResponse(BaseModel):
    """Body of GET /health."""

    status: str = "ok"
    version: str
    uptime_seconds: int
    processor_running: bool
    queue: dict = Field(default_factory=dict)
    stats: dict = Field(default_factory=dict)


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, (list, tuple)):
        return [_dump(v) for v in value]
    return value
