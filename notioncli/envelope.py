"""JSON envelope models for structured CLI output."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from notioncli import SCHEMA_VERSION, __version__
from notioncli.errors import CliError


class EnvelopeMeta(BaseModel):
    model_config = ConfigDict(extra="allow")

    command: str
    duration_ms: int = Field(default=0, ge=0)
    version: str = __version__
    schema_version: int = SCHEMA_VERSION


class ErrorBody(BaseModel):
    code: str
    message: str
    recoverable: bool
    suggested_action: str | None = None
    context: dict[str, Any] | None = None


class PartialData(BaseModel):
    succeeded: list[Any] = Field(default_factory=list)
    failed: list[Any] = Field(default_factory=list)


class SuccessEnvelope(BaseModel):
    status: Literal["success"] = "success"
    data: Any = None
    warnings: list[str] = Field(default_factory=list)
    metadata: EnvelopeMeta


class PartialEnvelope(BaseModel):
    status: Literal["partial"] = "partial"
    data: PartialData
    metadata: EnvelopeMeta


class ErrorEnvelope(BaseModel):
    status: Literal["error"] = "error"
    error: ErrorBody
    metadata: EnvelopeMeta


class StreamItem(BaseModel):
    type: Literal["item"] = "item"
    data: Any = None


class StreamSummary(BaseModel):
    type: Literal["summary"] = "summary"
    data: dict[str, int]


def success_envelope(
    command: str,
    data: Any,
    *,
    duration_ms: int = 0,
    warnings: list[str] | None = None,
) -> SuccessEnvelope:
    return SuccessEnvelope(
        data=data,
        warnings=warnings or [],
        metadata=EnvelopeMeta(command=command, duration_ms=duration_ms),
    )


def partial_envelope(
    command: str,
    succeeded: list[Any],
    failed: list[Any],
    *,
    duration_ms: int = 0,
) -> PartialEnvelope:
    return PartialEnvelope(
        data=PartialData(succeeded=succeeded, failed=failed),
        metadata=EnvelopeMeta(command=command, duration_ms=duration_ms),
    )


def error_envelope(command: str, error: CliError, *, duration_ms: int = 0) -> ErrorEnvelope:
    return ErrorEnvelope(
        error=ErrorBody(**error.to_dict()),
        metadata=EnvelopeMeta(command=command, duration_ms=duration_ms),
    )
