"""Operation receipt model for long-running commands."""

from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class OperationStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (OperationStatus.COMPLETED, OperationStatus.FAILED)


class PollDescriptor(BaseModel):
    """Request that re-checks the remote status of an operation."""

    method: str = "GET"
    path: str


class OperationError(BaseModel):
    code: str
    message: str


class OperationReceipt(BaseModel):
    op_id: str
    type: str = "operation"
    status: OperationStatus = OperationStatus.PENDING
    resource_id: str | None = None
    resource_type: str | None = None
    created_at: str
    updated_at: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    poll: PollDescriptor | None = None
    error: OperationError | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def new_op_id() -> str:
    return f"op_{uuid.uuid4().hex}"


def to_timestamp(value: float) -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(value))


def parse_timestamp(value: str) -> float:
    """Parse an ISO-8601 UTC timestamp written by :func:`to_timestamp`."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()
