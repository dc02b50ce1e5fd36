"""Durable JSONL registry of operation receipts.

One receipt per line in ``ops.jsonl`` under the config directory. Every
mutation reads the whole file, prunes receipts whose ``updated_at`` is older
than the retention window, applies the change and rewrites the file through
a temporary sibling and ``os.replace``. A line that does not parse as a
receipt stops every read and write with ``CONFIG_ERROR``; the file is left
as it is.

Known limitation: the store assumes a single CLI process owns it for the
duration of one command. Two processes writing at once can lose updates,
since the read-modify-write cycle is not transactional and no file lock is
taken.
"""

from __future__ import annotations

import json
import os
import tempfile
import time
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from notioncli.config import config_dir
from notioncli.errors import CliError, ConfigError, ErrorCode
from notioncli.observability import get_logger
from notioncli.ops.receipt import (
    OperationError,
    OperationReceipt,
    OperationStatus,
    PollDescriptor,
    new_op_id,
    parse_timestamp,
    to_timestamp,
)

log = get_logger("notioncli.ops")

DEFAULT_OPS_FILE = "ops.jsonl"
DEFAULT_RETENTION_DAYS = 30


def _utc_now() -> float:
    return time.time()


def default_registry_path(environ: Mapping[str, str] | None = None) -> Path:
    return config_dir(environ) / DEFAULT_OPS_FILE


class OpsRegistry:
    """Append-only store of :class:`OperationReceipt` records."""

    def __init__(
        self,
        path: Path | None = None,
        *,
        clock: Callable[[], float] = _utc_now,
        retention_days: int = DEFAULT_RETENTION_DAYS,
    ) -> None:
        self.path = Path(path).expanduser() if path is not None else default_registry_path()
        self.clock = clock
        self.retention_days = retention_days

    # -- reading -------------------------------------------------------

    def _read_all(self) -> list[OperationReceipt]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []

        receipts: list[OperationReceipt] = []
        for lineno, line in enumerate(raw.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                receipts.append(OperationReceipt.model_validate(json.loads(line)))
            except (json.JSONDecodeError, ValidationError) as exc:
                raise ConfigError(
                    f"Malformed receipt on line {lineno} of {self.path}",
                    context={"path": str(self.path), "line": lineno},
                ) from exc
        return receipts

    def _is_expired(self, receipt: OperationReceipt, now: float) -> bool:
        if self.retention_days <= 0:
            return False
        cutoff = now - self.retention_days * 24 * 60 * 60
        try:
            return parse_timestamp(receipt.updated_at) < cutoff
        except ValueError:
            return False

    def _prune(self, receipts: Iterable[OperationReceipt]) -> list[OperationReceipt]:
        now = self.clock()
        return [receipt for receipt in receipts if not self._is_expired(receipt, now)]

    def read(self) -> list[OperationReceipt]:
        """Return retained receipts in file order; a missing store is empty."""
        return self._prune(self._read_all())

    def get(self, op_id: str) -> OperationReceipt | None:
        for receipt in self.read():
            if receipt.op_id == op_id:
                return receipt
        return None

    # -- writing -------------------------------------------------------

    def _write_all(self, receipts: list[OperationReceipt]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(receipt.to_record(), sort_keys=True) for receipt in receipts]
        payload = "\n".join(lines) + "\n" if lines else ""

        fd, tmp_name = tempfile.mkstemp(prefix=".ops-", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def append(self, receipt: OperationReceipt) -> OperationReceipt:
        receipts = self._prune(self._read_all())
        if any(existing.op_id == receipt.op_id for existing in receipts):
            raise CliError(
                ErrorCode.CONFLICT,
                f"Operation {receipt.op_id} already exists",
                context={"op_id": receipt.op_id},
            )
        receipts.append(receipt)
        self._write_all(receipts)
        log.debug(
            "receipt appended",
            extra={"extra_fields": {"op_id": receipt.op_id, "status": receipt.status.value}},
        )
        return receipt

    def update(self, receipt: OperationReceipt) -> OperationReceipt:
        """Replace the stored receipt with the same ``op_id``.

        An unknown ``op_id`` leaves the list unchanged (it is still pruned and
        rewritten). A terminal receipt cannot be moved to another status.
        """

        receipts = self._prune(self._read_all())
        for index, existing in enumerate(receipts):
            if existing.op_id != receipt.op_id:
                continue
            _ensure_transition(existing, receipt.status)
            receipts[index] = receipt
            break
        self._write_all(receipts)
        log.debug(
            "receipt updated",
            extra={"extra_fields": {"op_id": receipt.op_id, "status": receipt.status.value}},
        )
        return receipt

    # -- helpers -------------------------------------------------------

    def create_receipt(
        self,
        *,
        type: str = "operation",
        status: OperationStatus = OperationStatus.PENDING,
        resource_id: str | None = None,
        resource_type: str | None = None,
        metadata: dict[str, Any] | None = None,
        poll: PollDescriptor | dict[str, Any] | None = None,
        op_id: str | None = None,
        created_at: str | None = None,
        updated_at: str | None = None,
    ) -> OperationReceipt:
        """Build (but do not store) a fresh receipt."""

        now = to_timestamp(self.clock())
        created = created_at or now
        return OperationReceipt(
            op_id=op_id or new_op_id(),
            type=type,
            status=status,
            resource_id=resource_id,
            resource_type=resource_type,
            created_at=created,
            updated_at=updated_at or created,
            metadata=dict(metadata or {}),
            poll=PollDescriptor.model_validate(poll) if isinstance(poll, dict) else poll,
        )

    def touch(
        self,
        receipt: OperationReceipt,
        *,
        status: OperationStatus | None = None,
        metadata: dict[str, Any] | None = None,
        error: OperationError | dict[str, Any] | None = None,
        resource_id: str | None = None,
        resource_type: str | None = None,
    ) -> OperationReceipt:
        """Return a copy with the given fields overlaid and ``updated_at`` refreshed.

        ``metadata`` is merged into the existing map. ``updated_at`` never
        moves backwards, even if the clock does.
        """

        if status is not None:
            _ensure_transition(receipt, status)

        now = to_timestamp(self.clock())
        changes: dict[str, Any] = {"updated_at": max(now, receipt.updated_at)}
        if status is not None:
            changes["status"] = status
        if metadata:
            changes["metadata"] = {**receipt.metadata, **metadata}
        if error is not None:
            changes["error"] = OperationError.model_validate(error) if isinstance(error, dict) else error
        if resource_id is not None:
            changes["resource_id"] = resource_id
        if resource_type is not None:
            changes["resource_type"] = resource_type
        return receipt.model_copy(update=changes)


def _ensure_transition(current: OperationReceipt, status: OperationStatus) -> None:
    if current.is_terminal and status != current.status:
        raise CliError(
            ErrorCode.CONFLICT,
            f"Operation {current.op_id} is already {current.status.value}",
            suggested_action="Terminal operations cannot change status",
            context={"op_id": current.op_id, "status": current.status.value},
        )
