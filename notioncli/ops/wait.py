"""Block until an operation receipt reaches a terminal status."""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from typing import Any

from notioncli.errors import CliError, ErrorCode
from notioncli.observability import get_logger
from notioncli.ops.receipt import OperationReceipt, OperationStatus, PollDescriptor
from notioncli.ops.registry import OpsRegistry

log = get_logger("notioncli.ops")

DEFAULT_WAIT_TIMEOUT_S = 60.0
DEFAULT_POLL_INTERVAL_S = 2.0
POLL_FAILED = "POLL_FAILED"

_REMOTE_STATUS: dict[str, OperationStatus] = {
    "uploaded": OperationStatus.COMPLETED,
    "completed": OperationStatus.COMPLETED,
    "failed": OperationStatus.FAILED,
    "expired": OperationStatus.FAILED,
}

PollFn = Callable[[PollDescriptor], Any]


def remote_status(data: Any) -> OperationStatus | None:
    """Map the ``status`` field of a polled resource to a receipt status."""
    if not isinstance(data, Mapping):
        return None
    value = data.get("status")
    if not isinstance(value, str):
        return None
    return _REMOTE_STATUS.get(value.lower())


def op_not_found(op_id: str) -> CliError:
    return CliError(
        ErrorCode.RESOURCE_NOT_FOUND,
        "Op not found",
        suggested_action="Verify the op id",
        context={"op_id": op_id},
    )


def wait_for_operation(
    registry: OpsRegistry,
    op_id: str,
    *,
    timeout_s: float = DEFAULT_WAIT_TIMEOUT_S,
    poll: PollFn | None = None,
    interval_s: float = DEFAULT_POLL_INTERVAL_S,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> OperationReceipt:
    """Re-read the registry until ``op_id`` is terminal or the deadline passes.

    Each round, a non-terminal receipt with a ``poll`` descriptor is refreshed
    through ``poll``; the response is merged into ``metadata["poll"]`` and a
    recognised remote status finishes the receipt. A failing poll marks the
    receipt ``FAILED`` with error code ``POLL_FAILED`` and returns it.

    Raises ``RESOURCE_NOT_FOUND`` for an unknown id and ``TIMEOUT`` when the
    wall-clock deadline passes first.
    """

    deadline = clock() + timeout_s
    rounds = 0
    while True:
        rounds += 1
        receipt = registry.get(op_id)
        if receipt is None:
            raise op_not_found(op_id)
        if receipt.is_terminal:
            return receipt

        if receipt.poll is not None and poll is not None:
            try:
                data = poll(receipt.poll)
            except CliError as exc:
                log.warning(
                    "operation poll failed",
                    extra={"extra_fields": {"op_id": op_id, "code": exc.code.value}},
                )
                failed = registry.touch(
                    receipt,
                    status=OperationStatus.FAILED,
                    error={"code": POLL_FAILED, "message": exc.message},
                )
                return _store(registry, failed)

            refreshed = _store(
                registry, registry.touch(receipt, status=remote_status(data), metadata={"poll": data})
            )
            if refreshed.is_terminal:
                return refreshed

        remaining = deadline - clock()
        if remaining <= 0:
            raise CliError(
                ErrorCode.TIMEOUT,
                "Op wait timed out",
                suggested_action="Increase --timeout",
                context={"op_id": op_id, "timeout_s": timeout_s, "rounds": rounds},
            )
        log.debug("waiting for operation", extra={"extra_fields": {"op_id": op_id, "round": rounds}})
        sleep(min(interval_s, remaining))


def _store(registry: OpsRegistry, receipt: OperationReceipt) -> OperationReceipt:
    """Write ``receipt``, or return the stored one if another writer finished it first."""
    try:
        return registry.update(receipt)
    except CliError as exc:
        if exc.code is not ErrorCode.CONFLICT:
            raise
        current = registry.get(receipt.op_id)
        if current is None or not current.is_terminal:
            raise
        log.debug(
            "operation finished elsewhere",
            extra={"extra_fields": {"op_id": receipt.op_id, "status": current.status.value}},
        )
        return current
