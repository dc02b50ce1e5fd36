"""Async operation tracking: receipts, the JSONL registry and the wait loop."""

from notioncli.ops.receipt import OperationError, OperationReceipt, OperationStatus, PollDescriptor
from notioncli.ops.registry import OpsRegistry, default_registry_path
from notioncli.ops.wait import wait_for_operation

__all__ = [
    "OperationError",
    "OperationReceipt",
    "OperationStatus",
    "OpsRegistry",
    "PollDescriptor",
    "default_registry_path",
    "wait_for_operation",
]
