"""Structured JSON logging on stderr.

Every record is a single-line JSON object so agents that capture stderr can
parse diagnostics the same way they parse the stdout envelope. Nothing here
writes to stdout.

Usage::

    from notioncli.observability import get_logger

    log = get_logger("notioncli.http")
    log.debug("request", extra={"extra_fields": {"method": "GET", "path": "/users"}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

ROOT_LOGGER = "notioncli"


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Guaranteed keys are ``ts``, ``level``, ``logger`` and ``message``.
    Fields passed as ``extra={"extra_fields": {...}}`` are merged into the
    top-level object.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(record, "extra_fields", None)
        if extra_fields is not None:
            log_entry.update(extra_fields)

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class _StderrHandler(logging.StreamHandler):
    """Stream handler bound to whatever ``sys.stderr`` is at emit time.

    Test runners swap ``sys.stderr`` per invocation, so the stream cannot be
    captured once at configuration time.
    """

    def __init__(self) -> None:
        super().__init__(sys.stderr)

    @property  # type: ignore[override]
    def stream(self) -> Any:
        return sys.stderr

    @stream.setter
    def stream(self, value: Any) -> None:
        del value


_configured = False


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Return a logger below the ``notioncli`` root, configuring the root once."""

    global _configured
    root = logging.getLogger(ROOT_LOGGER)
    if not _configured:
        handler = _StderrHandler()
        handler.setFormatter(StructuredFormatter())
        root.addHandler(handler)
        root.setLevel(logging.WARNING)
        root.propagate = False
        _configured = True
    return logging.getLogger(name)


def configure_logging(*, debug: bool = False, verbose: bool = False, quiet: bool = False) -> None:
    """Set the root level from the global verbosity flags."""

    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    get_logger().setLevel(level)
