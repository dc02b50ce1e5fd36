"""Envelope serialization and output channels."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click
from pydantic import BaseModel

from notioncli.errors import InputError
from notioncli.observability import get_logger

log = get_logger("notioncli.output")


def json_dumps(value: Any, *, pretty: bool = False) -> str:
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    if pretty:
        return json.dumps(value, ensure_ascii=False, indent=2, default=str)
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


def write_output_file(path: str, text: str) -> None:
    """Write ``text`` plus a trailing newline to ``path`` (UTF-8)."""

    try:
        Path(path).expanduser().write_text(text + "\n", encoding="utf-8")
    except OSError as exc:
        raise InputError(
            f"Cannot write output file '{path}': {exc.strerror or exc}",
            suggested_action="Check that --output-file points to a writable location",
            context={"path": path},
        ) from exc


def emit_json(
    value: Any,
    *,
    pretty: bool = False,
    output_file: str | None = None,
    strict: bool = True,
) -> str:
    """Write one JSON document to stdout and optionally copy it to a file.

    The file copy is written first so a failure there can still be reported
    as the single envelope on stdout. With ``strict=False`` a failing copy is
    logged and otherwise ignored.
    """

    text = json_dumps(value, pretty=pretty)
    if output_file:
        try:
            write_output_file(output_file, text)
        except InputError:
            if strict:
                raise
            log.warning(
                "output file copy failed",
                extra={"extra_fields": {"path": output_file}},
            )
    click.echo(text)
    return text


def write_ndjson_line(value: Any) -> None:
    """Emit one compact JSON line; click.echo flushes after every write."""

    click.echo(json_dumps(value))
