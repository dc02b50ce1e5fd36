"""Command input resolution: JSON arguments and piped secrets."""

from __future__ import annotations

import json
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from notioncli.errors import InputError

STDIN_MARKER = "-"


def read_stdin() -> str:
    try:
        return sys.stdin.read()
    except Exception as e:
        raise InputError(f"Failed to read from stdin: {e}") from e


def read_secret_value_from_stdin() -> str | None:
    """Read a piped secret; empty input resolves to ``None``."""
    value = read_stdin().strip()
    return value or None


def _parse_json(raw: str, *, source: str) -> Any:
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise InputError(
            f"Invalid JSON in {source}: {e.msg} at position {e.pos}",
            suggested_action="Pass inline JSON, @path/to/file.json, or - to read stdin",
            context={"source": source},
        ) from e


def read_json_input(value: str | None, *, name: str = "input") -> Any:
    """Resolve a JSON-valued flag.

    ``-`` reads stdin, ``@path`` reads a file relative to the working
    directory, anything else is parsed as inline JSON.
    """

    if value is None or value == "":
        return None
    if value == STDIN_MARKER:
        return _parse_json(read_stdin(), source=f"{name} (stdin)")
    if value.startswith("@"):
        path = Path(value[1:]).expanduser()
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise InputError(
                f"Cannot read {name} file '{path}': {e.strerror or e}",
                context={"path": str(path)},
            ) from e
        return _parse_json(raw, source=str(path))
    return _parse_json(value, source=name)


def ensure_object(value: Any, name: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise InputError(f"{name} must be a JSON object", context={"argument": name})
    return value


def ensure_token_stdin_safe(token_stdin: bool, values: Iterable[Any]) -> None:
    """Reject ``--token-stdin`` when another argument also wants stdin."""

    if not token_stdin:
        return
    if any(value == STDIN_MARKER for value in values):
        raise InputError(
            "--token-stdin cannot be used with stdin JSON input",
            suggested_action="Use --token or avoid '-' JSON inputs",
            context={"conflict": "stdin"},
        )
