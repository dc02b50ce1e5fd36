"""notioncli: a Notion API command-line client built for coding agents."""

from __future__ import annotations

__version__ = "1.0.0"

# Bumped whenever the shape of the JSON envelope changes.
SCHEMA_VERSION = 1

from notioncli.errors import CliError, ErrorCode  # noqa: E402
from notioncli.exit_codes import ExitCode  # noqa: E402

__all__ = [
    "CliError",
    "ErrorCode",
    "ExitCode",
    "SCHEMA_VERSION",
    "__version__",
]
