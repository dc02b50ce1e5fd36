"""Central exit-code taxonomy for the Notion CLI."""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes.

    Callers can branch on these without parsing the JSON envelope.
    """

    SUCCESS = 0
    GENERAL = 1
    INVALID_ARGUMENT = 2
    PARTIAL_FAILURE = 3
    NOT_FOUND = 4
    CONFLICT = 5
    AUTH_FAILED = 10
    PERMISSION_DENIED = 11
    RATE_LIMITED = 12
    TIMEOUT = 20
    DEPENDENCY_MISSING = 30
    DRY_RUN = 40
    INTERNAL_ERROR = 125


EXIT_CODE_MEANINGS: dict[int, str] = {
    ExitCode.SUCCESS: "Success",
    ExitCode.GENERAL: "General error",
    ExitCode.INVALID_ARGUMENT: "Invalid or missing arguments",
    ExitCode.PARTIAL_FAILURE: "Partial failure",
    ExitCode.NOT_FOUND: "Resource not found",
    ExitCode.CONFLICT: "Conflict",
    ExitCode.AUTH_FAILED: "Auth failure",
    ExitCode.PERMISSION_DENIED: "Permission denied",
    ExitCode.RATE_LIMITED: "Rate limited",
    ExitCode.TIMEOUT: "Timeout",
    ExitCode.DEPENDENCY_MISSING: "Dependency missing",
    ExitCode.DRY_RUN: "Dry run: changes pending",
    ExitCode.INTERNAL_ERROR: "Internal error",
}
