"""Error taxonomy and structured error model for the Notion CLI."""

from __future__ import annotations

from enum import Enum
from typing import Any

from notioncli.exit_codes import ExitCode


class ErrorCode(str, Enum):
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    MISSING_ARGUMENT = "MISSING_ARGUMENT"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    AUTH_FAILED = "AUTH_FAILED"
    RATE_LIMITED = "RATE_LIMITED"
    TIMEOUT = "TIMEOUT"
    CONFLICT = "CONFLICT"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    CONFIRMATION_REQUIRED = "CONFIRMATION_REQUIRED"
    IDEMPOTENCY_KEY_CONFLICT = "IDEMPOTENCY_KEY_CONFLICT"
    UNSUPPORTED_SCHEMA_VERSION = "UNSUPPORTED_SCHEMA_VERSION"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DEPENDENCY_MISSING = "DEPENDENCY_MISSING"
    CONFIG_ERROR = "CONFIG_ERROR"
    UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"


# code -> (recoverable by default, process exit code)
_TAXONOMY: dict[ErrorCode, tuple[bool, ExitCode]] = {
    ErrorCode.INVALID_ARGUMENT: (True, ExitCode.INVALID_ARGUMENT),
    ErrorCode.MISSING_ARGUMENT: (True, ExitCode.INVALID_ARGUMENT),
    ErrorCode.RESOURCE_NOT_FOUND: (True, ExitCode.NOT_FOUND),
    ErrorCode.ALREADY_EXISTS: (True, ExitCode.GENERAL),
    ErrorCode.PERMISSION_DENIED: (False, ExitCode.PERMISSION_DENIED),
    ErrorCode.AUTH_FAILED: (False, ExitCode.AUTH_FAILED),
    ErrorCode.RATE_LIMITED: (True, ExitCode.RATE_LIMITED),
    ErrorCode.TIMEOUT: (True, ExitCode.TIMEOUT),
    ErrorCode.CONFLICT: (True, ExitCode.CONFLICT),
    ErrorCode.PRECONDITION_FAILED: (True, ExitCode.GENERAL),
    ErrorCode.CONFIRMATION_REQUIRED: (True, ExitCode.GENERAL),
    ErrorCode.IDEMPOTENCY_KEY_CONFLICT: (False, ExitCode.GENERAL),
    ErrorCode.UNSUPPORTED_SCHEMA_VERSION: (False, ExitCode.GENERAL),
    ErrorCode.INTERNAL_ERROR: (False, ExitCode.INTERNAL_ERROR),
    ErrorCode.DEPENDENCY_MISSING: (False, ExitCode.DEPENDENCY_MISSING),
    ErrorCode.CONFIG_ERROR: (False, ExitCode.GENERAL),
    ErrorCode.UNSUPPORTED_OPERATION: (False, ExitCode.GENERAL),
}


def exit_code_for(code: ErrorCode | str) -> int:
    """Return the process exit code for an error code.

    Unknown codes fall back to the internal-error exit code.
    """

    try:
        resolved = ErrorCode(code)
    except ValueError:
        return int(ExitCode.INTERNAL_ERROR)
    return int(_TAXONOMY[resolved][1])


def is_recoverable(code: ErrorCode | str) -> bool:
    try:
        resolved = ErrorCode(code)
    except ValueError:
        return False
    return _TAXONOMY[resolved][0]


def map_http_status(status: int) -> ErrorCode:
    """Map an upstream HTTP status to a taxonomy code."""

    mapping = {
        400: ErrorCode.INVALID_ARGUMENT,
        401: ErrorCode.AUTH_FAILED,
        403: ErrorCode.PERMISSION_DENIED,
        404: ErrorCode.RESOURCE_NOT_FOUND,
        409: ErrorCode.CONFLICT,
        412: ErrorCode.PRECONDITION_FAILED,
        429: ErrorCode.RATE_LIMITED,
        408: ErrorCode.TIMEOUT,
    }
    return mapping.get(status, ErrorCode.INTERNAL_ERROR)


class CliError(Exception):
    """Base error that agents can reason about.

    Every failure that reaches the harness as a ``CliError`` is emitted
    verbatim in the error envelope; anything else is coerced to
    ``INTERNAL_ERROR``.
    """

    def __init__(
        self,
        code: ErrorCode | str,
        message: str,
        *,
        recoverable: bool | None = None,
        suggested_action: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = ErrorCode(code)
        self.message = message
        self.recoverable = is_recoverable(self.code) if recoverable is None else recoverable
        self.suggested_action = suggested_action
        self.context = context

    @property
    def exit_code(self) -> int:
        return exit_code_for(self.code)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "recoverable": self.recoverable,
            "suggested_action": self.suggested_action,
            "context": self.context,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code.value!r}, {self.message!r})"


class InputError(CliError):
    """Invalid flag value, malformed JSON input or unsafe path."""

    def __init__(
        self,
        message: str,
        *,
        suggested_action: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.INVALID_ARGUMENT,
            message,
            suggested_action=suggested_action,
            context=context,
        )


class MissingArgumentError(CliError):
    def __init__(self, message: str, *, suggested_action: str | None = None) -> None:
        super().__init__(ErrorCode.MISSING_ARGUMENT, message, suggested_action=suggested_action)


class AuthError(CliError):
    def __init__(
        self,
        message: str,
        *,
        suggested_action: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.AUTH_FAILED,
            message,
            suggested_action=suggested_action,
            context=context,
        )


class ConfigError(CliError):
    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(
            ErrorCode.CONFIG_ERROR,
            message,
            suggested_action="Check the config file and NOTION_* environment variables",
            context=context,
        )


class InternalError(CliError):
    """Uncaught exceptions coerced by the harness."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.INTERNAL_ERROR, message, recoverable=False, context=context)
