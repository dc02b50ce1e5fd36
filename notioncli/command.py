"""Command execution harness: global flags, envelope emission and exit codes.

Every invocation moves through ``RESOLVING -> EXECUTING -> EMITTING`` and ends
with exactly one envelope on stdout (or, for streamed results, the NDJSON
summary line). Failures anywhere before emission are caught once, here.
"""

from __future__ import annotations

import sys
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, NoReturn

import click
import typer
from rich.console import Console
from rich.text import Text
from typer.core import TyperCommand, TyperGroup

from notioncli.config import resolve_config
from notioncli.context import CommandContext
from notioncli.envelope import error_envelope, partial_envelope, success_envelope
from notioncli.errors import CliError, InputError, InternalError
from notioncli.exit_codes import ExitCode
from notioncli.input import ensure_token_stdin_safe, read_secret_value_from_stdin
from notioncli.observability import configure_logging, get_logger
from notioncli.output import emit_json, json_dumps

log = get_logger("notioncli.command")

ROOT_COMMAND_NAME = "notion"
_FLAG_PREFIX = "notion_flag_"


@dataclass
class ActionResult:
    """Callback return value with an optional exit-code override."""

    data: Any = None
    exit_code: int | None = None
    streamed: bool = False


@dataclass
class PartialResult:
    """Mixed outcome of a multi-item command; emitted as a partial envelope."""

    succeeded: list[Any] = field(default_factory=list)
    failed: list[Any] = field(default_factory=list)


def _capture_flag(ctx: click.Context, param: click.Parameter, value: Any) -> Any:
    # Only apply when the option is explicitly provided.
    if value is not None and value is not False:
        ctx.meta[f"{_FLAG_PREFIX}{param.name}"] = value
    return value


def _emit_help_json(ctx: click.Context, param: click.Parameter, value: Any) -> Any:
    if not value or ctx.resilient_parsing:
        return value
    from notioncli.help import build_help_tree

    click.echo(json_dumps(build_help_tree(ctx.find_root().command), pretty=True))
    ctx.exit(int(ExitCode.SUCCESS))


class GlobalOption(click.Option):
    """Option injected into every command and group."""


def global_options() -> list[click.Option]:
    return [
        GlobalOption(["--token"], metavar="TOKEN", help="Notion integration token.", expose_value=False, callback=_capture_flag),
        GlobalOption(["--token-stdin"], is_flag=True, help="Read the token from stdin.", expose_value=False, callback=_capture_flag),
        GlobalOption(["--profile"], metavar="NAME", help="Config profile.", expose_value=False, callback=_capture_flag),
        GlobalOption(["--notion-version"], metavar="VERSION", help="Notion API version.", expose_value=False, callback=_capture_flag),
        GlobalOption(
            ["--timeout"],
            type=click.IntRange(min=1),
            metavar="MS",
            help="Per-request timeout in milliseconds.",
            expose_value=False,
            callback=_capture_flag,
        ),
        GlobalOption(
            ["--retries"],
            type=click.IntRange(min=0),
            metavar="N",
            help="Retry count for rate-limited or timed-out requests.",
            expose_value=False,
            callback=_capture_flag,
        ),
        GlobalOption(["--output-file"], metavar="PATH", help="Also write the envelope to a file.", expose_value=False, callback=_capture_flag),
        GlobalOption(["--pretty"], is_flag=True, help="Pretty-print JSON output.", expose_value=False, callback=_capture_flag),
        GlobalOption(["--ndjson"], is_flag=True, help="Stream paginated results as NDJSON.", expose_value=False, callback=_capture_flag),
        GlobalOption(["--no-validate"], is_flag=True, help="Disable input validation.", expose_value=False, callback=_capture_flag),
        GlobalOption(["--debug"], is_flag=True, help="Enable debug logs.", expose_value=False, callback=_capture_flag),
        GlobalOption(["--verbose"], is_flag=True, help="Enable verbose logs.", expose_value=False, callback=_capture_flag),
        GlobalOption(["--quiet"], is_flag=True, help="Suppress stderr diagnostics.", expose_value=False, callback=_capture_flag),
        GlobalOption(
            ["--help-json"],
            is_flag=True,
            is_eager=True,
            help="Print help as JSON and exit.",
            expose_value=False,
            callback=_emit_help_json,
        ),
    ]


def _with_global_options(params: Iterable[click.Parameter]) -> list[click.Parameter]:
    """Append the global flags, skipping any whose name a command already uses."""

    merged = list(params)
    taken = {opt for param in merged for opt in (*param.opts, *param.secondary_opts)}
    for option in global_options():
        if taken.intersection(option.opts):
            continue
        merged.append(option)
    return merged


def _flag(ctx: click.Context, name: str, default: Any = None) -> Any:
    return ctx.meta.get(f"{_FLAG_PREFIX}{name}", default)


def command_name(ctx: click.Context) -> str:
    """Return the space-separated command path without the program name."""

    names: list[str] = []
    current: click.Context | None = ctx
    while current is not None and current.parent is not None:
        names.append(current.info_name or "")
        current = current.parent
    return " ".join(reversed(names)) or ROOT_COMMAND_NAME


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.perf_counter() - start) * 1000))


def _write_error_line(error: CliError) -> None:
    stderr = click.get_text_stream("stderr")
    if stderr.isatty():
        console = Console(stderr=True)
        console.print(Text.assemble((error.code.value, "bold red"), f": {error.message}"))
    else:
        click.echo(f"{error.code.value}: {error.message}", err=True)


def emit_error(
    command: str,
    error: CliError,
    *,
    start: float,
    pretty: bool = False,
    output_file: str | None = None,
    quiet: bool = False,
) -> NoReturn:
    """Write the error envelope and the ``CODE: message`` line, then exit."""

    envelope = error_envelope(command, error, duration_ms=_elapsed_ms(start))
    emit_json(envelope, pretty=pretty, output_file=output_file, strict=False)
    if not quiet:
        _write_error_line(error)
    raise SystemExit(error.exit_code)


def _coerce_error(exc: Exception) -> CliError:
    if isinstance(exc, CliError):
        return exc
    if isinstance(exc, click.UsageError):
        return InputError(
            exc.format_message(),
            suggested_action="Check --help for valid commands and flags",
        )
    if isinstance(exc, click.ClickException):
        return InputError(exc.format_message())
    log.debug("unhandled exception", exc_info=exc)
    return InternalError(str(exc) or type(exc).__name__)


class NotionCommand(TyperCommand):
    """TyperCommand subclass that runs the callback inside the harness."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs["params"] = _with_global_options(kwargs.get("params") or [])
        super().__init__(*args, **kwargs)

    def _resolve(self, ctx: click.Context, name: str) -> CommandContext:
        token_stdin = bool(_flag(ctx, "token_stdin", False))
        ensure_token_stdin_safe(token_stdin, ctx.params.values())
        stdin_token = read_secret_value_from_stdin() if token_stdin else None

        config = resolve_config(
            token=_flag(ctx, "token"),
            stdin_token=stdin_token,
            profile=_flag(ctx, "profile"),
            notion_version=_flag(ctx, "notion_version"),
            timeout_ms=_flag(ctx, "timeout"),
            retries=_flag(ctx, "retries"),
            pretty=_flag(ctx, "pretty"),
        )
        return CommandContext(
            command=name,
            config=config,
            output_file=_flag(ctx, "output_file"),
            pretty=config.pretty,
            ndjson=bool(_flag(ctx, "ndjson", False)),
            validate=not _flag(ctx, "no_validate", False),
            quiet=bool(_flag(ctx, "quiet", False)),
        )

    def invoke(self, ctx: click.Context) -> Any:
        start = time.perf_counter()
        name = command_name(ctx)
        configure_logging(
            debug=bool(_flag(ctx, "debug", False)),
            verbose=bool(_flag(ctx, "verbose", False)),
            quiet=bool(_flag(ctx, "quiet", False)),
        )
        resolved: CommandContext | None = None

        try:
            resolved = self._resolve(ctx, name)
            ctx.obj = resolved
            result = super().invoke(ctx)
            exit_code = self._emit_result(resolved, result, start)
        except (click.exceptions.Exit, click.Abort):
            raise
        except Exception as exc:
            error = _coerce_error(exc)
            emit_error(
                name,
                error,
                start=start,
                pretty=resolved.pretty if resolved else bool(_flag(ctx, "pretty", False)),
                output_file=resolved.output_file if resolved else _flag(ctx, "output_file"),
                quiet=bool(_flag(ctx, "quiet", False)),
            )

        log.info(
            "command finished",
            extra={"extra_fields": {"command": name, "exit_code": exit_code, "duration_ms": _elapsed_ms(start)}},
        )
        if exit_code != ExitCode.SUCCESS:
            raise SystemExit(exit_code)
        return result

    @staticmethod
    def _emit_result(resolved: CommandContext, result: Any, start: float) -> int:
        if isinstance(result, PartialResult):
            envelope = partial_envelope(
                resolved.command,
                result.succeeded,
                result.failed,
                duration_ms=_elapsed_ms(start),
            )
            emit_json(envelope, pretty=resolved.pretty, output_file=resolved.output_file)
            return int(ExitCode.PARTIAL_FAILURE)

        if isinstance(result, ActionResult):
            data, exit_code, streamed = result.data, result.exit_code, result.streamed
        else:
            data, exit_code, streamed = result, None, False

        if not streamed:
            envelope = success_envelope(resolved.command, data, duration_ms=_elapsed_ms(start))
            emit_json(envelope, pretty=resolved.pretty, output_file=resolved.output_file)
        return int(ExitCode.SUCCESS) if exit_code is None else int(exit_code)


def _argv_value(argv: Sequence[str], name: str) -> str | None:
    """Pick an option value out of raw argv when click could not parse it."""
    for index, arg in enumerate(argv):
        if arg == name and index + 1 < len(argv):
            return argv[index + 1]
        if arg.startswith(name + "="):
            return arg[len(name) + 1 :]
    return None


def _argv_pretty(argv: Sequence[str]) -> bool:
    if "--pretty" in argv:
        return True
    try:
        return resolve_config(profile=_argv_value(argv, "--profile")).pretty
    except CliError:
        return False


class NotionGroup(TyperGroup):
    """Group that carries the global flags and turns parse errors into envelopes."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs["params"] = _with_global_options(kwargs.get("params") or [])
        super().__init__(*args, **kwargs)

    def main(  # type: ignore[override]
        self,
        args: Sequence[str] | None = None,
        prog_name: str | None = None,
        complete_var: str | None = None,
        standalone_mode: bool = True,
        windows_expand_args: bool = True,
        **extra: Any,
    ) -> Any:
        start = time.perf_counter()
        argv = list(sys.argv[1:] if args is None else args)
        try:
            return super().main(
                args=argv,
                prog_name=prog_name,
                complete_var=complete_var,
                standalone_mode=False,
                windows_expand_args=windows_expand_args,
                **extra,
            )
        except click.ClickException as exc:
            if not standalone_mode:
                raise
            failed_ctx = getattr(exc, "ctx", None)
            emit_error(
                command_name(failed_ctx) if failed_ctx is not None else ROOT_COMMAND_NAME,
                _coerce_error(exc),
                start=start,
                pretty=_argv_pretty(argv),
                output_file=_argv_value(argv, "--output-file"),
                quiet="--quiet" in argv,
            )


class NotionTyper(typer.Typer):
    """Typer app whose groups and commands default to the harness classes."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("cls", NotionGroup)
        kwargs.setdefault("add_completion", False)
        kwargs.setdefault("no_args_is_help", True)
        kwargs.setdefault("pretty_exceptions_enable", False)
        super().__init__(*args, **kwargs)

    def command(self, name: str | None = None, **kwargs: Any) -> Any:
        kwargs.setdefault("cls", NotionCommand)
        return super().command(name, **kwargs)

