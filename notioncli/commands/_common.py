"""Helpers shared by the endpoint commands."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any

import click
import typer
from pydantic import BaseModel

from notioncli.command import ActionResult
from notioncli.context import CommandContext, get_command_context
from notioncli.errors import MissingArgumentError
from notioncli.exit_codes import ExitCode
from notioncli.http import JsonBody, RequestDescriptor
from notioncli.input import read_json_input
from notioncli.pagination import paginate_all
from notioncli.schema import ensure_valid

IdFlag = Annotated[str | None, typer.Option("--id", help="Resource id (overrides the positional id).")]
PageSize = Annotated[int | None, typer.Option("--page-size", min=1, max=100, help="Page size (1-100).")]
StartCursor = Annotated[str | None, typer.Option("--start-cursor", help="Start cursor.")]
AllPages = Annotated[bool, typer.Option("--all", help="Follow next_cursor until every page is fetched.")]
DryRun = Annotated[bool, typer.Option("--dry-run", help="Show the request body without sending it (exit 40).")]
IdempotencyKey = Annotated[str | None, typer.Option("--idempotency-key", help="Idempotency key sent with the request.")]
Icon = Annotated[str | None, typer.Option("--icon", help="Icon JSON, @file or -.")]
Cover = Annotated[str | None, typer.Option("--cover", help="Cover JSON, @file or -.")]


def context(ctx: typer.Context | click.Context) -> CommandContext:
    return get_command_context(ctx)


def resolve_id(positional: str | None, flag: str | None, *, label: str, arg: str) -> str:
    """Pick ``--id`` over the positional id; fail when neither is given."""

    value = flag or positional
    if not value:
        raise MissingArgumentError(
            f"{label} is required",
            suggested_action=f"Provide <{arg}> or --id",
        )
    return value


def json_option(value: str | None, name: str) -> Any:
    return read_json_input(value, name=name)


def compact(body: Mapping[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is ``None`` so unset flags never reach the API."""
    return {key: value for key, value in body.items() if value is not None}


def validate(cc: CommandContext, model: type[BaseModel], body: Any) -> None:
    ensure_valid(model, body, enabled=cc.validate)


def dry_run(body: Any = None) -> ActionResult:
    data: dict[str, Any] = {"dry_run": True}
    if body is not None:
        data["request"] = body
    return ActionResult(data=data, exit_code=ExitCode.DRY_RUN)


def call(
    cc: CommandContext,
    method: str,
    path: str,
    *,
    body: Any = None,
    query: Mapping[str, Any] | None = None,
    idempotency_key: str | None = None,
    extra_headers: Mapping[str, str] | None = None,
) -> Any:
    """Issue one JSON request and return the decoded response body."""

    descriptor = RequestDescriptor(
        method=method,
        path=path,
        query=query,
        body=JsonBody(body) if body is not None else None,
        idempotency_key=idempotency_key,
        extra_headers=extra_headers,
    )
    return cc.request(descriptor).data


def list_pages(
    cc: CommandContext,
    method: str,
    path: str,
    *,
    page_size: int | None,
    start_cursor: str | None,
    all_pages: bool,
    query: Mapping[str, Any] | None = None,
    body: Mapping[str, Any] | None = None,
) -> Any:
    """Fetch one page, or every page with ``--all``.

    GET endpoints carry the cursor in the query string, POST endpoints in the
    JSON body. The caller's ``--start-cursor`` seeds the first page.
    """

    def descriptor_for(cursor: str | None) -> RequestDescriptor:
        paging = {"page_size": page_size, "start_cursor": cursor}
        if method.upper() == "GET":
            return RequestDescriptor(method, path, query={**(query or {}), **paging})
        return RequestDescriptor(method, path, query=query, body=JsonBody(compact({**(body or {}), **paging})))

    if not all_pages:
        return cc.request(descriptor_for(start_cursor)).data

    with cc.transport() as api:
        result = paginate_all(
            lambda cursor: api.request(descriptor_for(cursor or start_cursor)).data,
            stream=cc.ndjson,
        )
    if result is None:
        return ActionResult(data={"streamed": True}, streamed=True)
    return {"results": result.results, "total": result.total}
