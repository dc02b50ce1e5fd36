"""Raw API passthrough."""

from __future__ import annotations

from typing import Annotated, Any

import click
import typer

from notioncli.commands._common import DryRun, IdempotencyKey, call, context, dry_run, json_option
from notioncli.http import validate_path
from notioncli.input import ensure_object

METHODS = ("GET", "POST", "PATCH", "PUT", "DELETE")


def request(
    ctx: typer.Context,
    method: Annotated[str, typer.Option("--method", click_type=click.Choice(METHODS, case_sensitive=False), help="HTTP method.")],
    path: Annotated[str, typer.Option("--path", help="API path, e.g. /users/me.")],
    query: Annotated[str | None, typer.Option("--query", help="Query parameters JSON object, @file or -.")] = None,
    body: Annotated[str | None, typer.Option("--body", help="Request body JSON, @file or -.")] = None,
    dry_run_: DryRun = False,
    idempotency_key: IdempotencyKey = None,
) -> Any:
    """Send an arbitrary request to the Notion API."""
    cc = context(ctx)
    cc.require_token()
    verb = method.upper()
    path = validate_path(path)
    params = ensure_object(json_option(query, "--query"), "--query") if query is not None else None
    payload = json_option(body, "--body")
    if dry_run_:
        return dry_run({"method": verb, "path": path, "query": params, "body": payload})
    return call(cc, verb, path, body=payload, query=params, idempotency_key=idempotency_key)
