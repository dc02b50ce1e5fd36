"""Databases endpoints."""

from __future__ import annotations

from typing import Annotated, Any

import typer

from notioncli.command import NotionTyper
from notioncli.commands._common import (
    Cover,
    DryRun,
    Icon,
    IdempotencyKey,
    IdFlag,
    call,
    compact,
    context,
    dry_run,
    json_option,
    resolve_id,
    validate,
)
from notioncli.schema import DatabaseCreateBody, DatabaseUpdateBody

app = NotionTyper(name="databases", help="Databases endpoints.")

DatabaseId = Annotated[str | None, typer.Argument(help="Database id.")]
Title = Annotated[str | None, typer.Option("--title", help="Title rich text JSON, @file or -.")]
Properties = Annotated[str | None, typer.Option("--properties", help="Properties JSON, @file or -.")]
Description = Annotated[str | None, typer.Option("--description", help="Description rich text JSON, @file or -.")]


@app.command("get")
def get_database(ctx: typer.Context, database_id: DatabaseId = None, id_: IdFlag = None) -> Any:
    """Get a database."""
    cc = context(ctx)
    cc.require_token()
    database = resolve_id(database_id, id_, label="Database id", arg="database_id")
    return call(cc, "GET", f"/databases/{database}")


@app.command("create")
def create_database(
    ctx: typer.Context,
    parent: Annotated[str, typer.Option("--parent", help="Parent JSON, @file or -.")],
    title: Annotated[str, typer.Option("--title", help="Title rich text JSON, @file or -.")],
    properties: Annotated[str, typer.Option("--properties", help="Properties JSON, @file or -.")],
    icon: Icon = None,
    cover: Cover = None,
    description: Description = None,
    dry_run_: DryRun = False,
    idempotency_key: IdempotencyKey = None,
) -> Any:
    """Create a database."""
    cc = context(ctx)
    cc.require_token()
    body = compact(
        {
            "parent": json_option(parent, "--parent"),
            "title": json_option(title, "--title"),
            "properties": json_option(properties, "--properties"),
            "icon": json_option(icon, "--icon"),
            "cover": json_option(cover, "--cover"),
            "description": json_option(description, "--description"),
        }
    )
    validate(cc, DatabaseCreateBody, body)
    if dry_run_:
        return dry_run(body)
    return call(cc, "POST", "/databases", body=body, idempotency_key=idempotency_key)


@app.command("update")
def update_database(
    ctx: typer.Context,
    database_id: DatabaseId = None,
    id_: IdFlag = None,
    title: Title = None,
    properties: Properties = None,
    description: Description = None,
    icon: Icon = None,
    cover: Cover = None,
    dry_run_: DryRun = False,
    idempotency_key: IdempotencyKey = None,
) -> Any:
    """Update a database."""
    cc = context(ctx)
    cc.require_token()
    database = resolve_id(database_id, id_, label="Database id", arg="database_id")
    body = compact(
        {
            "title": json_option(title, "--title"),
            "properties": json_option(properties, "--properties"),
            "description": json_option(description, "--description"),
            "icon": json_option(icon, "--icon"),
            "cover": json_option(cover, "--cover"),
        }
    )
    validate(cc, DatabaseUpdateBody, body)
    if dry_run_:
        return dry_run(body)
    return call(cc, "PATCH", f"/databases/{database}", body=body, idempotency_key=idempotency_key)
