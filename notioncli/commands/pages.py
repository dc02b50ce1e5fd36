"""Pages endpoints."""

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
from notioncli.errors import MissingArgumentError
from notioncli.schema import PageCreateBody, PageMoveBody, PageUpdateBody

app = NotionTyper(name="pages", help="Pages endpoints.")

PageId = Annotated[str | None, typer.Argument(help="Page id.")]


@app.command("create")
def create_page(
    ctx: typer.Context,
    parent: Annotated[str, typer.Option("--parent", help="Parent JSON, @file or -.")],
    properties: Annotated[str, typer.Option("--properties", help="Properties JSON, @file or -.")],
    children: Annotated[str | None, typer.Option("--children", help="Children blocks JSON, @file or -.")] = None,
    icon: Icon = None,
    cover: Cover = None,
    dry_run_: DryRun = False,
    idempotency_key: IdempotencyKey = None,
) -> Any:
    """Create a page."""
    cc = context(ctx)
    cc.require_token()
    body = compact(
        {
            "parent": json_option(parent, "--parent"),
            "properties": json_option(properties, "--properties"),
            "children": json_option(children, "--children"),
            "icon": json_option(icon, "--icon"),
            "cover": json_option(cover, "--cover"),
        }
    )
    validate(cc, PageCreateBody, body)
    if dry_run_:
        return dry_run(body)
    return call(cc, "POST", "/pages", body=body, idempotency_key=idempotency_key)


@app.command("get")
def get_page(
    ctx: typer.Context,
    page_id: PageId = None,
    id_: IdFlag = None,
) -> Any:
    """Get a page."""
    cc = context(ctx)
    cc.require_token()
    page = resolve_id(page_id, id_, label="Page id", arg="page_id")
    return call(cc, "GET", f"/pages/{page}")


@app.command("update")
def update_page(
    ctx: typer.Context,
    page_id: PageId = None,
    id_: IdFlag = None,
    properties: Annotated[str | None, typer.Option("--properties", help="Properties JSON, @file or -.")] = None,
    archived: Annotated[bool | None, typer.Option("--archived/--no-archived", help="Archive or restore the page.")] = None,
    in_trash: Annotated[bool | None, typer.Option("--in-trash/--no-in-trash", help="Move the page to or out of trash.")] = None,
    icon: Icon = None,
    cover: Cover = None,
    dry_run_: DryRun = False,
    idempotency_key: IdempotencyKey = None,
) -> Any:
    """Update page properties, icon, cover or trash state."""
    cc = context(ctx)
    cc.require_token()
    page = resolve_id(page_id, id_, label="Page id", arg="page_id")
    body = compact(
        {
            "properties": json_option(properties, "--properties"),
            "archived": archived,
            "in_trash": in_trash,
            "icon": json_option(icon, "--icon"),
            "cover": json_option(cover, "--cover"),
        }
    )
    validate(cc, PageUpdateBody, body)
    if dry_run_:
        return dry_run(body)
    return call(cc, "PATCH", f"/pages/{page}", body=body, idempotency_key=idempotency_key)


@app.command("move")
def move_page(
    ctx: typer.Context,
    parent: Annotated[str, typer.Option("--parent", help="New parent JSON, @file or -.")],
    page_id: PageId = None,
    id_: IdFlag = None,
    dry_run_: DryRun = False,
    idempotency_key: IdempotencyKey = None,
) -> Any:
    """Move a page under a new parent."""
    cc = context(ctx)
    cc.require_token()
    page = resolve_id(page_id, id_, label="Page id", arg="page_id")
    body = {"parent": json_option(parent, "--parent")}
    validate(cc, PageMoveBody, body)
    if dry_run_:
        return dry_run(body)
    return call(cc, "POST", f"/pages/{page}/move", body=body, idempotency_key=idempotency_key)


@app.command("get-property")
def get_page_property(
    ctx: typer.Context,
    page_id: PageId = None,
    property_id: Annotated[str | None, typer.Argument(help="Property id.")] = None,
    id_: IdFlag = None,
    property_id_flag: Annotated[str | None, typer.Option("--property-id", help="Property id.")] = None,
) -> Any:
    """Get one page property item."""
    cc = context(ctx)
    cc.require_token()
    page = id_ or page_id
    prop = property_id_flag or property_id
    if not page or not prop:
        raise MissingArgumentError(
            "Page id and property id are required",
            suggested_action="Provide <page_id> <property_id> or --id and --property-id",
        )
    return call(cc, "GET", f"/pages/{page}/properties/{prop}")
