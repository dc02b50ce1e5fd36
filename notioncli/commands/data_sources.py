"""Data sources endpoints."""

from __future__ import annotations

from typing import Annotated, Any

import typer

from notioncli.command import NotionTyper
from notioncli.commands._common import (
    AllPages,
    Cover,
    DryRun,
    Icon,
    IdempotencyKey,
    IdFlag,
    PageSize,
    StartCursor,
    call,
    compact,
    context,
    dry_run,
    json_option,
    list_pages,
    resolve_id,
    validate,
)
from notioncli.schema import DataSourceCreateBody, DataSourceQueryBody, DataSourceUpdateBody

app = NotionTyper(name="data-sources", help="Data sources endpoints.")

DataSourceId = Annotated[str | None, typer.Argument(help="Data source id.")]


def _data_source_id(positional: str | None, flag: str | None) -> str:
    return resolve_id(positional, flag, label="Data source id", arg="data_source_id")


@app.command("get")
def get_data_source(ctx: typer.Context, data_source_id: DataSourceId = None, id_: IdFlag = None) -> Any:
    """Get a data source."""
    cc = context(ctx)
    cc.require_token()
    return call(cc, "GET", f"/data_sources/{_data_source_id(data_source_id, id_)}")


@app.command("query")
def query_data_source(
    ctx: typer.Context,
    data_source_id: DataSourceId = None,
    id_: IdFlag = None,
    filter_: Annotated[str | None, typer.Option("--filter", help="Filter JSON, @file or -.")] = None,
    sorts: Annotated[str | None, typer.Option("--sorts", help="Sorts JSON array, @file or -.")] = None,
    page_size: PageSize = None,
    start_cursor: StartCursor = None,
    all_pages: AllPages = False,
) -> Any:
    """Query the pages of a data source."""
    cc = context(ctx)
    cc.require_token()
    source = _data_source_id(data_source_id, id_)
    body = compact({"filter": json_option(filter_, "--filter"), "sorts": json_option(sorts, "--sorts")})
    validate(cc, DataSourceQueryBody, {**body, **compact({"page_size": page_size, "start_cursor": start_cursor})})
    return list_pages(
        cc,
        "POST",
        f"/data_sources/{source}/query",
        body=body,
        page_size=page_size,
        start_cursor=start_cursor,
        all_pages=all_pages,
    )


@app.command("create")
def create_data_source(
    ctx: typer.Context,
    parent: Annotated[str, typer.Option("--parent", help="Parent JSON, @file or -.")],
    title: Annotated[str, typer.Option("--title", help="Title rich text JSON, @file or -.")],
    properties: Annotated[str, typer.Option("--properties", help="Properties JSON, @file or -.")],
    icon: Icon = None,
    cover: Cover = None,
    dry_run_: DryRun = False,
    idempotency_key: IdempotencyKey = None,
) -> Any:
    """Create a data source in an existing database."""
    cc = context(ctx)
    cc.require_token()
    body = compact(
        {
            "parent": json_option(parent, "--parent"),
            "title": json_option(title, "--title"),
            "properties": json_option(properties, "--properties"),
            "icon": json_option(icon, "--icon"),
            "cover": json_option(cover, "--cover"),
        }
    )
    validate(cc, DataSourceCreateBody, body)
    if dry_run_:
        return dry_run(body)
    return call(cc, "POST", "/data_sources", body=body, idempotency_key=idempotency_key)


@app.command("update")
def update_data_source(
    ctx: typer.Context,
    data_source_id: DataSourceId = None,
    id_: IdFlag = None,
    title: Annotated[str | None, typer.Option("--title", help="Title rich text JSON, @file or -.")] = None,
    properties: Annotated[str | None, typer.Option("--properties", help="Properties JSON, @file or -.")] = None,
    description: Annotated[str | None, typer.Option("--description", help="Description rich text JSON, @file or -.")] = None,
    icon: Icon = None,
    cover: Cover = None,
    dry_run_: DryRun = False,
    idempotency_key: IdempotencyKey = None,
) -> Any:
    """Update a data source."""
    cc = context(ctx)
    cc.require_token()
    source = _data_source_id(data_source_id, id_)
    body = compact(
        {
            "title": json_option(title, "--title"),
            "properties": json_option(properties, "--properties"),
            "description": json_option(description, "--description"),
            "icon": json_option(icon, "--icon"),
            "cover": json_option(cover, "--cover"),
        }
    )
    validate(cc, DataSourceUpdateBody, body)
    if dry_run_:
        return dry_run(body)
    return call(cc, "PATCH", f"/data_sources/{source}", body=body, idempotency_key=idempotency_key)


@app.command("list-templates")
def list_templates(
    ctx: typer.Context,
    data_source_id: DataSourceId = None,
    id_: IdFlag = None,
    page_size: PageSize = None,
    start_cursor: StartCursor = None,
    all_pages: AllPages = False,
) -> Any:
    """List the page templates of a data source."""
    cc = context(ctx)
    cc.require_token()
    source = _data_source_id(data_source_id, id_)
    return list_pages(
        cc,
        "GET",
        f"/data_sources/{source}/templates",
        page_size=page_size,
        start_cursor=start_cursor,
        all_pages=all_pages,
    )
