"""Search endpoint."""

from __future__ import annotations

from typing import Annotated, Any

import typer

from notioncli.commands._common import (
    AllPages,
    PageSize,
    StartCursor,
    compact,
    context,
    json_option,
    list_pages,
    validate,
)
from notioncli.schema import SearchBody


def search(
    ctx: typer.Context,
    query: Annotated[str | None, typer.Option("--query", help="Text to search page and data source titles for.")] = None,
    filter_: Annotated[str | None, typer.Option("--filter", help="Filter JSON, @file or -.")] = None,
    sort: Annotated[str | None, typer.Option("--sort", help="Sort JSON, @file or -.")] = None,
    page_size: PageSize = None,
    start_cursor: StartCursor = None,
    all_pages: AllPages = False,
) -> Any:
    """Search pages and data sources shared with the integration."""
    cc = context(ctx)
    cc.require_token()
    body = compact(
        {
            "query": query,
            "filter": json_option(filter_, "--filter"),
            "sort": json_option(sort, "--sort"),
        }
    )
    validate(cc, SearchBody, {**body, **compact({"page_size": page_size, "start_cursor": start_cursor})})
    return list_pages(
        cc,
        "POST",
        "/search",
        body=body,
        page_size=page_size,
        start_cursor=start_cursor,
        all_pages=all_pages,
    )
