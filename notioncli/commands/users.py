"""Users endpoints."""

from __future__ import annotations

from typing import Annotated, Any

import typer

from notioncli.command import NotionTyper
from notioncli.commands._common import AllPages, IdFlag, PageSize, StartCursor, call, context, list_pages, resolve_id

app = NotionTyper(name="users", help="Users endpoints.")


@app.command("list")
def list_users(
    ctx: typer.Context,
    page_size: PageSize = None,
    start_cursor: StartCursor = None,
    all_pages: AllPages = False,
) -> Any:
    """List users."""
    cc = context(ctx)
    cc.require_token()
    return list_pages(cc, "GET", "/users", page_size=page_size, start_cursor=start_cursor, all_pages=all_pages)


@app.command("get")
def get_user(
    ctx: typer.Context,
    user_id: Annotated[str | None, typer.Argument(help="User id.")] = None,
    id_: IdFlag = None,
) -> Any:
    """Get a user."""
    cc = context(ctx)
    cc.require_token()
    user = resolve_id(user_id, id_, label="User id", arg="user_id")
    return call(cc, "GET", f"/users/{user}")


@app.command("me")
def me(ctx: typer.Context) -> Any:
    """Get the bot user of the current token."""
    cc = context(ctx)
    cc.require_token()
    return call(cc, "GET", "/users/me")
