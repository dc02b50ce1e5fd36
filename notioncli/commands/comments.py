"""Comments endpoints."""

from __future__ import annotations

from typing import Annotated, Any

import typer

from notioncli.command import NotionTyper
from notioncli.commands._common import (
    AllPages,
    DryRun,
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
from notioncli.schema import CommentCreateBody

app = NotionTyper(name="comments", help="Comments endpoints.")


@app.command("create")
def create_comment(
    ctx: typer.Context,
    rich_text: Annotated[str, typer.Option("--rich-text", help="Rich text JSON array, @file or -.")],
    parent: Annotated[str | None, typer.Option("--parent", help="Parent JSON, @file or -.")] = None,
    discussion_id: Annotated[str | None, typer.Option("--discussion-id", help="Reply in an existing discussion.")] = None,
    dry_run_: DryRun = False,
    idempotency_key: IdempotencyKey = None,
) -> Any:
    """Create a comment on a page or in a discussion thread."""
    cc = context(ctx)
    cc.require_token()
    body = compact(
        {
            "parent": json_option(parent, "--parent"),
            "discussion_id": discussion_id,
            "rich_text": json_option(rich_text, "--rich-text"),
        }
    )
    validate(cc, CommentCreateBody, body)
    if dry_run_:
        return dry_run(body)
    return call(cc, "POST", "/comments", body=body, idempotency_key=idempotency_key)


@app.command("list")
def list_comments(
    ctx: typer.Context,
    block_id: Annotated[str | None, typer.Option("--block-id", help="Page or block id whose comments to list.")] = None,
    page_size: PageSize = None,
    start_cursor: StartCursor = None,
    all_pages: AllPages = False,
) -> Any:
    """List unresolved comments of a page or block."""
    cc = context(ctx)
    cc.require_token()
    return list_pages(
        cc,
        "GET",
        "/comments",
        query={"block_id": block_id},
        page_size=page_size,
        start_cursor=start_cursor,
        all_pages=all_pages,
    )


@app.command("get")
def get_comment(
    ctx: typer.Context,
    comment_id: Annotated[str | None, typer.Argument(help="Comment id.")] = None,
    id_: IdFlag = None,
) -> Any:
    """Get a comment."""
    cc = context(ctx)
    cc.require_token()
    comment = resolve_id(comment_id, id_, label="Comment id", arg="comment_id")
    return call(cc, "GET", f"/comments/{comment}")
