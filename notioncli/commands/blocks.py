"""Blocks endpoints."""

from __future__ import annotations

from typing import Annotated, Any

import typer

from notioncli.command import ActionResult, NotionTyper, PartialResult
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
from notioncli.errors import CliError, MissingArgumentError
from notioncli.exit_codes import ExitCode
from notioncli.input import ensure_object
from notioncli.schema import BlockAppendBody, BlockUpdateBody

app = NotionTyper(name="blocks", help="Blocks endpoints.")

BlockId = Annotated[str | None, typer.Argument(help="Block id.")]


@app.command("get")
def get_block(ctx: typer.Context, block_id: BlockId = None, id_: IdFlag = None) -> Any:
    """Get a block."""
    cc = context(ctx)
    cc.require_token()
    block = resolve_id(block_id, id_, label="Block id", arg="block_id")
    return call(cc, "GET", f"/blocks/{block}")


@app.command("update")
def update_block(
    ctx: typer.Context,
    data: Annotated[str, typer.Option("--data", help="Block update JSON, @file or -.")],
    block_id: BlockId = None,
    id_: IdFlag = None,
    dry_run_: DryRun = False,
    idempotency_key: IdempotencyKey = None,
) -> Any:
    """Update a block with the given block object fields."""
    cc = context(ctx)
    cc.require_token()
    block = resolve_id(block_id, id_, label="Block id", arg="block_id")
    body = ensure_object(json_option(data, "--data"), "--data")
    validate(cc, BlockUpdateBody, body)
    if dry_run_:
        return dry_run(body)
    return call(cc, "PATCH", f"/blocks/{block}", body=body, idempotency_key=idempotency_key)


@app.command("delete")
def delete_blocks(
    ctx: typer.Context,
    block_ids: Annotated[list[str] | None, typer.Argument(help="One or more block ids.")] = None,
    id_: IdFlag = None,
    dry_run_: DryRun = False,
) -> Any:
    """Archive one or more blocks.

    With several ids every deletion is attempted; a mix of successes and
    failures yields a partial envelope (exit 3).
    """
    cc = context(ctx)
    cc.require_token()
    ids = [id_] if id_ else list(block_ids or [])
    if not ids:
        raise MissingArgumentError("Block id is required", suggested_action="Provide <block_id> or --id")
    if dry_run_:
        return ActionResult(data={"dry_run": True, "request": {"block_ids": ids}}, exit_code=ExitCode.DRY_RUN)
    if len(ids) == 1:
        return call(cc, "DELETE", f"/blocks/{ids[0]}")

    succeeded: list[Any] = []
    failed: list[Any] = []
    for block in ids:
        try:
            succeeded.append(call(cc, "DELETE", f"/blocks/{block}"))
        except CliError as exc:
            failed.append({"id": block, "error": exc.to_dict()})
    if not failed:
        return succeeded
    return PartialResult(succeeded=succeeded, failed=failed)


@app.command("list-children")
def list_children(
    ctx: typer.Context,
    block_id: BlockId = None,
    id_: IdFlag = None,
    page_size: PageSize = None,
    start_cursor: StartCursor = None,
    all_pages: AllPages = False,
) -> Any:
    """List the children of a block or page."""
    cc = context(ctx)
    cc.require_token()
    block = resolve_id(block_id, id_, label="Block id", arg="block_id")
    return list_pages(
        cc,
        "GET",
        f"/blocks/{block}/children",
        page_size=page_size,
        start_cursor=start_cursor,
        all_pages=all_pages,
    )


@app.command("append-children")
def append_children(
    ctx: typer.Context,
    children: Annotated[str, typer.Option("--children", help="Children blocks JSON array, @file or -.")],
    block_id: BlockId = None,
    id_: IdFlag = None,
    after: Annotated[str | None, typer.Option("--after", help="Insert after this child block id.")] = None,
    dry_run_: DryRun = False,
    idempotency_key: IdempotencyKey = None,
) -> Any:
    """Append child blocks to a block or page."""
    cc = context(ctx)
    cc.require_token()
    block = resolve_id(block_id, id_, label="Block id", arg="block_id")
    body = compact({"children": json_option(children, "--children"), "after": after})
    validate(cc, BlockAppendBody, body)
    if dry_run_:
        return dry_run(body)
    return call(cc, "PATCH", f"/blocks/{block}/children", body=body, idempotency_key=idempotency_key)
