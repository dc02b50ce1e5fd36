"""Async operation registry commands."""

from __future__ import annotations

from typing import Annotated, Any

import typer

from notioncli.command import NotionTyper
from notioncli.commands._common import IdFlag, context, resolve_id
from notioncli.http import RequestDescriptor
from notioncli.ops import OperationStatus, PollDescriptor, wait_for_operation
from notioncli.ops.wait import DEFAULT_POLL_INTERVAL_S, DEFAULT_WAIT_TIMEOUT_S, op_not_found

app = NotionTyper(name="ops", help="Async operation registry.")

OpId = Annotated[str | None, typer.Argument(help="Operation id.")]


@app.command("get")
def get_op(ctx: typer.Context, op_id: OpId = None, id_: IdFlag = None) -> Any:
    """Get an operation receipt."""
    cc = context(ctx)
    op = resolve_id(op_id, id_, label="Op id", arg="op_id")
    receipt = cc.registry().get(op)
    if receipt is None:
        raise op_not_found(op)
    return receipt.to_record()


@app.command("wait")
def wait_op(
    ctx: typer.Context,
    op_id: OpId = None,
    id_: IdFlag = None,
    timeout: Annotated[
        float, typer.Option("--timeout", min=0, help="Seconds to wait before failing with TIMEOUT.")
    ] = DEFAULT_WAIT_TIMEOUT_S,
    interval: Annotated[
        float, typer.Option("--interval", min=0, help="Seconds between registry checks.")
    ] = DEFAULT_POLL_INTERVAL_S,
) -> Any:
    """Wait until an operation is COMPLETED or FAILED."""
    cc = context(ctx)
    op = resolve_id(op_id, id_, label="Op id", arg="op_id")

    with cc.transport() as api:

        def poll(descriptor: PollDescriptor) -> Any:
            return api.request(RequestDescriptor(descriptor.method, descriptor.path)).data

        receipt = wait_for_operation(cc.registry(), op, timeout_s=timeout, poll=poll, interval_s=interval)
    return receipt.to_record()


@app.command("list")
def list_ops(
    ctx: typer.Context,
    status: Annotated[
        OperationStatus | None, typer.Option("--status", case_sensitive=False, help="Only receipts in this status.")
    ] = None,
) -> Any:
    """List retained operation receipts, oldest first."""
    cc = context(ctx)
    receipts = cc.registry().read()
    if status is not None:
        receipts = [receipt for receipt in receipts if receipt.status == status]
    return {"results": [receipt.to_record() for receipt in receipts], "total": len(receipts)}
