"""File uploads endpoints.

``send --async`` records an operation receipt before the upload starts so a
later ``ops wait`` can follow it, even when this process dies mid-transfer.
"""

from __future__ import annotations

import mimetypes
from pathlib import Path
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
    list_pages,
    resolve_id,
    validate,
)
from notioncli.errors import CliError, InputError
from notioncli.http import MultipartBody, RequestDescriptor
from notioncli.observability import get_logger
from notioncli.ops import OperationStatus, PollDescriptor
from notioncli.schema import FileUploadCompleteBody, FileUploadCreateBody

log = get_logger("notioncli.commands.file_uploads")

app = NotionTyper(name="file-uploads", help="File uploads endpoints.")

FileUploadId = Annotated[str | None, typer.Argument(help="File upload id.")]


def _upload_id(positional: str | None, flag: str | None) -> str:
    return resolve_id(positional, flag, label="File upload id", arg="file_upload_id")


def _read_file(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise InputError(
            f"Cannot read file: {exc.strerror or exc}",
            suggested_action="Check the --file path",
            context={"path": str(path)},
        ) from exc


@app.command("create")
def create_upload(
    ctx: typer.Context,
    file_name: Annotated[str, typer.Option("--file-name", help="Name of the file to upload.")],
    content_type: Annotated[str, typer.Option("--content-type", help="MIME type of the file.")],
    mode: Annotated[
        str | None, typer.Option("--mode", help="single_part, multi_part or external_url.")
    ] = None,
    number_of_parts: Annotated[
        int | None, typer.Option("--number-of-parts", min=1, help="Part count for multi_part uploads.")
    ] = None,
    dry_run_: DryRun = False,
    idempotency_key: IdempotencyKey = None,
) -> Any:
    """Create a file upload object."""
    cc = context(ctx)
    cc.require_token()
    body = compact(
        {
            "filename": file_name,
            "content_type": content_type,
            "mode": mode,
            "number_of_parts": number_of_parts,
        }
    )
    validate(cc, FileUploadCreateBody, body)
    if dry_run_:
        return dry_run(body)
    return call(cc, "POST", "/file_uploads", body=body, idempotency_key=idempotency_key)


@app.command("send")
def send_upload(
    ctx: typer.Context,
    file: Annotated[Path, typer.Option("--file", help="Path of the file to send.")],
    file_upload_id: FileUploadId = None,
    id_: IdFlag = None,
    content_type: Annotated[
        str | None, typer.Option("--content-type", help="MIME type; guessed from the file name when omitted.")
    ] = None,
    part_number: Annotated[
        int | None, typer.Option("--part-number", min=1, help="Part number for multi_part uploads.")
    ] = None,
    async_: Annotated[bool, typer.Option("--async", help="Record an operation receipt for `ops wait`.")] = False,
    dry_run_: DryRun = False,
) -> Any:
    """Send file contents to a file upload."""
    cc = context(ctx)
    cc.require_token()
    upload = _upload_id(file_upload_id, id_)
    if dry_run_:
        return dry_run({"file": str(file)})

    ctype = content_type or mimetypes.guess_type(file.name)[0]
    fields = {"part_number": str(part_number)} if part_number is not None else {}
    descriptor = RequestDescriptor(
        "POST",
        f"/file_uploads/{upload}/send",
        body=MultipartBody(files={"file": (file.name, _read_file(file), ctype)}, fields=fields),
    )
    if not async_:
        return cc.request(descriptor).data

    registry = cc.registry()
    receipt = registry.append(
        registry.create_receipt(
            type="file_upload.send",
            status=OperationStatus.IN_PROGRESS,
            resource_id=upload,
            resource_type="file_upload",
            metadata={"file": str(file)},
            poll=PollDescriptor(method="GET", path=f"/file_uploads/{upload}"),
        )
    )
    try:
        data = cc.request(descriptor).data
    except CliError as exc:
        log.warning(
            "file upload failed",
            extra={"extra_fields": {"op_id": receipt.op_id, "code": exc.code.value}},
        )
        registry.update(
            registry.touch(
                receipt,
                status=OperationStatus.FAILED,
                error={"code": exc.code.value, "message": exc.message},
            )
        )
        raise
    done = registry.update(registry.touch(receipt, status=OperationStatus.COMPLETED, metadata={"response": data}))
    return done.to_record()


@app.command("complete")
def complete_upload(
    ctx: typer.Context,
    file_upload_id: FileUploadId = None,
    id_: IdFlag = None,
    dry_run_: DryRun = False,
    idempotency_key: IdempotencyKey = None,
) -> Any:
    """Complete a multi_part file upload."""
    cc = context(ctx)
    cc.require_token()
    upload = _upload_id(file_upload_id, id_)
    body: dict[str, Any] = {}
    validate(cc, FileUploadCompleteBody, body)
    if dry_run_:
        return dry_run()
    return call(cc, "POST", f"/file_uploads/{upload}/complete", body=body, idempotency_key=idempotency_key)


@app.command("get")
def get_upload(ctx: typer.Context, file_upload_id: FileUploadId = None, id_: IdFlag = None) -> Any:
    """Get a file upload."""
    cc = context(ctx)
    cc.require_token()
    return call(cc, "GET", f"/file_uploads/{_upload_id(file_upload_id, id_)}")


@app.command("list")
def list_uploads(
    ctx: typer.Context,
    status: Annotated[
        str | None, typer.Option("--status", help="pending, uploaded, expired or failed.")
    ] = None,
    page_size: PageSize = None,
    start_cursor: StartCursor = None,
    all_pages: AllPages = False,
) -> Any:
    """List file uploads."""
    cc = context(ctx)
    cc.require_token()
    return list_pages(
        cc,
        "GET",
        "/file_uploads",
        query={"status": status},
        page_size=page_size,
        start_cursor=start_cursor,
        all_pages=all_pages,
    )
