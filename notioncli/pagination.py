"""Cursor pagination over list endpoints.

``paginate_all`` drives a page-fetch callable until the upstream says there
is nothing more. It either accumulates every item in memory or streams each
item as an NDJSON line followed by one summary line.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from notioncli.envelope import StreamItem, StreamSummary
from notioncli.observability import get_logger
from notioncli.output import write_ndjson_line

log = get_logger("notioncli.pagination")

FetchPage = Callable[[str | None], Mapping[str, Any]]


@dataclass
class PaginationResult:
    results: list[Any] = field(default_factory=list)
    total: int = 0


def paginate_all(
    fetch_page: FetchPage,
    *,
    stream: bool = False,
    emit: Callable[[Any], None] = write_ndjson_line,
) -> PaginationResult | None:
    """Fetch every page, starting from ``cursor=None``.

    The loop ends when ``has_more`` is false *or* ``next_cursor`` is missing,
    so a page claiming more results without a cursor cannot loop forever.
    Retries are the request engine's concern, not this function's.

    Returns ``None`` in streaming mode, after the summary line is emitted.
    """

    cursor: str | None = None
    results: list[Any] = []
    count = 0
    pages = 0

    while True:
        page = fetch_page(cursor)
        pages += 1
        items = page.get("results") or []
        if stream:
            for item in items:
                emit(StreamItem(data=item))
                count += 1
        else:
            results.extend(items)

        next_cursor = page.get("next_cursor")
        if not page.get("has_more") or not next_cursor:
            break
        cursor = next_cursor

    log.debug(
        "pagination complete",
        extra={"extra_fields": {"pages": pages, "stream": stream, "items": count if stream else len(results)}},
    )

    if stream:
        emit(StreamSummary(data={"count": count}))
        return None
    return PaginationResult(results=results, total=len(results))
