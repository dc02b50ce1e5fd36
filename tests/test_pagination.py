"""Tests for cursor pagination."""

from __future__ import annotations

from typing import Any

from notioncli.envelope import StreamItem, StreamSummary
from notioncli.pagination import paginate_all


def _pages(*pages: dict[str, Any]):
    seen: list[str | None] = []
    remaining = list(pages)

    def fetch(cursor: str | None) -> dict[str, Any]:
        seen.append(cursor)
        return remaining.pop(0)

    return fetch, seen


def test_collects_every_page_in_order() -> None:
    fetch, seen = _pages(
        {"results": [1, 2], "has_more": True, "next_cursor": "c2"},
        {"results": [3], "has_more": True, "next_cursor": "c3"},
        {"results": [4], "has_more": False, "next_cursor": None},
    )
    result = paginate_all(fetch)
    assert result is not None
    assert result.results == [1, 2, 3, 4]
    assert result.total == 4
    assert seen == [None, "c2", "c3"]


def test_stops_when_cursor_missing_despite_has_more() -> None:
    fetch, seen = _pages({"results": [1], "has_more": True, "next_cursor": None})
    result = paginate_all(fetch)
    assert result is not None
    assert result.results == [1]
    assert seen == [None]


def test_missing_results_counts_as_empty() -> None:
    fetch, _ = _pages({"has_more": False})
    result = paginate_all(fetch)
    assert result is not None
    assert result.total == 0


def test_streaming_emits_items_then_summary() -> None:
    fetch, _ = _pages(
        {"results": ["a"], "has_more": True, "next_cursor": "n"},
        {"results": ["b", "c"], "has_more": False},
    )
    emitted: list[Any] = []
    assert paginate_all(fetch, stream=True, emit=emitted.append) is None
    assert emitted == [
        StreamItem(data="a"),
        StreamItem(data="b"),
        StreamItem(data="c"),
        StreamSummary(data={"count": 3}),
    ]
