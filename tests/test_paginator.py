"""Tests for paginated collection."""

from __future__ import annotations

from hhflow.collect.clock import Deadline
from hhflow.collect.paginator import (
    STOP_CAP,
    STOP_DEADLINE,
    STOP_EMPTY,
    STOP_ERROR,
    STOP_EXHAUSTED,
    collect_pages,
)
from hhflow.errors import NetworkError


def pages_of(total: int, per_page: int, fail_on=None):
    requested = []

    def fetch(page: int, size: int):
        requested.append(page)
        if fail_on is not None and page == fail_on:
            raise NetworkError("boom")
        start = page * size
        items = list(range(start, min(start + size, total)))
        return {"items": items, "found": total}

    return fetch, requested


def test_stops_when_pages_cover_found() -> None:
    fetch, requested = pages_of(25, 10)
    result = collect_pages(fetch, per_page=10)
    assert result.items == list(range(25))
    assert requested == [0, 1, 2]
    assert result.stop_reason == STOP_EXHAUSTED
    assert result.found == 25


def test_stops_on_empty_page() -> None:
    result = collect_pages(lambda page, size: {"items": [], "found": 0})
    assert result.items == []
    assert result.pages_fetched == 1
    assert result.stop_reason == STOP_EMPTY


def test_cap_counts_kept_items_only() -> None:
    fetch, requested = pages_of(100, 10)
    result = collect_pages(fetch, per_page=10, max_items=7, keep=lambda n: n % 2 == 0)
    assert result.items == [0, 2, 4, 6, 8, 10, 12]
    assert requested == [0, 1]
    assert result.stop_reason == STOP_CAP


def test_page_failure_keeps_earlier_pages() -> None:
    fetch, requested = pages_of(50, 10, fail_on=2)
    result = collect_pages(fetch, per_page=10, label="acme")
    assert result.items == list(range(20))
    assert result.stop_reason == STOP_ERROR
    assert isinstance(result.error, NetworkError)
    assert requested == [0, 1, 2]


def test_expired_deadline_makes_no_request(clock) -> None:
    fetch, requested = pages_of(50, 10)
    result = collect_pages(fetch, per_page=10, deadline=Deadline(clock, 0))
    assert requested == []
    assert result.stop_reason == STOP_DEADLINE


def test_deadline_between_pages(clock) -> None:
    deadline = Deadline(clock, 5)
    requested = []

    def fetch(page, size):
        requested.append(page)
        clock.advance(3)
        return {"items": [page], "found": 100}

    result = collect_pages(fetch, per_page=1, deadline=deadline)
    assert requested == [0, 1]
    assert result.items == [0, 1]
    assert result.stop_reason == STOP_DEADLINE


def test_zero_cap_fetches_nothing() -> None:
    fetch, requested = pages_of(50, 10)
    result = collect_pages(fetch, max_items=0)
    assert requested == []
    assert result.stop_reason == STOP_CAP
