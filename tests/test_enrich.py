"""Tests for throttled batch enrichment."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

import pytest  # type: ignore

from hhflow.collect.clock import Deadline
from hhflow.collect.enrich import enrich_items
from hhflow.errors import HTTPStatusError


@dataclass
class Hit:
    id: int
    detail: Optional[str] = None


def test_enriches_in_order_with_throttle(clock) -> None:
    items = [Hit(i) for i in range(25)]
    calls = []

    def detail(item: Hit) -> Hit:
        calls.append(item.id)
        return replace(item, detail=f"d{item.id}")

    result = enrich_items(items, detail, clock=clock, batch_size=10, throttle=0.1)
    assert calls == list(range(25))
    assert [i.id for i in result.items] == list(range(25))
    assert all(i.detail == f"d{i.id}" for i in result.items)
    assert result.enriched == 25
    assert not result.partial
    # one pause per item plus one between each pair of batches
    assert len(clock.sleeps) == 25 + 2
    assert set(clock.sleeps) == {0.1}


def test_failed_detail_passes_item_through(clock) -> None:
    def detail(item: Hit) -> Hit:
        if item.id == 1:
            raise HTTPStatusError("forbidden", status=403)
        return replace(item, detail="ok")

    result = enrich_items([Hit(0), Hit(1), Hit(2)], detail, clock=clock)
    assert [i.id for i in result.items] == [0, 1, 2]
    assert result.items[1].detail is None
    assert result.skipped == 1
    assert result.enriched == 2


def test_expired_deadline_makes_no_calls(clock) -> None:
    def detail(item: Hit) -> Hit:
        pytest.fail("no detail call expected")

    items = [Hit(i) for i in range(5)]
    result = enrich_items(items, detail, clock=clock, deadline=Deadline(clock, 0))
    assert result.items == items
    assert result.partial
    assert result.enriched == 0


def test_deadline_mid_run_keeps_every_item(clock) -> None:
    deadline = Deadline(clock, 1.0)

    def detail(item: Hit) -> Hit:
        clock.advance(0.3)
        return replace(item, detail="ok")

    items = [Hit(i) for i in range(6)]
    result = enrich_items(items, detail, clock=clock, deadline=deadline, batch_size=2, throttle=0.1)
    assert [i.id for i in result.items] == list(range(6))
    assert result.partial
    assert 0 < result.enriched < 6
    assert all(i.detail is None for i in result.items[result.enriched:])
