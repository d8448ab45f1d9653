"""
Batch enrichment of search hits.

Each hit gets one extra detail request.  Requests run one at a time in
batches of ``batch_size`` with a fixed ``throttle`` pause after every
request and between batches, which keeps the account under the
platform's rate limits.  Enrichment is best effort: a failed detail
request or an expired deadline leaves the item unenriched, but the item
is always returned, in its original position.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, TypeVar

from ..errors import FetchError
from .clock import Clock, Deadline, sleep_within

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10
DEFAULT_THROTTLE = 0.1

T = TypeVar("T")


@dataclass
class EnrichmentResult:
    items: List[object] = field(default_factory=list)
    enriched: int = 0
    skipped: int = 0
    partial: bool = False


def enrich_items(
    items: Sequence[T],
    fetch_detail: Callable[[T], T],
    *,
    clock: Clock,
    deadline: Optional[Deadline] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    throttle: float = DEFAULT_THROTTLE,
) -> EnrichmentResult:
    """Enrich `items` in sequential batches.

    Args:
        items: Hits in output order.
        fetch_detail: Returns an enriched copy of one item or raises
            `FetchError`.
        clock: Used for the throttle pauses.
        deadline: Checked before every batch and every item.  Once it
            has expired the remaining items pass through untouched.
        batch_size: Items per batch.
        throttle: Seconds to wait after each request and between batches.
    """
    result = EnrichmentResult()
    total = len(items)
    batch_size = max(1, batch_size)
    for start in range(0, total, batch_size):
        if deadline is not None and deadline.expired():
            logger.warning("Time limit reached, %d of %d items left unenriched", total - start, total)
            result.items.extend(items[start:])
            result.partial = True
            break
        batch = items[start:start + batch_size]
        logger.info("Enriching batch %d, items %d-%d", start // batch_size + 1, start, start + len(batch))
        for offset, item in enumerate(batch):
            if deadline is not None and deadline.expired():
                result.items.extend(batch[offset:])
                result.partial = True
                break
            try:
                result.items.append(fetch_detail(item))
                result.enriched += 1
            except FetchError as exc:
                logger.warning("Could not enrich %s: %s", getattr(item, "id", item), exc)
                result.items.append(item)
                result.skipped += 1
            sleep_within(clock, throttle, deadline)
        if result.partial:
            result.items.extend(items[start + batch_size:])
            logger.warning("Time limit reached during enrichment")
            break
        if start + batch_size < total:
            sleep_within(clock, throttle, deadline)
    return result
