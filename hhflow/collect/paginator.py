"""
Paginated collection from a search endpoint.

`collect_pages` asks a page-fetching callable for page 0, 1, 2 … and
accumulates the items until one of the stop conditions holds:

* ``empty``    – the page had no items;
* ``exhausted`` – the pages fetched so far cover the ``found`` total;
* ``cap``      – the kept-item cap was reached;
* ``deadline`` – the run's deadline expired;
* ``error``    – the page request failed.

Whatever was accumulated before the stop is always returned.  A failed
page only ends collection for this source; the error is handed back in
the result instead of being raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..errors import FetchError
from .clock import Deadline

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 100

STOP_EMPTY = "empty"
STOP_EXHAUSTED = "exhausted"
STOP_CAP = "cap"
STOP_DEADLINE = "deadline"
STOP_ERROR = "error"

# fetch_page(page, per_page) -> {"items": [...], "found": N}
PageFetcher = Callable[[int, int], Dict[str, Any]]


@dataclass
class PageCollection:
    items: List[Any] = field(default_factory=list)
    pages_fetched: int = 0
    found: Optional[int] = None
    stop_reason: str = STOP_EMPTY
    error: Optional[FetchError] = None


def collect_pages(
    fetch_page: PageFetcher,
    *,
    per_page: int = DEFAULT_PER_PAGE,
    max_items: Optional[int] = None,
    deadline: Optional[Deadline] = None,
    keep: Optional[Callable[[Any], bool]] = None,
    label: str = "",
) -> PageCollection:
    """Collect items page by page until a stop condition holds.

    Args:
        fetch_page: Callable returning the decoded page for a 0-based
            page index and a page size.
        per_page: Page size sent with every request.
        max_items: Cap on kept items; extra items on the last page are
            dropped.
        deadline: Checked before every request.
        keep: Optional predicate; only items it accepts are kept and
            counted against `max_items`.
        label: Name used in log messages.
    """
    result = PageCollection()
    if max_items is not None and max_items <= 0:
        result.stop_reason = STOP_CAP
        return result

    page = 0
    while True:
        if deadline is not None and deadline.expired():
            logger.info("Stopping %s before page %d: time limit reached", label, page)
            result.stop_reason = STOP_DEADLINE
            return result
        try:
            data = fetch_page(page, per_page)
        except FetchError as exc:
            logger.error("Error fetching page %d for %s: %s", page, label, exc)
            result.stop_reason = STOP_ERROR
            result.error = exc
            return result

        result.pages_fetched += 1
        items = data.get("items") or []
        found = data.get("found")
        if isinstance(found, int):
            result.found = found
        if not items:
            logger.debug("No more items for %s on page %d", label, page)
            result.stop_reason = STOP_EMPTY
            return result

        kept = [item for item in items if keep is None or keep(item)]
        if max_items is not None:
            kept = kept[: max_items - len(result.items)]
        result.items.extend(kept)
        logger.info(
            "Kept %d of %d items on page %d for %s (total %d/%s)",
            len(kept), len(items), page, label, len(result.items), result.found,
        )

        if max_items is not None and len(result.items) >= max_items:
            result.stop_reason = STOP_CAP
            return result
        if result.found is not None and (page + 1) * per_page >= result.found:
            result.stop_reason = STOP_EXHAUSTED
            return result
        page += 1
