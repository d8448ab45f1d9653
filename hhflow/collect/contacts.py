"""
Contact lookup for link tables.

Where the search runners start from company names, these runs start
from links somebody already collected: vacancy links (or employer
pages, which stand for the employer's first few vacancies) and resume
links.  Each link is resolved to an id, ids are deduplicated, and the
records go through the same throttled `enrich_items` pass as search
hits.  Links that cannot be resolved are reported in
`SearchResult.errors` and left out of the output.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence

from ..errors import FetchError
from ..ingest.links import employer_id_from_link, resume_id_from_link, vacancy_id_from_link
from ..normalize.schema import STATUS_COMPLETE, STATUS_PARTIAL, ContactRecord, Item, SearchResult
from .clock import Clock, Deadline, sleep_within
from .enrich import DEFAULT_BATCH_SIZE, DEFAULT_THROTTLE, enrich_items
from .runner import DEFAULT_BUDGET, TIME_LIMIT_MESSAGE

if TYPE_CHECKING:
    from ..ingest.hh_api import HHApi

logger = logging.getLogger(__name__)

DEFAULT_VACANCY_LIMIT = 3
MAX_VACANCY_LIMIT = 20


def clamp_vacancy_limit(value: Optional[int]) -> int:
    """Vacancies taken per employer link, between 1 and 20."""
    if not value:
        return DEFAULT_VACANCY_LIMIT
    return min(max(int(value), 1), MAX_VACANCY_LIMIT)


def _unique_ids(records: List[ContactRecord]) -> List[ContactRecord]:
    seen = set()
    unique = []
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        unique.append(record)
    return unique


def _finish(records: List[ContactRecord], api_call: Callable[[ContactRecord], ContactRecord], *,
            clock: Clock, deadline: Deadline, errors: List[str], timed_out: bool,
            batch_size: int, throttle: float) -> SearchResult:
    records = _unique_ids(records)
    logger.info("Fetching contacts for %d records", len(records))
    enriched = enrich_items(records, api_call, clock=clock, deadline=deadline,
                            batch_size=batch_size, throttle=throttle)
    if enriched.skipped:
        errors.append(f"Contacts unavailable for {enriched.skipped} records")
    timed_out = timed_out or enriched.partial
    items: List[Item] = list(enriched.items)  # type: ignore[arg-type]
    message = f"Found contacts for {enriched.enriched} of {len(items)} records"
    return SearchResult(
        items=items,
        status=STATUS_PARTIAL if timed_out else STATUS_COMPLETE,
        message=TIME_LIMIT_MESSAGE if timed_out else message,
        errors=errors,
        elapsed=deadline.elapsed(),
    )


def run_vacancy_contacts(
    api: HHApi,
    records: Sequence[ContactRecord],
    *,
    clock: Optional[Clock] = None,
    deadline: Optional[Deadline] = None,
    vacancy_limit: Optional[int] = DEFAULT_VACANCY_LIMIT,
    batch_size: int = DEFAULT_BATCH_SIZE,
    throttle: float = DEFAULT_THROTTLE,
) -> SearchResult:
    """Fetch the contact block of every vacancy behind `records`.

    A vacancy link gives one vacancy.  An employer page or employer
    vacancy search link gives that employer's first `vacancy_limit`
    open vacancies, each with its own link.
    """
    clock = clock or Clock()
    if deadline is None:
        deadline = Deadline(clock, DEFAULT_BUDGET)
    limit = clamp_vacancy_limit(vacancy_limit)
    resolved: List[ContactRecord] = []
    errors: List[str] = []
    timed_out = False

    for record in records:
        if deadline.expired():
            logger.info("Time limit approaching, stopping link resolution")
            timed_out = True
            break
        vacancy_id = vacancy_id_from_link(record.link)
        if vacancy_id:
            resolved.append(replace(record, id=vacancy_id))
            continue
        employer_id = employer_id_from_link(record.link)
        if employer_id is None:
            logger.warning("Not a vacancy or employer link: %s", record.link)
            errors.append(f"{record.link}: not a vacancy or employer link")
            continue
        logger.info("Listing vacancies of employer %s", employer_id)
        try:
            page = api.search_vacancies_page(employer_id, "", 0, limit, deadline)
        except FetchError as exc:
            logger.error("Vacancy list failed for %s: %s", record.link, exc)
            errors.append(f"{record.link}: {exc}")
            continue
        vacancies = page["items"][:limit]
        if not vacancies:
            logger.info("No vacancies found for employer %s", employer_id)
        resolved.extend(replace(record, id=v.id, link=v.link, title=v.name) for v in vacancies)
        sleep_within(clock, throttle, deadline)

    return _finish(resolved, lambda r: api.vacancy_contact(r, deadline), clock=clock, deadline=deadline,
                   errors=errors, timed_out=timed_out, batch_size=batch_size, throttle=throttle)


def run_resume_contacts(
    api: HHApi,
    records: Sequence[ContactRecord],
    *,
    clock: Optional[Clock] = None,
    deadline: Optional[Deadline] = None,
    open_contacts: bool = True,
    batch_size: int = DEFAULT_BATCH_SIZE,
    throttle: float = DEFAULT_THROTTLE,
) -> SearchResult:
    """Fetch name, title, phone and e-mail for every resume link."""
    clock = clock or Clock()
    if deadline is None:
        deadline = Deadline(clock, DEFAULT_BUDGET)
    resolved: List[ContactRecord] = []
    errors: List[str] = []
    for record in records:
        resume_id = resume_id_from_link(record.link)
        if not resume_id:
            logger.warning("Not a resume link: %s", record.link)
            errors.append(f"{record.link}: not a resume link")
            continue
        resolved.append(replace(record, id=resume_id))

    return _finish(
        resolved,
        lambda r: api.resume_contact(r, deadline, open_contacts=open_contacts),
        clock=clock, deadline=deadline, errors=errors, timed_out=False,
        batch_size=batch_size, throttle=throttle,
    )
