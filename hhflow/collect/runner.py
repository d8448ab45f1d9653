"""
Search run orchestration.

A run takes a `SearchQuery`, walks its companies in input order and,
for each one, collects matching hits page by page.  Hits go into one
running list in first-seen order.  The list is then cut to the total
limit and enriched in throttled batches.  Everything happens on a
single thread and shares one `Deadline`.  When the deadline expires the
run stops issuing requests and returns what it has, flagged as partial.

Failures while handling one company (or one page, or one item) are
logged and recorded in `SearchResult.errors`; they never abort the
run.  The exceptions are bad input, which raises `ValidationError`
before any request, and a permanent failure of the very first request,
which raises `SearchError` (typically a bad token).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Set

from ..errors import FetchError, HTTPStatusError, MalformedResponseError, SearchError
from ..normalize.names import normalize_company_name, same_company
from ..normalize.schema import (
    STATUS_COMPLETE,
    STATUS_PARTIAL,
    EmployerMatch,
    Experience,
    Item,
    ResumeItem,
    SearchQuery,
    SearchResult,
)
from .clock import Clock, Deadline
from .enrich import DEFAULT_BATCH_SIZE, DEFAULT_THROTTLE, enrich_items
from .paginator import DEFAULT_PER_PAGE, STOP_DEADLINE, PageCollection, collect_pages

if TYPE_CHECKING:
    from ..ingest.hh_api import HHApi

logger = logging.getLogger(__name__)

RESUMES_PER_COMPANY = 1000
VACANCIES_PER_COMPANY = 3
RECENCY_DAYS = 365
DEFAULT_BUDGET = 50.0

TIME_LIMIT_MESSAGE = "Time limit reached, partial results returned"


def _parse_date(value: Optional[str]) -> Optional[date]:
    """Parse the platform's ``YYYY-MM-DD`` or ``YYYY-MM`` dates."""
    if not value:
        return None
    for fmt in ("%Y-%m-%d", "%Y-%m"):
        try:
            return datetime.strptime(value[:10], fmt).date()
        except ValueError:
            continue
    return None


def is_recent_or_current(exp: Experience, run_start: datetime, days: int = RECENCY_DAYS) -> bool:
    """True for a current job or one that ended at most `days` days ago.

    The boundary is inclusive.  An end date that cannot be parsed is
    treated as not recent.
    """
    if not exp.end:
        return True
    end = _parse_date(exp.end)
    if end is None:
        return False
    return end >= run_start.date() - timedelta(days=days)


def company_phrase(normalized: str, text: str = "") -> str:
    """Build the platform query for one company.

    The company goes in as an exact phrase with an edit distance of one;
    free text, if any, is ANDed in front of it unchanged.
    """
    phrase = f'"{normalized}"~1'
    if text:
        return f"({text}) AND {phrase}"
    return phrase


@dataclass
class SearchRun:
    """Mutable state of one run.  Lives only for the duration of a call."""

    query: SearchQuery
    deadline: Deadline
    started_at: datetime
    items: List[Item] = field(default_factory=list)
    seen: Set[str] = field(default_factory=set)
    company_counts: Dict[str, int] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    timed_out: bool = False
    contacted: bool = False

    @property
    def remaining(self) -> int:
        return self.query.total_limit - len(self.items)

    def add(self, company: str, items: List[Item]) -> int:
        added = 0
        for item in items:
            if item.id in self.seen:
                continue
            self.seen.add(item.id)
            item.matched_company = company
            self.items.append(item)
            added += 1
        self.company_counts[company] = self.company_counts.get(company, 0) + added
        return added

    def should_stop(self) -> bool:
        if self.deadline.expired():
            logger.info("Time limit approaching, stopping search")
            self.timed_out = True
            return True
        if self.remaining <= 0:
            logger.info("Reached requested limit of %d, stopping search", self.query.total_limit)
            return True
        return False

    def check_collection(self, label: str, collection: PageCollection) -> None:
        if collection.stop_reason == STOP_DEADLINE:
            self.timed_out = True
        if collection.error is not None:
            first_call = not self.contacted and collection.pages_fetched == 0
            if first_call and isinstance(collection.error, (HTTPStatusError, MalformedResponseError)):
                raise SearchError(f"Search failed on first request: {collection.error}") from collection.error
            self.errors.append(f"{label}: {collection.error}")
        self.contacted = True

    def result(self) -> SearchResult:
        return SearchResult(
            items=self.items,
            status=STATUS_PARTIAL if self.timed_out else STATUS_COMPLETE,
            message=TIME_LIMIT_MESSAGE if self.timed_out else f"Found {len(self.items)} items",
            errors=self.errors,
            company_counts=self.company_counts,
            elapsed=self.deadline.elapsed(),
        )


def _start_run(query: SearchQuery, clock: Clock, deadline: Optional[Deadline]) -> SearchRun:
    query.validate()
    if deadline is None:
        deadline = Deadline(clock, DEFAULT_BUDGET)
    return SearchRun(query=query, deadline=deadline, started_at=clock.now())


def _enrich(run: SearchRun, fetch_detail: Callable, clock: Clock,
            batch_size: int, throttle: float) -> None:
    del run.items[run.query.total_limit:]
    logger.info("Fetching details for %d items", len(run.items))
    enriched = enrich_items(
        run.items, fetch_detail, clock=clock, deadline=run.deadline,
        batch_size=batch_size, throttle=throttle,
    )
    run.items = enriched.items
    if enriched.partial:
        run.timed_out = True
    if enriched.skipped:
        run.errors.append(f"Details unavailable for {enriched.skipped} items")


def run_resume_search(
    api: HHApi,
    query: SearchQuery,
    *,
    clock: Optional[Clock] = None,
    deadline: Optional[Deadline] = None,
    per_page: int = DEFAULT_PER_PAGE,
    batch_size: int = DEFAULT_BATCH_SIZE,
    throttle: float = DEFAULT_THROTTLE,
) -> SearchResult:
    """Find resumes of people who work, or recently worked, at the companies.

    For each company the normalised name is searched as an exact phrase.
    A hit is kept only if one of its work history entries normalises to
    the same name and is current or ended within the last year.
    """
    clock = clock or Clock()
    run = _start_run(query, clock, deadline)
    per_company = query.per_company_limit or RESUMES_PER_COMPANY

    for company in query.companies:
        if run.should_stop():
            break
        normalized = normalize_company_name(company)
        if not normalized:
            logger.info("Skipping empty company name after cleaning: %r", company)
            continue

        def matches(item: ResumeItem, key: str = normalized) -> bool:
            return any(
                same_company(exp.company, key) and is_recent_or_current(exp, run.started_at)
                for exp in item.experience
            )

        text = company_phrase(normalized, query.text)
        logger.info("Searching resumes for company: %s", normalized)
        collection = collect_pages(
            lambda page, size: api.search_resumes_page(text, page, size, run.deadline),
            per_page=per_page,
            max_items=min(per_company, run.remaining),
            deadline=run.deadline,
            keep=matches,
            label=normalized,
        )
        run.check_collection(company, collection)
        added = run.add(company, collection.items)
        logger.info("Total resumes so far: %d (+%d for %s)", len(run.items), added, normalized)

    _enrich(run, lambda item: api.resume_details(item, run.deadline), clock, batch_size, throttle)
    return run.result()


def run_vacancy_search(
    api: HHApi,
    query: SearchQuery,
    *,
    clock: Optional[Clock] = None,
    deadline: Optional[Deadline] = None,
    per_page: int = DEFAULT_PER_PAGE,
    batch_size: int = DEFAULT_BATCH_SIZE,
    throttle: float = DEFAULT_THROTTLE,
) -> SearchResult:
    """Find open vacancies of the companies and fetch their contacts.

    Companies are resolved to employer ids first; vacancies are then
    listed per employer, so no name filtering is applied to the hits.
    """
    clock = clock or Clock()
    run = _start_run(query, clock, deadline)
    per_company = query.per_company_limit or VACANCIES_PER_COMPANY

    for company in query.companies:
        if run.should_stop():
            break
        try:
            employers = api.find_employers(company, run.deadline)
        except FetchError as exc:
            permanent = isinstance(exc, (HTTPStatusError, MalformedResponseError))
            if permanent and not run.contacted:
                raise SearchError(f"Employer lookup failed on first request: {exc}") from exc
            logger.error("Employer lookup failed for %s: %s", company, exc)
            run.errors.append(f"{company}: {exc}")
            run.contacted = True
            continue
        run.contacted = True
        if not employers:
            logger.info("No employers found for: %s", company)
            continue

        company_items: List[Item] = []
        for employer in employers:
            cap = min(per_company - len(company_items), run.remaining - len(company_items))
            if cap <= 0:
                break
            collection = collect_pages(
                lambda page, size, eid=employer.hh_id: api.search_vacancies_page(
                    eid, query.text, page, size, run.deadline),
                per_page=min(per_page, cap),
                max_items=cap,
                deadline=run.deadline,
                label=f"{company} (ID: {employer.hh_id})",
            )
            run.check_collection(f"{company} (ID: {employer.hh_id})", collection)
            company_items.extend(collection.items)
        added = run.add(company, company_items)
        logger.info("Found %d vacancies for %s", added, company)

    _enrich(run, lambda item: api.vacancy_details(item, run.deadline), clock, batch_size, throttle)
    return run.result()


def validate_companies(api: HHApi, companies: List[str], *,
                       clock: Optional[Clock] = None,
                       deadline: Optional[Deadline] = None,
                       throttle: float = DEFAULT_THROTTLE) -> List[EmployerMatch]:
    """Look every company up on the employers endpoint.

    Returns one `EmployerMatch` per employer found, or a single
    not-found (or error) entry for companies without a match.  Companies
    not reached before the deadline are reported as errors.
    """
    clock = clock or Clock()
    if deadline is None:
        deadline = Deadline(clock, DEFAULT_BUDGET)
    results: List[EmployerMatch] = []
    for company in (c.strip() for c in companies):
        if not company:
            continue
        if deadline.expired():
            results.append(EmployerMatch(original_name=company, error="time limit reached"))
            continue
        try:
            matches = api.find_employers(company, deadline)
        except FetchError as exc:
            logger.error("Employer lookup failed for %s: %s", company, exc)
            results.append(EmployerMatch(original_name=company, error=str(exc)))
        else:
            results.extend(matches or [EmployerMatch(original_name=company)])
        clock.sleep(throttle)
    return results
