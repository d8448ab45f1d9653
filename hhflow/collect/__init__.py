"""
Collection subsystem for hhflow.

The `collect` package runs searches against the platform.  A
`RateLimitedFetcher` issues every request with a timeout and linear
backoff on rate limiting; `collect_pages` walks search result pages;
the runners in `runner` iterate companies, filter hits and hand them
to `enrich_items` for throttled detail requests; the runners in
`contacts` do the same for tables of vacancy and resume links.  One
`Deadline` bounds the whole run.
"""

from .clock import Clock, Deadline  # noqa: F401
from .enrich import enrich_items  # noqa: F401
from .fetcher import RateLimitedFetcher  # noqa: F401
from .paginator import collect_pages  # noqa: F401
from .runner import run_resume_search, run_vacancy_search, validate_companies  # noqa: F401
from .contacts import run_resume_contacts, run_vacancy_contacts  # noqa: F401
