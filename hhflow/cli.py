"""
Command line interface for hhflow.

Subcommands:

* ``resumes``   – search resumes of people working at the listed companies;
* ``vacancies`` – list the companies' open vacancies with contact data;
* ``validate``  – check how each company name resolves to hh.ru employers;
* ``contacts``  – fetch contact data behind a table of vacancy or resume links;
* ``limits``    – show the remaining paid API actions of the account.

Companies come from a local file (``--companies``) or from column A of
a Google Sheet (``--sheet``); link tables come from a file (``--links``)
or a sheet tab.  Results go to a CSV file (``--out``) or, with
``--write-sheet``, into a tab of the same spreadsheet.  ``--preview``
prints the first few search results instead.  The CLI is a thin layer;
the work happens in `collect`, `ingest` and `normalize`.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from .collect.clock import Clock, Deadline
from .collect.contacts import run_resume_contacts, run_vacancy_contacts
from .collect.fetcher import RateLimitedFetcher
from .collect.runner import run_resume_search, run_vacancy_search, validate_companies
from .config import Settings, load_settings
from .errors import ConfigError, HHFlowError, ValidationError
from .ingest.companies import load_companies, load_table
from .ingest.hh_api import HHApi, api_limits
from .ingest.links import RESUME_LINK_HEADER, VACANCY_LINK_HEADER, records_from_rows
from .ingest.sheets import (
    RESUME_CONTACTS_TAB,
    RESUME_LINKS_TAB,
    RESUME_TAB,
    VACANCY_CONTACTS_TAB,
    VACANCY_LINKS_TAB,
    VACANCY_TAB,
    VALIDATION_TAB,
    SheetClient,
)
from .normalize.schema import SearchQuery, SearchResult
from .normalize.write_csv import contact_table, render_csv, to_table, validation_table, write_csv

logger = logging.getLogger("hhflow.cli")

PREVIEW_LIMIT = 10


def _settings(args: argparse.Namespace) -> Settings:
    return load_settings(args.config, access_token=args.token)


def _build_api(settings: Settings, clock: Clock) -> HHApi:
    if not settings.access_token:
        raise ConfigError("An access token is required (--token or HH_ACCESS_TOKEN)")
    fetcher = RateLimitedFetcher(
        clock=clock,
        access_token=settings.access_token,
        user_agent=settings.user_agent,
        timeout=settings.timeout,
        max_retries=settings.max_retries,
        backoff=settings.backoff,
    )
    return HHApi(fetcher, settings.api_base_url)


def _read_companies(args: argparse.Namespace, settings: Settings) -> List[str]:
    if args.companies:
        return load_companies(args.companies)
    if args.sheet:
        return SheetClient.from_credentials(settings.google_credentials).read_companies(args.sheet)
    raise ValidationError("Provide --companies FILE or --sheet URL")


def _read_link_table(args: argparse.Namespace, settings: Settings) -> List[List[str]]:
    if args.links:
        return load_table(args.links)
    tab = args.tab or (VACANCY_LINKS_TAB if args.kind == "vacancy" else RESUME_LINKS_TAB)
    return SheetClient.from_credentials(settings.google_credentials).read_table(args.sheet, tab)


def _check_output(args: argparse.Namespace) -> None:
    """Reject output options that cannot work, before any request is made."""
    if args.write_sheet and not args.sheet:
        raise ValidationError("--write-sheet needs --sheet")


def _emit(args: argparse.Namespace, settings: Settings, rows: List[List[str]], tab: str) -> None:
    if args.write_sheet:
        SheetClient.from_credentials(settings.google_credentials).write_rows(args.sheet, tab, rows)
        logger.info("Data written to sheet tab %s", tab)
    else:
        write_csv(rows, args.out)
        logger.info("Wrote %d rows to %s", len(rows) - 1, args.out)


def _report(result: SearchResult) -> None:
    for error in result.errors:
        logger.warning("Skipped: %s", error)
    print(f"{result.status}: {len(result.items)} items in {result.elapsed:.1f}s. {result.message}")


def _deadline(settings: Settings, clock: Clock) -> Deadline:
    return Deadline.from_limits(clock, settings.max_duration, settings.safety_margin)


def _run_search(args: argparse.Namespace, kind: str) -> None:
    _check_output(args)
    settings = _settings(args)
    clock = Clock()
    api = _build_api(settings, clock)
    total_limit = min(args.total_limit, PREVIEW_LIMIT) if args.preview else args.total_limit
    query = SearchQuery(
        text=args.text or "",
        companies=_read_companies(args, settings),
        total_limit=total_limit,
        per_company_limit=args.per_company_limit,
    )
    runner = run_vacancy_search if kind == "vacancy" else run_resume_search
    result = runner(
        api,
        query,
        clock=clock,
        deadline=_deadline(settings, clock),
        per_page=settings.per_page,
        batch_size=settings.batch_size,
        throttle=settings.throttle,
    )
    table = to_table(result.items, kind=kind)
    if args.preview:
        print(render_csv(table), end="")
    else:
        _emit(args, settings, table, VACANCY_TAB if kind == "vacancy" else RESUME_TAB)
    _report(result)


def cmd_resumes(args: argparse.Namespace) -> None:
    """Search resumes for the listed companies."""
    _run_search(args, "resume")


def cmd_vacancies(args: argparse.Namespace) -> None:
    """Search vacancies of the listed companies."""
    _run_search(args, "vacancy")


def cmd_validate(args: argparse.Namespace) -> None:
    """Resolve company names to hh.ru employers."""
    _check_output(args)
    settings = _settings(args)
    clock = Clock()
    api = _build_api(settings, clock)
    matches = validate_companies(
        api,
        _read_companies(args, settings),
        clock=clock,
        deadline=_deadline(settings, clock),
        throttle=settings.throttle,
    )
    _emit(args, settings, validation_table(matches), VALIDATION_TAB)
    found = sum(1 for m in matches if m.found)
    print(f"Company validation completed: {found} employer matches")


def cmd_contacts(args: argparse.Namespace) -> None:
    """Fetch contact data behind the vacancy or resume links of a table."""
    _check_output(args)
    settings = _settings(args)
    clock = Clock()
    api = _build_api(settings, clock)
    header = VACANCY_LINK_HEADER if args.kind == "vacancy" else RESUME_LINK_HEADER
    records = records_from_rows(_read_link_table(args, settings), header)
    common = dict(clock=clock, deadline=_deadline(settings, clock),
                  batch_size=settings.batch_size, throttle=settings.throttle)
    if args.kind == "vacancy":
        result = run_vacancy_contacts(api, records, vacancy_limit=args.vacancy_limit, **common)
        tab = VACANCY_CONTACTS_TAB
    else:
        result = run_resume_contacts(api, records, open_contacts=args.open_contacts, **common)
        tab = RESUME_CONTACTS_TAB
    _emit(args, settings, contact_table(result.items, kind=args.kind), tab)  # type: ignore[arg-type]
    _report(result)


def cmd_limits(args: argparse.Namespace) -> None:
    """Print the account's paid API action balances as JSON."""
    settings = _settings(args)
    api = _build_api(settings, Clock())
    print(json.dumps(api_limits(api, args.manager_id), ensure_ascii=False, indent=2))


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="YAML settings file (default: hhflow.yaml if present)")
    parser.add_argument("--token", help="hh.ru OAuth access token (default: $HH_ACCESS_TOKEN)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")


def _add_output(parser: argparse.ArgumentParser, default_out: str) -> None:
    parser.add_argument("--out", default=default_out, help="Output CSV path")
    parser.add_argument("--write-sheet", action="store_true", help="Write results into the --sheet spreadsheet")


def _add_io(parser: argparse.ArgumentParser, default_out: str) -> None:
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--companies", help="CSV, TXT or Excel file with companies in the first column")
    source.add_argument("--sheet", help="Google Sheet URL with companies in column A")
    _add_output(parser, default_out)


def _add_search(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--text", default="", help="Free-text query passed to hh.ru as is")
    parser.add_argument("--total-limit", type=int, default=100, dest="total_limit",
                        help="Maximum number of results")
    parser.add_argument("--per-company-limit", type=int, dest="per_company_limit",
                        help="Maximum number of results per company")
    parser.add_argument("--preview", action="store_true",
                        help=f"Print the first {PREVIEW_LIMIT} results instead of writing them")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hhflow", description="Company-driven search on hh.ru")
    subparsers = parser.add_subparsers(dest="command", required=True)

    resumes_cmd = subparsers.add_parser("resumes", help="Search resumes by company")
    _add_common(resumes_cmd)
    _add_io(resumes_cmd, "resumes.csv")
    _add_search(resumes_cmd)
    resumes_cmd.set_defaults(func=cmd_resumes)

    vacancies_cmd = subparsers.add_parser("vacancies", help="Search vacancies by company")
    _add_common(vacancies_cmd)
    _add_io(vacancies_cmd, "vacancies.csv")
    _add_search(vacancies_cmd)
    vacancies_cmd.set_defaults(func=cmd_vacancies)

    validate_cmd = subparsers.add_parser("validate", help="Match company names to hh.ru employers")
    _add_common(validate_cmd)
    _add_io(validate_cmd, "validation.csv")
    validate_cmd.set_defaults(func=cmd_validate)

    contacts_cmd = subparsers.add_parser("contacts", help="Fetch contacts behind vacancy or resume links")
    _add_common(contacts_cmd)
    contacts_cmd.add_argument("kind", choices=["vacancy", "resume"], help="Kind of links in the table")
    source = contacts_cmd.add_mutually_exclusive_group(required=True)
    source.add_argument("--links", help="CSV or Excel file with a header row and a link column")
    source.add_argument("--sheet", help="Google Sheet URL holding the link table")
    contacts_cmd.add_argument("--tab", help="Sheet tab to read (default: Vacancies or Resume)")
    contacts_cmd.add_argument("--vacancy-limit", type=int, default=3, dest="vacancy_limit",
                              help="Vacancies taken per employer link, 1 to 20")
    contacts_cmd.add_argument("--no-open-contacts", action="store_false", dest="open_contacts",
                              help="Do not spend paid actions on hidden resume contacts")
    _add_output(contacts_cmd, "contacts.csv")
    contacts_cmd.set_defaults(func=cmd_contacts)

    limits_cmd = subparsers.add_parser("limits", help="Show paid API action balances")
    _add_common(limits_cmd)
    limits_cmd.add_argument("--manager-id", dest="manager_id", help="Also report this manager's balance")
    limits_cmd.set_defaults(func=cmd_limits)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )
    try:
        args.func(args)
    except HHFlowError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
