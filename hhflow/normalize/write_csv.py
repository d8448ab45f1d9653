"""
Tabular output for search results.

Each result kind has one fixed column schema.  `to_table` turns a list
of items into a header row plus one row per item; missing values become
``"N/A"`` so every row has every column.  `render_csv` and `write_csv`
serialise such a table with the `csv` module, which quotes any field
containing a comma, a quote or a newline and doubles inner quotes.
"""

from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from .schema import ContactRecord, EmployerMatch, Item, ResumeItem, VacancyItem

PLACEHOLDER = "N/A"

RESUME_HEADERS = [
    "title",
    "last_company",
    "last_position",
    "last_job_description",
    "last_job_period",
    "job_search_status",
    "age",
    "salary",
    "updated_at",
    "area",
    "total_experience",
    "link",
]

VACANCY_HEADERS = [
    "company",
    "vacancy",
    "employer",
    "salary_from",
    "salary_to",
    "currency",
    "contact_name",
    "contact_email",
    "contact_phone",
    "contact_comment",
    "link",
]

VALIDATION_HEADERS = ["original_name", "hh_name", "hh_id", "url", "found"]

VACANCY_CONTACT_HEADERS = [
    "company",
    "inn",
    "vacancy",
    "full_name",
    "email",
    "phone",
    "phone_comment",
    "link",
]

RESUME_CONTACT_HEADERS = ["full_name", "title", "phone", "email", "link"]


def _cell(value: object) -> str:
    if value is None or value == "":
        return PLACEHOLDER
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_date(value: Optional[str]) -> str:
    """Render an ISO date (or ``YYYY-MM``) as ``DD.MM.YYYY``."""
    if not value:
        return PLACEHOLDER
    for fmt, out in (("%Y-%m-%d", "%d.%m.%Y"), ("%Y-%m", "%m.%Y")):
        try:
            return datetime.strptime(value[:10], fmt).strftime(out)
        except ValueError:
            continue
    return value


def format_months(months: Optional[int]) -> str:
    if not months:
        return PLACEHOLDER
    years, rest = divmod(int(months), 12)
    return f"{years} years {rest} months"


def resume_row(item: ResumeItem) -> List[str]:
    last = item.last_job
    salary = None
    if item.salary_amount is not None:
        salary = f"{_cell(item.salary_amount)} {item.salary_currency or ''}".strip()
    period = None
    if last is not None:
        # An open-ended job is rendered with an open end.
        end = format_date(last.end) if last.end else "present"
        period = f"{format_date(last.start)} - {end}"
    return [
        _cell(item.title),
        _cell(last.company if last else None),
        _cell(last.position if last else None),
        _cell(item.last_job_description),
        _cell(period),
        _cell(item.status),
        _cell(item.age),
        _cell(salary),
        _cell(item.updated_at),
        _cell(item.area),
        format_months(item.total_experience_months),
        item.link,
    ]


def vacancy_row(item: VacancyItem) -> List[str]:
    return [
        _cell(item.matched_company),
        _cell(item.name),
        _cell(item.employer_name),
        _cell(item.salary_from),
        _cell(item.salary_to),
        _cell(item.salary_currency),
        _cell(item.contact_name),
        _cell(item.contact_email),
        _cell(item.contact_phone),
        _cell(item.contact_comment),
        item.link,
    ]


def validation_row(match: EmployerMatch) -> List[str]:
    if match.error:
        found = "Error"
    else:
        found = "Yes" if match.found else "No"
    return [
        match.original_name,
        match.hh_name or ("Not found" if not match.found else PLACEHOLDER),
        _cell(match.hh_id),
        _cell(match.url),
        found,
    ]


def to_table(items: Sequence[Item], *, kind: Optional[str] = None) -> List[List[str]]:
    """Return header plus rows for `items`.

    Args:
        items: Resume or vacancy items, all of one kind.
        kind: ``"resume"`` or ``"vacancy"``.  Needed only to pick the
            header for an empty list; defaults to ``"resume"``.
    """
    if kind is None:
        kind = "vacancy" if items and isinstance(items[0], VacancyItem) else "resume"
    if kind == "vacancy":
        return [list(VACANCY_HEADERS)] + [vacancy_row(i) for i in items]  # type: ignore[arg-type]
    if kind == "resume":
        return [list(RESUME_HEADERS)] + [resume_row(i) for i in items]  # type: ignore[arg-type]
    raise ValueError(f"Unknown table kind: {kind}")


def validation_table(matches: Iterable[EmployerMatch]) -> List[List[str]]:
    return [list(VALIDATION_HEADERS)] + [validation_row(m) for m in matches]


def vacancy_contact_row(record: ContactRecord) -> List[str]:
    return [
        _cell(record.company),
        _cell(record.inn),
        _cell(record.title),
        _cell(record.full_name),
        _cell(record.email),
        _cell(record.phone),
        _cell(record.phone_comment),
        record.link,
    ]


def resume_contact_row(record: ContactRecord) -> List[str]:
    return [
        _cell(record.full_name),
        _cell(record.title),
        _cell(record.phone),
        _cell(record.email),
        record.link,
    ]


def contact_table(records: Iterable[ContactRecord], *, kind: str = "vacancy") -> List[List[str]]:
    """Header plus rows for link-table contacts of ``"vacancy"`` or ``"resume"`` kind."""
    if kind == "vacancy":
        return [list(VACANCY_CONTACT_HEADERS)] + [vacancy_contact_row(r) for r in records]
    if kind == "resume":
        return [list(RESUME_CONTACT_HEADERS)] + [resume_contact_row(r) for r in records]
    raise ValueError(f"Unknown contact table kind: {kind}")


def render_csv(rows: Iterable[Sequence[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()


def write_csv(rows: Iterable[Sequence[str]], path: str) -> None:
    """Write a table to `path` as UTF-8 CSV, overwriting any existing file."""
    with open(path, "w", newline="", encoding="utf-8") as csvfile:
        writer = csv.writer(csvfile)
        writer.writerows(rows)
