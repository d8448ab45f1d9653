"""
Link tables.

A link table is a sheet or file whose header row names at least a link
column: ``Link to vacancy`` for vacancy contacts, ``Link to resume`` for
resume contacts.  ``Company name`` and ``INN`` are optional and are
copied through to the output.  Links are deduplicated in first-seen
order, so a vacancy listed twice is only requested once.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Sequence
from urllib.parse import parse_qs, urlparse

from ..errors import ValidationError
from ..normalize.schema import ContactRecord

logger = logging.getLogger(__name__)

VACANCY_LINK_HEADER = "Link to vacancy"
RESUME_LINK_HEADER = "Link to resume"
COMPANY_HEADER = "Company name"
INN_HEADER = "INN"

_VACANCY_PATH_RE = re.compile(r"/vacancy/(\d+)")
_EMPLOYER_PATH_RE = re.compile(r"/employer/(\d+)")
_RESUME_PATH_RE = re.compile(r"/resume/([0-9a-zA-Z]+)")


def vacancy_id_from_link(link: str) -> Optional[str]:
    """``https://hh.ru/vacancy/123?from=x`` -> ``"123"``."""
    match = _VACANCY_PATH_RE.search(urlparse(link.strip()).path)
    return match.group(1) if match else None


def employer_id_from_link(link: str) -> Optional[str]:
    """Employer id of an employer page or an employer vacancy search page.

    Both ``https://hh.ru/employer/42`` and
    ``https://hh.ru/search/vacancy?employer_id=42`` give ``"42"``.
    """
    parsed = urlparse(link.strip())
    match = _EMPLOYER_PATH_RE.search(parsed.path)
    if match:
        return match.group(1)
    if "/search/vacancy" in parsed.path:
        ids = parse_qs(parsed.query).get("employer_id")
        if ids and ids[0].isdigit():
            return ids[0]
    return None


def resume_id_from_link(link: str) -> Optional[str]:
    match = _RESUME_PATH_RE.search(urlparse(link.strip()).path)
    return match.group(1) if match else None


def _column(header: Sequence[str], name: str) -> Optional[int]:
    wanted = name.lower()
    for index, title in enumerate(header):
        if str(title).strip().lower() == wanted:
            return index
    return None


def records_from_rows(rows: Sequence[Sequence[str]], link_header: str) -> List[ContactRecord]:
    """Turn a table with a header row into unique `ContactRecord`s.

    Raises:
        ValidationError: The table is empty, has no `link_header`
            column or holds no links.
    """
    if not rows:
        raise ValidationError("The link table is empty")
    header = rows[0]
    link_col = _column(header, link_header)
    if link_col is None:
        raise ValidationError(f"Column {link_header!r} not found in header: {list(header)}")
    company_col = _column(header, COMPANY_HEADER)
    inn_col = _column(header, INN_HEADER)

    def cell(row: Sequence[str], index: Optional[int]) -> Optional[str]:
        if index is None or index >= len(row):
            return None
        value = str(row[index]).strip()
        return value or None

    records: Dict[str, ContactRecord] = {}
    for row in rows[1:]:
        link = cell(row, link_col)
        if not link or link in records:
            continue
        records[link] = ContactRecord(link=link, company=cell(row, company_col), inn=cell(row, inn_col))
    if not records:
        raise ValidationError(f"No links found in column {link_header!r}")
    logger.info("Deduplicated links: %d", len(records))
    return list(records.values())
