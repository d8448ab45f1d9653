"""
Google Sheets input and output.

Companies can be read from column A of a spreadsheet, link tables from
a named tab, and results can be written back into a named tab.
Authentication uses a service account; its key is given either as a
path to the JSON file or as the JSON text itself (the form usually
stored in ``GOOGLE_APPLICATION_CREDENTIALS`` on hosted deployments).
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import List, Optional, Sequence

import gspread

from ..errors import ConfigError, SheetError, ValidationError
from .companies import unique_names

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

RESUME_TAB = "Resume_output"
VACANCY_TAB = "Vacancies_output"
VALIDATION_TAB = "Company_Validation"
VACANCY_CONTACTS_TAB = "Vacancy_contacts"
RESUME_CONTACTS_TAB = "Resume_contacts"

# Input tabs of link tables.
VACANCY_LINKS_TAB = "Vacancies"
RESUME_LINKS_TAB = "Resume"

_SHEET_ID_RE = re.compile(r"/d/([a-zA-Z0-9-_]+)")


def extract_sheet_id(url: str) -> str:
    match = _SHEET_ID_RE.search(url or "")
    if not match:
        raise ValidationError(f"Invalid Google Sheet URL: {url}")
    return match.group(1)


def authorize(credentials: Optional[str]) -> gspread.Client:
    """Build a gspread client from a key file path or inline JSON."""
    if not credentials:
        raise ConfigError("GOOGLE_APPLICATION_CREDENTIALS is not set")
    if os.path.exists(credentials):
        return gspread.service_account(filename=credentials, scopes=SCOPES)
    try:
        info = json.loads(credentials)
    except ValueError as exc:
        raise ConfigError(f"Failed to parse GOOGLE_APPLICATION_CREDENTIALS: {exc}") from exc
    return gspread.service_account_from_dict(info, scopes=SCOPES)


class SheetClient:
    """Reads company lists from and writes result tables to spreadsheets."""

    def __init__(self, client: gspread.Client) -> None:
        self.client = client

    @classmethod
    def from_credentials(cls, credentials: Optional[str]) -> "SheetClient":
        return cls(authorize(credentials))

    def _open(self, url: str) -> gspread.Spreadsheet:
        sheet_id = extract_sheet_id(url)
        try:
            return self.client.open_by_key(sheet_id)
        except (gspread.exceptions.SpreadsheetNotFound, gspread.exceptions.APIError) as exc:
            raise SheetError(f"Cannot open spreadsheet {sheet_id}: {exc}") from exc

    def read_companies(self, url: str) -> List[str]:
        """Return the unique, non-blank names in column A, header excluded."""
        spreadsheet = self._open(url)
        try:
            values = spreadsheet.sheet1.col_values(1)
        except gspread.exceptions.APIError as exc:
            raise SheetError(f"Failed to fetch companies from sheet: {exc}") from exc
        companies = unique_names(values, skip_header=True)
        if not companies:
            raise ValidationError("No companies found in the sheet")
        logger.info("Fetched %d companies from sheet", len(companies))
        return companies

    def read_table(self, url: str, tab: str) -> List[List[str]]:
        """Return every row of `tab`, header included."""
        spreadsheet = self._open(url)
        try:
            rows = spreadsheet.worksheet(tab).get_all_values()
        except gspread.exceptions.WorksheetNotFound as exc:
            raise ValidationError(f"Sheet tab {tab!r} not found") from exc
        except gspread.exceptions.APIError as exc:
            raise SheetError(f"Failed to read sheet tab {tab}: {exc}") from exc
        logger.info("Fetched %d rows from tab %s", len(rows), tab)
        return rows

    def write_rows(self, url: str, tab: str, rows: Sequence[Sequence[str]]) -> None:
        """Replace the contents of `tab` with `rows`, creating the tab if needed."""
        spreadsheet = self._open(url)
        width = max((len(r) for r in rows), default=1)
        try:
            try:
                worksheet = spreadsheet.worksheet(tab)
            except gspread.exceptions.WorksheetNotFound:
                logger.info("Creating sheet tab %s", tab)
                worksheet = spreadsheet.add_worksheet(title=tab, rows=max(len(rows), 1), cols=width)
            worksheet.clear()
            worksheet.update(range_name="A1", values=[list(r) for r in rows], value_input_option="RAW")
        except gspread.exceptions.APIError as exc:
            raise SheetError(f"Failed to write to sheet tab {tab}: {exc}") from exc
        logger.info("Wrote %d rows to %s", max(len(rows) - 1, 0), tab)
