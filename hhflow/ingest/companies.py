"""
Company list and table loading.

`load_table` reads every row of an uploaded table; company names come
from its first column.  CSV and plain-text files are read with the `csv`
module; Excel workbooks go through pandas.  For company lists a first
row that looks like a column title (for example ``Company name``) is
skipped, and blanks and repeated names are dropped while keeping the
original order.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterable, List

import pandas as pd

from ..errors import ValidationError

logger = logging.getLogger(__name__)

HEADER_NAMES = {
    "company",
    "companies",
    "company name",
    "name",
    "компания",
    "компании",
    "название",
    "название компании",
}


def unique_names(values: Iterable[object], *, skip_header: bool = False) -> List[str]:
    names: List[str] = []
    seen = set()
    for index, value in enumerate(values):
        if value is None or (isinstance(value, float) and pd.isna(value)):
            continue
        name = str(value).strip()
        if not name:
            continue
        if index == 0 and (skip_header or name.lower() in HEADER_NAMES):
            continue
        if name not in seen:
            seen.add(name)
            names.append(name)
    return names


def _rows_csv(path: Path) -> List[List[str]]:
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        return [list(row) for row in csv.reader(f)]


def _rows_excel(path: Path) -> List[List[str]]:
    frame = pd.read_excel(path, header=None, dtype=str)
    return [["" if pd.isna(v) else str(v) for v in row] for row in frame.itertuples(index=False)]


def load_table(path: str) -> List[List[str]]:
    """Read all rows of a ``.csv``, ``.txt``, ``.xlsx`` or ``.xls`` file as strings.

    Raises:
        ValidationError: The file is missing or has an unsupported
            extension.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise ValidationError(f"File not found: {path}")
    suffix = file_path.suffix.lower()
    if suffix in (".csv", ".txt"):
        return _rows_csv(file_path)
    if suffix in (".xlsx", ".xls"):
        return _rows_excel(file_path)
    raise ValidationError(f"Unsupported file type: {suffix or path}")


def load_companies(path: str) -> List[str]:
    """Read company names from the first column of a table file.

    Raises:
        ValidationError: The file is missing, has an unsupported
            extension or holds no names.
    """
    values = [row[0] if row else "" for row in load_table(path)]
    companies = unique_names(values)
    if not companies:
        raise ValidationError(f"No companies found in {path}")
    logger.info("Loaded %d companies from %s", len(companies), path)
    return companies
