"""
Normalization subsystem for hhflow.

Holds the company-name normaliser used by the exact-match filter, the
dataclasses describing search hits, and the fixed table schemas used
for CSV and spreadsheet output.
"""

from .names import normalize_company_name  # noqa: F401
from .schema import ResumeItem, SearchQuery, SearchResult, VacancyItem  # noqa: F401
from .write_csv import contact_table, render_csv, to_table, write_csv  # noqa: F401
