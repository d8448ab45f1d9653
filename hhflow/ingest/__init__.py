"""
Inputs and provider adapters for hhflow.

`hh_api` wraps the hh.ru REST endpoints and parses their records into
dataclasses.  `companies` reads company lists and other tables from
uploaded files, `links` turns tables of vacancy or resume links into
records, and `sheets` reads from, and writes result tables to, Google
Sheets.
"""

from .companies import load_companies, load_table  # noqa: F401
from .hh_api import HHApi, api_limits  # noqa: F401
from .links import records_from_rows  # noqa: F401
