"""
hhflow: company-driven candidate and vacancy search on hh.ru.

The package turns a list of company names into a table of matching
resumes or vacancies.  Each submodule implements one step:

1. **ingest** – read the company list (file or Google Sheet) and talk
   to the hh.ru API through a thin adapter.
2. **normalize** – company name normalisation for fuzzy equality, the
   dataclasses of the data model and the fixed output table schemas.
3. **collect** – the search run itself: a rate-limited fetcher,
   paginated collection per company, the exact-match and recency
   filter, and throttled batch enrichment, all under one wall-clock
   deadline.
4. **cli** – command line entry point wiring the above together and
   writing results to CSV or back into a spreadsheet.

A run is sequential by design; parallel requests would only trip the
platform's rate limits sooner.
"""

__version__ = "0.1.0"
