"""
Exception hierarchy for hhflow.

Setup-phase problems (bad input, bad configuration, a run that cannot
even start) propagate to the caller.  Fetch errors are raised by the
rate-limited fetcher and are normally caught at the page or item scope
so that one failure only skips that page or item.
"""

from __future__ import annotations

from typing import Optional


class HHFlowError(Exception):
    """Base class for all errors raised by hhflow."""


class ValidationError(HHFlowError):
    """Raised when the search input is unusable before any network call."""


class ConfigError(HHFlowError):
    """Raised when settings are missing or malformed."""


class SearchError(HHFlowError):
    """Raised when a run fails on its very first upstream call."""


class FetchError(HHFlowError):
    """A request to the platform failed after all retries."""

    def __init__(self, message: str, *, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class RateLimitedError(FetchError):
    """The platform kept answering HTTP 429."""


class NetworkError(FetchError):
    """Connection failure or per-attempt timeout."""


class HTTPStatusError(FetchError):
    """Any non-429 HTTP error status."""

    def __init__(self, message: str, *, url: str = "", status: Optional[int] = None) -> None:
        super().__init__(message, url=url)
        self.status = status


class MalformedResponseError(FetchError):
    """The response body was not the JSON object we expected."""


class SheetError(HHFlowError):
    """Reading from or writing to a Google Sheet failed."""
