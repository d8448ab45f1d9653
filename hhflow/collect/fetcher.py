"""
Rate-limited HTTP fetcher.

`RateLimitedFetcher` wraps a `requests.Session` (or anything with the
same ``get`` signature) and adds the platform etiquette the rest of the
pipeline relies on:

* a hard timeout on every attempt, never reaching past the run's
  deadline;
* up to ``max_retries`` extra attempts on HTTP 429, connection errors
  and timeouts, waiting ``attempt * backoff`` seconds before each one;
* typed failures (`RateLimitedError`, `NetworkError`,
  `HTTPStatusError`, `MalformedResponseError`) once retries run out.

Only GET requests are issued.  Writes are never retried.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import requests

from ..errors import (
    HTTPStatusError,
    MalformedResponseError,
    NetworkError,
    RateLimitedError,
)
from .clock import Clock, Deadline, sleep_within

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_RETRIES = 2
DEFAULT_BACKOFF = 1.0
DEFAULT_USER_AGENT = "hhflow/0.1 (api-test-agent)"


class RateLimitedFetcher:
    """GET JSON documents with timeout, retry and linear backoff."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        clock: Optional[Clock] = None,
        access_token: Optional[str] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff: float = DEFAULT_BACKOFF,
    ) -> None:
        self.session = session if session is not None else requests.Session()
        self.clock = clock or Clock()
        self.access_token = access_token
        self.user_agent = user_agent
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff = backoff

    def _headers(self, extra: Optional[Mapping[str, str]]) -> Dict[str, str]:
        headers = {
            "User-Agent": self.user_agent,
            "HH-User-Agent": self.user_agent,
            "Accept": "application/json",
        }
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        if extra:
            headers.update(extra)
        return headers

    def _timeout(self, url: str, deadline: Optional[Deadline]) -> float:
        """Per-attempt timeout, cut down to what is left of the deadline."""
        if deadline is None:
            return self.timeout
        left = deadline.remaining()
        if left <= 0:
            raise NetworkError(f"No time left to request {url}", url=url)
        return min(self.timeout, left)

    def _attempt(self, url: str, params: Optional[Mapping[str, Any]], headers: Dict[str, str],
                 timeout: float) -> Any:
        try:
            response = self.session.get(url, params=params, headers=headers, timeout=timeout)
        except requests.Timeout as exc:
            raise NetworkError(f"Timed out after {timeout:g}s: {url}", url=url) from exc
        except requests.RequestException as exc:
            raise NetworkError(f"Request to {url} failed: {exc}", url=url) from exc

        if response.status_code == 429:
            raise RateLimitedError(f"Rate limited by {url}", url=url)
        if response.status_code >= 400:
            raise HTTPStatusError(
                f"HTTP {response.status_code} from {url}: {response.text[:200]}",
                url=url,
                status=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponseError(f"Response from {url} is not JSON", url=url) from exc
        if not isinstance(data, dict):
            raise MalformedResponseError(f"Expected a JSON object from {url}", url=url)
        return data

    def get_json(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        headers: Optional[Mapping[str, str]] = None,
        deadline: Optional[Deadline] = None,
    ) -> Dict[str, Any]:
        """Fetch `url` and return its decoded JSON object.

        Args:
            url: Absolute URL.
            params: Query parameters.
            headers: Extra headers merged over the defaults.
            deadline: When given, each attempt times out no later than
                the deadline, and a retry wait that would cross it is
                not taken; the last error is raised instead.

        Raises:
            RateLimitedError: HTTP 429 on every attempt.
            NetworkError: Connection failure or timeout on every attempt,
                or no time left before the deadline.
            HTTPStatusError: Any other HTTP error (not retried).
            MalformedResponseError: Body is not a JSON object (not retried).
        """
        merged = self._headers(headers)
        attempt = 0
        while True:
            timeout = self._timeout(url, deadline)
            try:
                return self._attempt(url, params, merged, timeout)
            except (RateLimitedError, NetworkError) as exc:
                if attempt >= self.max_retries:
                    logger.warning("Giving up on %s after %d attempts: %s", url, attempt + 1, exc)
                    raise
                attempt += 1
                wait = attempt * self.backoff
                if not sleep_within(self.clock, wait, deadline):
                    logger.info("No time left to retry %s", url)
                    raise
                logger.info("%s; retry %d/%d in %.1fs", exc, attempt, self.max_retries, wait)
