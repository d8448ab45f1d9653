"""Shared fakes for the hhflow test suite.

`FakeClock` never really sleeps; it advances its own timer instead, so
backoff and throttle delays can be asserted exactly.  `FakeSession`
stands in for `requests.Session` and answers each GET from a routing
function, recording every call so tests can count requests.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import pytest  # type: ignore

from hhflow.collect.clock import Clock, Deadline
from hhflow.collect.fetcher import RateLimitedFetcher
from hhflow.ingest.hh_api import HHApi

RUN_START = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock(Clock):
    def __init__(self, start: datetime = RUN_START) -> None:
        self.t = 0.0
        self.start = start
        self.sleeps: List[float] = []

    def monotonic(self) -> float:
        return self.t

    def now(self) -> datetime:
        return self.start

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.t += seconds

    def advance(self, seconds: float) -> None:
        self.t += seconds


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Routes ``get`` calls to `handler(url, params)`."""

    def __init__(self, handler: Callable[[str, Dict[str, Any]], Any]) -> None:
        self.handler = handler
        self.calls: List[Dict[str, Any]] = []

    def get(self, url: str, params: Optional[Dict[str, Any]] = None,
            headers: Optional[Dict[str, str]] = None, timeout: Optional[float] = None) -> Any:
        self.calls.append({"url": url, "params": dict(params or {}), "headers": headers, "timeout": timeout})
        result = self.handler(url, dict(params or {}))
        if isinstance(result, Exception):
            raise result
        if isinstance(result, FakeResponse):
            return result
        return FakeResponse(200, result)

    def urls(self, fragment: str = "") -> List[str]:
        return [c["url"] for c in self.calls if fragment in c["url"]]


def resume(rid: str, company: str, end: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    """Raw resume record as returned by the search endpoint."""
    record: Dict[str, Any] = {
        "id": rid,
        "title": extra.pop("title", f"Title {rid}"),
        "experience": [{"company": company, "position": "Manager", "start": "2020-01-01", "end": end}],
    }
    record.update(extra)
    return record


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_api(clock: FakeClock):
    """Build an `HHApi` over a `FakeSession` using the given handler."""

    def _make(handler: Callable[[str, Dict[str, Any]], Any], **fetcher_kwargs: Any):
        session = FakeSession(handler)
        fetcher = RateLimitedFetcher(session, clock=clock, access_token="token", **fetcher_kwargs)
        return HHApi(fetcher), session

    return _make


@pytest.fixture
def deadline(clock: FakeClock) -> Deadline:
    return Deadline(clock, 50.0)
