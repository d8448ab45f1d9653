"""Tests for the rate-limited fetcher."""

from __future__ import annotations

import pytest  # type: ignore
import requests

from hhflow.collect.clock import Deadline
from hhflow.collect.fetcher import RateLimitedFetcher
from hhflow.errors import HTTPStatusError, MalformedResponseError, NetworkError, RateLimitedError

from conftest import FakeResponse, FakeSession

URL = "https://api.hh.ru/resumes"


def _sequence(*results):
    pending = list(results)

    def handler(url, params):
        return pending.pop(0)

    return handler


def test_success_sends_auth_and_timeout(clock) -> None:
    session = FakeSession(_sequence({"items": [], "found": 0}))
    fetcher = RateLimitedFetcher(session, clock=clock, access_token="abc", timeout=15)
    assert fetcher.get_json(URL, {"page": "0"}) == {"items": [], "found": 0}
    call = session.calls[0]
    assert call["headers"]["Authorization"] == "Bearer abc"
    assert call["headers"]["HH-User-Agent"]
    assert call["timeout"] == 15
    assert call["params"] == {"page": "0"}


def test_retries_429_with_linear_backoff(clock) -> None:
    session = FakeSession(_sequence(FakeResponse(429), FakeResponse(429), {"ok": True}))
    fetcher = RateLimitedFetcher(session, clock=clock, max_retries=2, backoff=1.0)
    assert fetcher.get_json(URL) == {"ok": True}
    assert clock.sleeps == [1.0, 2.0]
    assert len(session.calls) == 3


def test_rate_limited_after_retries_exhausted(clock) -> None:
    session = FakeSession(lambda url, params: FakeResponse(429))
    fetcher = RateLimitedFetcher(session, clock=clock, max_retries=2)
    with pytest.raises(RateLimitedError):
        fetcher.get_json(URL)
    assert len(session.calls) == 3


def test_timeout_is_retried_then_network_error(clock) -> None:
    session = FakeSession(lambda url, params: requests.Timeout("slow"))
    fetcher = RateLimitedFetcher(session, clock=clock, max_retries=2)
    with pytest.raises(NetworkError):
        fetcher.get_json(URL)
    assert len(session.calls) == 3
    assert clock.sleeps == [1.0, 2.0]


def test_connection_error_recovers(clock) -> None:
    session = FakeSession(_sequence(requests.ConnectionError("reset"), {"ok": 1}))
    fetcher = RateLimitedFetcher(session, clock=clock)
    assert fetcher.get_json(URL) == {"ok": 1}


def test_other_http_errors_are_not_retried(clock) -> None:
    session = FakeSession(lambda url, params: FakeResponse(403, text="forbidden"))
    fetcher = RateLimitedFetcher(session, clock=clock)
    with pytest.raises(HTTPStatusError) as info:
        fetcher.get_json(URL)
    assert info.value.status == 403
    assert len(session.calls) == 1
    assert clock.sleeps == []


def test_malformed_body(clock) -> None:
    session = FakeSession(_sequence(FakeResponse(200, None), FakeResponse(200, [1, 2])))
    fetcher = RateLimitedFetcher(session, clock=clock)
    with pytest.raises(MalformedResponseError):
        fetcher.get_json(URL)
    with pytest.raises(MalformedResponseError):
        fetcher.get_json(URL)


def test_retry_wait_not_taken_past_deadline(clock) -> None:
    session = FakeSession(lambda url, params: FakeResponse(429))
    fetcher = RateLimitedFetcher(session, clock=clock, max_retries=2, backoff=1.0)
    deadline = Deadline(clock, 1.5)
    with pytest.raises(RateLimitedError):
        fetcher.get_json(URL, deadline=deadline)
    # first wait (1s) fits, the second (2s) would cross the deadline
    assert clock.sleeps == [1.0]
    assert len(session.calls) == 2


def test_attempt_timeout_capped_by_deadline(clock) -> None:
    session = FakeSession(_sequence({"ok": True}))
    fetcher = RateLimitedFetcher(session, clock=clock, timeout=15)
    deadline = Deadline(clock, 50)
    clock.advance(48)
    assert fetcher.get_json(URL, deadline=deadline) == {"ok": True}
    assert session.calls[0]["timeout"] == pytest.approx(2.0)


def test_no_request_once_deadline_passed(clock) -> None:
    session = FakeSession(_sequence({"ok": True}))
    fetcher = RateLimitedFetcher(session, clock=clock)
    deadline = Deadline(clock, 5)
    clock.advance(5)
    with pytest.raises(NetworkError):
        fetcher.get_json(URL, deadline=deadline)
    assert session.calls == []
