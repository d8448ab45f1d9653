"""
Time collaborators for the collection stage.

All waiting and deadline checks go through a `Clock` so the pipeline
can be driven by a fake clock in tests.  A `Deadline` is the single
wall-clock budget of a run; every phase receives the same instance.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Optional


class Clock:
    """Real clock backed by the `time` module."""

    def monotonic(self) -> float:
        return time.monotonic()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class Deadline:
    """A fixed end instant measured on a clock's monotonic timer."""

    def __init__(self, clock: Clock, budget: float) -> None:
        self.clock = clock
        self.budget = max(0.0, float(budget))
        self.started = clock.monotonic()
        self.ends_at = self.started + self.budget

    @classmethod
    def from_limits(cls, clock: Clock, max_duration: float, safety_margin: float) -> "Deadline":
        """Budget a run for a caller that gives up after `max_duration` seconds."""
        return cls(clock, max_duration - safety_margin)

    def remaining(self) -> float:
        return max(0.0, self.ends_at - self.clock.monotonic())

    def elapsed(self) -> float:
        return self.clock.monotonic() - self.started

    def expired(self) -> bool:
        return self.clock.monotonic() >= self.ends_at

    def allows(self, seconds: float) -> bool:
        """True if waiting `seconds` would still end before the deadline."""
        return self.clock.monotonic() + seconds < self.ends_at


def sleep_within(clock: Clock, seconds: float, deadline: Optional[Deadline]) -> bool:
    """Sleep unless the wait would cross the deadline.

    Returns:
        ``True`` if the sleep happened, ``False`` if it was skipped.
    """
    if deadline is not None and not deadline.allows(seconds):
        return False
    clock.sleep(seconds)
    return True
