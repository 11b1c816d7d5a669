"""
Clocks - Source of "now" for round deadlines.

Deadlines are unix timestamps in whole seconds. Expiry is a predicate
evaluated lazily on the next bid/finalize, never a scheduled event, so
the clock only has to answer now().

Usage:
    clock = ManualClock(start=1_700_000_000)
    clock.advance(60)   # one minute later
    clock.now()         # 1_700_000_060
"""

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int:
        ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """
    Deterministic clock that moves only when told to.

    Used by tests, the CLI demos, and any caller that replays a
    recorded sequence of calls.
    """

    def __init__(self, start: int = 1_700_000_000):
        if start < 0:
            raise ValueError("Clock start must be non-negative")
        self._current = start

    def now(self) -> int:
        return self._current

    def advance(self, seconds: int) -> int:
        """Move forward by `seconds` and return the new time."""
        if seconds < 0:
            raise ValueError("Cannot advance by negative delta")
        self._current += seconds
        return self._current

    def set(self, timestamp: int) -> None:
        if timestamp < self._current:
            raise ValueError(f"Cannot move backwards: {timestamp} < {self._current}")
        self._current = timestamp
