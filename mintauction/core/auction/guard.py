"""Reentrancy guard for the auction's public mutating operations."""

from mintauction.core.errors import ReentrantCall


class ReentrancyGuard:
    """
    Mutual-exclusion flag held for the duration of a guarded call.

    A nested entry (e.g. a receive hook calling back into the auction)
    fails immediately instead of waiting. The flag is cleared on every
    exit path, including exceptions.

    Usage:
        with self.guard:
            ...
    """

    def __init__(self):
        self._entered = False

    @property
    def locked(self) -> bool:
        return self._entered

    def __enter__(self) -> "ReentrancyGuard":
        if self._entered:
            raise ReentrantCall("Reentrant call refused")
        self._entered = True
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self._entered = False
        return False
