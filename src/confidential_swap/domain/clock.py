"""Clock oracle protocol.

The ledger runtime owns time; the core only consumes it. Anything that
returns a positive unix timestamp that never goes backwards satisfies the
protocol, so tests can pin time with FixedClock.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Source of the current unix timestamp (seconds)."""

    def now(self) -> int:
        ...


class SystemClock:
    """Wall clock that never reports a value lower than one it already returned."""

    def __init__(self) -> None:
        self._last = 0

    def now(self) -> int:
        self._last = max(self._last, int(time.time()))
        return self._last


class FixedClock:
    """Clock pinned to a timestamp; advance() moves it forward."""

    def __init__(self, timestamp: int) -> None:
        self._timestamp = timestamp

    def now(self) -> int:
        return self._timestamp

    def advance(self, seconds: int) -> None:
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        self._timestamp += seconds
