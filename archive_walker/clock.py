"""
Clock abstractions for deadline handling.

Notes
-----
Cancellation contexts must not read time directly. Callers provide a clock.
This keeps timeout behavior deterministic under test.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol


class MonotonicClock(Protocol):
    """A source of monotonic time, in seconds."""

    def now(self) -> float:
        """
        Return the current monotonic time.

        Returns
        -------
        float
            Seconds from an arbitrary, fixed reference point.
        """
        ...


@dataclass(frozen=True, slots=True)
class SystemMonotonicClock:
    """Clock backed by ``time.monotonic``."""

    def now(self) -> float:
        """
        Return the current system monotonic time.

        Returns
        -------
        float
            Value of ``time.monotonic()``.
        """
        return time.monotonic()


@dataclass(slots=True)
class ManualClock:
    """Clock that only moves when told to (useful for tests)."""

    current: float = 0.0

    def now(self) -> float:
        """Return the current manual time."""
        return self.current

    def advance(self, seconds: float) -> None:
        """
        Move the clock forward.

        Raises
        ------
        ValueError
            If ``seconds`` is negative.
        """
        if seconds < 0:
            raise ValueError("ManualClock cannot move backwards.")
        self.current += seconds
