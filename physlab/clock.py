from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Monotonic clock abstraction.

    The scheduler and popups depend on this interface rather than calling real
    time directly, so frames can be driven synthetically in tests.
    """

    def now(self) -> float:
        """Return monotonic seconds."""

    def now_ms(self) -> float:
        """Return monotonic milliseconds (frame-callback timestamp)."""


class RealClock:
    """Production clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()

    def now_ms(self) -> float:
        return time.monotonic() * 1000.0
