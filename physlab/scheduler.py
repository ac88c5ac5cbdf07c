"""Cooperative per-widget frame scheduler.

The host drives ``tick(now_ms)`` once per display frame (the pygame loop in
the app, or a synthetic clock in tests). Each tick turns the wall-clock gap
into a clamped ``dt`` and hands it to the registered callback.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]


class AnimationScheduler:
    def __init__(self, dt_cap: float = 0.05) -> None:
        if not (math.isfinite(dt_cap) and dt_cap > 0.0):
            raise ValueError("dt_cap must be > 0")
        self._dt_cap = float(dt_cap)
        self._callback: FrameCallback | None = None
        self._last_ms: float | None = None
        self._frames = 0
        self._errors = 0

    @property
    def dt_cap(self) -> float:
        return self._dt_cap

    @property
    def running(self) -> bool:
        return self._callback is not None

    @property
    def frames(self) -> int:
        return self._frames

    @property
    def errors(self) -> int:
        return self._errors

    @property
    def last_timestamp(self) -> float | None:
        return self._last_ms

    def start(self, callback: FrameCallback) -> None:
        self._callback = callback
        self._last_ms = None

    def stop(self) -> None:
        # Forgetting the timestamp keeps a resumed loop from applying the
        # whole paused interval as one delta.
        self._callback = None
        self._last_ms = None

    def tick(self, now_ms: float) -> float | None:
        """Run one frame; returns the ``dt`` applied or None when stopped."""

        callback = self._callback
        if callback is None:
            return None

        now = float(now_ms)
        if self._last_ms is None:
            dt = 0.0
        else:
            dt = (now - self._last_ms) / 1000.0
            dt = max(0.0, min(dt, self._dt_cap))
        self._last_ms = now

        try:
            callback(dt)
        except Exception:
            self._errors += 1
            logger.exception("frame callback failed; skipping frame")
            return dt
        self._frames += 1
        return dt
