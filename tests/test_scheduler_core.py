from __future__ import annotations

from dataclasses import dataclass

import pytest

from physlab.scheduler import AnimationScheduler


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def now_ms(self) -> float:
        return self.t * 1000.0

    def advance(self, dt: float) -> None:
        self.t += dt


def test_first_tick_is_zero_and_later_ticks_measure_elapsed() -> None:
    clock = FakeClock(t=10.0)
    seen: list[float] = []
    sched = AnimationScheduler(dt_cap=0.05)
    sched.start(seen.append)

    assert sched.tick(clock.now_ms()) == 0.0
    clock.advance(0.016)
    assert sched.tick(clock.now_ms()) == pytest.approx(0.016)
    assert seen == [0.0, pytest.approx(0.016)]
    assert sched.frames == 2


def test_large_gaps_are_capped_and_backwards_time_is_zero() -> None:
    clock = FakeClock()
    sched = AnimationScheduler(dt_cap=0.05)
    sched.start(lambda dt: None)
    sched.tick(clock.now_ms())

    clock.advance(3.0)
    assert sched.tick(clock.now_ms()) == pytest.approx(0.05)

    clock.advance(-1.0)
    assert sched.tick(clock.now_ms()) == 0.0


def test_stopped_scheduler_does_nothing_and_restart_resets_timestamp() -> None:
    clock = FakeClock()
    sched = AnimationScheduler()
    assert sched.tick(clock.now_ms()) is None

    calls: list[float] = []
    sched.start(calls.append)
    sched.tick(clock.now_ms())
    sched.stop()
    assert not sched.running
    clock.advance(0.02)
    assert sched.tick(clock.now_ms()) is None

    sched.start(calls.append)
    clock.advance(10.0)
    assert sched.tick(clock.now_ms()) == 0.0
    assert calls == [0.0, 0.0]


def test_callback_errors_are_counted_and_loop_survives() -> None:
    clock = FakeClock()
    sched = AnimationScheduler()

    def boom(dt: float) -> None:
        raise RuntimeError("frame failed")

    sched.start(boom)
    assert sched.tick(clock.now_ms()) == 0.0
    clock.advance(0.01)
    assert sched.tick(clock.now_ms()) == pytest.approx(0.01)
    assert sched.errors == 2
    assert sched.frames == 0
    assert sched.running


def test_last_timestamp_tracks_the_latest_tick() -> None:
    clock = FakeClock(t=2.0)
    sched = AnimationScheduler()
    sched.start(lambda dt: None)
    assert sched.last_timestamp is None
    sched.tick(clock.now_ms())
    assert sched.last_timestamp == pytest.approx(2000.0)
    sched.stop()
    assert sched.last_timestamp is None
