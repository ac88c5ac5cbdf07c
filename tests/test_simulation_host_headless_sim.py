from __future__ import annotations

import os
from dataclasses import dataclass

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame
import pytest

from physlab.app import SIMULATIONS
from physlab.audio import SoundBoard, ToneChannel
from physlab.host import SimulationHost
from physlab.kinematics import Kinematics
from physlab.oscillator import Oscillator, OscillatorMode
from physlab.scheduler import AnimationScheduler
from physlab.simulation import SimulationBase
from physlab.standard_model import BY_SYMBOL, StandardModel
from physlab.surface import Canvas


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def now_ms(self) -> float:
        return self.t * 1000.0

    def advance(self, dt: float) -> None:
        self.t += dt


def _key(key: int) -> pygame.event.Event:
    return pygame.event.Event(pygame.KEYDOWN, {"key": key, "unicode": ""})


def _click(x: int, y: int) -> list[pygame.event.Event]:
    return [
        pygame.event.Event(pygame.MOUSEBUTTONDOWN, {"pos": (x, y), "button": 1}),
        pygame.event.Event(pygame.MOUSEBUTTONUP, {"pos": (x, y), "button": 1}),
    ]


def _mounted(module: SimulationBase, *, dpr: float = 1.0) -> tuple[SimulationHost, FakeClock]:
    canvas = Canvas(960, 600, dpr=dpr)
    host = SimulationHost(
        module,
        canvas,
        scheduler=AnimationScheduler(dt_cap=0.05),
        sound=SoundBoard(enabled=False),
        tones=(ToneChannel(0, enabled=False), ToneChannel(1, enabled=False)),
    )
    host.mount()
    return host, FakeClock(t=100.0)


@pytest.mark.parametrize("factory", SIMULATIONS, ids=lambda f: f.key)
def test_every_simulation_runs_through_every_mode(factory: type[SimulationBase]) -> None:
    module = factory(seed=42)
    host, clock = _mounted(module, dpr=2.0)

    for _ in module.modes:
        for _ in range(12):
            host.frame(clock.now_ms())
            clock.advance(1 / 60)
        for key in (pygame.K_TAB, pygame.K_RIGHT, pygame.K_LEFT, pygame.K_RETURN, pygame.K_1):
            host.handle_event(_key(key))
        for event in _click(480, 300):
            host.handle_event(event)
        host.frame(clock.now_ms())
        clock.advance(1 / 60)
        host.handle_event(_key(pygame.K_m))

    assert host.scheduler.errors == 0
    assert host.scheduler.frames == 13 * len(module.modes)
    assert module.mode is module.modes[0]
    assert host.canvas.surface.get_size() == (1920, 1200)

    host.unmount()
    assert host.frame(clock.now_ms()) is None


def test_first_frame_has_zero_dt_and_gaps_are_capped() -> None:
    osc = Oscillator(seed=1)
    host, clock = _mounted(osc)

    assert host.frame(clock.now_ms()) == 0.0
    assert osc.state.sim_time == 0.0

    clock.advance(5.0)
    assert host.frame(clock.now_ms()) == pytest.approx(0.05)
    assert osc.state.sim_time == pytest.approx(0.05)


def test_pause_freezes_physics_but_not_effects() -> None:
    osc = Oscillator(seed=1)
    host, clock = _mounted(osc)
    host.frame(clock.now_ms())

    host.handle_event(_key(pygame.K_SPACE))
    assert host.paused
    assert host.scheduler.running
    for _ in range(10):
        clock.advance(0.02)
        host.frame(clock.now_ms())
    assert osc.state.sim_time == 0.0
    assert osc.effects_time == pytest.approx(0.2)

    host.handle_event(_key(pygame.K_SPACE))
    clock.advance(0.02)
    host.frame(clock.now_ms())
    assert osc.state.sim_time == pytest.approx(0.02)


def test_reset_mode_and_parameter_keys() -> None:
    osc = Oscillator(seed=1)
    host, clock = _mounted(osc)
    host.frame(clock.now_ms())
    clock.advance(0.03)
    host.frame(clock.now_ms())
    assert osc.state.sim_time > 0.0

    host.handle_event(_key(pygame.K_r))
    assert osc.state.sim_time == 0.0

    assert osc.selected_param is not None and osc.selected_param.name == "mass"
    host.handle_event(_key(pygame.K_RIGHT))
    assert osc.param("mass") == pytest.approx(2.1)
    host.handle_event(_key(pygame.K_TAB))
    host.handle_event(_key(pygame.K_LEFT))
    assert osc.param("spring_k") == pytest.approx(9.0)

    host.handle_event(_key(pygame.K_m))
    assert osc.mode is OscillatorMode.PUSH
    assert not host.handle_event(_key(pygame.K_F12))


def test_audio_toggle_detaches_sound() -> None:
    osc = Oscillator(seed=1)
    host, clock = _mounted(osc)
    assert host.audio_enabled
    host.handle_event(_key(pygame.K_a))
    assert not host.audio_enabled
    host.frame(clock.now_ms())
    host.handle_event(_key(pygame.K_a))
    assert host.audio_enabled


def test_mouse_click_reaches_the_module() -> None:
    sm = StandardModel(seed=1)
    host, clock = _mounted(sm)
    for event in _click(60, 80):
        assert host.handle_event(event)
    host.frame(clock.now_ms())
    assert sm.selected_particle is BY_SYMBOL["u"]


def test_resize_updates_viewport_and_ignores_degenerate_sizes() -> None:
    kin = Kinematics(seed=1)
    host, clock = _mounted(kin)
    assert host.resize(640, 400)
    assert kin.viewport == (640.0, 400.0)
    assert not host.resize(0, 400)
    assert kin.viewport == (640.0, 400.0)
    host.frame(clock.now_ms())
    assert host.canvas.surface.get_size() == (640, 400)


def test_frame_errors_are_contained() -> None:
    class Exploding(Oscillator):
        def _draw_scene(self, canvas: Canvas) -> None:
            raise RuntimeError("draw failed")

    host, clock = _mounted(Exploding(seed=1))
    for _ in range(3):
        host.frame(clock.now_ms())
        clock.advance(0.016)
    assert host.scheduler.errors == 3
    assert host.scheduler.running


def test_unmount_is_idempotent_and_clears_particles() -> None:
    osc = Oscillator(seed=1)
    host, clock = _mounted(osc)
    osc.particles.emit_sparks(10.0, 10.0, (255, 255, 255), 5)
    host.unmount()
    host.unmount()
    assert not host.mounted
    assert osc.particles.count == 0
