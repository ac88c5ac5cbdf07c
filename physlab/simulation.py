"""Shared interface and plumbing for simulation modules.

A simulation owns explicit per-instance state: parameters, simulation time,
a derived-quantity cache, its particle system and its challenge state. The
host drives it with ``step(dt)`` (physics), ``update_effects(dt)``
(particles and popups) and ``draw(canvas)`` each frame; input arrives between
frames via ``set_param``/``set_mode``/``handle_click``/``handle_key``/``submit``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol

import pygame

from .audio import SoundBoard
from .core import SeededRng
from .drawing import draw_text, fill_rect
from .particles import ParticleSystem
from .scoring import (
    AccuracyResult,
    ChallengeState,
    ScorePopup,
    calculate_accuracy,
    create_challenge_state,
    enter_challenge,
    exit_challenge,
    prune_popups,
    render_score_popup,
    render_scoreboard,
    update_challenge_state,
)
from .surface import Canvas

logger = logging.getLogger(__name__)

CONTROL_BAR_H = 54.0
DEFAULT_VIEWPORT = (960.0, 600.0)

BACKGROUND = (15, 23, 42)
PANEL_TEXT = (226, 232, 240)
MUTED_TEXT = (148, 163, 184)
ACCENT = (56, 189, 248)


@dataclass(frozen=True, slots=True)
class ParamSpec:
    name: str
    label: str
    min: float
    max: float
    step: float
    default: float
    unit: str = ""
    choices: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.min > self.max:
            raise ValueError(f"{self.name}: min must be <= max")
        if self.step <= 0.0:
            raise ValueError(f"{self.name}: step must be > 0")
        if not (self.min <= self.default <= self.max):
            raise ValueError(f"{self.name}: default must lie in [min, max]")

    def clamp(self, value: float) -> float:
        v = float(value)
        if not math.isfinite(v):
            return self.default
        return max(self.min, min(self.max, v))

    def format(self, value: float) -> str:
        if self.choices:
            return self.choices[int(round(value - self.min)) % len(self.choices)]
        digits = 0 if self.step >= 1 else 1 if self.step >= 0.1 else 2
        text = f"{value:.{digits}f}"
        return f"{text} {self.unit}" if self.unit else text


@dataclass(slots=True)
class SimulationState:
    params: dict[str, float]
    sim_time: float = 0.0
    derived: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ToneRequest:
    freq_hz: float
    gain: float


class SimulationModule(Protocol):
    key: str
    title: str
    param_specs: tuple[ParamSpec, ...]
    modes: tuple[StrEnum, ...]

    @property
    def mode(self) -> StrEnum: ...
    @property
    def state(self) -> SimulationState: ...
    @property
    def particles(self) -> ParticleSystem: ...
    @property
    def challenge(self) -> ChallengeState: ...

    def reset(self) -> None: ...
    def set_mode(self, mode: StrEnum) -> None: ...
    def next_mode(self) -> None: ...
    def set_param(self, name: str, value: float) -> float: ...
    def select_param(self, delta: int) -> None: ...
    def adjust_selected(self, direction: int) -> None: ...
    def set_viewport(self, width: float, height: float) -> None: ...
    def step(self, dt: float) -> None: ...
    def update_effects(self, dt: float) -> None: ...
    def draw(self, canvas: Canvas) -> None: ...
    def handle_click(self, x: float, y: float) -> None: ...
    def handle_drag(self, x: float, y: float, dx: float, dy: float) -> None: ...
    def handle_key(self, key: int) -> bool: ...
    def submit(self) -> None: ...
    def audio_profile(self) -> tuple[ToneRequest, ...]: ...
    def attach_sound(self, sound: SoundBoard | None) -> None: ...


class SimulationBase:
    key: str = ""
    title: str = ""
    param_specs: tuple[ParamSpec, ...] = ()
    modes: tuple[StrEnum, ...] = ()
    hints: str = ""

    def __init__(
        self,
        *,
        seed: int | None = None,
        sound: SoundBoard | None = None,
        popup_duration_s: float = 1.5,
    ) -> None:
        if not self.modes:
            raise ValueError(f"{type(self).__name__} must declare at least one mode")
        self._rng = SeededRng(seed)
        self._particles = ParticleSystem(rng=SeededRng(None if seed is None else int(seed) + 1))
        self._state = SimulationState(params={spec.name: spec.default for spec in self.param_specs})
        self._specs = {spec.name: spec for spec in self.param_specs}
        self._challenge = create_challenge_state()
        self._popups: list[ScorePopup] = []
        self._popup_duration_s = float(popup_duration_s)
        self._effects_time = 0.0
        self._sound = sound
        self._mode: StrEnum = self.modes[0]
        self._selected = 0
        self._viewport = DEFAULT_VIEWPORT
        self._status = ""
        self._init_state()
        self.reset()

    # -- read-only views -------------------------------------------------

    @property
    def mode(self) -> StrEnum:
        return self._mode

    @property
    def state(self) -> SimulationState:
        return self._state

    @property
    def particles(self) -> ParticleSystem:
        return self._particles

    @property
    def challenge(self) -> ChallengeState:
        return self._challenge

    @property
    def popups(self) -> tuple[ScorePopup, ...]:
        return tuple(self._popups)

    @property
    def effects_time(self) -> float:
        return self._effects_time

    @property
    def selected_param(self) -> ParamSpec | None:
        specs = self.visible_params()
        if not specs:
            return None
        return specs[self._selected % len(specs)]

    @property
    def status(self) -> str:
        return self._status

    @property
    def viewport(self) -> tuple[float, float]:
        return self._viewport

    def param(self, name: str) -> float:
        return self._state.params[name]

    def visible_params(self) -> tuple[ParamSpec, ...]:
        """Parameters the user may edit in the current mode."""

        return self.param_specs

    # -- parameters and modes ---------------------------------------------

    def set_param(self, name: str, value: float) -> float:
        spec = self._specs.get(name)
        if spec is None:
            raise KeyError(f"{self.key}: unknown parameter {name!r}")
        clamped = spec.clamp(value)
        self._state.params[name] = clamped
        self._on_param_changed(name)
        return self._state.params[name]

    def select_param(self, delta: int) -> None:
        specs = self.visible_params()
        if specs:
            self._selected = (self._selected + int(delta)) % len(specs)

    def adjust_selected(self, direction: int) -> None:
        spec = self.selected_param
        if spec is None:
            return
        raw = self.param(spec.name) + spec.step * (1 if direction > 0 else -1)
        # Snap to the step grid so repeated nudges land on exact values.
        snapped = spec.min + round((raw - spec.min) / spec.step) * spec.step
        self.set_param(spec.name, round(snapped, 9))

    def set_mode(self, mode: StrEnum) -> None:
        if mode not in self.modes:
            raise ValueError(f"{self.key}: unsupported mode {mode!r}")
        previous = self._mode
        self._mode = mode
        self._particles.clear()
        self._popups.clear()
        self._selected = 0
        self._status = ""
        logger.info("%s: mode %s -> %s", self.key, previous, mode)
        self._on_mode_changed(previous, mode)

    def next_mode(self) -> None:
        idx = self.modes.index(self._mode)
        self.set_mode(self.modes[(idx + 1) % len(self.modes)])

    def reset(self) -> None:
        self._state.sim_time = 0.0
        self._state.derived.clear()
        self._particles.clear()
        self._reset_physics()
        self._update_derived()

    def set_viewport(self, width: float, height: float) -> None:
        if width > 0 and height > 0:
            self._viewport = (float(width), float(height))

    def attach_sound(self, sound: SoundBoard | None) -> None:
        self._sound = sound

    # -- challenge plumbing -------------------------------------------------

    def enter_challenge(self, description: str) -> None:
        self._challenge = enter_challenge(description)

    def exit_challenge(self) -> None:
        if self._challenge.active:
            self._challenge = exit_challenge(self._challenge)

    def grade(self, value: float, target: float, tolerance: float, *, x: float, y: float) -> AccuracyResult:
        result = calculate_accuracy(value, target, tolerance)
        self.record_result(result, x=x, y=y)
        return result

    def record_result(self, result: AccuracyResult, *, x: float, y: float, text: str | None = None) -> None:
        self._challenge = update_challenge_state(self._challenge, result)
        self._popups.append(
            ScorePopup(
                text=result.label if text is None else text,
                points=result.points,
                x=float(x),
                y=float(y),
                start_time_s=self._effects_time,
            )
        )
        logger.info("%s: graded %s (+%d)", self.key, result.label, result.points)
        if result.points >= 3:
            self._particles.emit_confetti(x, y, 30)
            self.play_sfx("success")
        elif result.points > 0:
            self.play_sfx("correct")
        else:
            self.play_sfx("fail")
        if result.points > 0 and self._sound is not None:
            self._sound.play_score(result.points)

    def play_sfx(self, name: str) -> None:
        if self._sound is not None:
            self._sound.play_sfx(name)

    # -- frame entry points ---------------------------------------------------

    def step(self, dt: float) -> None:
        if dt <= 0.0:
            return
        self._state.sim_time += dt
        self._advance(dt)
        self._update_derived()

    def update_effects(self, dt: float) -> None:
        if dt <= 0.0:
            return
        self._effects_time += dt
        self._particles.update(dt)
        if self._popups:
            self._popups = prune_popups(self._popups, self._effects_time, self._popup_duration_s)
        self._update_effects(dt)

    def draw(self, canvas: Canvas) -> None:
        self.set_viewport(canvas.width, canvas.height)
        canvas.clear(BACKGROUND)
        self._draw_scene(canvas)
        self._particles.draw(canvas)
        for popup in self._popups:
            render_score_popup(canvas, popup, self._effects_time, self._popup_duration_s)
        if self._challenge.active:
            render_scoreboard(canvas, canvas.width - 150, 10, 140, 70, self._challenge)
        self._draw_controls(canvas)

    def handle_click(self, x: float, y: float) -> None:
        return None

    def handle_drag(self, x: float, y: float, dx: float, dy: float) -> None:
        return None

    def handle_key(self, key: int) -> bool:
        return False

    def submit(self) -> None:
        return None

    def audio_profile(self) -> tuple[ToneRequest, ...]:
        return ()

    # -- hooks for subclasses ---------------------------------------------------

    def _init_state(self) -> None:
        return None

    def _reset_physics(self) -> None:
        return None

    def _advance(self, dt: float) -> None:
        return None

    def _update_derived(self) -> None:
        return None

    def _update_effects(self, dt: float) -> None:
        return None

    def _on_param_changed(self, name: str) -> None:
        return None

    def _on_mode_changed(self, previous: StrEnum, mode: StrEnum) -> None:
        return None

    def _draw_scene(self, canvas: Canvas) -> None:
        return None

    # -- layout helpers -------------------------------------------------------------

    def scene_height(self) -> float:
        return max(1.0, self._viewport[1] - CONTROL_BAR_H)

    def _draw_controls(self, canvas: Canvas) -> None:
        w = canvas.width
        top = canvas.height - CONTROL_BAR_H
        fill_rect(canvas, 0, top, w, CONTROL_BAR_H, (2, 6, 23), alpha=0.85)

        draw_text(canvas, self.title, 12, top + 14, size=12, color=PANEL_TEXT, bold=True)
        draw_text(canvas, f"mode: {self._mode.value}", 12, top + 34, size=10, color=ACCENT)

        specs = self.visible_params()
        selected = self.selected_param
        x = 190.0
        for spec in specs:
            is_sel = selected is not None and spec.name == selected.name
            color = (250, 204, 21) if is_sel else MUTED_TEXT
            text = f"{spec.label} {spec.format(self.param(spec.name))}"
            draw_text(canvas, text, x, top + 14, size=10, color=color, bold=is_sel)
            x += max(90.0, len(text) * 6.2 + 14)
            if x > w - 80:
                break

        hint = self._status or self.hints or "Space pause  R reset  M mode  Tab/Arrows tune  Enter submit"
        draw_text(canvas, hint, 190, top + 34, size=10, color=MUTED_TEXT)


KEY_DIGITS: dict[int, int] = {
    pygame.K_1: 1,
    pygame.K_2: 2,
    pygame.K_3: 3,
    pygame.K_4: 4,
    pygame.K_5: 5,
    pygame.K_6: 6,
}
