"""Superposition of two travelling waves.

Both waves are closed form, ``y_i = A_i sin(f_i x - 3 f_i t + phi_i)`` over
``x`` in ``[0, 8 pi]``. The view (normal, standing, beats) changes what is
overlaid on the sum; the mode selects a challenge.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum

import pygame

from .drawing import (
    draw_circle,
    draw_glow,
    draw_line,
    draw_polyline,
    draw_target,
    draw_text,
    fill_rect,
    hex_color,
)
from .interaction import is_point_in_rect
from .simulation import MUTED_TEXT, ParamSpec, SimulationBase, ToneRequest
from .surface import Canvas

X_SPAN = math.pi * 8
WAVE_SPEED = 3.0
MAX_PROBES = 5
PROBE_HIT_FRAC = 0.02
PERFECT_CANCEL_PHASE = 0.02
NODE_PHASE_WINDOW = 0.1
NODE_ENVELOPE = 2.0
ANTINODE_FACTOR = 1.5
AUDIO_HZ_PER_UNIT = 110.0
AUDIO_GAIN = 0.08
_EQUAL_EPS = 1e-6
_MARGIN = 50.0
_SAMPLES = 240

WAVE1_COLOR = hex_color("#ef4444")
WAVE2_COLOR = hex_color("#3b82f6")
SUM_COLOR = hex_color("#a855f7")
PROBE_COLOR = hex_color("#22c55e")


class WaveView(StrEnum):
    NORMAL = "normal"
    STANDING = "standing"
    BEATS = "beats"


class WaveChallenge(StrEnum):
    NONE = "explore"
    DESTRUCTIVE = "destructive"
    TARGET_AMPLITUDE = "target amplitude"


@dataclass(frozen=True, slots=True)
class Probe:
    x_norm: float
    probe_id: int


def _same(a: float, b: float) -> bool:
    return abs(a - b) < _EQUAL_EPS


def envelope(a1: float, a2: float, f1: float, f2: float, phase: float, x: float) -> float:
    """Peak amplitude of the sum at ``x``."""

    return math.sqrt(max(0.0, a1 * a1 + a2 * a2 + 2 * a1 * a2 * math.cos((f2 - f1) * x + phase)))


def cancellation(a1: float, a2: float, phase: float) -> float:
    """Fraction of the maximum possible amplitude removed (1.0 is total)."""

    max_amp = a1 + a2
    if max_amp <= 0.0:
        return 1.0
    return 1.0 - math.sqrt(max(0.0, a1 * a1 + a2 * a2 + 2 * a1 * a2 * math.cos(phase))) / max_amp


class WaveInterference(SimulationBase):
    key = "wave_interference"
    title = "Wave Interference"
    param_specs = (
        ParamSpec("freq1", "f1", 0.5, 5.0, 0.1, 2.0),
        ParamSpec("freq2", "f2", 0.5, 5.0, 0.1, 2.0),
        ParamSpec("amp1", "A1", 0.0, 60.0, 1.0, 40.0),
        ParamSpec("amp2", "A2", 0.0, 60.0, 1.0, 40.0),
        ParamSpec("phase", "phase", 0.0, 2 * math.pi, math.pi / 60, 0.0, "rad"),
    )
    modes = tuple(WaveChallenge)
    hints = "V view  click sum to probe  Enter check  M challenge"

    def _init_state(self) -> None:
        self._view = WaveView.NORMAL
        self._probes: list[Probe] = []
        self._next_probe_id = 0
        self._target_x = 0.5
        self._target_amp = 40.0

    @property
    def view(self) -> WaveView:
        return self._view

    @property
    def probes(self) -> tuple[Probe, ...]:
        return tuple(self._probes)

    @property
    def target(self) -> tuple[float, float]:
        return self._target_x, self._target_amp

    def set_view(self, view: WaveView) -> None:
        self._view = view

    def visible_params(self) -> tuple[ParamSpec, ...]:
        if self.mode is WaveChallenge.DESTRUCTIVE:
            return tuple(s for s in self.param_specs if s.name == "phase")
        return self.param_specs

    # -- physics --------------------------------------------------------------------

    def perfect_cancel(self) -> bool:
        p = self.state.params
        return (
            _same(p["freq1"], p["freq2"])
            and _same(p["amp1"], p["amp2"])
            and abs(p["phase"] - math.pi) < PERFECT_CANCEL_PHASE
        )

    def displacements(self, x: float, t: float) -> tuple[float, float, float]:
        p = self.state.params
        y1 = p["amp1"] * math.sin(p["freq1"] * x - p["freq1"] * t * WAVE_SPEED)
        y2 = p["amp2"] * math.sin(p["freq2"] * x - p["freq2"] * t * WAVE_SPEED + p["phase"])
        total = 0.0 if self.perfect_cancel() else y1 + y2
        return y1, y2, total

    def envelope_at(self, x: float) -> float:
        p = self.state.params
        return envelope(p["amp1"], p["amp2"], p["freq1"], p["freq2"], p["phase"], x)

    def nodes_visible(self) -> bool:
        p = self.state.params
        if not _same(p["freq1"], p["freq2"]) or abs(p["phase"] - math.pi) >= NODE_PHASE_WINDOW:
            return False
        return self.envelope_at(0.0) < NODE_ENVELOPE

    def antinodes_visible(self) -> bool:
        p = self.state.params
        if not _same(p["freq1"], p["freq2"]) or abs(p["phase"]) >= NODE_PHASE_WINDOW:
            return False
        return self.envelope_at(0.0) > p["amp1"] * ANTINODE_FACTOR

    def _update_derived(self) -> None:
        p = self.state.params
        d = self.state.derived
        d["beat_freq"] = abs(p["freq1"] - p["freq2"])
        d["cancellation"] = cancellation(p["amp1"], p["amp2"], p["phase"])
        d["envelope_at_target"] = self.envelope_at(self._target_x * X_SPAN)

    def _on_param_changed(self, name: str) -> None:
        self._update_derived()

    # -- modes and challenges --------------------------------------------------------

    def _on_mode_changed(self, previous: StrEnum, mode: StrEnum) -> None:
        self._probes.clear()
        if mode is WaveChallenge.DESTRUCTIVE:
            # Only the phase matters: equalise the waves and start off a random phase.
            for name, value in (("freq1", 2.0), ("freq2", 2.0), ("amp1", 40.0), ("amp2", 40.0)):
                self.state.params[name] = value
            step = math.pi / 60
            self.state.params["phase"] = round(self._rng.uniform(0.0, math.pi * 0.5) / step) * step
            self.enter_challenge("Adjust the phase to cancel the waves")
        elif mode is WaveChallenge.TARGET_AMPLITUDE:
            self._target_x = round(self._rng.uniform(0.2, 0.8), 2)
            self._target_amp = float(round(self._rng.uniform(10.0, 70.0)))
            self.enter_challenge("Hit the target amplitude at the marker")
        else:
            self.exit_challenge()
        self._update_derived()

    def submit(self) -> None:
        w, h = self.viewport
        p = self.state.params
        if self.mode is WaveChallenge.DESTRUCTIVE:
            value = cancellation(p["amp1"], p["amp2"], p["phase"])
            self.grade(value, 1.0, 1.0, x=w / 2, y=self.scene_height() * 0.4)
        elif self.mode is WaveChallenge.TARGET_AMPLITUDE:
            amp = self.envelope_at(self._target_x * X_SPAN)
            result = self.grade(amp, self._target_amp, self._target_amp, x=self._graph_x(self._target_x), y=self.scene_height() * 0.7)
            self._status = f"{result.label} (A={amp:.0f})"

    def handle_key(self, key: int) -> bool:
        if key == pygame.K_v:
            views = tuple(WaveView)
            self._view = views[(views.index(self._view) + 1) % len(views)]
            return True
        if key == pygame.K_c:
            self._probes.clear()
            return True
        return False

    def handle_click(self, x: float, y: float) -> None:
        w, _ = self.viewport
        sh = self.scene_height()
        graph_w = w - _MARGIN * 2
        if not is_point_in_rect(x, y, _MARGIN, sh * 0.61, graph_w, sh * 0.34):
            return
        x_norm = (x - _MARGIN) / graph_w
        for idx, probe in enumerate(self._probes):
            if abs(probe.x_norm - x_norm) < PROBE_HIT_FRAC:
                del self._probes[idx]
                self.play_sfx("pop")
                return
        if len(self._probes) >= MAX_PROBES:
            return
        self._next_probe_id += 1
        self._probes.append(Probe(x_norm=x_norm, probe_id=self._next_probe_id))
        self.play_sfx("click")
        self.particles.emit_glow(x, y, PROBE_COLOR, 5)

    def audio_profile(self) -> tuple[ToneRequest, ...]:
        p = self.state.params
        g1 = AUDIO_GAIN if p["amp1"] > 0 else 0.0
        g2 = AUDIO_GAIN if p["amp2"] > 0 else 0.0
        return (
            ToneRequest(freq_hz=p["freq1"] * AUDIO_HZ_PER_UNIT, gain=g1),
            ToneRequest(freq_hz=p["freq2"] * AUDIO_HZ_PER_UNIT, gain=g2),
        )

    # -- drawing ---------------------------------------------------------------------

    def _graph_x(self, x_norm: float) -> float:
        w, _ = self.viewport
        return _MARGIN + x_norm * (w - _MARGIN * 2)

    def _draw_scene(self, canvas: Canvas) -> None:
        w = canvas.width
        sh = self.scene_height()
        t = self.state.sim_time
        p = self.state.params
        graph_w = w - _MARGIN * 2
        rows = (sh * 0.17, sh * 0.45, sh * 0.78)

        for ry in rows:
            draw_line(canvas, _MARGIN, ry, w - _MARGIN, ry, (255, 255, 255), width=1)
        draw_line(canvas, 20, sh * 0.31, w - 20, sh * 0.31, (255, 255, 255), width=1, dashed=True)
        draw_line(canvas, 20, sh * 0.61, w - 20, sh * 0.61, (255, 255, 255), width=1, dashed=True)
        draw_text(canvas, "+", w / 2, sh * 0.31, size=18, color=MUTED_TEXT, align="center", bold=True)
        draw_text(canvas, "=", w / 2, sh * 0.61, size=18, color=MUTED_TEXT, align="center", bold=True)

        w1: list[tuple[float, float]] = []
        w2: list[tuple[float, float]] = []
        ws: list[tuple[float, float]] = []
        for i in range(_SAMPLES + 1):
            frac = i / _SAMPLES
            x = frac * X_SPAN
            y1, y2, total = self.displacements(x, t)
            sx = _MARGIN + frac * graph_w
            w1.append((sx, rows[0] - y1))
            w2.append((sx, rows[1] - y2))
            ws.append((sx, rows[2] - total))
        draw_polyline(canvas, w1, WAVE1_COLOR, width=2.5)
        draw_polyline(canvas, w2, WAVE2_COLOR, width=2.5)
        draw_polyline(canvas, ws, SUM_COLOR, width=2.5)

        top = max(p["amp1"], p["amp2"])
        draw_text(canvas, "Wave 1", _MARGIN, max(12.0, rows[0] - p["amp1"] - 12), size=11, color=WAVE1_COLOR, bold=True)
        draw_text(canvas, "Wave 2", _MARGIN, max(12.0, rows[1] - p["amp2"] - 12), size=11, color=WAVE2_COLOR, bold=True)
        label = "Standing Wave" if self._view is WaveView.STANDING else "Superposition"
        draw_text(canvas, label, _MARGIN, rows[2] - top - 12, size=11, color=SUM_COLOR, bold=True)

        if self._view is WaveView.STANDING and _same(p["freq1"], p["freq2"]):
            self._draw_envelope(canvas, rows[2], graph_w, moving=False)
            self._draw_nodes(canvas, rows[2], graph_w)
        elif self._view is WaveView.BEATS:
            self._draw_envelope(canvas, rows[2], graph_w, moving=True)
            draw_text(
                canvas,
                f"Beat freq: {abs(p['freq1'] - p['freq2']):.2f} Hz",
                _MARGIN + 150,
                rows[2] - top - 12,
                size=10,
                color=hex_color("#f59e0b"),
            )

        for probe in self._probes:
            self._draw_probe(canvas, probe, rows[2], graph_w, sh)

        if self.mode is WaveChallenge.DESTRUCTIVE:
            fill_rect(canvas, 10, 90, 140, 50, WAVE1_COLOR, radius=6, alpha=0.15)
            draw_text(canvas, "CANCEL THE WAVES", 80, 104, size=10, color=WAVE1_COLOR, align="center", bold=True)
            pct = self.state.derived.get("cancellation", 0.0) * 100
            draw_text(canvas, f"{pct:.0f}% cancelled", 80, 124, size=11, color=(226, 232, 240), align="center")
        elif self.mode is WaveChallenge.TARGET_AMPLITUDE:
            tx = self._graph_x(self._target_x)
            draw_target(canvas, tx, rows[2], 12, WAVE1_COLOR, (t * 0.5) % 1.0)
            fill_rect(canvas, 10, 90, 140, 50, hex_color("#f59e0b"), radius=6, alpha=0.15)
            draw_text(canvas, "TARGET AMPLITUDE", 80, 102, size=10, color=hex_color("#f59e0b"), align="center", bold=True)
            draw_text(canvas, f"A = {self._target_amp:.0f}", 80, 118, size=13, color=hex_color("#f59e0b"), align="center")
            draw_text(canvas, f"at x = {self._target_x:.2f}", 80, 132, size=10, color=(226, 232, 240), align="center")

        if not self._probes:
            draw_text(
                canvas,
                "Click on the superposition wave to place measurement probes",
                w / 2,
                sh * 0.96,
                size=10,
                color=MUTED_TEXT,
                align="center",
            )

    def _draw_envelope(self, canvas: Canvas, row_y: float, graph_w: float, *, moving: bool) -> None:
        p = self.state.params
        t = self.state.sim_time
        upper: list[tuple[float, float]] = []
        lower: list[tuple[float, float]] = []
        for i in range(0, _SAMPLES + 1, 2):
            frac = i / _SAMPLES
            x = frac * X_SPAN
            shifted = x - t * WAVE_SPEED if moving else x
            env = envelope(p["amp1"], p["amp2"], p["freq1"], p["freq2"], p["phase"], shifted)
            sx = _MARGIN + frac * graph_w
            upper.append((sx, row_y - env))
            lower.append((sx, row_y + env))
        for a, b in zip(upper[::2], upper[1::2]):
            draw_line(canvas, a[0], a[1], b[0], b[1], SUM_COLOR, width=1.5)
        for a, b in zip(lower[::2], lower[1::2]):
            draw_line(canvas, a[0], a[1], b[0], b[1], SUM_COLOR, width=1.5)

    def _draw_nodes(self, canvas: Canvas, row_y: float, graph_w: float) -> None:
        p = self.state.params
        if self.nodes_visible():
            for px in range(0, int(graph_w) + 1, 5):
                draw_circle(canvas, _MARGIN + px, row_y, 4, PROBE_COLOR)
            draw_text(canvas, "N", _MARGIN, row_y + 14, size=8, color=PROBE_COLOR, align="center")
        if self.antinodes_visible():
            spacing = max(1, int(round(graph_w / (p["freq1"] * 4))))
            for px in range(0, int(graph_w) + 1, spacing):
                draw_circle(canvas, _MARGIN + px, row_y, 4, WAVE1_COLOR)
                draw_text(canvas, "A", _MARGIN + px, row_y + 14, size=8, color=WAVE1_COLOR, align="center")

    def _draw_probe(self, canvas: Canvas, probe: Probe, row_y: float, graph_w: float, sh: float) -> None:
        sx = _MARGIN + probe.x_norm * graph_w
        y1, y2, total = self.displacements(probe.x_norm * X_SPAN, self.state.sim_time)
        draw_line(canvas, sx, 10, sx, sh - 10, PROBE_COLOR, width=1, dashed=True)
        py = row_y - total
        draw_glow(canvas, sx, py, 15, PROBE_COLOR, strength=0.4)
        draw_circle(canvas, sx, py, 6, PROBE_COLOR)
        fill_rect(canvas, sx - 35, py - 28, 70, 18, (0, 0, 0), radius=4, alpha=0.7)
        draw_text(canvas, f"A={total:.1f}", sx, py - 19, size=10, color=PROBE_COLOR, align="center")
        draw_text(canvas, f"{y1:.0f}", sx - 20, py - 36, size=9, color=WAVE1_COLOR, align="center")
        draw_text(canvas, f"{y2:.0f}", sx + 20, py - 36, size=9, color=WAVE2_COLOR, align="center")
