"""Time dilation and length contraction at constant velocity.

Everything is closed form in ``(beta, sim_time)``: the rest clock turns at
half a revolution per second, the moving clock at that rate divided by the
Lorentz factor, and a one-metre ruler in the moving frame measures ``1/gamma``.
"""

from __future__ import annotations

import math
from enum import StrEnum

from .drawing import (
    InfoRow,
    draw_circle,
    draw_info_panel,
    draw_line,
    draw_polyline,
    draw_target,
    draw_text,
    fill_rect,
    hex_color,
)
from .integrators import EPSILON
from .simulation import MUTED_TEXT, ParamSpec, SimulationBase, ToneRequest
from .surface import Canvas

CLOCK_REV_PER_S = 0.5
GRAPH_MAX_GAMMA = 8.0
REST_LENGTH_M = 1.0
MIN_TOLERANCE = 0.25
TARGET_GAMMA_RANGE = (1.1, 5.0)

REST_COLOR = hex_color("#22c55e")
MOVING_COLOR = hex_color("#ef4444")
RULER_COLOR = hex_color("#3b82f6")
CURVE_COLOR = hex_color("#a855f7")


class RelativityMode(StrEnum):
    SANDBOX = "sandbox"
    CHALLENGE = "challenge"


def lorentz_factor(beta: float) -> float:
    return 1.0 / math.sqrt(max(1.0 - beta * beta, EPSILON))


def clock_angle(t: float, gamma: float = 1.0) -> float:
    """Hand angle in radians measured clockwise from twelve o'clock."""

    return 2.0 * math.pi * CLOCK_REV_PER_S * t / gamma


def contracted_length(gamma: float, rest_length: float = REST_LENGTH_M) -> float:
    return rest_length / gamma


def gamma_tolerance(target: float) -> float:
    return max(target - 1.0, MIN_TOLERANCE)


class Relativity(SimulationBase):
    key = "relativity"
    title = "Special Relativity"
    param_specs = (ParamSpec("beta", "v/c", 0.0, 0.99, 0.01, 0.5),)
    modes = tuple(RelativityMode)

    def _init_state(self) -> None:
        self._target_gamma = 2.0
        self._moving_revs = 0

    @property
    def gamma(self) -> float:
        return lorentz_factor(self.param("beta"))

    @property
    def target_gamma(self) -> float:
        return self._target_gamma

    def _reset_physics(self) -> None:
        self._moving_revs = 0

    def _advance(self, dt: float) -> None:
        revs = int(CLOCK_REV_PER_S * self.state.sim_time / self.gamma)
        if revs != self._moving_revs:
            self._moving_revs = revs
            self.play_sfx("tick")

    def _update_derived(self) -> None:
        beta = self.param("beta")
        gamma = lorentz_factor(beta)
        t = self.state.sim_time
        d = self.state.derived
        d["gamma"] = gamma
        d["rest_time"] = t
        d["moving_time"] = t / gamma
        d["rest_angle"] = clock_angle(t)
        d["moving_angle"] = clock_angle(t, gamma)
        d["length"] = contracted_length(gamma)
        d["mass_factor"] = gamma

    def _on_param_changed(self, name: str) -> None:
        self._moving_revs = int(CLOCK_REV_PER_S * self.state.sim_time / self.gamma)
        self._update_derived()

    def _on_mode_changed(self, previous: StrEnum, mode: StrEnum) -> None:
        if mode is RelativityMode.CHALLENGE:
            self._new_target()
            self.enter_challenge("Set v/c to reach the target Lorentz factor")
        else:
            self.exit_challenge()

    def _new_target(self) -> None:
        self._target_gamma = round(self._rng.uniform(*TARGET_GAMMA_RANGE), 2)

    def submit(self) -> None:
        if self.mode is not RelativityMode.CHALLENGE:
            return
        w, _ = self.viewport
        target = self._target_gamma
        self.grade(self.gamma, target, gamma_tolerance(target), x=w / 2, y=self.scene_height() * 0.4)
        self._new_target()

    def audio_profile(self) -> tuple[ToneRequest, ...]:
        return (ToneRequest(freq_hz=min(880.0, 220.0 / self.gamma + 110.0), gain=0.05),)

    # -- drawing ------------------------------------------------------------------------

    def _draw_scene(self, canvas: Canvas) -> None:
        w = canvas.width
        sh = self.scene_height()
        margin = 40.0
        vis_h = sh * 0.5
        frame_w = (w - margin * 3) / 2
        left_x = margin
        right_x = left_x + frame_w + margin
        beta = self.param("beta")
        gamma = self.gamma
        t = self.state.sim_time

        draw_text(canvas, "Rest Frame (S)", left_x + frame_w / 2, 20, size=12, color=MUTED_TEXT, align="center", bold=True)
        draw_text(
            canvas,
            f"Moving Frame (S')  v = {beta:.2f}c",
            right_x + frame_w / 2,
            20,
            size=12,
            color=MUTED_TEXT,
            align="center",
            bold=True,
        )
        for fx in (left_x, right_x):
            fill_rect(canvas, fx, 30, frame_w, vis_h - 40, (0, 0, 0), radius=8, alpha=0.3)

        clock_y = 90.0
        clock_r = 35.0
        self._draw_clock(canvas, left_x + frame_w / 2, clock_y, clock_r, clock_angle(t), REST_COLOR)
        draw_text(canvas, f"t = {t:.1f} s", left_x + frame_w / 2, clock_y + clock_r + 15, size=10, color=REST_COLOR, align="center")
        self._draw_clock(canvas, right_x + frame_w / 2, clock_y, clock_r, clock_angle(t, gamma), MOVING_COLOR)
        draw_text(
            canvas,
            f"t' = {t / gamma:.1f} s (slower)",
            right_x + frame_w / 2,
            clock_y + clock_r + 15,
            size=10,
            color=MOVING_COLOR,
            align="center",
        )

        ruler_y = vis_h - 40
        ruler_w = frame_w - 20
        fill_rect(canvas, left_x + 10, ruler_y, ruler_w, 12, RULER_COLOR, radius=3)
        for i in range(11):
            mx = left_x + 10 + i / 10 * ruler_w
            draw_line(canvas, mx, ruler_y, mx, ruler_y + (12 if i % 5 == 0 else 6), (255, 255, 255), width=1)
        draw_text(canvas, f"L0 = {REST_LENGTH_M:.2f} m", left_x + 10 + ruler_w / 2, ruler_y + 22, size=10, color=hex_color("#93c5fd"), align="center")

        short_w = ruler_w * contracted_length(gamma)
        fill_rect(canvas, right_x + 10 + (ruler_w - short_w) / 2, ruler_y, short_w, 12, MOVING_COLOR, radius=3)
        draw_text(
            canvas,
            f"L = {contracted_length(gamma):.3f} m (shorter)",
            right_x + 10 + ruler_w / 2,
            ruler_y + 22,
            size=10,
            color=hex_color("#fca5a5"),
            align="center",
        )

        self._draw_gamma_graph(canvas, margin, vis_h + 10, w - margin * 2 - 230, sh - vis_h - 30, beta, gamma)

        rows = [
            InfoRow("gamma", f"{gamma:.3f}", CURVE_COLOR),
            InfoRow("t' / t", f"{1.0 / gamma:.3f}", MOVING_COLOR),
            InfoRow("L / L0", f"{contracted_length(gamma):.3f}", RULER_COLOR),
        ]
        if self.mode is RelativityMode.CHALLENGE:
            rows.append(InfoRow("target gamma", f"{self._target_gamma:.2f}", hex_color("#f59e0b")))
        draw_info_panel(canvas, w - margin - 210, vis_h + 10, 210, 34 + 15 * len(rows), "LORENTZ", rows)

    def _draw_clock(self, canvas: Canvas, cx: float, cy: float, r: float, angle: float, color: tuple[int, int, int]) -> None:
        draw_circle(canvas, cx, cy, r, (100, 116, 139), width=2)
        for i in range(12):
            a = i / 12 * 2 * math.pi - math.pi / 2
            draw_line(
                canvas,
                cx + math.cos(a) * (r - 5),
                cy + math.sin(a) * (r - 5),
                cx + math.cos(a) * r,
                cy + math.sin(a) * r,
                MUTED_TEXT,
                width=1,
            )
        a = angle - math.pi / 2
        draw_line(canvas, cx, cy, cx + math.cos(a) * (r - 8), cy + math.sin(a) * (r - 8), color, width=2)

    def _draw_gamma_graph(self, canvas: Canvas, x: float, y: float, w: float, h: float, beta: float, gamma: float) -> None:
        fill_rect(canvas, x - 10, y - 5, w + 20, h + 20, (0, 0, 0), radius=8, alpha=0.3)
        draw_text(canvas, "LORENTZ FACTOR vs v/c", x, y + 8, size=10, color=MUTED_TEXT, bold=True)
        base = y + h
        draw_line(canvas, x, y + 20, x, base, MUTED_TEXT, width=1)
        draw_line(canvas, x, base, x + w, base, MUTED_TEXT, width=1)

        def to_y(g: float) -> float:
            return base - min(g, GRAPH_MAX_GAMMA) / GRAPH_MAX_GAMMA * (h - 25)

        samples = max(2, int(w / 3))
        pts = [(x + i / samples * w, to_y(lorentz_factor(i / samples * 0.999))) for i in range(samples + 1)]
        draw_polyline(canvas, pts, CURVE_COLOR, width=2)

        if self.mode is RelativityMode.CHALLENGE:
            ty = to_y(self._target_gamma)
            draw_line(canvas, x, ty, x + w, ty, hex_color("#f59e0b"), width=1, dashed=True)

        px = x + beta / 0.999 * w
        py = to_y(gamma)
        draw_target(canvas, px, py, 6, REST_COLOR, (self.effects_time * 0.5) % 1.0)
        draw_text(canvas, f"gamma = {gamma:.2f}", px + 10, py - 12, size=10, color=REST_COLOR)
