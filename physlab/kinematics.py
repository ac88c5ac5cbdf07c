"""Constant acceleration on a finite straight track.

Motion is closed form, ``x = v0 t + a t^2 / 2``. When the car decelerates
(velocity and acceleration of opposite sign) it is latched at rest once
``t >= |v0 / a|``, exactly at ``x_stop = -v0^2 / (2a)``, instead of reversing.
Leaving ``[0, TRACK_LENGTH]`` clamps the car to the end and flags the run as
out of bounds once.
"""

from __future__ import annotations

import math
from collections import deque
from enum import StrEnum

from .drawing import (
    InfoRow,
    draw_arrow,
    draw_info_panel,
    draw_line,
    draw_polyline,
    draw_target,
    draw_text,
    fill_rect,
    hex_color,
)
from .integrators import EPSILON
from .interaction import is_point_in_rect
from .scoring import calculate_accuracy
from .simulation import MUTED_TEXT, ParamSpec, SimulationBase
from .surface import Canvas

TRACK_LENGTH = 200.0
PREDICT_TOLERANCE_M = 50.0
HISTORY_LEN = 300

CAR_COLOR = hex_color("#ef4444")
VEL_COLOR = hex_color("#22c55e")
ACC_COLOR = hex_color("#f59e0b")


class KinematicsMode(StrEnum):
    SANDBOX = "sandbox"
    PREDICT = "predict"


def position_at(v0: float, a: float, t: float) -> float:
    return v0 * t + 0.5 * a * t * t


def velocity_at(v0: float, a: float, t: float) -> float:
    return v0 + a * t


def stop_time(v0: float, a: float) -> float | None:
    """Time at which a decelerating car comes to rest, or None if it never does."""

    if abs(a) < EPSILON or v0 == 0.0 or (v0 > 0.0) == (a > 0.0):
        return None
    return abs(v0 / a)


def stop_distance(v0: float, a: float) -> float | None:
    if stop_time(v0, a) is None:
        return None
    return -(v0 * v0) / (2.0 * a)


def kinematic_state(v0: float, a: float, t: float) -> tuple[float, float, bool]:
    """``(x, v, stopped)`` at time ``t`` with the braking latch applied."""

    if abs(v0) < EPSILON and abs(a) < EPSILON:
        return 0.0, 0.0, True
    t_stop = stop_time(v0, a)
    if t_stop is not None and t >= t_stop:
        return -(v0 * v0) / (2.0 * a), 0.0, True
    return position_at(v0, a, t), velocity_at(v0, a, t), False


class Kinematics(SimulationBase):
    key = "kinematics"
    title = "Constant Acceleration"
    param_specs = (
        ParamSpec("v0", "v0", -10.0, 30.0, 1.0, 5.0, "m/s"),
        ParamSpec("accel", "a", -10.0, 10.0, 0.5, 2.0, "m/s2"),
    )
    modes = tuple(KinematicsMode)

    def _init_state(self) -> None:
        self._x = 0.0
        self._v = 0.0
        self._stopped = False
        self._out_of_bounds = False
        self._oob_count = 0
        self._launched = True
        self._marker: float | None = None
        self._graded = False
        self._x_hist: deque[tuple[float, float]] = deque(maxlen=HISTORY_LEN)
        self._v_hist: deque[tuple[float, float]] = deque(maxlen=HISTORY_LEN)
        self._last_sampled = -1.0

    @property
    def x(self) -> float:
        return self._x

    @property
    def v(self) -> float:
        return self._v

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def out_of_bounds(self) -> bool:
        return self._out_of_bounds

    @property
    def oob_count(self) -> int:
        return self._oob_count

    @property
    def marker(self) -> float | None:
        return self._marker

    @property
    def launched(self) -> bool:
        return self._launched

    def _reset_physics(self) -> None:
        self._x = 0.0
        self._v = self.param("v0")
        self._stopped = False
        self._out_of_bounds = False
        self._graded = False
        self._launched = self.mode is KinematicsMode.SANDBOX
        self._x_hist.clear()
        self._v_hist.clear()
        self._last_sampled = -1.0

    def step(self, dt: float) -> None:
        if not self._launched:
            return
        super().step(dt)

    def _advance(self, dt: float) -> None:
        if self._out_of_bounds:
            return
        x, v, stopped = kinematic_state(self.param("v0"), self.param("accel"), self.state.sim_time)
        if x > TRACK_LENGTH or x < 0.0:
            self._x = TRACK_LENGTH if x > TRACK_LENGTH else 0.0
            self._v = 0.0
            self._out_of_bounds = True
            self._oob_count += 1
            self._status = "Off the track!"
            self.play_sfx("collision")
            cx, cy = self._car_screen()
            self.particles.emit_sparks(cx, cy, hex_color("#fbbf24"), 15)
        else:
            self._x = x
            self._v = v
            if abs(v) > 1.0:
                cx, cy = self._car_screen()
                self.particles.emit_trail(cx, cy, MUTED_TEXT, v, 0.0)
            if stopped and not self._stopped:
                self.play_sfx("drop")
            self._stopped = stopped
        if self.mode is KinematicsMode.PREDICT and (self._stopped or self._out_of_bounds):
            self._grade_prediction()

    def _update_derived(self) -> None:
        d = self.state.derived
        d["x"] = self._x
        d["v"] = self._v
        v0 = self.param("v0")
        a = self.param("accel")
        d["a"] = a
        sd = stop_distance(v0, a)
        d["stop_distance"] = sd if sd is not None else math.inf

    def _update_effects(self, dt: float) -> None:
        t = self.state.sim_time
        if t != self._last_sampled:
            self._last_sampled = t
            self._x_hist.append((t, self._x))
            self._v_hist.append((t, self._v))

    def _on_param_changed(self, name: str) -> None:
        if self.mode is KinematicsMode.SANDBOX or not self._launched:
            self.reset()

    def _on_mode_changed(self, previous: StrEnum, mode: StrEnum) -> None:
        self._marker = None
        if mode is KinematicsMode.PREDICT:
            self.enter_challenge("Predict where the car stops")
        else:
            self.exit_challenge()
        self.reset()

    # -- prediction game ---------------------------------------------------------

    def _grade_prediction(self) -> None:
        if self._graded or self._marker is None:
            return
        self._graded = True
        cx, cy = self._car_screen()
        result = calculate_accuracy(self._x, self._marker, PREDICT_TOLERANCE_M)
        self.record_result(result, x=cx, y=cy - 50, text=f"{result.label} ({self._x:.1f} m)")

    def handle_click(self, x: float, y: float) -> None:
        if self.mode is not KinematicsMode.PREDICT or self._launched:
            return
        left, track_y, scale = self._layout()
        if not is_point_in_rect(x, y, left - 10, track_y - 40, TRACK_LENGTH * scale + 20, 70):
            return
        self._marker = max(0.0, min(TRACK_LENGTH, (x - left) / scale))
        self.play_sfx("click")

    def submit(self) -> None:
        if self.mode is not KinematicsMode.PREDICT:
            return
        if self._launched:
            # Finished run: set up the next attempt.
            if self._graded or self._out_of_bounds or self._stopped:
                self._marker = None
                self.reset()
            return
        if self._marker is None:
            self._status = "Click the track to place your prediction first"
            return
        self.reset()
        self._launched = True
        self._status = ""
        self.play_sfx("launch")

    # -- drawing -------------------------------------------------------------------

    def _layout(self) -> tuple[float, float, float]:
        w, _ = self.viewport
        left = 50.0
        scale = (w - 100.0) / TRACK_LENGTH
        return left, self.scene_height() * 0.3, scale

    def _car_screen(self) -> tuple[float, float]:
        left, ty, scale = self._layout()
        return left + self._x * scale, ty

    def _draw_scene(self, canvas: Canvas) -> None:
        left, ty, scale = self._layout()
        w = canvas.width
        sh = self.scene_height()

        fill_rect(canvas, left, ty + 14, TRACK_LENGTH * scale, 8, (51, 65, 85), radius=3)
        for metre in range(0, int(TRACK_LENGTH) + 1, 25):
            mx = left + metre * scale
            draw_line(canvas, mx, ty + 22, mx, ty + 30, MUTED_TEXT, width=1)
            draw_text(canvas, f"{metre}", mx, ty + 38, size=9, color=MUTED_TEXT, align="center")
        fill_rect(canvas, left - 6, ty - 30, 6, 52, (239, 68, 68), alpha=0.5)
        fill_rect(canvas, left + TRACK_LENGTH * scale, ty - 30, 6, 52, (239, 68, 68), alpha=0.5)

        sd = stop_distance(self.param("v0"), self.param("accel"))
        if self.mode is KinematicsMode.SANDBOX and sd is not None and 0.0 <= sd <= TRACK_LENGTH:
            sx = left + sd * scale
            draw_line(canvas, sx, ty - 30, sx, ty + 14, VEL_COLOR, width=1, dashed=True)
            draw_text(canvas, f"stop {sd:.1f} m", sx, ty - 38, size=9, color=VEL_COLOR, align="center")

        if self._marker is not None:
            mx = left + self._marker * scale
            draw_target(canvas, mx, ty - 4, 9, hex_color("#f59e0b"), (self.effects_time * 0.5) % 1.0)
            draw_text(canvas, f"{self._marker:.1f} m", mx, ty - 26, size=10, color=hex_color("#f59e0b"), align="center")

        cx, cy = self._car_screen()
        fill_rect(canvas, cx - 16, cy - 6, 32, 18, CAR_COLOR, radius=5)
        fill_rect(canvas, cx - 9, cy - 14, 18, 9, CAR_COLOR, radius=3)
        draw_arrow(canvas, cx, cy - 24, self._v * 4, 0, VEL_COLOR, label="v")
        if not self._stopped and not self._out_of_bounds:
            draw_arrow(canvas, cx, cy - 44, self.param("accel") * 6, 0, ACC_COLOR, label="a")

        if self.mode is KinematicsMode.PREDICT and not self._launched:
            draw_text(
                canvas,
                "Click the track where you think the car stops, then press Enter",
                w / 2,
                ty - 70,
                size=11,
                color=MUTED_TEXT,
                align="center",
            )

        graph_y = sh * 0.5
        graph_h = sh * 0.42
        graph_w = (w - 300) / 2
        self._draw_graph(canvas, 40, graph_y, graph_w, graph_h, self._x_hist, TRACK_LENGTH, "x(t)", CAR_COLOR)
        self._draw_graph(canvas, 60 + graph_w, graph_y, graph_w, graph_h, self._v_hist, 30.0, "v(t)", VEL_COLOR)

        d = self.state.derived
        draw_info_panel(
            canvas,
            w - 220,
            graph_y,
            200,
            98,
            "MOTION",
            (
                InfoRow("t", f"{self.state.sim_time:.2f} s"),
                InfoRow("x", f"{self._x:.1f} m", CAR_COLOR),
                InfoRow("v", f"{self._v:.1f} m/s", VEL_COLOR),
                InfoRow("a", f"{d.get('a', 0.0):.1f} m/s2", ACC_COLOR),
            ),
        )

    def _draw_graph(
        self,
        canvas: Canvas,
        x: float,
        y: float,
        w: float,
        h: float,
        samples: deque[tuple[float, float]],
        y_range: float,
        label: str,
        color: tuple[int, int, int],
    ) -> None:
        fill_rect(canvas, x, y, w, h, (0, 0, 0), radius=6, alpha=0.35)
        draw_text(canvas, label, x + 8, y + 10, size=10, color=MUTED_TEXT)
        mid = y + h / 2
        draw_line(canvas, x, mid, x + w, mid, (255, 255, 255), width=1, dashed=True)
        if len(samples) < 2:
            return
        t_max = max(samples[-1][0], 1.0)
        t_min = samples[0][0]
        span = max(t_max - t_min, EPSILON)
        pts = [
            (x + (t - t_min) / span * w, mid - max(-1.0, min(1.0, value / y_range)) * (h / 2 - 4))
            for t, value in samples
        ]
        draw_polyline(canvas, pts, color, width=2)
