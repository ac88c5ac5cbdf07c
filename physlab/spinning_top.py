"""Gyroscopic precession of a heavy symmetric top.

The top is a disk of radius ``TOP_RADIUS`` on a stem of length ``l``. Spin
decays exponentially with the damping coefficient, and the axis precesses at
``Omega = m g l / (I * max(omega, 0.4))``. Tilt is integrator-held: a
restoring term ``-(0.05 omega)^2 (theta - theta0)`` plus any active kick is
advanced with velocity Verlet, so a slowing top loses its ability to recover.
"""

from __future__ import annotations

import math
from collections import deque
from enum import StrEnum

import pygame

from .drawing import (
    InfoRow,
    draw_circle,
    draw_ellipse,
    draw_info_panel,
    draw_line,
    draw_meter,
    draw_text,
    fill_rect,
    hex_color,
    mix,
)
from .integrators import IntegratorState, safe_div, velocity_verlet
from .scoring import AccuracyResult, ScoreTier
from .simulation import MUTED_TEXT, ParamSpec, SimulationBase, ToneRequest
from .surface import Canvas

GRAVITY = 9.81
TOP_RADIUS = 0.12
MIN_SPIN_FOR_PRECESSION = 0.4
NATURAL_FREQ_PER_SPIN = 0.05
NUTATION_AMPLITUDE = 0.03
FALL_ANGLE = math.radians(80.0)
WINDOW_S = 5.0
WOBBLE_TOLERANCE_RAD = 0.35
TRAIL_LEN = 180
KICK_INTERVAL_S = (0.6, 1.4)
KICK_ACCEL = (4.0, 9.0)
KICK_DURATION_S = 0.15
NUDGE_RAD_S = 0.25
_SUBSTEP_S = 1.0 / 240.0
_PROJECTION_SCALE = 420.0

AXIS_COLOR = hex_color("#e2e8f0")
BODY_COLOR = hex_color("#3b82f6")
TRAIL_COLOR = hex_color("#a855f7")
PIVOT_COLOR = hex_color("#f59e0b")
SPIN_COLOR = hex_color("#facc15")


class SpinningTopMode(StrEnum):
    SANDBOX = "sandbox"
    STABILIZE = "stabilize"


def moment_of_inertia(mass: float) -> float:
    return 0.5 * mass * TOP_RADIUS * TOP_RADIUS


def precession_rate(mass: float, stem: float, omega: float) -> float:
    inertia = moment_of_inertia(mass)
    return safe_div(mass * GRAVITY * stem, inertia * max(omega, MIN_SPIN_FOR_PRECESSION))


class SpinningTop(SimulationBase):
    key = "spinning_top"
    title = "Spinning Top"
    param_specs = (
        ParamSpec("mass", "m", 0.2, 2.0, 0.05, 1.0, "kg"),
        ParamSpec("stem", "l", 0.05, 0.25, 0.005, 0.14, "m"),
        ParamSpec("tilt", "tilt", 10.0, 70.0, 1.0, 28.0, "deg"),
        ParamSpec("spin", "spin", 20.0, 300.0, 2.0, 120.0, "rad/s"),
        ParamSpec("damping", "damping", 0.0, 0.4, 0.01, 0.08),
    )
    modes = tuple(SpinningTopMode)

    def _init_state(self) -> None:
        self._top = IntegratorState()
        self._trail: deque[tuple[float, float]] = deque(maxlen=TRAIL_LEN)
        self._last_sampled = -1.0
        self._fallen = False
        self._falls = 0
        self._kick_accel = 0.0
        self._kick_left = 0.0
        self._next_kick = 1.0
        self._window_t = 0.0
        self._window_err = 0.0
        self._windows = 0

    @property
    def top(self) -> IntegratorState:
        return self._top

    @property
    def theta0(self) -> float:
        return math.radians(self.param("tilt"))

    @property
    def omega(self) -> float:
        return self._top.aux["omega"]

    @property
    def phi(self) -> float:
        return self._top.aux["phi"]

    @property
    def fallen(self) -> bool:
        return self._fallen

    @property
    def falls(self) -> int:
        return self._falls

    @property
    def windows_graded(self) -> int:
        return self._windows

    @property
    def trail(self) -> tuple[tuple[float, float], ...]:
        return tuple(self._trail)

    def drawn_tilt(self) -> float:
        """Tilt used for drawing: integrated tilt plus the decorative nutation."""

        theta = self._top.x
        if self.mode is SpinningTopMode.SANDBOX:
            amp = NUTATION_AMPLITUDE * math.exp(-3.0 * self.param("damping"))
            theta += amp * math.sin(self._top.aux["nutation_phase"])
        return theta

    # -- physics --------------------------------------------------------------------

    def _reset_physics(self) -> None:
        self._top = IntegratorState(
            x=self.theta0,
            v=0.0,
            aux={"phi": 0.0, "omega": self.param("spin"), "nutation_phase": 0.0},
        )
        self._trail.clear()
        self._last_sampled = -1.0
        self._fallen = False
        self._kick_accel = 0.0
        self._kick_left = 0.0
        self._next_kick = self._rng.uniform(*KICK_INTERVAL_S)
        self._window_t = 0.0
        self._window_err = 0.0

    def _advance(self, dt: float) -> None:
        if self._fallen:
            return
        n = max(1, int(math.ceil(dt / _SUBSTEP_S)))
        h = dt / n
        for _ in range(n):
            self._substep(h)
            if self._fallen:
                break

    def _substep(self, h: float) -> None:
        top = self._top
        aux = top.aux
        mass = self.param("mass")
        aux["omega"] *= math.exp(-self.param("damping") * h)
        omega = aux["omega"]
        aux["nutation_phase"] += h * max(2.0, omega * NATURAL_FREQ_PER_SPIN)
        aux["phi"] += precession_rate(mass, self.param("stem"), omega) * h

        if self.mode is SpinningTopMode.STABILIZE:
            self._next_kick -= h
            if self._next_kick <= 0.0:
                self._next_kick = self._rng.uniform(*KICK_INTERVAL_S)
                sign = 1.0 if self._rng.random() < 0.5 else -1.0
                self._kick_accel = sign * self._rng.uniform(*KICK_ACCEL)
                self._kick_left = KICK_DURATION_S
        kick = self._kick_accel if self._kick_left > 0.0 else 0.0
        self._kick_left = max(0.0, self._kick_left - h)

        theta0 = self.theta0
        wn = NATURAL_FREQ_PER_SPIN * omega

        def accel(x: float, v: float, t: float) -> float:
            return -(wn * wn) * (x - theta0) + kick

        velocity_verlet(top, accel, h)

        if self.mode is SpinningTopMode.STABILIZE:
            self._window_t += h
            self._window_err += abs(top.x - theta0) * h
            if abs(top.x) > FALL_ANGLE:
                self._fall()
            elif self._window_t >= WINDOW_S:
                self._grade_window()

    def _fall(self) -> None:
        self._fallen = True
        self._falls += 1
        self._top.v = 0.0
        self._status = "The top fell over! Press Enter to spin it up again."
        x, y = self._com_screen()
        self.play_sfx("collision")
        self.particles.emit_sparks(x, y, hex_color("#fbbf24"), 15)
        miss = AccuracyResult(points=0, tier=ScoreTier.MISS, label="Fallen!")
        self.record_result(miss, x=x, y=y - 40)

    def _grade_window(self) -> None:
        mean_err = safe_div(self._window_err, self._window_t)
        self._window_t = 0.0
        self._window_err = 0.0
        self._windows += 1
        x, y = self._com_screen()
        self.grade(mean_err, 0.0, WOBBLE_TOLERANCE_RAD, x=x, y=y - 40)

    def _update_derived(self) -> None:
        mass = self.param("mass")
        inertia = moment_of_inertia(mass)
        omega = self._top.aux["omega"]
        d = self.state.derived
        d["theta"] = self._top.x
        d["theta_dot"] = self._top.v
        d["phi"] = self._top.aux["phi"]
        d["omega"] = omega
        d["inertia"] = inertia
        d["angular_momentum"] = inertia * omega
        d["precession"] = precession_rate(mass, self.param("stem"), omega)
        d["ke_rot"] = 0.5 * inertia * omega * omega

    def _update_effects(self, dt: float) -> None:
        if self.state.sim_time != self._last_sampled:
            self._last_sampled = self.state.sim_time
            self._trail.append(self._com_screen())

    def _on_param_changed(self, name: str) -> None:
        if name == "spin":
            self._top.aux["omega"] = self.param("spin")
        elif name == "tilt":
            self._top.x = self.theta0
            self._top.v = 0.0
        self._update_derived()

    def _on_mode_changed(self, previous: StrEnum, mode: StrEnum) -> None:
        if mode is SpinningTopMode.STABILIZE:
            self._windows = 0
            self.enter_challenge("Keep the wobble small with Left/Right nudges")
        else:
            self.exit_challenge()
        self.reset()

    # -- interaction -----------------------------------------------------------------

    def nudge(self, direction: int) -> None:
        if self._fallen:
            return
        self._top.v += NUDGE_RAD_S * (1.0 if direction > 0 else -1.0)
        self.play_sfx("whoosh")

    def handle_key(self, key: int) -> bool:
        if self.mode is not SpinningTopMode.STABILIZE:
            return False
        if key == pygame.K_LEFT:
            self.nudge(-1)
            return True
        if key == pygame.K_RIGHT:
            self.nudge(1)
            return True
        return False

    def handle_click(self, x: float, y: float) -> None:
        if self.mode is not SpinningTopMode.STABILIZE:
            return
        cx, _, _ = self._layout()
        self.nudge(1 if x > cx else -1)

    def submit(self) -> None:
        if self._fallen:
            self.reset()

    def audio_profile(self) -> tuple[ToneRequest, ...]:
        omega = self._top.aux["omega"]
        freq = max(80.0, min(900.0, 100.0 + omega * 2.0))
        return (ToneRequest(freq_hz=freq, gain=0.06 * min(1.0, omega / 160.0)),)

    # -- drawing ------------------------------------------------------------------------

    def _layout(self) -> tuple[float, float, float]:
        w, _ = self.viewport
        sh = self.scene_height()
        return w * 0.36, sh * 0.78, _PROJECTION_SCALE * min(1.0, sh / 470.0)

    def _project(self, x: float, y: float, z: float) -> tuple[float, float]:
        cx, base_y, scale = self._layout()
        return cx + scale * (x + 0.45 * z), base_y - scale * (y + 0.2 * z)

    def _com_screen(self) -> tuple[float, float]:
        theta = self.drawn_tilt()
        phi = self._top.aux["phi"]
        stem = self.param("stem")
        return self._project(
            math.sin(theta) * math.cos(phi) * stem,
            math.cos(theta) * stem,
            math.sin(theta) * math.sin(phi) * stem,
        )

    def _draw_scene(self, canvas: Canvas) -> None:
        w = canvas.width
        sh = self.scene_height()
        cx, base_y, scale = self._layout()
        canvas.clear((11, 18, 32))
        fill_rect(canvas, 0, base_y + 8, w, sh - base_y - 8, (17, 24, 39))
        draw_line(canvas, 0, base_y + 8, w, base_y + 8, MUTED_TEXT, width=1)

        theta = self.drawn_tilt()
        phi = self._top.aux["phi"]
        omega = self._top.aux["omega"]
        stem = self.param("stem")

        guide_r = abs(stem * math.sin(theta) * scale)
        draw_ellipse(
            canvas,
            cx,
            base_y - stem * math.cos(theta) * scale,
            guide_r,
            guide_r * 0.35,
            BODY_COLOR,
            width=1,
            alpha=0.25,
        )

        trail = list(self._trail)
        for i in range(1, len(trail)):
            a = i / len(trail)
            (x0, y0), (x1, y1) = trail[i - 1], trail[i]
            draw_line(canvas, x0, y0, x1, y1, mix((11, 18, 32), TRAIL_COLOR, a * 0.5 + 0.2), width=2)

        px, py = self._project(0.0, 0.0, 0.0)
        comx, comy = self._com_screen()
        draw_line(canvas, px, py, comx, comy, AXIS_COLOR, width=2.5)
        body_color = mix(hex_color("#1d4ed8"), hex_color("#60a5fa"), 0.5)
        draw_ellipse(canvas, comx, comy, 26, 16, body_color)
        draw_ellipse(canvas, comx, comy, 34, 19, SPIN_COLOR, width=2, alpha=0.25 + 0.45 * min(1.0, omega / 160.0))
        draw_circle(canvas, px, py, 5, PIVOT_COLOR)
        draw_text(canvas, f"theta = {math.degrees(theta):.1f} deg", cx - 120, base_y - 18, size=11, color=SPIN_COLOR)

        d = self.state.derived
        rows = (
            InfoRow("omega spin", f"{omega:.1f} rad/s", hex_color("#22c55e")),
            InfoRow("Omega prec", f"{d.get('precession', 0.0):.2f} rad/s", hex_color("#a78bfa")),
            InfoRow("L", f"{d.get('angular_momentum', 0.0):.3f} kg m2/s", SPIN_COLOR),
            InfoRow("KE rot", f"{d.get('ke_rot', 0.0):.2f} J", hex_color("#60a5fa")),
            InfoRow("I", f"{d.get('inertia', 0.0):.4f} kg m2"),
        )
        draw_info_panel(canvas, w * 0.62, 18, w * 0.34, 34 + 15 * len(rows), "SPINNING TOP", rows)
        draw_text(canvas, "Omega = mgl / (I omega)", w * 0.62 + 14, 34 + 15 * len(rows) + 34, size=10, color=MUTED_TEXT)

        if self.mode is SpinningTopMode.STABILIZE:
            meter_y = 34 + 15 * len(rows) + 60
            err = abs(self._top.x - self.theta0)
            draw_meter(canvas, w * 0.62, meter_y, w * 0.34, 14, err, FALL_ANGLE - self.theta0, hex_color("#ef4444"), label="wobble")
            draw_meter(canvas, w * 0.62, meter_y + 34, w * 0.34, 14, self._window_t, WINDOW_S, hex_color("#22c55e"), label="window")
