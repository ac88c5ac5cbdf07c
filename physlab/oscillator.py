"""Spring-mass oscillator.

``SANDBOX`` and ``CHALLENGE`` evaluate the damped closed form directly.
``PUSH`` and ``RESONANCE`` are path dependent (impulses, a driving force) and
are step-integrated; the drive ``F0 cos(w_d t)`` is folded into the force
function instead of being superposed on the closed form.
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
    draw_meter,
    draw_polyline,
    draw_text,
    fill_rect,
    hex_color,
)
from .integrators import IntegratorState, safe_div, velocity_verlet_damped
from .interaction import is_point_in_rect
from .simulation import MUTED_TEXT, PANEL_TEXT, ParamSpec, SimulationBase, ToneRequest
from .surface import Canvas

TRACK_EXTENT = 180.0
IMPULSE = 80.0
HISTORY_LEN = 300
_SUBSTEP_S = 1.0 / 240.0
_BLOCK_PX = 44.0
_OOB_REARM_FRAC = 0.95

BLOCK_COLOR = hex_color("#3b82f6")
SPRING_COLOR = hex_color("#94a3b8")
KE_COLOR = hex_color("#22c55e")
PE_COLOR = hex_color("#3b82f6")
TE_COLOR = hex_color("#f59e0b")


class OscillatorMode(StrEnum):
    SANDBOX = "sandbox"
    PUSH = "push"
    RESONANCE = "resonance"
    CHALLENGE = "challenge"


def angular_frequency(k: float, m: float) -> float:
    return math.sqrt(max(0.0, safe_div(k, m)))


def period(k: float, m: float) -> float:
    return safe_div(2.0 * math.pi, angular_frequency(k, m))


def closed_form(amplitude: float, k: float, m: float, b: float, t: float) -> tuple[float, float]:
    """``x = A e^{-bt/2m} cos(wt)`` and its time derivative."""

    omega = angular_frequency(k, m)
    gamma = safe_div(b, 2.0 * m)
    env = amplitude * math.exp(-gamma * t)
    x = env * math.cos(omega * t)
    v = env * (-gamma * math.cos(omega * t) - omega * math.sin(omega * t))
    return x, v


class Oscillator(SimulationBase):
    key = "oscillator"
    title = "Simple Harmonic Motion"
    param_specs = (
        ParamSpec("mass", "m", 0.5, 5.0, 0.1, 2.0, "kg"),
        ParamSpec("spring_k", "k", 1.0, 50.0, 1.0, 10.0, "N/m"),
        ParamSpec("amplitude", "A", 20.0, 150.0, 5.0, 100.0),
        ParamSpec("damping", "b", 0.0, 2.0, 0.05, 0.0),
        ParamSpec("drive_ratio", "wd/w0", 0.2, 2.0, 0.05, 1.0),
        ParamSpec("drive_force", "F0", 0.0, 200.0, 5.0, 60.0, "N"),
    )
    modes = tuple(OscillatorMode)

    def _init_state(self) -> None:
        self._body = IntegratorState()
        self._history: deque[float] = deque(maxlen=HISTORY_LEN)
        self._last_sampled = -1.0
        self._out_of_bounds = False
        self._oob_count = 0
        self._target_period = 1.5
        self._steppers = {
            OscillatorMode.SANDBOX: self._step_closed_form,
            OscillatorMode.CHALLENGE: self._step_closed_form,
            OscillatorMode.PUSH: self._step_integrated,
            OscillatorMode.RESONANCE: self._step_integrated,
        }

    @property
    def body(self) -> IntegratorState:
        return self._body

    @property
    def out_of_bounds(self) -> bool:
        return self._out_of_bounds

    @property
    def oob_count(self) -> int:
        return self._oob_count

    @property
    def target_period(self) -> float:
        return self._target_period

    @property
    def history(self) -> tuple[float, ...]:
        return tuple(self._history)

    def visible_params(self) -> tuple[ParamSpec, ...]:
        names = {
            OscillatorMode.SANDBOX: ("mass", "spring_k", "amplitude", "damping"),
            OscillatorMode.PUSH: ("mass", "spring_k", "damping"),
            OscillatorMode.RESONANCE: ("mass", "spring_k", "damping", "drive_ratio", "drive_force"),
            OscillatorMode.CHALLENGE: ("mass", "spring_k"),
        }[self.mode]
        return tuple(spec for spec in self.param_specs if spec.name in names)

    # -- physics ------------------------------------------------------------

    def _reset_physics(self) -> None:
        self._body = IntegratorState()
        if self.mode in (OscillatorMode.SANDBOX, OscillatorMode.CHALLENGE):
            self._body.x = self.param("amplitude")
        self._history.clear()
        self._last_sampled = -1.0
        self._out_of_bounds = False

    def _advance(self, dt: float) -> None:
        self._steppers[self.mode](dt)

    def _step_closed_form(self, dt: float) -> None:
        p = self.state.params
        x, v = closed_form(p["amplitude"], p["spring_k"], p["mass"], p["damping"], self.state.sim_time)
        self._body.x = x
        self._body.v = v
        self._body.t = self.state.sim_time

    def _step_integrated(self, dt: float) -> None:
        p = self.state.params
        m = p["mass"]
        k = p["spring_k"]
        b = p["damping"]
        driven = self.mode is OscillatorMode.RESONANCE
        f0 = p["drive_force"] if driven else 0.0
        omega_d = p["drive_ratio"] * angular_frequency(k, m)

        def accel(x: float, v: float, t: float) -> float:
            return safe_div(-k * x - b * v + f0 * math.cos(omega_d * t), m)

        n = max(1, int(math.ceil(dt / _SUBSTEP_S)))
        h = dt / n
        for _ in range(n):
            velocity_verlet_damped(self._body, accel, h)
            self._enforce_track()

    def _enforce_track(self) -> None:
        x = self._body.x
        if abs(x) > TRACK_EXTENT:
            self._body.x = math.copysign(TRACK_EXTENT, x)
            self._body.v = 0.0
            if not self._out_of_bounds:
                self._out_of_bounds = True
                self._oob_count += 1
                self._status = "Hit the end stop! Lower the drive or add damping."
                self.play_sfx("collision")
                bx, by = self._block_center()
                self.particles.emit_sparks(bx, by, hex_color("#fbbf24"), 12)
        elif self._out_of_bounds and abs(x) < TRACK_EXTENT * _OOB_REARM_FRAC:
            self._out_of_bounds = False

    def _update_derived(self) -> None:
        p = self.state.params
        m = p["mass"]
        k = p["spring_k"]
        x = self._body.x
        v = self._body.v
        ke = 0.5 * m * v * v / 1000.0
        pe = 0.5 * k * x * x / 1000.0
        d = self.state.derived
        d["x"] = x
        d["v"] = v
        d["omega"] = angular_frequency(k, m)
        d["period"] = period(k, m)
        d["ke"] = ke
        d["pe"] = pe
        d["te"] = ke + pe

    def _update_effects(self, dt: float) -> None:
        if self.state.sim_time != self._last_sampled:
            self._last_sampled = self.state.sim_time
            self._history.append(self._body.x)

    def _on_param_changed(self, name: str) -> None:
        if self.mode in (OscillatorMode.SANDBOX, OscillatorMode.CHALLENGE):
            self._step_closed_form(0.0)
        self._update_derived()

    def _on_mode_changed(self, previous: StrEnum, mode: StrEnum) -> None:
        if mode is OscillatorMode.CHALLENGE:
            self._new_target()
            self.enter_challenge("Tune m and k to match the target period")
        else:
            self.exit_challenge()
        self.reset()

    def _new_target(self) -> None:
        self._target_period = round(self._rng.uniform(0.8, 3.0), 2)

    # -- interaction ---------------------------------------------------------------

    def handle_click(self, x: float, y: float) -> None:
        if self.mode is not OscillatorMode.PUSH:
            return
        bx, by = self._block_center()
        half = _BLOCK_PX / 2
        if not is_point_in_rect(x, y, bx - half, by - half, _BLOCK_PX, _BLOCK_PX):
            return
        # Clicking the left face pushes right, and vice versa.
        direction = 1.0 if x < bx else -1.0
        self._body.v += direction * safe_div(IMPULSE, self.param("mass"))
        self.play_sfx("whoosh")
        self.particles.emit_glow(x, y, hex_color("#60a5fa"), 6)

    def submit(self) -> None:
        if self.mode is not OscillatorMode.CHALLENGE:
            return
        p = self.state.params
        t_user = period(p["spring_k"], p["mass"])
        w, h = self.viewport
        self.grade(t_user, self._target_period, self._target_period, x=w / 2, y=self.scene_height() * 0.3)
        self._new_target()

    def audio_profile(self) -> tuple[ToneRequest, ...]:
        omega = self.state.derived.get("omega", 0.0)
        pitch = max(80.0, min(1200.0, 110.0 * omega / (2.0 * math.pi) * 4.0))
        v_ref = max(1.0, self.param("amplitude") * omega)
        gain = min(1.0, abs(self._body.v) / v_ref) * 0.5
        return (ToneRequest(freq_hz=pitch, gain=gain),)

    # -- drawing --------------------------------------------------------------------

    def _layout(self) -> tuple[float, float, float]:
        w, _ = self.viewport
        track_y = self.scene_height() * 0.34
        extent_px = 0.42 * w * 0.8
        center_x = w * 0.42
        return center_x, track_y, extent_px / TRACK_EXTENT

    def _block_center(self) -> tuple[float, float]:
        cx, ty, scale = self._layout()
        return cx + self._body.x * scale, ty

    def _draw_scene(self, canvas: Canvas) -> None:
        cx, ty, scale = self._layout()
        w = canvas.width
        sh = self.scene_height()
        extent_px = TRACK_EXTENT * scale
        wall_x = cx - extent_px - _BLOCK_PX

        fill_rect(canvas, cx - extent_px - _BLOCK_PX / 2, ty + _BLOCK_PX / 2, extent_px * 2 + _BLOCK_PX, 4, (51, 65, 85))
        fill_rect(canvas, wall_x - 10, ty - 50, 10, 100, (71, 85, 105))
        for sign in (-1, 1):
            stop_x = cx + sign * (extent_px + _BLOCK_PX / 2)
            fill_rect(canvas, stop_x - 2, ty - 30, 4, 60, (239, 68, 68), alpha=0.6)
        draw_line(canvas, cx, ty - 60, cx, ty + 40, (255, 255, 255), width=1, dashed=True)

        bx, by = self._block_center()
        self._draw_spring(canvas, wall_x, bx - _BLOCK_PX / 2, by)
        fill_rect(canvas, bx - _BLOCK_PX / 2, by - _BLOCK_PX / 2, _BLOCK_PX, _BLOCK_PX, BLOCK_COLOR, radius=6)
        draw_text(canvas, f"{self.param('mass'):.1f} kg", bx, by, size=10, color=(255, 255, 255), align="center")

        v = self._body.v
        draw_arrow(canvas, bx, by - _BLOCK_PX, v * scale * 0.3, 0, hex_color("#22c55e"), label="v")
        x = self._body.x
        draw_arrow(canvas, bx, by + _BLOCK_PX, -x * scale * 0.3, 0, hex_color("#ef4444"), label="F")

        if self.mode is OscillatorMode.RESONANCE:
            draw_text(
                canvas,
                f"drive {self.param('drive_force'):.0f} N @ {self.param('drive_ratio'):.2f} w0",
                cx,
                ty - 80,
                size=11,
                color=hex_color("#f59e0b"),
                align="center",
            )
        elif self.mode is OscillatorMode.PUSH:
            draw_text(canvas, "Click a face of the block to push it", cx, ty - 80, size=11, color=MUTED_TEXT, align="center")
        elif self.mode is OscillatorMode.CHALLENGE:
            draw_text(
                canvas,
                f"Target period {self._target_period:.2f} s   yours {self.state.derived.get('period', 0.0):.2f} s",
                cx,
                ty - 80,
                size=12,
                color=hex_color("#f59e0b"),
                align="center",
                bold=True,
            )

        self._draw_history(canvas, 40, sh * 0.6, w - 300, sh * 0.34)
        self._draw_energy(canvas, w - 240, sh * 0.58)

    def _draw_spring(self, canvas: Canvas, x0: float, x1: float, y: float) -> None:
        coils = 12
        length = x1 - x0
        pts = [(x0, y)]
        for i in range(1, coils * 2):
            px = x0 + length * i / (coils * 2)
            py = y + (8 if i % 2 else -8)
            pts.append((px, py))
        pts.append((x1, y))
        draw_polyline(canvas, pts, SPRING_COLOR, width=2)

    def _draw_history(self, canvas: Canvas, x: float, y: float, w: float, h: float) -> None:
        fill_rect(canvas, x, y, w, h, (0, 0, 0), radius=6, alpha=0.35)
        draw_text(canvas, "x(t)", x + 8, y + 10, size=10, color=MUTED_TEXT)
        mid = y + h / 2
        draw_line(canvas, x, mid, x + w, mid, (255, 255, 255), width=1, dashed=True)
        if len(self._history) < 2:
            return
        step = w / (HISTORY_LEN - 1)
        pts = [
            (x + i * step, mid - (value / TRACK_EXTENT) * (h / 2 - 4))
            for i, value in enumerate(self._history)
        ]
        draw_polyline(canvas, pts, BLOCK_COLOR, width=2)

    def _draw_energy(self, canvas: Canvas, x: float, y: float) -> None:
        d = self.state.derived
        te = d.get("te", 0.0)
        scale = max(te, 1e-6)
        draw_info_panel(
            canvas,
            x,
            y,
            220,
            96,
            "ENERGY",
            (
                InfoRow("KE", f"{d.get('ke', 0.0):.2f}", KE_COLOR),
                InfoRow("PE", f"{d.get('pe', 0.0):.2f}", PE_COLOR),
                InfoRow("TE", f"{te:.2f}", TE_COLOR),
                InfoRow("T", f"{d.get('period', 0.0):.2f} s", PANEL_TEXT),
            ),
        )
        draw_meter(canvas, x, y + 104, 220, 8, d.get("ke", 0.0), scale, KE_COLOR)
        draw_meter(canvas, x, y + 116, 220, 8, d.get("pe", 0.0), scale, PE_COLOR)
        if self._oob_count:
            draw_text(canvas, f"end-stop hits: {self._oob_count}", x, y + 138, size=10, color=hex_color("#ef4444"))
