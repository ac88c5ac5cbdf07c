"""Carnot cycle on one mole of monatomic ideal gas.

The cycle is A -> B isothermal expansion at ``T_hot``, B -> C adiabatic
expansion, C -> D isothermal compression at ``T_cold`` and D -> A adiabatic
compression. The state point walks the cycle at ``cycle_speed`` stages per
second; its ``(V, P, T)`` is interpolated within the current stage.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum

from .drawing import (
    InfoRow,
    draw_circle,
    draw_glow,
    draw_info_panel,
    draw_line,
    draw_polyline,
    draw_text,
    fill_rect,
    hex_color,
    mix,
)
from .integrators import safe_div
from .simulation import MUTED_TEXT, ParamSpec, SimulationBase, ToneRequest
from .surface import Canvas

N_MOLES = 1.0
R_GAS = 8.314
GAMMA = 5.0 / 3.0
V_A = 1.0
V_B = 3.0
STAGES = 4
CHALLENGE_TOLERANCE_FRAC = 0.5

HOT_COLOR = hex_color("#ef4444")
COLD_COLOR = hex_color("#3b82f6")
STAGE_NAMES = (
    "Isothermal expansion",
    "Adiabatic expansion",
    "Isothermal compression",
    "Adiabatic compression",
)


class HeatEngineMode(StrEnum):
    SANDBOX = "sandbox"
    CHALLENGE = "challenge"


@dataclass(frozen=True, slots=True)
class CarnotCycle:
    t_hot: float
    t_cold: float

    @property
    def adiabatic_ratio(self) -> float:
        return (self.t_hot / self.t_cold) ** (1.0 / (GAMMA - 1.0))

    @property
    def volumes(self) -> tuple[float, float, float, float]:
        r = self.adiabatic_ratio
        return V_A, V_B, V_B * r, V_A * r

    @property
    def efficiency(self) -> float:
        return 1.0 - safe_div(self.t_cold, self.t_hot)

    @property
    def heat_in(self) -> float:
        return N_MOLES * R_GAS * self.t_hot * math.log(V_B / V_A)

    @property
    def heat_out(self) -> float:
        _, _, v_c, v_d = self.volumes
        return N_MOLES * R_GAS * self.t_cold * math.log(v_c / v_d)

    @property
    def work(self) -> float:
        return self.heat_in - self.heat_out

    def state_at(self, progress: float) -> tuple[float, float, float, int]:
        """``(V, P, T, stage)`` at ``progress`` in ``[0, 4)`` stages."""

        p = progress % STAGES
        stage = min(STAGES - 1, int(p))
        f = p - stage
        v_a, v_b, v_c, v_d = self.volumes
        starts = (v_a, v_b, v_c, v_d)
        ends = (v_b, v_c, v_d, v_a)
        v0 = starts[stage]
        v1 = ends[stage]
        v = v0 + (v1 - v0) * f
        if stage == 0:
            t = self.t_hot
        elif stage == 2:
            t = self.t_cold
        else:
            t_start = self.t_hot if stage == 1 else self.t_cold
            t = t_start * (v0 / v) ** (GAMMA - 1.0)
        return v, N_MOLES * R_GAS * t / v, t, stage


class HeatEngine(SimulationBase):
    key = "heat_engine"
    title = "Carnot Heat Engine"
    param_specs = (
        ParamSpec("t_hot", "T hot", 400.0, 1000.0, 10.0, 600.0, "K"),
        ParamSpec("t_cold", "T cold", 200.0, 500.0, 10.0, 300.0, "K"),
        ParamSpec("cycle_speed", "speed", 0.1, 2.0, 0.1, 0.5),
    )
    modes = tuple(HeatEngineMode)

    def _init_state(self) -> None:
        self._announced_stage = 0
        self._target_eff = 0.4

    @property
    def cycle(self) -> CarnotCycle:
        return CarnotCycle(self.param("t_hot"), self.param("t_cold"))

    def _phase(self) -> float:
        return self.state.sim_time * self.param("cycle_speed")

    @property
    def progress(self) -> float:
        """Position around the cycle in stages, ``(sim_time * cycle_speed) mod 4``."""

        return self._phase() % STAGES

    @property
    def stage(self) -> int:
        return min(STAGES - 1, int(self.progress))

    @property
    def cycles(self) -> int:
        return int(self._phase() // STAGES)

    @property
    def target_efficiency(self) -> float:
        return self._target_eff

    def _reset_physics(self) -> None:
        self._announced_stage = 0

    def _advance(self, dt: float) -> None:
        stage = self.stage
        if stage != self._announced_stage:
            self._announced_stage = stage
            self.play_sfx("tick")
            if stage == 0:
                w, _ = self.viewport
                self.particles.emit_bubbles(w * 0.74, 40.0 + self.scene_height() * 0.35, HOT_COLOR)

    def _update_derived(self) -> None:
        cycle = self.cycle
        v, p, t, stage = cycle.state_at(self.progress)
        d = self.state.derived
        d["volume"] = v
        d["pressure"] = p
        d["temperature"] = t
        d["stage"] = float(stage)
        d["efficiency"] = cycle.efficiency
        d["heat_in"] = cycle.heat_in
        d["heat_out"] = cycle.heat_out
        d["work"] = cycle.work

    def _on_param_changed(self, name: str) -> None:
        t_hot = self.state.params["t_hot"]
        if self.state.params["t_cold"] >= t_hot:
            # Keep the reservoirs ordered so the efficiency stays in (0, 1).
            self.state.params["t_cold"] = t_hot - 1.0
        self._update_derived()

    def _on_mode_changed(self, previous: StrEnum, mode: StrEnum) -> None:
        if mode is HeatEngineMode.CHALLENGE:
            self._new_target()
            self.enter_challenge("Set the reservoirs to hit the target efficiency")
        else:
            self.exit_challenge()

    def _new_target(self) -> None:
        self._target_eff = round(self._rng.uniform(0.2, 0.7), 2)

    def submit(self) -> None:
        if self.mode is not HeatEngineMode.CHALLENGE:
            return
        w, _ = self.viewport
        self.grade(
            self.cycle.efficiency,
            self._target_eff,
            CHALLENGE_TOLERANCE_FRAC * self._target_eff,
            x=w * 0.3,
            y=self.scene_height() * 0.3,
        )
        self._new_target()

    def audio_profile(self) -> tuple[ToneRequest, ...]:
        t = self.state.derived.get("temperature", self.param("t_cold"))
        return (ToneRequest(freq_hz=80.0 + t / 3.0, gain=0.12),)

    # -- drawing ---------------------------------------------------------------------

    def _draw_scene(self, canvas: Canvas) -> None:
        w = canvas.width
        sh = self.scene_height()
        cycle = self.cycle
        d = self.state.derived

        gx, gy, gw, gh = 60.0, 30.0, w * 0.55, sh - 80.0
        fill_rect(canvas, gx, gy, gw, gh, (0, 0, 0), radius=6, alpha=0.3)
        draw_line(canvas, gx, gy + gh, gx + gw, gy + gh, MUTED_TEXT, width=1)
        draw_line(canvas, gx, gy, gx, gy + gh, MUTED_TEXT, width=1)
        draw_text(canvas, "V (m3)", gx + gw - 20, gy + gh + 14, size=10, color=MUTED_TEXT, align="center")
        draw_text(canvas, "P", gx - 14, gy + 10, size=10, color=MUTED_TEXT, align="center")

        v_max = max(cycle.volumes) * 1.1
        p_max = N_MOLES * R_GAS * cycle.t_hot / V_A * 1.1

        def to_plot(v: float, p: float) -> tuple[float, float]:
            return gx + v / v_max * gw, gy + gh - p / p_max * gh

        samples = 48
        for stage in range(STAGES):
            color = HOT_COLOR if stage == 0 else COLD_COLOR if stage == 2 else hex_color("#a855f7")
            pts = []
            for i in range(samples + 1):
                v, p, _, _ = cycle.state_at(stage + min(i / samples, 0.9999))
                pts.append(to_plot(v, p))
            draw_polyline(canvas, pts, color, width=2)

        labels = "ABCD"
        for i, vol in enumerate(cycle.volumes):
            _, p, _, _ = cycle.state_at(float(i))
            px, py = to_plot(vol, p)
            draw_circle(canvas, px, py, 3, (255, 255, 255))
            draw_text(canvas, labels[i], px + 8, py - 8, size=10, color=(255, 255, 255))

        v, p, t, stage = cycle.state_at(self.progress)
        px, py = to_plot(v, p)
        temp_color = mix(COLD_COLOR, HOT_COLOR, safe_div(t - cycle.t_cold, cycle.t_hot - cycle.t_cold))
        draw_glow(canvas, px, py, 16, temp_color)
        draw_circle(canvas, px, py, 6, temp_color)
        draw_text(canvas, STAGE_NAMES[stage], gx + gw / 2, gy + 14, size=11, color=temp_color, align="center", bold=True)

        self._draw_piston(canvas, w * 0.66, 40.0, w * 0.3, sh * 0.35, v, v_max, temp_color)

        rows = (
            InfoRow("Efficiency", f"{cycle.efficiency * 100:.1f}%", hex_color("#22c55e")),
            InfoRow("Q in", f"{d.get('heat_in', 0.0):.0f} J", HOT_COLOR),
            InfoRow("Q out", f"{d.get('heat_out', 0.0):.0f} J", COLD_COLOR),
            InfoRow("W net", f"{d.get('work', 0.0):.0f} J", hex_color("#f59e0b")),
            InfoRow("T gas", f"{t:.0f} K", temp_color),
            InfoRow("Cycles", str(self.cycles)),
        )
        draw_info_panel(canvas, w * 0.66, sh * 0.35 + 60, 220, 34 + 15 * len(rows), "CARNOT CYCLE", rows)

        if self.mode is HeatEngineMode.CHALLENGE:
            draw_text(
                canvas,
                f"Target efficiency {self._target_eff * 100:.0f}%  (Enter to submit)",
                gx + gw / 2,
                gy + gh - 14,
                size=11,
                color=hex_color("#f59e0b"),
                align="center",
                bold=True,
            )

    def _draw_piston(
        self,
        canvas: Canvas,
        x: float,
        y: float,
        w: float,
        h: float,
        volume: float,
        v_max: float,
        gas_color: tuple[int, int, int],
    ) -> None:
        fill_rect(canvas, x, y, w, h, (51, 65, 85), radius=4, width=2)
        gas_h = max(4.0, (volume / v_max) * (h - 12))
        fill_rect(canvas, x + 4, y + h - 4 - gas_h, w - 8, gas_h, gas_color, alpha=0.35)
        fill_rect(canvas, x + 2, y + h - 4 - gas_h - 8, w - 4, 8, (148, 163, 184))
        draw_line(canvas, x + w / 2, y + h - 4 - gas_h - 8, x + w / 2, y - 10, (148, 163, 184), width=4)
        fill_rect(canvas, x, y + h + 4, w / 2 - 2, 10, HOT_COLOR, alpha=0.8 if self.stage == 0 else 0.25)
        fill_rect(canvas, x + w / 2 + 2, y + h + 4, w / 2 - 2, 10, COLD_COLOR, alpha=0.8 if self.stage == 2 else 0.25)
        draw_text(canvas, f"{self.param('t_hot'):.0f} K", x + w / 4, y + h + 24, size=9, color=HOT_COLOR, align="center")
        draw_text(canvas, f"{self.param('t_cold'):.0f} K", x + 3 * w / 4, y + h + 24, size=9, color=COLD_COLOR, align="center")
