"""Bohr model of hydrogen.

The electron occupies one of the quantized levels ``n = 1..6`` with
``E_n = -13.6 / n^2`` eV. A transition snaps the level immediately and emits
or absorbs a photon of energy ``|dE|`` and wavelength ``1240 / |dE|`` nm; only
the drawn orbit radius eases to the new level.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum

import pygame

from .core import clamp01, lerp
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
    wavelength_to_rgb,
)
from .simulation import KEY_DIGITS, MUTED_TEXT, SimulationBase
from .surface import Canvas

RYDBERG_EV = 13.6
HC_EV_NM = 1240.0
N_MIN = 1
N_MAX = 6
TRANSITION_ANIM_S = 0.4
PHOTON_ANIM_S = 0.8
_LEVEL_HIT_PX = 9.0

NUCLEUS_COLOR = hex_color("#ef4444")
ELECTRON_COLOR = hex_color("#3b82f6")
LEVEL_ACTIVE = hex_color("#fbbf24")


class HydrogenMode(StrEnum):
    EXPLORE = "explore"
    CHALLENGE = "challenge"


class TransitionKind(StrEnum):
    ABSORPTION = "absorption"
    EMISSION = "emission"


@dataclass(frozen=True, slots=True)
class Transition:
    n_from: int
    n_to: int
    energy_ev: float
    wavelength_nm: float
    kind: TransitionKind


def level_energy(n: int) -> float:
    if n < 1:
        raise ValueError("principal quantum number must be >= 1")
    return -RYDBERG_EV / (n * n)


def photon_energy(n_from: int, n_to: int) -> float:
    return abs(level_energy(n_to) - level_energy(n_from))


def photon_wavelength(energy_ev: float) -> float:
    return HC_EV_NM / energy_ev if energy_ev > 0.0 else math.inf


def radial_probability(n: int, r_norm: float) -> float:
    """Rough radial density used only for the cloud shading."""

    if n == 1:
        return 4 * r_norm * r_norm * math.exp(-2 * r_norm)
    if n == 2:
        return r_norm * r_norm * (2 - r_norm) ** 2 * math.exp(-r_norm) / 8
    return r_norm * r_norm * math.exp(-2 * r_norm / n) * (1 + 0.5 * math.sin(r_norm * n)) ** 2


class HydrogenAtom(SimulationBase):
    key = "hydrogen_atom"
    title = "Hydrogen Atom"
    param_specs = ()
    modes = tuple(HydrogenMode)
    hints = "1-6 or click a level to jump  P cloud  Enter skip target  M mode"

    def _init_state(self) -> None:
        self._n = 1
        self._anim_from_n = 1
        self._anim_t = TRANSITION_ANIM_S
        self._photon_age = PHOTON_ANIM_S
        self._last: Transition | None = None
        self._show_cloud = True
        self._target_energy = 0.0
        self._transitions = 0

    @property
    def level(self) -> int:
        return self._n

    @property
    def energy(self) -> float:
        return level_energy(self._n)

    @property
    def last_transition(self) -> Transition | None:
        return self._last

    @property
    def show_cloud(self) -> bool:
        return self._show_cloud

    @property
    def target_energy(self) -> float:
        return self._target_energy

    def drawn_radius_level(self) -> float:
        """Effective ``n^2`` used for the drawn orbit while easing between levels."""

        f = clamp01(self._anim_t / TRANSITION_ANIM_S)
        ease = 1.0 - (1.0 - f) ** 3
        return lerp(self._anim_from_n ** 2, self._n ** 2, ease)

    def _reset_physics(self) -> None:
        self._n = 1
        self._anim_from_n = 1
        self._anim_t = TRANSITION_ANIM_S
        self._photon_age = PHOTON_ANIM_S
        self._last = None

    def _update_derived(self) -> None:
        d = self.state.derived
        d["n"] = float(self._n)
        d["energy_ev"] = level_energy(self._n)
        d["orbit_radius"] = float(self._n * self._n)

    def _update_effects(self, dt: float) -> None:
        self._anim_t = min(TRANSITION_ANIM_S, self._anim_t + dt)
        self._photon_age = min(PHOTON_ANIM_S, self._photon_age + dt)

    def transition_to(self, n: int) -> Transition | None:
        n = int(n)
        if not (N_MIN <= n <= N_MAX):
            raise ValueError(f"level must be in [{N_MIN}, {N_MAX}]")
        if n == self._n:
            return None
        energy = photon_energy(self._n, n)
        kind = TransitionKind.ABSORPTION if n > self._n else TransitionKind.EMISSION
        event = Transition(
            n_from=self._n,
            n_to=n,
            energy_ev=energy,
            wavelength_nm=photon_wavelength(energy),
            kind=kind,
        )
        self._anim_from_n = self._n
        self._anim_t = 0.0
        self._photon_age = 0.0
        self._n = n
        self._last = event
        self._transitions += 1
        self._update_derived()

        ex, ey = self._electron_screen()
        if kind is TransitionKind.EMISSION:
            self.particles.emit_glow(ex, ey, wavelength_to_rgb(event.wavelength_nm), 10)
            self.play_sfx("drop")
        else:
            self.play_sfx("powerup")

        if self.mode is HydrogenMode.CHALLENGE:
            self.grade(event.energy_ev, self._target_energy, self._target_energy, x=ex, y=ey - 30)
            self._new_target()
        return event

    def _new_target(self) -> None:
        # Any pair of distinct levels; the current level need not be one of them.
        while True:
            a = self._rng.randint(N_MIN, N_MAX)
            b = self._rng.randint(N_MIN, N_MAX)
            if a != b:
                break
        self._target_energy = round(photon_energy(a, b), 2)

    def _on_mode_changed(self, previous: StrEnum, mode: StrEnum) -> None:
        if mode is HydrogenMode.CHALLENGE:
            self._new_target()
            self.enter_challenge("Emit or absorb a photon with the target energy")
        else:
            self.exit_challenge()

    def handle_key(self, key: int) -> bool:
        n = KEY_DIGITS.get(key)
        if n is not None:
            self.transition_to(n)
            return True
        if key == pygame.K_p:
            self._show_cloud = not self._show_cloud
            return True
        return False

    def submit(self) -> None:
        if self.mode is HydrogenMode.CHALLENGE:
            self._new_target()

    def handle_click(self, x: float, y: float) -> None:
        elv_x, elv_w, ys = self._level_rows()
        if not (elv_x - 40 <= x <= elv_x + elv_w + 40):
            return
        for n, ly in ys.items():
            if abs(y - ly) <= _LEVEL_HIT_PX:
                self.transition_to(n)
                return

    # -- layout ---------------------------------------------------------------------

    def _atom_geometry(self) -> tuple[float, float, float]:
        w, _ = self.viewport
        sh = self.scene_height()
        return w * 0.32, sh * 0.5, min(w * 0.28, sh * 0.44)

    def _orbit_radius(self, n_squared: float) -> float:
        _, _, max_r = self._atom_geometry()
        return n_squared * max_r / (N_MAX * N_MAX + 4)

    def _electron_screen(self) -> tuple[float, float]:
        ax, ay, _ = self._atom_geometry()
        r = self._orbit_radius(self.drawn_radius_level())
        angle = self.state.sim_time * 3.0 / self._n
        return ax + r * math.cos(angle), ay + r * math.sin(angle)

    def _level_rows(self) -> tuple[float, float, dict[int, float]]:
        w, _ = self.viewport
        sh = self.scene_height()
        elv_x = w * 0.66
        elv_w = w * 0.24
        zero_y = 50.0
        span = sh - 100.0
        ys = {n: zero_y + (-level_energy(n) / RYDBERG_EV) * span for n in range(N_MIN, N_MAX + 1)}
        return elv_x, elv_w, ys

    # -- drawing ----------------------------------------------------------------------

    def _draw_scene(self, canvas: Canvas) -> None:
        canvas.clear((2, 6, 23))
        ax, ay, max_r = self._atom_geometry()

        for n in range(N_MAX, N_MIN - 1, -1):
            r = self._orbit_radius(n * n)
            selected = n == self._n
            if self._show_cloud:
                step = 3.0
                rr = step
                while rr < min(r * 1.8, max_r):
                    prob = radial_probability(n, rr / r)
                    alpha = min(0.3, prob * (0.15 if selected else 0.04))
                    if alpha >= 0.002:
                        color = ELECTRON_COLOR if selected else (148, 163, 184)
                        draw_circle(canvas, ax, ay, rr, color, alpha=alpha, width=2)
                    rr += step
            draw_circle(
                canvas,
                ax,
                ay,
                r,
                ELECTRON_COLOR if selected else (255, 255, 255),
                alpha=0.4 if selected else 0.08,
                width=2 if selected else 1,
            )
            draw_text(
                canvas,
                f"n={n}",
                ax + r + 5,
                ay - 3,
                size=11 if selected else 9,
                color=ELECTRON_COLOR if selected else MUTED_TEXT,
                bold=selected,
            )

        draw_glow(canvas, ax, ay, 15, NUCLEUS_COLOR)
        draw_circle(canvas, ax, ay, 5, NUCLEUS_COLOR)

        ex, ey = self._electron_screen()
        draw_glow(canvas, ex, ey, 12, ELECTRON_COLOR)
        draw_circle(canvas, ex, ey, 4, ELECTRON_COLOR)

        if self._last is not None and self._photon_age < PHOTON_ANIM_S:
            self._draw_photon(canvas, ex, ey, self._last)

        self._draw_levels(canvas)

        rows = [
            InfoRow("Level", f"n = {self._n}", LEVEL_ACTIVE),
            InfoRow("Energy", f"{self.energy:.2f} eV"),
        ]
        if self._last is not None:
            color = wavelength_to_rgb(self._last.wavelength_nm)
            rows.append(InfoRow("Photon", f"{self._last.energy_ev:.2f} eV", color))
            rows.append(InfoRow("Wavelength", f"{self._last.wavelength_nm:.0f} nm", color))
            rows.append(InfoRow("Type", self._last.kind.value))
        draw_info_panel(canvas, 10, 10, 200, 34 + 15 * len(rows), "BOHR MODEL", rows)

        if self.mode is HydrogenMode.CHALLENGE:
            draw_text(
                canvas,
                f"Target photon: {self._target_energy:.2f} eV",
                ax,
                self.scene_height() - 20,
                size=13,
                color=LEVEL_ACTIVE,
                align="center",
                bold=True,
            )

    def _draw_photon(self, canvas: Canvas, ex: float, ey: float, event: Transition) -> None:
        color = wavelength_to_rgb(event.wavelength_nm)
        f = self._photon_age / PHOTON_ANIM_S
        dist = 180.0
        outward = event.kind is TransitionKind.EMISSION
        start = 20.0 + (dist * f if outward else dist * (1.0 - f))
        pts: list[tuple[float, float]] = []
        for i in range(30):
            s = start + i * 2.0
            pts.append((ex + s, ey + math.sin(s * 0.3) * 5))
        draw_polyline(canvas, pts, color, width=2)

    def _draw_levels(self, canvas: Canvas) -> None:
        elv_x, elv_w, ys = self._level_rows()
        sh = self.scene_height()
        fill_rect(canvas, elv_x - 60, 20, elv_w + 110, sh - 40, (0, 0, 0), radius=8, alpha=0.4)
        draw_text(canvas, "ENERGY LEVELS", elv_x + elv_w / 2, 32, size=10, color=MUTED_TEXT, align="center", bold=True)
        draw_line(canvas, elv_x, 50, elv_x + elv_w, 50, (255, 255, 255), width=1, dashed=True)
        draw_text(canvas, "0 eV", elv_x - 5, 50, size=9, color=MUTED_TEXT, align="right")

        for n, ly in ys.items():
            active = n == self._n
            color = LEVEL_ACTIVE if active else (100, 116, 139)
            draw_line(canvas, elv_x, ly, elv_x + elv_w, ly, color, width=3 if active else 1)
            draw_text(canvas, f"n={n}", elv_x + elv_w + 5, ly, size=11 if active else 10, color=color, bold=active)
            draw_text(canvas, f"{level_energy(n):.2f}", elv_x - 5, ly, size=9, color=color, align="right")

        if self._n > 1:
            yi = ys[self._n]
            for nf in range(1, self._n):
                yf = ys[nf]
                ax = elv_x + elv_w * 0.3 + nf * 15
                pts = []
                py = yi
                while py <= yf:
                    pts.append((ax + math.sin((py - yi) * 0.3) * 5, py))
                    py += 2.0
                draw_polyline(canvas, pts, hex_color("#a855f7"), width=1.5)
                draw_text(canvas, f"{photon_energy(self._n, nf):.1f}eV", ax + 8, (yi + yf) / 2, size=8, color=hex_color("#a855f7"))
