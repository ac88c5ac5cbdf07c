"""Projectile launch challenge with wind.

Easy flights are closed form. With wind the horizontal drag ``-0.1 * wind``
is folded into the force and the flight is Verlet-integrated; hard difficulty
makes the wind gust sinusoidally over the flight.
"""

from __future__ import annotations

import math
from enum import IntEnum, StrEnum

from .drawing import (
    InfoRow,
    draw_arrow,
    draw_circle,
    draw_glow,
    draw_info_panel,
    draw_line,
    draw_polyline,
    draw_target,
    draw_text,
    fill_polygon,
    fill_rect,
    hex_color,
)
from .integrators import verlet_step_2d
from .particles import EmitterConfig, ParticleShape
from .scoring import AccuracyResult, ScoreTier
from .simulation import MUTED_TEXT, ParamSpec, SimulationBase
from .surface import Canvas

GRAVITY = 9.8
WIND_DRAG = 0.1
TARGET_MIN_M = 50.0
TARGET_MAX_M = 350.0
TRAIL_LEN = 400
_GROUND_FRAC = 0.85
_ORIGIN_X = 60.0
_SUBSTEP_S = 1.0 / 240.0
_SMOKE_EVERY_S = 0.03
_MIN_FLIGHT_S = 0.05

# (max miss distance in metres, points, tier, label)
LANDING_TIERS: tuple[tuple[float, int, ScoreTier, str], ...] = (
    (5.0, 3, ScoreTier.PERFECT, "BULLSEYE!"),
    (15.0, 2, ScoreTier.GREAT, "CLOSE!"),
    (30.0, 1, ScoreTier.CLOSE, "HIT!"),
)
STREAK_BONUS_FROM = 3
STREAK_BONUS_CAP = 5

BALL_COLOR = hex_color("#fbbf24")
DIRT_COLOR = hex_color("#8b6914")
DUST_COLOR = (120, 100, 80)
SMOKE_COLOR = (148, 163, 184)

DIRT_BURST = EmitterConfig(
    speed=120.0,
    speed_variance=60.0,
    lifetime=0.6,
    lifetime_variance=0.3,
    gravity=400.0,
    size=3.0,
    size_variance=2.0,
    shape=ParticleShape.CIRCLE,
    angle=-math.pi / 2,
    spread=math.pi * 0.7,
)
SMOKE_PUFF = EmitterConfig(
    speed=10.0,
    speed_variance=10.0,
    lifetime=1.05,
    lifetime_variance=0.5,
    gravity=-10.0,
    size=4.0,
    size_variance=4.0,
    drag=0.98,
)


class ProjectileMode(StrEnum):
    CHALLENGE = "challenge"
    FREE_FIRE = "free fire"


class Difficulty(IntEnum):
    EASY = 0
    MEDIUM = 1
    HARD = 2


def grade_landing(miss_m: float) -> AccuracyResult:
    for bound, points, tier, label in LANDING_TIERS:
        if miss_m < bound:
            return AccuracyResult(points=points, tier=tier, label=label)
    return AccuracyResult(points=0, tier=ScoreTier.MISS, label="MISS!")


def apply_streak_bonus(result: AccuracyResult, streak_before: int) -> AccuracyResult:
    """Add the streak bonus a hit would earn on top of ``streak_before``."""

    if result.points <= 0:
        return result
    streak = streak_before + 1
    if streak < STREAK_BONUS_FROM:
        return result
    bonus = min(streak, STREAK_BONUS_CAP)
    return AccuracyResult(
        points=result.points + bonus,
        tier=result.tier,
        label=f"{result.label} STREAK x{bonus}!",
    )


def flight_closed_form(speed: float, angle_deg: float, t: float) -> tuple[float, float]:
    rad = math.radians(angle_deg)
    return speed * math.cos(rad) * t, speed * math.sin(rad) * t - 0.5 * GRAVITY * t * t


def range_no_wind(speed: float, angle_deg: float) -> float:
    return speed * speed * math.sin(2.0 * math.radians(angle_deg)) / GRAVITY


class ProjectileChallenge(SimulationBase):
    key = "projectile"
    title = "Projectile Challenge"
    param_specs = (
        ParamSpec("angle", "angle", 5.0, 85.0, 1.0, 45.0, "deg"),
        ParamSpec("speed", "speed", 10.0, 100.0, 1.0, 50.0, "m/s"),
        ParamSpec("difficulty", "wind", 0.0, 2.0, 1.0, 0.0, choices=("easy", "medium", "hard")),
    )
    modes = tuple(ProjectileMode)
    hints = "Left/Right tune  Enter or click to fire  M mode  R new target"

    def _init_state(self) -> None:
        self._target = 150.0
        self._wind_base = 0.0
        self._wind_phase = 0.0
        self._in_flight = False
        self._flight_t = 0.0
        self._pos = (0.0, 0.0)
        self._vel = (0.0, 0.0)
        self._trail: list[tuple[float, float]] = []
        self._landed_at: float | None = None
        self._last_miss: float | None = None
        self._smoke_timer = 0.0
        self._launch_speed = 0.0
        self._launch_angle = 0.0
        self._launch_difficulty = Difficulty.EASY
        self._wind_reroll_pending = False
        self.enter_challenge("Land the shell on the target")

    @property
    def target(self) -> float:
        return self._target

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def position(self) -> tuple[float, float]:
        return self._pos

    @property
    def landed_at(self) -> float | None:
        return self._landed_at

    @property
    def last_miss(self) -> float | None:
        return self._last_miss

    @property
    def difficulty(self) -> Difficulty:
        return Difficulty(int(round(self.param("difficulty"))))

    def flight_difficulty(self) -> Difficulty:
        """Difficulty governing the current shot; fixed from launch to landing."""

        return self._launch_difficulty if self._in_flight else self.difficulty

    def wind_at(self, t: float) -> float:
        """Wind speed in m/s; positive is a headwind."""

        diff = self.flight_difficulty()
        if diff is Difficulty.EASY:
            return 0.0
        if diff is Difficulty.MEDIUM:
            return self._wind_base
        return self._wind_base * (0.5 + 0.5 * math.sin(self._wind_phase + t * 1.5))

    def _reset_physics(self) -> None:
        self._in_flight = False
        self._flight_t = 0.0
        self._pos = (0.0, 0.0)
        self._vel = (0.0, 0.0)
        self._trail.clear()
        self._landed_at = None
        self._last_miss = None
        self._target = float(round(self._rng.uniform(TARGET_MIN_M, TARGET_MAX_M)))
        self._roll_wind()

    def _roll_wind(self) -> None:
        self._wind_reroll_pending = False
        diff = self.difficulty
        if diff is Difficulty.EASY:
            self._wind_base = 0.0
        elif diff is Difficulty.MEDIUM:
            self._wind_base = self._rng.uniform(3.0, 8.0)
        else:
            self._wind_base = self._rng.uniform(4.0, 10.0)
        self._wind_phase = self._rng.uniform(0.0, math.pi * 2)

    def _on_param_changed(self, name: str) -> None:
        if name != "difficulty":
            return
        if self._in_flight:
            self._wind_reroll_pending = True
        else:
            self._roll_wind()

    def _on_mode_changed(self, previous: StrEnum, mode: StrEnum) -> None:
        if mode is ProjectileMode.CHALLENGE:
            self.enter_challenge("Land the shell on the target")
        else:
            self.exit_challenge()
        self.reset()

    # -- flight -------------------------------------------------------------------

    def launch(self) -> bool:
        if self._in_flight:
            return False
        self._launch_speed = speed = self.param("speed")
        self._launch_angle = self.param("angle")
        self._launch_difficulty = self.difficulty
        rad = math.radians(self._launch_angle)
        self._in_flight = True
        self._flight_t = 0.0
        self._pos = (0.0, 0.0)
        self._vel = (speed * math.cos(rad), speed * math.sin(rad))
        self._trail = [(0.0, 0.0)]
        self._landed_at = None
        self._smoke_timer = 0.0
        self.play_sfx("launch")
        return True

    def _advance(self, dt: float) -> None:
        if not self._in_flight:
            return
        prev = self._pos
        if self._launch_difficulty is Difficulty.EASY:
            self._flight_t += dt
            speed = self._launch_speed
            self._pos = flight_closed_form(speed, self._launch_angle, self._flight_t)
            rad = math.radians(self._launch_angle)
            self._vel = (speed * math.cos(rad), speed * math.sin(rad) - GRAVITY * self._flight_t)
        else:

            def accel(
                pos: tuple[float, float], vel: tuple[float, float], t: float
            ) -> tuple[float, float]:
                return -WIND_DRAG * self.wind_at(t), -GRAVITY

            n = max(1, int(math.ceil(dt / _SUBSTEP_S)))
            h = dt / n
            for _ in range(n):
                prev = self._pos
                self._pos, self._vel = verlet_step_2d(self._pos, self._vel, accel, self._flight_t, h)
                self._flight_t += h
                if self._pos[1] <= 0.0 and self._flight_t > _MIN_FLIGHT_S:
                    break

        self._trail.append(self._pos)
        if len(self._trail) > TRAIL_LEN:
            del self._trail[0]

        self._smoke_timer += dt
        if self._smoke_timer > _SMOKE_EVERY_S:
            self._smoke_timer = 0.0
            sx, sy = self._to_screen(*self._pos)
            self.particles.emit(sx, sy, 1, SMOKE_COLOR, SMOKE_PUFF)

        if self._pos[1] <= 0.0 and self._flight_t > _MIN_FLIGHT_S:
            self._land(prev)

    def _land(self, prev: tuple[float, float]) -> None:
        # Interpolate to the ground crossing between the last two samples.
        x0, y0 = prev
        x1, y1 = self._pos
        frac = y0 / (y0 - y1) if (y0 - y1) > 0 else 1.0
        land_x = x0 + (x1 - x0) * max(0.0, min(1.0, frac))
        self._pos = (land_x, 0.0)
        self._in_flight = False
        self._landed_at = land_x
        miss = abs(land_x - self._target)
        self._last_miss = miss
        if self._wind_reroll_pending:
            self._roll_wind()

        sx, gy = self._to_screen(land_x, 0.0)
        self.particles.emit(sx, gy, 25, DIRT_COLOR, DIRT_BURST)
        self.particles.emit_sparks(sx, gy, BALL_COLOR, 15)
        self.particles.emit_glow(sx, gy, DUST_COLOR, 8)

        if self.mode is ProjectileMode.CHALLENGE:
            result = apply_streak_bonus(grade_landing(miss), self.challenge.streak)
            self.record_result(result, x=sx, y=gy - 40)
        else:
            self.play_sfx("collision")
            self._status = f"Landed at {land_x:.1f} m"

    def handle_click(self, x: float, y: float) -> None:
        self.launch()

    def submit(self) -> None:
        self.launch()

    def _update_derived(self) -> None:
        d = self.state.derived
        d["x"] = self._pos[0]
        d["y"] = self._pos[1]
        d["wind"] = self.wind_at(self._flight_t)
        d["range_no_wind"] = range_no_wind(self.param("speed"), self.param("angle"))

    # -- drawing ----------------------------------------------------------------------

    def _scale(self) -> float:
        w, _ = self.viewport
        max_range = max(self._target * 1.3, 200.0)
        return (w - _ORIGIN_X - 40.0) / max_range

    def _to_screen(self, x_m: float, y_m: float) -> tuple[float, float]:
        scale = self._scale()
        return _ORIGIN_X + x_m * scale, self.scene_height() * _GROUND_FRAC - y_m * scale

    def _draw_scene(self, canvas: Canvas) -> None:
        w = canvas.width
        sh = self.scene_height()
        gy = sh * _GROUND_FRAC
        scale = self._scale()

        fill_rect(canvas, 0, gy, w, sh - gy, (30, 41, 30))
        draw_line(canvas, 0, gy, w, gy, (74, 222, 128), width=2)
        for metre in range(0, 401, 50):
            mx = _ORIGIN_X + metre * scale
            if mx > w:
                break
            draw_text(canvas, f"{metre}m", mx, gy + 12, size=9, color=MUTED_TEXT, align="center")

        tx, _ = self._to_screen(self._target, 0.0)
        draw_target(canvas, tx, gy - 2, 14, hex_color("#ef4444"), (self.effects_time * 0.5) % 1.0)
        draw_text(canvas, f"{self._target:.0f} m", tx, gy - 30, size=10, color=hex_color("#ef4444"), align="center")

        # No-wind prediction as a hint.
        speed = self.param("speed")
        angle = self.param("angle")
        t_total = 2.0 * speed * math.sin(math.radians(angle)) / GRAVITY
        pts: list[tuple[float, float]] = []
        steps = 60
        for i in range(steps + 1):
            t = t_total * i / steps
            pts.append(self._to_screen(*flight_closed_form(speed, angle, t)))
        for a, b in zip(pts[::2], pts[1::2]):
            draw_line(canvas, a[0], a[1], b[0], b[1], (255, 255, 255), width=1)

        if len(self._trail) > 1:
            draw_polyline(canvas, [self._to_screen(x, y) for x, y in self._trail], BALL_COLOR, width=2)

        if self._in_flight:
            bx, by = self._to_screen(*self._pos)
            draw_glow(canvas, bx, by, 14, BALL_COLOR)
            draw_circle(canvas, bx, by, 5, BALL_COLOR)
        elif self._landed_at is not None:
            lx, _ = self._to_screen(self._landed_at, 0.0)
            draw_glow(canvas, lx, gy, 25, BALL_COLOR, strength=0.4)
            draw_circle(canvas, lx, gy, 6, BALL_COLOR)
            draw_line(canvas, lx, gy + 5, tx, gy + 5, (255, 255, 255), width=1, dashed=True)

        self._draw_cannon(canvas, gy)

        wind = self.wind_at(self._flight_t)
        if self.flight_difficulty() is not Difficulty.EASY:
            fill_rect(canvas, w / 2 - 70, 22, 140, 40, (0, 0, 0), radius=6, alpha=0.5)
            draw_text(canvas, "WIND", w / 2, 32, size=9, color=MUTED_TEXT, align="center")
            length = min(abs(wind) * 6, 60)
            direction = 1 if wind > 0 else -1
            draw_arrow(canvas, w / 2 - length / 2 * direction, 50, length * direction, 0, hex_color("#38bdf8"))
            draw_text(canvas, f"{wind:.1f} m/s", w / 2 + 48, 50, size=9, color=hex_color("#38bdf8"), align="center")

        rows = [
            InfoRow("Target", f"{self._target:.0f} m"),
            InfoRow("Range (no wind)", f"{range_no_wind(speed, angle):.0f} m"),
            InfoRow("Difficulty", self.difficulty.name.title()),
        ]
        if self._last_miss is not None:
            rows.append(InfoRow("Miss by", f"{self._last_miss:.1f} m", hex_color("#f59e0b")))
        if self.challenge.streak >= STREAK_BONUS_FROM:
            rows.append(InfoRow("Streak bonus", f"x{min(self.challenge.streak, STREAK_BONUS_CAP)}", hex_color("#f59e0b")))
        draw_info_panel(canvas, 10, 10, 200, 34 + 15 * len(rows), "SHOT", rows)

    def _draw_cannon(self, canvas: Canvas, gy: float) -> None:
        rad = math.radians(self.param("angle"))
        c = math.cos(rad)
        s = math.sin(rad)

        def rot(px: float, py: float) -> tuple[float, float]:
            return _ORIGIN_X + px * c + py * s, gy - px * s + py * c

        barrel = [rot(-5, -6), rot(40, -6), rot(40, 6), rot(-5, 6)]
        fill_polygon(canvas, barrel, hex_color("#64748b"))
        draw_circle(canvas, _ORIGIN_X, gy, 14, hex_color("#475569"))
