"""Short-lived particle effects layered over a simulation.

Each simulation owns one :class:`ParticleSystem`. Particles are spawned in
small bursts, aged every frame, and removed as soon as their life reaches
zero, so the pool drains on its own once emission stops.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import StrEnum

from .core import SeededRng
from .drawing import draw_circle, draw_line, draw_star, fill_polygon
from .surface import Canvas, Color


class ParticleShape(StrEnum):
    CIRCLE = "circle"
    SQUARE = "square"
    STAR = "star"
    SPARK = "spark"


@dataclass(slots=True)
class Particle:
    x: float
    y: float
    vx: float
    vy: float
    life: float
    max_life: float
    size: float
    color: Color
    alpha: float
    shape: ParticleShape
    gravity: float
    drag: float


@dataclass(frozen=True, slots=True)
class EmitterConfig:
    speed: float = 150.0
    speed_variance: float = 50.0
    lifetime: float = 0.8
    lifetime_variance: float = 0.3
    gravity: float = 200.0
    size: float = 4.0
    size_variance: float = 2.0
    drag: float = 0.98
    shape: ParticleShape = ParticleShape.CIRCLE
    angle: float = 0.0
    spread: float = math.pi * 2

    def __post_init__(self) -> None:
        if self.lifetime < 0.0:
            raise ValueError("lifetime must be >= 0")
        if not (0.0 <= self.drag <= 1.0):
            raise ValueError("drag must be in [0.0, 1.0]")


DEFAULT_EMITTER = EmitterConfig()

_MIN_LIFE_S = 0.1
_MIN_SIZE = 1.0

CONFETTI_COLORS: tuple[Color, ...] = (
    (239, 68, 68),
    (59, 130, 246),
    (34, 197, 94),
    (245, 158, 11),
    (168, 85, 247),
    (236, 72, 153),
)

BURST_PRESETS: dict[str, EmitterConfig] = {
    "spark": EmitterConfig(
        speed=250.0, lifetime=0.4, size=2.0, size_variance=1.0, shape=ParticleShape.SPARK, gravity=100.0
    ),
    "glow": EmitterConfig(speed=40.0, lifetime=1.2, size=6.0, size_variance=3.0, gravity=-20.0, drag=0.96),
    "bubble": EmitterConfig(
        speed=30.0,
        speed_variance=15.0,
        lifetime=2.0,
        size=5.0,
        size_variance=3.0,
        gravity=-80.0,
        drag=0.99,
        angle=-math.pi / 2,
        spread=math.pi * 0.4,
    ),
    "trail": EmitterConfig(
        speed=30.0, lifetime=0.6, size=3.0, gravity=0.0, drag=0.95, spread=math.pi * 0.3
    ),
}


class ParticleSystem:
    def __init__(self, *, rng: SeededRng | None = None) -> None:
        self._rng = rng if rng is not None else SeededRng()
        self._particles: list[Particle] = []

    @property
    def count(self) -> int:
        return len(self._particles)

    @property
    def particles(self) -> tuple[Particle, ...]:
        return tuple(self._particles)

    def _vary(self, base: float, variance: float) -> float:
        return base + (self._rng.random() - 0.5) * variance

    def emit(
        self,
        x: float,
        y: float,
        count: int,
        color: Color,
        options: EmitterConfig = DEFAULT_EMITTER,
    ) -> None:
        for _ in range(max(0, int(count))):
            angle = options.angle + (self._rng.random() - 0.5) * options.spread
            speed = self._vary(options.speed, options.speed_variance)
            life = max(_MIN_LIFE_S, self._vary(options.lifetime, options.lifetime_variance))
            self._particles.append(
                Particle(
                    x=float(x),
                    y=float(y),
                    vx=math.cos(angle) * speed,
                    vy=math.sin(angle) * speed,
                    life=life,
                    max_life=life,
                    size=max(_MIN_SIZE, self._vary(options.size, options.size_variance)),
                    color=color,
                    alpha=1.0,
                    shape=options.shape,
                    gravity=options.gravity,
                    drag=options.drag,
                )
            )

    def burst(self, kind: str, x: float, y: float, count: int, color: Color) -> None:
        """Emit one of the named presets (``spark``, ``glow``, ``confetti``, ``bubble``, ``trail``)."""

        if kind == "confetti":
            self.emit_confetti(x, y, count)
            return
        preset = BURST_PRESETS.get(kind)
        if preset is None:
            raise KeyError(f"unknown particle burst: {kind!r}")
        self.emit(x, y, count, color, preset)

    def emit_sparks(self, x: float, y: float, color: Color, count: int = 12) -> None:
        self.emit(x, y, count, color, BURST_PRESETS["spark"])

    def emit_glow(self, x: float, y: float, color: Color, count: int = 8) -> None:
        self.emit(x, y, count, color, BURST_PRESETS["glow"])

    def emit_bubbles(self, x: float, y: float, color: Color, count: int = 5) -> None:
        self.emit(x, y, count, color, BURST_PRESETS["bubble"])

    def emit_trail(self, x: float, y: float, color: Color, vx: float, vy: float) -> None:
        """Puff a couple of particles opposite to the direction of travel."""

        back = math.atan2(vy, vx) + math.pi
        self.emit(x, y, 2, color, replace(BURST_PRESETS["trail"], angle=back))

    def emit_confetti(self, x: float, y: float, count: int = 30) -> None:
        # Each piece gets its own colour and a little extra speed/size jitter.
        for _ in range(max(0, int(count))):
            color = CONFETTI_COLORS[int(self._rng.random() * len(CONFETTI_COLORS)) % len(CONFETTI_COLORS)]
            opts = EmitterConfig(
                speed=200.0 + self._rng.random() * 150.0,
                lifetime=1.5,
                size=4.0 + self._rng.random() * 3.0,
                shape=ParticleShape.SQUARE,
                gravity=300.0,
                drag=0.97,
                angle=-math.pi / 2,
                spread=math.pi * 0.8,
            )
            self.emit(x, y, 1, color, opts)

    def update(self, dt: float) -> None:
        if dt <= 0.0 or not self._particles:
            return
        alive: list[Particle] = []
        for p in self._particles:
            p.life -= dt
            if p.life <= 0.0:
                continue
            p.vy += p.gravity * dt
            p.vx *= p.drag
            p.vy *= p.drag
            p.x += p.vx * dt
            p.y += p.vy * dt
            p.alpha = p.life / p.max_life
            alive.append(p)
        self._particles = alive

    def clear(self) -> None:
        self._particles.clear()

    def draw(self, canvas: Canvas) -> None:
        for p in self._particles:
            if p.shape is ParticleShape.SQUARE:
                _draw_square(canvas, p)
            elif p.shape is ParticleShape.STAR:
                draw_star(canvas, p.x, p.y, p.size, p.color, alpha=p.alpha)
            elif p.shape is ParticleShape.SPARK:
                speed = math.hypot(p.vx, p.vy)
                if speed <= 0.0:
                    continue
                length = p.size * 3
                draw_line(
                    canvas,
                    p.x,
                    p.y,
                    p.x - p.vx / speed * length,
                    p.y - p.vy / speed * length,
                    p.color,
                    width=max(1.0, p.size * 0.5),
                )
            else:
                draw_circle(canvas, p.x, p.y, p.size, p.color, alpha=p.alpha)


def _draw_square(canvas: Canvas, p: Particle) -> None:
    rot = p.life * 10
    half = p.size / 2
    cos_r = math.cos(rot)
    sin_r = math.sin(rot)
    corners = [
        (p.x + cx * cos_r - cy * sin_r, p.y + cx * sin_r + cy * cos_r)
        for cx, cy in ((-half, -half), (half, -half), (half, half), (-half, half))
    ]
    fill_polygon(canvas, corners, p.color, alpha=p.alpha)
