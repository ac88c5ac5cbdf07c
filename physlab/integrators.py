"""Step integrators for path-dependent simulations.

Closed-form modules evaluate ``x(t)`` directly and never come through here.
Anything with a driving term, an impulse, or a force that depends on history
is advanced with velocity Verlet on an :class:`IntegratorState`.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

EPSILON = 1e-9

# accel(x, v, t) -> a
AccelFn = Callable[[float, float, float], float]


def safe_div(num: float, den: float, eps: float = EPSILON) -> float:
    """``num / den`` with ``|den|`` floored at ``eps`` (sign preserved)."""

    if abs(den) < eps:
        den = eps if den >= 0.0 else -eps
    return num / den


@dataclass(slots=True)
class IntegratorState:
    x: float = 0.0
    v: float = 0.0
    t: float = 0.0
    aux: dict[str, float] = field(default_factory=dict)

    def copy(self) -> "IntegratorState":
        return IntegratorState(x=self.x, v=self.v, t=self.t, aux=dict(self.aux))


def velocity_verlet(state: IntegratorState, accel: AccelFn, dt: float) -> IntegratorState:
    """Advance ``state`` in place for a position-only force law."""

    if dt <= 0.0:
        return state
    a0 = accel(state.x, state.v, state.t)
    x1 = state.x + state.v * dt + 0.5 * a0 * dt * dt
    a1 = accel(x1, state.v, state.t + dt)
    state.v = state.v + 0.5 * (a0 + a1) * dt
    state.x = x1
    state.t += dt
    return state


def velocity_verlet_damped(state: IntegratorState, accel: AccelFn, dt: float) -> IntegratorState:
    """Verlet variant for force laws that read velocity (damping, drag).

    The second force evaluation uses a predicted ``v + a0*dt``.
    """

    if dt <= 0.0:
        return state
    a0 = accel(state.x, state.v, state.t)
    x1 = state.x + state.v * dt + 0.5 * a0 * dt * dt
    v_pred = state.v + a0 * dt
    a1 = accel(x1, v_pred, state.t + dt)
    state.v = state.v + 0.5 * (a0 + a1) * dt
    state.x = x1
    state.t += dt
    return state


def verlet_step_2d(
    pos: tuple[float, float],
    vel: tuple[float, float],
    accel: Callable[[tuple[float, float], tuple[float, float], float], tuple[float, float]],
    t: float,
    dt: float,
) -> tuple[tuple[float, float], tuple[float, float]]:
    """Planar velocity Verlet with velocity prediction; returns ``(pos, vel)``."""

    if dt <= 0.0:
        return pos, vel
    ax0, ay0 = accel(pos, vel, t)
    x1 = pos[0] + vel[0] * dt + 0.5 * ax0 * dt * dt
    y1 = pos[1] + vel[1] * dt + 0.5 * ay0 * dt * dt
    v_pred = (vel[0] + ax0 * dt, vel[1] + ay0 * dt)
    ax1, ay1 = accel((x1, y1), v_pred, t + dt)
    return (x1, y1), (vel[0] + 0.5 * (ax0 + ax1) * dt, vel[1] + 0.5 * (ay0 + ay1) * dt)
