from __future__ import annotations

import math

import pytest

from physlab.integrators import (
    EPSILON,
    IntegratorState,
    safe_div,
    velocity_verlet,
    velocity_verlet_damped,
    verlet_step_2d,
)


def test_safe_div_floors_tiny_denominators_and_keeps_sign() -> None:
    assert safe_div(6.0, 3.0) == 2.0
    assert safe_div(1.0, 0.0) == pytest.approx(1.0 / EPSILON)
    assert safe_div(1.0, -1e-15) == pytest.approx(-1.0 / EPSILON)


def test_verlet_conserves_spring_energy() -> None:
    k, m = 10.0, 2.0
    state = IntegratorState(x=100.0)

    def accel(x: float, v: float, t: float) -> float:
        return -k * x / m

    def energy() -> float:
        return 0.5 * m * state.v * state.v + 0.5 * k * state.x * state.x

    e0 = energy()
    for _ in range(240 * 20):
        velocity_verlet(state, accel, 1.0 / 240.0)
    assert energy() == pytest.approx(e0, rel=1e-3)
    assert state.t == pytest.approx(20.0)


def test_verlet_matches_closed_form_phase() -> None:
    omega = 2.0
    state = IntegratorState(x=1.0)
    for _ in range(240):
        velocity_verlet(state, lambda x, v, t: -omega * omega * x, 1.0 / 240.0)
    assert state.x == pytest.approx(math.cos(omega), abs=1e-4)


def test_damped_verlet_loses_energy() -> None:
    state = IntegratorState(x=1.0)
    for _ in range(2400):
        velocity_verlet_damped(state, lambda x, v, t: -4.0 * x - 0.5 * v, 1.0 / 240.0)
    assert abs(state.x) < 0.2


def test_non_positive_dt_is_a_no_op() -> None:
    state = IntegratorState(x=1.0, v=2.0)
    velocity_verlet(state, lambda x, v, t: -x, 0.0)
    velocity_verlet_damped(state, lambda x, v, t: -x, -1.0)
    assert (state.x, state.v, state.t) == (1.0, 2.0, 0.0)
    assert verlet_step_2d((1.0, 2.0), (3.0, 4.0), lambda p, v, t: (0.0, -9.8), 0.0, 0.0) == ((1.0, 2.0), (3.0, 4.0))


def test_planar_step_under_gravity_is_exact_for_constant_force() -> None:
    pos, vel = (0.0, 0.0), (10.0, 10.0)
    t = 0.0
    for _ in range(100):
        pos, vel = verlet_step_2d(pos, vel, lambda p, v, tt: (0.0, -9.8), t, 0.01)
        t += 0.01
    assert pos[0] == pytest.approx(10.0)
    assert pos[1] == pytest.approx(10.0 - 0.5 * 9.8, abs=1e-9)


def test_copy_is_independent() -> None:
    state = IntegratorState(x=1.0, aux={"phi": 0.5})
    dup = state.copy()
    dup.aux["phi"] = 2.0
    dup.x = 3.0
    assert state.aux["phi"] == 0.5 and state.x == 1.0
