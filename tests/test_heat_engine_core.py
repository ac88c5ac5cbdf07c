from __future__ import annotations

import math

import pytest

from physlab.heat_engine import R_GAS, CarnotCycle, HeatEngine, HeatEngineMode


def test_carnot_cycle_energetics() -> None:
    cycle = CarnotCycle(600.0, 300.0)
    assert cycle.efficiency == pytest.approx(0.5)
    assert cycle.heat_in == pytest.approx(R_GAS * 600.0 * math.log(3.0))
    assert cycle.work == pytest.approx(cycle.heat_in * cycle.efficiency)
    assert cycle.work / cycle.heat_in == pytest.approx(1.0 - 300.0 / 600.0)


def test_state_along_the_cycle() -> None:
    cycle = CarnotCycle(600.0, 300.0)
    v_a, v_b, v_c, v_d = cycle.volumes
    assert (v_a, v_b) == (1.0, 3.0)
    assert v_c > v_b and v_d > v_a

    v, p, t, stage = cycle.state_at(0.0)
    assert (v, t, stage) == (1.0, 600.0, 0)
    assert p == pytest.approx(R_GAS * 600.0)

    # End of the adiabatic expansion lands on the cold isotherm.
    _, _, t, stage = cycle.state_at(2.0 - 1e-9)
    assert stage == 1
    assert t == pytest.approx(300.0, rel=1e-6)

    assert cycle.state_at(4.5) == cycle.state_at(0.5)


def test_cold_reservoir_stays_below_hot() -> None:
    engine = HeatEngine(seed=1)
    engine.set_param("t_hot", 400.0)
    engine.set_param("t_cold", 500.0)
    assert engine.param("t_cold") == 399.0
    assert 0.0 < engine.state.derived["efficiency"] < 1.0


def test_progress_stages_and_cycle_count() -> None:
    engine = HeatEngine(seed=1)
    engine.step(2.0)
    assert engine.stage == 1
    assert engine.state.derived["stage"] == 1.0
    engine.step(6.0)
    assert engine.cycles == 1
    assert engine.progress == pytest.approx(0.0)
    engine.reset()
    assert (engine.cycles, engine.stage) == (0, 0)


def test_challenge_grades_efficiency() -> None:
    engine = HeatEngine(seed=9)
    engine.set_mode(HeatEngineMode.CHALLENGE)
    target = engine.target_efficiency
    assert 0.2 <= target <= 0.7

    t_cold = 400.0 if target <= 0.5 else 250.0
    engine.set_param("t_hot", t_cold / (1.0 - target))
    engine.set_param("t_cold", t_cold)
    engine.submit()
    assert engine.challenge.score == 3

    engine.set_mode(HeatEngineMode.SANDBOX)
    engine.submit()
    assert not engine.challenge.active
    assert engine.challenge.attempts == 1


def test_hum_follows_gas_temperature() -> None:
    engine = HeatEngine(seed=1)
    (tone,) = engine.audio_profile()
    assert tone.freq_hz == pytest.approx(80.0 + 600.0 / 3.0)


def test_cycle_state_is_a_pure_function_of_sim_time() -> None:
    fine = HeatEngine(seed=2)
    for _ in range(1000):
        fine.step(0.0173)

    coarse = HeatEngine(seed=2)
    coarse.step(fine.state.sim_time)

    assert coarse.state.sim_time == fine.state.sim_time
    assert coarse.state.derived == fine.state.derived
    assert (coarse.progress, coarse.stage, coarse.cycles) == (fine.progress, fine.stage, fine.cycles)


def test_speed_change_rescales_the_whole_timeline() -> None:
    engine = HeatEngine(seed=2)
    engine.step(5.0)
    engine.set_param("cycle_speed", 1.5)
    engine.step(0.5)
    assert engine.progress == (engine.state.sim_time * 1.5) % 4
    assert engine.cycles == int(engine.state.sim_time * 1.5 // 4)
