from __future__ import annotations

import math

import pytest

from physlab.oscillator import TRACK_EXTENT, Oscillator, OscillatorMode, closed_form, period


def test_closed_form_matches_cosine_without_damping() -> None:
    x, v = closed_form(100.0, 10.0, 2.0, 0.0, 0.5)
    omega = math.sqrt(5.0)
    assert x == pytest.approx(100.0 * math.cos(omega * 0.5))
    assert v == pytest.approx(-100.0 * omega * math.sin(omega * 0.5))
    assert period(10.0, 2.0) == pytest.approx(2.0 * math.pi / omega)


def test_sandbox_follows_closed_form_and_derived_energy() -> None:
    osc = Oscillator(seed=1)
    assert osc.mode is OscillatorMode.SANDBOX
    assert osc.body.x == 100.0

    osc.step(0.5)
    x, _ = closed_form(100.0, 10.0, 2.0, 0.0, 0.5)
    assert osc.body.x == pytest.approx(x)
    d = osc.state.derived
    assert d["te"] == pytest.approx(0.5 * 10.0 * 100.0 * 100.0 / 1000.0)
    assert d["ke"] + d["pe"] == pytest.approx(d["te"])


def test_damping_decays_the_envelope() -> None:
    osc = Oscillator(seed=1)
    osc.set_param("damping", 1.0)
    for _ in range(200):
        osc.step(0.05)
    assert abs(osc.body.x) < 10.0


def test_params_are_clamped_and_unknown_names_rejected() -> None:
    osc = Oscillator(seed=1)
    assert osc.set_param("mass", 99.0) == 5.0
    assert osc.set_param("spring_k", -3.0) == 1.0
    with pytest.raises(KeyError):
        osc.set_param("gravity", 9.8)


def test_visible_params_depend_on_mode() -> None:
    osc = Oscillator(seed=1)
    osc.set_mode(OscillatorMode.CHALLENGE)
    assert [s.name for s in osc.visible_params()] == ["mass", "spring_k"]
    osc.set_mode(OscillatorMode.RESONANCE)
    assert "drive_force" in [s.name for s in osc.visible_params()]


def test_push_mode_click_on_block_adds_impulse() -> None:
    osc = Oscillator(seed=1)
    osc.set_mode(OscillatorMode.PUSH)
    assert osc.body.x == 0.0

    # Default 960x600 viewport: block sits at (403.2, 185.64) when x == 0.
    osc.handle_click(395.0, 186.0)
    assert osc.body.v == pytest.approx(40.0)
    osc.handle_click(10.0, 10.0)
    assert osc.body.v == pytest.approx(40.0)


def test_resonance_hits_the_end_stop_and_stays_on_the_track() -> None:
    osc = Oscillator(seed=1)
    osc.set_mode(OscillatorMode.RESONANCE)
    osc.set_param("drive_force", 200.0)
    for _ in range(300):
        osc.step(0.05)
        assert abs(osc.body.x) <= TRACK_EXTENT
    assert osc.oob_count >= 1


def test_end_stop_counts_once_per_excursion_and_rearms_inside_the_track() -> None:
    osc = Oscillator(seed=1)
    osc.set_mode(OscillatorMode.PUSH)
    osc.set_param("damping", 2.0)
    osc.body.x = 170.0
    osc.body.v = 5000.0

    osc.step(0.01)
    assert osc.out_of_bounds
    assert osc.oob_count == 1

    # Still pinned near the stop: no recount while it creeps back.
    for _ in range(200):
        if abs(osc.body.x) < TRACK_EXTENT * 0.95:
            break
        assert osc.out_of_bounds
        assert osc.oob_count == 1
        assert abs(osc.body.x) <= TRACK_EXTENT
        osc.step(0.01)
    assert not osc.out_of_bounds
    assert osc.oob_count == 1

    osc.body.x = 170.0
    osc.body.v = 5000.0
    osc.step(0.01)
    assert osc.oob_count == 2


def test_push_mode_conserves_energy_without_damping() -> None:
    osc = Oscillator(seed=1)
    osc.set_mode(OscillatorMode.PUSH)
    assert osc.param("damping") == 0.0
    osc.handle_click(395.0, 186.0)

    for _ in range(100):
        osc.step(0.05)
    te_n = osc.state.derived["te"]
    assert te_n > 0.0
    for _ in range(1000):
        osc.step(0.05)
    assert osc.state.derived["te"] == pytest.approx(te_n, rel=1e-3)
    assert osc.oob_count == 0


def test_challenge_grades_period_match() -> None:
    osc = Oscillator(seed=5)
    osc.set_mode(OscillatorMode.CHALLENGE)
    assert osc.challenge.active
    target = osc.target_period

    osc.set_param("mass", 0.5)
    osc.set_param("spring_k", 0.5 * (2.0 * math.pi / target) ** 2)
    osc.submit()

    assert osc.challenge.attempts == 1
    assert osc.challenge.score == 3
    assert osc.popups[0].text == "Perfect!"


def test_leaving_challenge_deactivates_it() -> None:
    osc = Oscillator(seed=5)
    osc.set_mode(OscillatorMode.CHALLENGE)
    osc.next_mode()
    assert osc.mode is OscillatorMode.SANDBOX
    assert not osc.challenge.active
    with pytest.raises(ValueError):
        osc.set_mode("nonsense")  # type: ignore[arg-type]
