from __future__ import annotations

import math

import pytest

from physlab.relativity import (
    Relativity,
    RelativityMode,
    clock_angle,
    contracted_length,
    gamma_tolerance,
    lorentz_factor,
)


def test_lorentz_factor() -> None:
    assert lorentz_factor(0.0) == 1.0
    assert lorentz_factor(0.6) == pytest.approx(1.25)
    assert lorentz_factor(0.8) == pytest.approx(5.0 / 3.0)
    assert math.isfinite(lorentz_factor(1.0))


def test_clocks_and_rulers() -> None:
    assert clock_angle(1.0) == pytest.approx(math.pi)
    assert clock_angle(1.0, 2.0) == pytest.approx(math.pi / 2)
    assert contracted_length(1.25) == pytest.approx(0.8)
    assert gamma_tolerance(1.1) == 0.25
    assert gamma_tolerance(3.0) == 2.0


def test_derived_values_follow_beta_and_time() -> None:
    rel = Relativity(seed=1)
    rel.set_param("beta", 0.6)
    rel.step(2.0)
    d = rel.state.derived
    assert d["gamma"] == pytest.approx(1.25)
    assert d["rest_time"] == pytest.approx(2.0)
    assert d["moving_time"] == pytest.approx(1.6)
    assert d["length"] == pytest.approx(0.8)
    assert d["moving_angle"] < d["rest_angle"]


def test_beta_is_capped_below_light_speed() -> None:
    rel = Relativity(seed=1)
    assert rel.set_param("beta", 1.5) == 0.99
    assert rel.gamma == pytest.approx(1.0 / math.sqrt(1.0 - 0.99**2))


def test_challenge_grades_gamma() -> None:
    rel = Relativity(seed=6)
    rel.submit()
    assert rel.challenge.attempts == 0

    rel.set_mode(RelativityMode.CHALLENGE)
    target = rel.target_gamma
    assert 1.1 <= target <= 5.0
    rel.set_param("beta", math.sqrt(1.0 - 1.0 / (target * target)))
    rel.submit()
    assert rel.challenge.score == 3
    assert rel.challenge.attempts == 1


def test_tone_drops_with_speed() -> None:
    rel = Relativity(seed=1)
    rel.set_param("beta", 0.0)
    (slow,) = rel.audio_profile()
    rel.set_param("beta", 0.9)
    (fast,) = rel.audio_profile()
    assert slow.freq_hz == pytest.approx(330.0)
    assert fast.freq_hz < slow.freq_hz
