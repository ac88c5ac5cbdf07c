from __future__ import annotations

import math

import pytest

from physlab.projectile import (
    Difficulty,
    ProjectileChallenge,
    ProjectileMode,
    apply_streak_bonus,
    grade_landing,
    range_no_wind,
)
from physlab.scoring import ScoreTier


def _fly(sim: ProjectileChallenge, max_steps: int = 1000) -> None:
    for _ in range(max_steps):
        sim.step(0.05)
        if not sim.in_flight:
            return
    raise AssertionError("shell never landed")


def test_landing_tiers() -> None:
    assert grade_landing(4.0).points == 3
    assert grade_landing(4.0).label == "BULLSEYE!"
    assert grade_landing(10.0).points == 2
    assert grade_landing(20.0).points == 1
    miss = grade_landing(40.0)
    assert (miss.points, miss.tier, miss.label) == (0, ScoreTier.MISS, "MISS!")


def test_streak_bonus() -> None:
    hit = grade_landing(1.0)
    assert apply_streak_bonus(hit, 0) == hit
    assert apply_streak_bonus(hit, 1) == hit
    bonus = apply_streak_bonus(hit, 2)
    assert bonus.points == 6
    assert "STREAK x3" in bonus.label
    assert apply_streak_bonus(hit, 10).points == 8
    miss = grade_landing(99.0)
    assert apply_streak_bonus(miss, 10) == miss


def test_easy_flight_lands_at_no_wind_range() -> None:
    sim = ProjectileChallenge(seed=3)
    sim.set_mode(ProjectileMode.FREE_FIRE)
    assert sim.launch()
    assert not sim.launch()
    _fly(sim)
    assert sim.landed_at == pytest.approx(range_no_wind(50.0, 45.0), abs=0.5)
    assert sim.position[1] == 0.0
    assert "Landed" in sim.status
    assert not sim.challenge.active


def test_challenge_bullseye_when_range_matches_target() -> None:
    sim = ProjectileChallenge(seed=11)
    assert sim.mode is ProjectileMode.CHALLENGE
    sim.set_param("angle", 45.0)
    sim.set_param("speed", math.sqrt(sim.target * 9.8))
    sim.submit()
    _fly(sim)
    assert sim.last_miss is not None and sim.last_miss < 5.0
    assert sim.challenge.score == 3
    assert sim.challenge.streak == 1


def test_headwind_shortens_the_shot() -> None:
    sim = ProjectileChallenge(seed=4)
    sim.set_mode(ProjectileMode.FREE_FIRE)
    sim.set_param("difficulty", 1.0)
    assert sim.difficulty is Difficulty.MEDIUM
    wind = sim.wind_at(0.0)
    assert 3.0 <= wind <= 8.0
    assert sim.wind_at(5.0) == wind

    sim.launch()
    _fly(sim)
    assert sim.landed_at is not None
    assert sim.landed_at < range_no_wind(50.0, 45.0)


def test_hard_wind_gusts_stay_within_base() -> None:
    sim = ProjectileChallenge(seed=4)
    sim.set_param("difficulty", 2.0)
    samples = [sim.wind_at(t * 0.1) for t in range(100)]
    assert max(samples) > min(samples)
    assert all(0.0 <= w <= 10.0 for w in samples)


def test_reset_rolls_a_target_in_range() -> None:
    sim = ProjectileChallenge(seed=8)
    for _ in range(10):
        sim.reset()
        assert 50.0 <= sim.target <= 350.0
        assert sim.target == round(sim.target)


def test_sliders_moved_mid_flight_do_not_bend_the_shot() -> None:
    sim = ProjectileChallenge(seed=3)
    sim.set_mode(ProjectileMode.FREE_FIRE)
    sim.launch()
    for _ in range(20):
        sim.step(0.05)
    before = sim.position

    sim.set_param("angle", 85.0)
    sim.set_param("speed", 90.0)
    sim.step(0.001)
    assert abs(sim.position[0] - before[0]) < 1.0
    assert abs(sim.position[1] - before[1]) < 1.0

    _fly(sim)
    assert sim.landed_at == pytest.approx(range_no_wind(50.0, 45.0), abs=0.5)


def test_difficulty_change_waits_for_landing() -> None:
    sim = ProjectileChallenge(seed=5)
    sim.set_mode(ProjectileMode.FREE_FIRE)
    sim.launch()
    sim.step(0.05)

    sim.set_param("difficulty", 2.0)
    assert sim.difficulty is Difficulty.HARD
    assert sim.flight_difficulty() is Difficulty.EASY
    assert sim.wind_at(1.0) == 0.0

    _fly(sim)
    assert sim.landed_at == pytest.approx(range_no_wind(50.0, 45.0), abs=0.5)
    assert sim.flight_difficulty() is Difficulty.HARD
    assert max(sim.wind_at(t * 0.1) for t in range(100)) > 0.0
