from __future__ import annotations

import math

import pytest

from physlab.scoring import (
    AccuracyResult,
    ChallengeState,
    ScorePopup,
    ScoreTier,
    calculate_accuracy,
    create_challenge_state,
    enter_challenge,
    exit_challenge,
    points_color,
    prune_popups,
    tier_color,
    update_challenge_state,
)


@pytest.mark.parametrize(
    ("value", "points", "tier", "label"),
    [
        (10.0, 3, ScoreTier.PERFECT, "Perfect!"),
        (10.4, 3, ScoreTier.PERFECT, "Perfect!"),
        (11.0, 2, ScoreTier.GREAT, "Great!"),
        (12.0, 2, ScoreTier.GOOD, "Good!"),
        (14.0, 1, ScoreTier.CLOSE, "Close!"),
        (16.5, 0, ScoreTier.MISS, "Try Again"),
    ],
)
def test_accuracy_tiers_by_normalized_error(value: float, points: int, tier: ScoreTier, label: str) -> None:
    result = calculate_accuracy(value, 10.0, 10.0)
    assert result == AccuracyResult(points=points, tier=tier, label=label)


def test_accuracy_tier_bounds_are_exclusive() -> None:
    # err == 0.05 exactly falls into the next tier.
    assert calculate_accuracy(10.5, 10.0, 10.0).tier is ScoreTier.GREAT
    assert calculate_accuracy(16.0, 10.0, 10.0).tier is ScoreTier.MISS


def test_accuracy_is_symmetric_and_handles_zero_tolerance() -> None:
    assert calculate_accuracy(9.0, 10.0, 10.0) == calculate_accuracy(11.0, 10.0, 10.0)
    assert calculate_accuracy(5.0, 5.0, 0.0).points == 3
    assert calculate_accuracy(5.1, 5.0, 0.0).points == 0


def test_accuracy_non_finite_is_a_miss() -> None:
    assert calculate_accuracy(math.nan, 1.0, 1.0).tier is ScoreTier.MISS
    assert calculate_accuracy(math.inf, 1.0, 1.0).points == 0


def test_challenge_reducer_is_pure_and_tracks_streaks() -> None:
    state = enter_challenge("Match the period")
    assert state.active and state.description == "Match the period"

    perfect = calculate_accuracy(1.0, 1.0, 1.0)
    miss = calculate_accuracy(9.0, 1.0, 1.0)

    s1 = update_challenge_state(state, perfect)
    s2 = update_challenge_state(s1, perfect)
    s3 = update_challenge_state(s2, miss)

    assert state.attempts == 0 and state.score == 0
    assert (s2.score, s2.attempts, s2.streak, s2.best_streak) == (6, 2, 2, 2)
    assert (s3.score, s3.attempts, s3.streak, s3.best_streak) == (6, 3, 0, 2)
    assert s3.last_result == miss


def test_accuracy_percentage() -> None:
    assert create_challenge_state().accuracy_pct == 0
    state = ChallengeState(active=True, score=5, attempts=3)
    assert state.accuracy_pct == 56


def test_exit_keeps_score() -> None:
    state = update_challenge_state(enter_challenge("x"), calculate_accuracy(1.0, 1.0, 1.0))
    done = exit_challenge(state)
    assert not done.active
    assert done.score == 3


def test_popups_expire_after_duration() -> None:
    popups = [
        ScorePopup(text="Perfect!", points=3, x=0.0, y=0.0, start_time_s=0.0),
        ScorePopup(text="Close!", points=1, x=0.0, y=0.0, start_time_s=1.0),
    ]
    assert len(prune_popups(popups, 1.4)) == 2
    kept = prune_popups(popups, 1.5)
    assert [p.text for p in kept] == ["Close!"]
    assert prune_popups(popups, 3.0) == []


def test_colors_follow_points() -> None:
    assert points_color(3) == tier_color(ScoreTier.PERFECT)
    assert points_color(2) == tier_color(ScoreTier.GREAT)
    assert points_color(1) == tier_color(ScoreTier.CLOSE)
    assert points_color(0) == tier_color(ScoreTier.MISS)


def test_far_off_value_gets_lowest_tier() -> None:
    assert calculate_accuracy(10.0 + 10 * 2.0, 10.0, 2.0).tier is ScoreTier.MISS
    assert calculate_accuracy(10.0, 10.0, 2.0).tier is ScoreTier.PERFECT
