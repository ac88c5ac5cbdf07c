from __future__ import annotations

import math

import pytest

from physlab.kinematics import (
    TRACK_LENGTH,
    Kinematics,
    KinematicsMode,
    kinematic_state,
    stop_distance,
    stop_time,
)


def test_braking_latch() -> None:
    assert stop_time(20.0, -5.0) == pytest.approx(4.0)
    assert stop_distance(20.0, -5.0) == pytest.approx(40.0)
    assert stop_time(5.0, 2.0) is None
    assert stop_time(0.0, -2.0) is None

    x, v, stopped = kinematic_state(20.0, -5.0, 10.0)
    assert (x, v, stopped) == (pytest.approx(40.0), 0.0, True)
    x, v, stopped = kinematic_state(20.0, -5.0, 2.0)
    assert (x, v, stopped) == (pytest.approx(30.0), pytest.approx(10.0), False)
    assert kinematic_state(0.0, 0.0, 3.0) == (0.0, 0.0, True)


def test_sandbox_runs_and_stops() -> None:
    kin = Kinematics(seed=1)
    kin.set_param("v0", 20.0)
    kin.set_param("accel", -5.0)
    for _ in range(100):
        kin.step(0.05)
    assert kin.stopped
    assert kin.x == pytest.approx(40.0)
    assert kin.state.derived["stop_distance"] == pytest.approx(40.0)


def test_leaving_the_track_is_flagged() -> None:
    kin = Kinematics(seed=1)
    kin.set_param("v0", 30.0)
    kin.set_param("accel", 10.0)
    for _ in range(200):
        kin.step(0.05)
    assert kin.out_of_bounds
    assert kin.x == TRACK_LENGTH
    assert kin.oob_count == 1


def test_no_stop_reports_infinite_distance() -> None:
    kin = Kinematics(seed=1)
    assert math.isinf(kin.state.derived["stop_distance"])


def test_predict_mode_waits_for_a_marker_then_grades() -> None:
    kin = Kinematics(seed=1)
    kin.set_mode(KinematicsMode.PREDICT)
    kin.set_param("v0", 20.0)
    kin.set_param("accel", -5.0)
    assert not kin.launched

    kin.step(1.0)
    assert kin.state.sim_time == 0.0

    kin.submit()
    assert not kin.launched
    assert "prediction" in kin.status

    # 960 px wide viewport: x = 50 + metres * 4.3 on the track row (y = 163.8).
    kin.handle_click(50.0 + 40.0 * 4.3, 164.0)
    assert kin.marker == pytest.approx(40.0)

    kin.submit()
    assert kin.launched
    for _ in range(100):
        kin.step(0.05)
    assert kin.challenge.attempts == 1
    assert kin.challenge.score == 3

    # Finished run: Enter resets for the next attempt and clears the marker.
    kin.submit()
    assert not kin.launched
    assert kin.marker is None


def test_closed_form_replay_is_exact() -> None:
    kin = Kinematics(seed=1)
    kin.step(2.0)
    assert kin.x == 14.0
    assert kin.v == 9.0


def test_prediction_off_the_track_is_graded_from_the_clamped_position() -> None:
    kin = Kinematics(seed=1)
    kin.set_mode(KinematicsMode.PREDICT)
    kin.set_param("v0", 30.0)
    kin.set_param("accel", 10.0)
    kin.handle_click(50.0 + TRACK_LENGTH * 4.3, 164.0)
    assert kin.marker == pytest.approx(TRACK_LENGTH)

    kin.submit()
    for _ in range(200):
        kin.step(0.05)
    assert kin.out_of_bounds
    assert kin.x == TRACK_LENGTH
    assert kin.oob_count == 1
    assert kin.challenge.attempts == 1
    assert kin.challenge.score == 3
    assert kin.popups[-1].text.endswith("(200.0 m)")
