from __future__ import annotations

import math
import os

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame
import pytest

from physlab.hydrogen_atom import (
    HydrogenAtom,
    HydrogenMode,
    TransitionKind,
    level_energy,
    photon_energy,
    photon_wavelength,
    radial_probability,
)


def test_bohr_levels_and_balmer_alpha() -> None:
    assert level_energy(1) == pytest.approx(-13.6)
    assert level_energy(2) == pytest.approx(-3.4)
    e = photon_energy(3, 2)
    assert e == pytest.approx(13.6 * (1 / 4 - 1 / 9))
    assert photon_wavelength(e) == pytest.approx(656.5, abs=0.5)
    assert photon_energy(2, 3) == e
    assert math.isinf(photon_wavelength(0.0))
    with pytest.raises(ValueError):
        level_energy(0)


def test_radial_density_is_non_negative() -> None:
    for n in range(1, 7):
        assert radial_probability(n, 0.0) == 0.0
        assert all(radial_probability(n, r / 10) >= 0.0 for r in range(1, 200))


def test_absorption_then_emission() -> None:
    atom = HydrogenAtom(seed=1)
    assert atom.level == 1

    up = atom.transition_to(3)
    assert up is not None
    assert up.kind is TransitionKind.ABSORPTION
    assert (up.n_from, up.n_to) == (1, 3)
    assert atom.energy == pytest.approx(level_energy(3))
    assert atom.state.derived["orbit_radius"] == 9.0

    down = atom.transition_to(2)
    assert down is not None
    assert down.kind is TransitionKind.EMISSION
    assert down.wavelength_nm == pytest.approx(656.5, abs=0.5)
    assert atom.particles.count > 0
    assert atom.last_transition == down


def test_same_level_and_out_of_range() -> None:
    atom = HydrogenAtom(seed=1)
    assert atom.transition_to(1) is None
    with pytest.raises(ValueError):
        atom.transition_to(7)
    with pytest.raises(ValueError):
        atom.transition_to(0)


def test_orbit_eases_to_new_level() -> None:
    atom = HydrogenAtom(seed=1)
    atom.transition_to(2)
    assert atom.drawn_radius_level() == pytest.approx(1.0)
    atom.update_effects(0.2)
    assert 1.0 < atom.drawn_radius_level() < 4.0
    atom.update_effects(0.5)
    assert atom.drawn_radius_level() == pytest.approx(4.0)


def test_keys_jump_levels_and_toggle_cloud() -> None:
    atom = HydrogenAtom(seed=1)
    assert atom.handle_key(pygame.K_4)
    assert atom.level == 4
    assert atom.show_cloud
    assert atom.handle_key(pygame.K_p)
    assert not atom.show_cloud
    assert not atom.handle_key(pygame.K_9)


def test_click_on_level_row() -> None:
    atom = HydrogenAtom(seed=1)
    # Default viewport: level rows at x 633.6..864, y = 50 + 446 / n^2.
    atom.handle_click(700.0, 50.0 + 446.0 / 4.0)
    assert atom.level == 2
    atom.handle_click(100.0, 50.0 + 446.0 / 9.0)
    assert atom.level == 2


def test_challenge_grades_each_photon_and_rolls_targets() -> None:
    atom = HydrogenAtom(seed=4)
    atom.set_mode(HydrogenMode.CHALLENGE)
    assert atom.challenge.active
    assert atom.target_energy > 0.0

    atom.transition_to(2)
    assert atom.challenge.attempts == 1
    assert atom.challenge.last_result is not None
    assert len(atom.popups) == 1

    atom.submit()
    assert atom.target_energy > 0.0
    assert atom.challenge.attempts == 1


def test_challenge_targets_come_from_distinct_level_pairs() -> None:
    reachable = {
        round(photon_energy(a, b), 2) for a in range(1, 7) for b in range(1, 7) if a != b
    }
    seen = set()
    for seed in range(40):
        atom = HydrogenAtom(seed=seed)
        atom.set_mode(HydrogenMode.CHALLENGE)
        assert atom.target_energy in reachable
        seen.add(atom.target_energy)
    # Pairs away from the ground state show up too.
    assert any(e < photon_energy(1, 2) for e in seen)
