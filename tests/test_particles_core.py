from __future__ import annotations

import pytest

from physlab.core import SeededRng
from physlab.particles import BURST_PRESETS, EmitterConfig, ParticleSystem


def test_emit_update_and_drain() -> None:
    system = ParticleSystem(rng=SeededRng(1))
    system.emit(100.0, 100.0, 10, (255, 0, 0), EmitterConfig(lifetime=0.5, lifetime_variance=0.0))
    assert system.count == 10

    system.update(0.25)
    assert system.count == 10
    assert all(0.0 < p.alpha < 1.0 for p in system.particles)

    system.update(0.3)
    assert system.count == 0


def test_lifetime_is_floored() -> None:
    system = ParticleSystem(rng=SeededRng(2))
    system.emit(0.0, 0.0, 5, (0, 0, 0), EmitterConfig(lifetime=0.0, lifetime_variance=0.0))
    assert all(p.life >= 0.1 for p in system.particles)


def test_gravity_pulls_particles_down() -> None:
    system = ParticleSystem(rng=SeededRng(3))
    system.emit(0.0, 0.0, 1, (0, 0, 0), EmitterConfig(speed=0.0, speed_variance=0.0, gravity=500.0, lifetime=2.0))
    system.update(0.1)
    system.update(0.1)
    (p,) = system.particles
    assert p.vy > 0.0 and p.y > 0.0


def test_same_seed_same_particles() -> None:
    a = ParticleSystem(rng=SeededRng(7))
    b = ParticleSystem(rng=SeededRng(7))
    a.emit_sparks(10.0, 10.0, (255, 255, 255), 8)
    b.emit_sparks(10.0, 10.0, (255, 255, 255), 8)
    assert [(p.vx, p.vy, p.life) for p in a.particles] == [(p.vx, p.vy, p.life) for p in b.particles]


def test_named_bursts() -> None:
    system = ParticleSystem(rng=SeededRng(4))
    for kind in BURST_PRESETS:
        system.burst(kind, 0.0, 0.0, 3, (1, 2, 3))
    system.burst("confetti", 0.0, 0.0, 6, (0, 0, 0))
    assert system.count == 3 * len(BURST_PRESETS) + 6

    with pytest.raises(KeyError):
        system.burst("fireworks", 0.0, 0.0, 3, (0, 0, 0))


def test_emitter_config_validation() -> None:
    with pytest.raises(ValueError):
        EmitterConfig(lifetime=-1.0)
    with pytest.raises(ValueError):
        EmitterConfig(drag=1.5)


def test_clear_empties_the_pool() -> None:
    system = ParticleSystem(rng=SeededRng(5))
    system.emit_glow(0.0, 0.0, (0, 0, 0), 4)
    system.clear()
    assert system.count == 0


def test_bubbles_rise_and_trails_point_backwards() -> None:
    system = ParticleSystem(rng=SeededRng(6))
    system.emit_bubbles(0.0, 0.0, (0, 0, 255), 6)
    assert system.count == 6
    assert all(p.vy < 0 for p in system.particles)

    system.clear()
    system.emit_trail(0.0, 0.0, (200, 200, 200), vx=120.0, vy=0.0)
    assert system.count == 2
    assert all(p.vx < 0 for p in system.particles)
