from __future__ import annotations

import math

import pytest

from sph2d import (
    DEFAULT_CONFIG,
    NeighborIndex,
    Particle,
    Vector2,
    compute_density_pressure,
    compute_forces,
    pair_force,
)


def compressed_pair(dx: float = 1.0) -> tuple[Particle, Particle]:
    p1 = Particle(position=Vector2(10.0, 25.0), velocity=Vector2(0.3, -0.1), density=1.0 / 700.0, pressure=100.0)
    p2 = Particle(position=Vector2(10.0 + dx, 25.0), velocity=Vector2(-0.2, 0.4), density=1.0 / 650.0, pressure=50.0)
    return p1, p2


def test_pair_force_is_antisymmetric() -> None:
    p1, p2 = compressed_pair()
    f12 = pair_force(p1, p2, DEFAULT_CONFIG)
    f21 = pair_force(p2, p1, DEFAULT_CONFIG)
    assert f12.x == pytest.approx(-f21.x, rel=1e-12)
    assert f12.y == pytest.approx(-f21.y, rel=1e-12)


def test_positive_pressure_pushes_apart() -> None:
    p1, p2 = compressed_pair()
    p1.velocity = Vector2(0.0, 0.0)
    p2.velocity = Vector2(0.0, 0.0)
    f = pair_force(p1, p2, DEFAULT_CONFIG)
    # p2 lies at +x of p1
    assert f.x < 0.0
    assert f.y == 0.0


def test_viscosity_drags_toward_neighbor_velocity() -> None:
    p1, p2 = compressed_pair()
    p1.pressure = p2.pressure = 0.0
    p1.velocity = Vector2(0.0, 0.0)
    p2.velocity = Vector2(0.0, 1.0)
    f = pair_force(p1, p2, DEFAULT_CONFIG)
    assert f.y > 0.0
    assert f.x == 0.0


def test_pair_outside_support_is_zero() -> None:
    p1, p2 = compressed_pair(dx=3.0)
    assert pair_force(p1, p2, DEFAULT_CONFIG) == Vector2(0.0, 0.0)


def test_coincident_particles_stay_finite() -> None:
    p1, p2 = compressed_pair(dx=0.0)
    f = pair_force(p1, p2, DEFAULT_CONFIG)
    assert math.isfinite(f.x) and math.isfinite(f.y)


def test_isolated_particle_feels_no_force() -> None:
    particles = [Particle(position=Vector2(10.0, 25.0), force=Vector2(5.0, 5.0))]
    index = NeighborIndex.for_config(DEFAULT_CONFIG)
    index.build(q.position for q in particles)
    compute_density_pressure(particles, index, DEFAULT_CONFIG)
    compute_forces(particles, index, DEFAULT_CONFIG)
    assert particles[0].force == Vector2(0.0, 0.0)


def test_force_pass_overwrites_and_balances() -> None:
    particles = [Particle(position=Vector2(10.0, 25.0)), Particle(position=Vector2(11.0, 25.5))]
    index = NeighborIndex.for_config(DEFAULT_CONFIG)
    index.build(q.position for q in particles)
    compute_density_pressure(particles, index, DEFAULT_CONFIG)
    compute_forces(particles, index, DEFAULT_CONFIG)
    first = [q.force for q in particles]
    compute_forces(particles, index, DEFAULT_CONFIG)
    assert [q.force for q in particles] == first
    total = first[0] + first[1]
    scale = first[0].length()
    assert scale > 0.0
    assert abs(total.x) <= 1e-12 * scale and abs(total.y) <= 1e-12 * scale
