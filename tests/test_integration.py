from __future__ import annotations

import dataclasses

import pytest

from sph2d import DEFAULT_CONFIG, Particle, Vector2, integrate, particle_acceleration

NO_GRAVITY = dataclasses.replace(DEFAULT_CONFIG, gravity=(0.0, 0.0))


def test_interior_particle_at_rest_stays_put() -> None:
    q = Particle(position=Vector2(10.0, 25.0))
    integrate([q], NO_GRAVITY)
    assert q.position == Vector2(10.0, 25.0)
    assert q.velocity == Vector2(0.0, 0.0)


def test_min_x_wall_pushes_inward() -> None:
    q = Particle(position=Vector2(0.5, 25.0))
    a = particle_acceleration(q, NO_GRAVITY)
    # 2r - 0.5 * sim_scale = 0.006, times stiffness 10000
    assert a.x == pytest.approx(60.0)
    assert a.y == 0.0


def test_max_y_wall_pushes_down_on_top_of_gravity() -> None:
    q = Particle(position=Vector2(10.0, 49.5))
    a = particle_acceleration(q, DEFAULT_CONFIG)
    assert a.x == 0.0
    assert a.y == pytest.approx(-60.0 - 9.8)


def test_wall_damping_opposes_approach_velocity() -> None:
    q = Particle(position=Vector2(0.5, 25.0), velocity=Vector2(-1.0, 0.0))
    a = particle_acceleration(q, NO_GRAVITY)
    assert a.x == pytest.approx(60.0 + 256.0)


def test_wall_outside_epsilon_is_inactive() -> None:
    q = Particle(position=Vector2(2.5, 25.0), velocity=Vector2(-1.0, 0.0))
    assert particle_acceleration(q, NO_GRAVITY) == Vector2(0.0, 0.0)


def test_force_acceleration_is_clamped() -> None:
    q = Particle(position=Vector2(10.0, 25.0), force=Vector2(3.0e6, 4.0e6))
    a = particle_acceleration(q, NO_GRAVITY)
    assert a.length() == pytest.approx(NO_GRAVITY.accel_limit)
    assert a.y / a.x == pytest.approx(4.0 / 3.0)


def test_small_force_scales_by_mass() -> None:
    q = Particle(position=Vector2(10.0, 25.0), force=Vector2(1000.0, 0.0))
    a = particle_acceleration(q, NO_GRAVITY)
    assert a.x == pytest.approx(1000.0 * NO_GRAVITY.particle_mass)


def test_semi_implicit_euler_uses_updated_velocity() -> None:
    cfg = DEFAULT_CONFIG
    q = Particle(position=Vector2(10.0, 25.0), velocity=Vector2(0.5, 0.0))
    integrate([q], cfg)
    vy = -9.8 * cfg.dt
    assert q.velocity.x == pytest.approx(0.5)
    assert q.velocity.y == pytest.approx(vy)
    assert q.position.x == pytest.approx(10.0 + 0.5 * cfg.dt / cfg.sim_scale)
    assert q.position.y == pytest.approx(25.0 + vy * cfg.dt / cfg.sim_scale)
