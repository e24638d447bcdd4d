from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Literal
from collections.abc import Sequence

import logging
import math
import numpy as np
from numpy.typing import NDArray
import matplotlib.pyplot as plt
from matplotlib import animation

from ._jit import _maybe_njit, numba_available
from .neighbors import (
    NeighborIndex,
    Stencil,
    _build_cell_list,
    _probe_keys,
    cell_list_geometry,
    grid_shape,
    stencil_code,
)
from .vector2 import Vector2

logger = logging.getLogger(__name__)

FloatArray = NDArray[np.float64]
Pair = tuple[float, float]


# ---------------------------
# Physical constants
# ---------------------------
@dataclass(frozen=True, slots=True)
class SPHConfig:
    """Physical and numerical constants for one simulation run.

    Lengths in ``domain_*`` / ``init_*`` are world units; kernel distances are
    world distances times ``sim_scale``.
    """
    rest_density: float = 600.0
    stiffness: float = 1.0
    particle_mass: float = 0.00020543
    sim_scale: float = 0.004
    smoothing_radius: float = 0.01
    dt: float = 0.004
    viscosity: float = 0.2
    accel_limit: float = 200.0
    particle_radius: float = 0.004
    boundary_epsilon: float = 0.00001
    boundary_stiffness: float = 10000.0
    boundary_damping: float = 256.0
    domain_min: Pair = (0.0, 0.0)
    domain_max: Pair = (20.0, 50.0)
    init_min: Pair = (0.0, 0.0)
    init_max: Pair = (10.0, 20.0)
    gravity: Pair = (0.0, -9.8)
    min_distance: float = 1e-12

    def __post_init__(self) -> None:
        for name in ("domain_min", "domain_max", "init_min", "init_max", "gravity"):
            v = getattr(self, name)
            if len(v) != 2:
                raise ValueError(f"{name} must have two components.")
            object.__setattr__(self, name, (float(v[0]), float(v[1])))
        for name in ("rest_density", "particle_mass", "sim_scale", "smoothing_radius", "dt", "accel_limit", "min_distance"):
            v = getattr(self, name)
            if not (math.isfinite(v) and v > 0.0):
                raise ValueError(f"{name} must be positive.")
        for name in ("stiffness", "viscosity", "particle_radius", "boundary_epsilon",
                     "boundary_stiffness", "boundary_damping"):
            v = getattr(self, name)
            if not (math.isfinite(v) and v >= 0.0):
                raise ValueError(f"{name} must be non-negative.")
        if not (self.domain_max[0] > self.domain_min[0] and self.domain_max[1] > self.domain_min[1]):
            raise ValueError("domain_max must exceed domain_min on both axes.")
        if not (self.init_max[0] >= self.init_min[0] and self.init_max[1] >= self.init_min[1]):
            raise ValueError("init_max must not be below init_min.")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SPHConfig:
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown SPHConfig keys: {sorted(unknown)}")
        return cls(**data)

    # -------- derived constants --------
    @property
    def poly6_kernel(self) -> float:
        return 315.0 / (64.0 * math.pi * self.smoothing_radius ** 9)

    @property
    def spiky_kernel(self) -> float:
        return -45.0 / (math.pi * self.smoothing_radius ** 6)

    @property
    def laplacian_kernel(self) -> float:
        return 45.0 / (math.pi * self.smoothing_radius ** 6)

    @property
    def cell_size(self) -> float:
        """Neighbor grid cell side in world units."""
        return self.smoothing_radius / self.sim_scale

    @property
    def particle_spacing(self) -> float:
        return (self.particle_mass / self.rest_density) ** (1.0 / 3.0)

    @property
    def lattice_spacing(self) -> float:
        """Initial world-unit spacing used by the lattice initializer."""
        return self.particle_spacing / self.sim_scale * 0.95

    @property
    def grid_shape(self) -> tuple[int, int]:
        return grid_shape(self.cell_size, self.domain_min, self.domain_max)


DEFAULT_CONFIG = SPHConfig()


# ---------------------------
# Particle store
# ---------------------------
@dataclass(slots=True)
class Particle:
    """Per-particle state, mutated in place by every tick.

    After the density pass ``density`` holds the *reciprocal* of the physical
    density (0.0 when the physical density is 0).
    """
    position: Vector2
    velocity: Vector2 = field(default_factory=Vector2.zero)
    force: Vector2 = field(default_factory=Vector2.zero)
    density: float = 0.0
    pressure: float = 0.0


def _as_float_array2(x: np.ndarray | Sequence[Sequence[float]], name: str) -> FloatArray:
    """Convert to contiguous float64 (N,2)."""
    arr = np.asarray(x, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"{name} must have shape (N,2).")
    if not np.isfinite(arr).all():
        raise ValueError(f"{name} contains non-finite values.")
    return np.ascontiguousarray(arr)


def _stack_vectors(vectors: Sequence[Vector2]) -> FloatArray:
    return np.array([(v.x, v.y) for v in vectors], dtype=np.float64).reshape(-1, 2)


def _as_float_array1(x: np.ndarray | Sequence[float], name: str, n: int) -> FloatArray:
    arr = np.asarray(x, dtype=np.float64)
    if arr.shape != (n,):
        raise ValueError(f"{name} must have shape ({n},).")
    return np.ascontiguousarray(arr)


@dataclass(slots=True)
class ParticleArrays:
    """Struct-of-arrays mirror of a particle list."""
    x: FloatArray          # (N,2) positions
    v: FloatArray          # (N,2) velocities
    f: FloatArray          # (N,2) forces
    rho: FloatArray        # (N,) reciprocal densities
    p: FloatArray          # (N,) pressures

    @classmethod
    def from_positions(cls, positions: np.ndarray | Sequence[Sequence[float]]) -> ParticleArrays:
        x = _as_float_array2(positions, "positions").copy()
        n = x.shape[0]
        return cls(x=x, v=np.zeros((n, 2)), f=np.zeros((n, 2)), rho=np.zeros(n), p=np.zeros(n))

    @classmethod
    def from_particles(cls, particles: Sequence[Particle]) -> ParticleArrays:
        n = len(particles)
        x = _as_float_array2(_stack_vectors([q.position for q in particles]), "positions")
        v = _as_float_array2(_stack_vectors([q.velocity for q in particles]), "velocities")
        f = _stack_vectors([q.force for q in particles])
        rho = _as_float_array1([q.density for q in particles], "rho", n)
        p = _as_float_array1([q.pressure for q in particles], "p", n)
        return cls(x=x, v=v, f=f, rho=rho, p=p)

    @property
    def n(self) -> int: return int(self.x.shape[0])

    def to_particles(self) -> list[Particle]:
        return [
            Particle(
                position=Vector2(float(self.x[i, 0]), float(self.x[i, 1])),
                velocity=Vector2(float(self.v[i, 0]), float(self.v[i, 1])),
                force=Vector2(float(self.f[i, 0]), float(self.f[i, 1])),
                density=float(self.rho[i]),
                pressure=float(self.p[i]),
            )
            for i in range(self.n)
        ]

    def write_back(self, particles: Sequence[Particle]) -> None:
        """Copy array state into an existing particle list of the same length."""
        if len(particles) != self.n:
            raise ValueError("particle count does not match array length.")
        for i, q in enumerate(particles):
            q.position = Vector2(float(self.x[i, 0]), float(self.x[i, 1]))
            q.velocity = Vector2(float(self.v[i, 0]), float(self.v[i, 1]))
            q.force = Vector2(float(self.f[i, 0]), float(self.f[i, 1]))
            q.density = float(self.rho[i])
            q.pressure = float(self.p[i])


# ---------------------------
# Pass 1: density & pressure
# ---------------------------
def poly6_term(r2: float, h2: float) -> float:
    """Unnormalized poly6 weight (h² - r²)³, zero outside the support."""
    if h2 > r2:
        c = h2 - r2
        return c * c * c
    return 0.0


def compute_density(particles: Sequence[Particle], index: NeighborIndex, i: int, config: SPHConfig) -> float:
    """Physical density of particle ``i`` from its current neighbors (no self term)."""
    h2 = config.smoothing_radius * config.smoothing_radius
    s = config.sim_scale
    p1 = particles[i]
    total = 0.0
    for j in index.query(p1.position):
        if i == j:
            continue
        dr = (p1.position - particles[j].position) * s
        total += poly6_term(dr.length_squared(), h2)
    return total * config.particle_mass * config.poly6_kernel


def compute_density_pressure(particles: Sequence[Particle], index: NeighborIndex, config: SPHConfig) -> None:
    rest = config.rest_density
    stiff = config.stiffness
    for i in range(len(particles)):
        rho = compute_density(particles, index, i, config)
        q = particles[i]
        q.pressure = (rho - rest) * stiff
        q.density = 1.0 / rho if rho != 0.0 else 0.0


# ---------------------------
# Pass 2: forces
# ---------------------------
def pair_force(p1: Particle, p2: Particle, config: SPHConfig) -> Vector2:
    """Pressure + viscosity force of ``p2`` on ``p1``.

    Reads reciprocal densities, so the density pass must have run.
    """
    h = config.smoothing_radius
    dr = (p1.position - p2.position) * config.sim_scale
    r = dr.length()
    if not h > r:
        return Vector2(0.0, 0.0)
    c = h - r
    r_safe = r if r > config.min_distance else config.min_distance
    pterm = -0.5 * c * config.spiky_kernel * (p1.pressure + p2.pressure) / r_safe
    vterm = config.laplacian_kernel * config.viscosity
    fcurr = dr * pterm + (p2.velocity - p1.velocity) * vterm
    return fcurr * (c * p1.density * p2.density)


def compute_forces(particles: Sequence[Particle], index: NeighborIndex, config: SPHConfig) -> None:
    # Only ``force`` is written here and no pair term reads it.
    for i, p1 in enumerate(particles):
        force = Vector2(0.0, 0.0)
        for j in index.query(p1.position):
            if i == j:
                continue
            force += pair_force(p1, particles[j], config)
        p1.force = force


# ---------------------------
# Pass 3: integration & boundary
# ---------------------------
def _boundary_walls(config: SPHConfig) -> tuple[tuple[Vector2, int, float, float], ...]:
    # (inward normal, axis, wall coordinate, sign of (position - wall))
    xmin, ymin = config.domain_min
    xmax, ymax = config.domain_max
    return (
        (Vector2(1.0, 0.0), 0, xmin, 1.0),
        (Vector2(-1.0, 0.0), 0, xmax, -1.0),
        (Vector2(0.0, 1.0), 1, ymin, 1.0),
        (Vector2(0.0, -1.0), 1, ymax, -1.0),
    )


def particle_acceleration(q: Particle, config: SPHConfig) -> Vector2:
    """Clamped force acceleration plus boundary penalty and gravity."""
    # force * mass, not force / mass
    accel = q.force * config.particle_mass
    speed = accel.length_squared()
    limit = config.accel_limit
    if speed > limit * limit:
        accel = accel * (limit / math.sqrt(speed))

    pos = q.position
    for norm, axis, wall, sign in _boundary_walls(config):
        dist = (pos[axis] - wall) if sign > 0 else (wall - pos[axis])
        diff = 2.0 * config.particle_radius - dist * config.sim_scale
        if diff > config.boundary_epsilon:
            adj = config.boundary_stiffness * diff - config.boundary_damping * norm.dot(q.velocity)
            accel += norm * adj

    accel += Vector2(*config.gravity)
    return accel


def integrate(particles: Sequence[Particle], config: SPHConfig) -> None:
    dt = config.dt
    s = config.sim_scale
    for q in particles:
        accel = particle_acceleration(q, config)
        q.velocity += accel * dt
        q.position += q.velocity * dt / s


# ---------------------------
# One tick
# ---------------------------
def step(
    particles: Sequence[Particle],
    config: SPHConfig = DEFAULT_CONFIG,
    *,
    index: NeighborIndex | None = None,
    stencil: Stencil = "offset",
) -> None:
    """Advance ``particles`` one tick in place.

    A caller-supplied ``index`` is rebuilt and reused, avoiding reallocating
    the bucket array every tick; its own stencil then applies.
    """
    if index is None:
        index = NeighborIndex.for_config(config, stencil=stencil)
    index.build(q.position for q in particles)
    compute_density_pressure(particles, index, config)
    compute_forces(particles, index, config)
    integrate(particles, config)


# ---------------------------
# Array backend
# ---------------------------
def _density_pressure_kernel(
    x: np.ndarray, cell_start: np.ndarray, cell_items: np.ndarray,
    geom: np.ndarray, nx: int, ny: int, stencil: int,
    sim_scale: float, h: float, mass: float, poly6: float, rest: float, stiff: float,
    rho: np.ndarray, p: np.ndarray,
) -> None:
    n = x.shape[0]
    h2 = h * h
    keys = np.empty(9, dtype=np.int64)
    for i in range(n):
        m = _probe_keys(x[i, 0], x[i, 1], geom, nx, ny, stencil, keys)
        total = 0.0
        for k in range(m):
            key = keys[k]
            for t in range(cell_start[key], cell_start[key + 1]):
                j = cell_items[t]
                if j == i:
                    continue
                dx = (x[i, 0] - x[j, 0]) * sim_scale
                dy = (x[i, 1] - x[j, 1]) * sim_scale
                r2 = dx * dx + dy * dy
                if h2 > r2:
                    c = h2 - r2
                    total += c * c * c
        dens = total * mass * poly6
        p[i] = (dens - rest) * stiff
        if dens != 0.0:
            rho[i] = 1.0 / dens
        else:
            rho[i] = 0.0


def _forces_kernel(
    x: np.ndarray, v: np.ndarray, rho: np.ndarray, p: np.ndarray,
    cell_start: np.ndarray, cell_items: np.ndarray,
    geom: np.ndarray, nx: int, ny: int, stencil: int,
    sim_scale: float, h: float, spiky: float, vterm: float, min_dist: float,
    f: np.ndarray,
) -> None:
    n = x.shape[0]
    keys = np.empty(9, dtype=np.int64)
    for i in range(n):
        m = _probe_keys(x[i, 0], x[i, 1], geom, nx, ny, stencil, keys)
        fx = 0.0
        fy = 0.0
        for k in range(m):
            key = keys[k]
            for t in range(cell_start[key], cell_start[key + 1]):
                j = cell_items[t]
                if j == i:
                    continue
                dx = (x[i, 0] - x[j, 0]) * sim_scale
                dy = (x[i, 1] - x[j, 1]) * sim_scale
                r = math.sqrt(dx * dx + dy * dy)
                if h > r:
                    c = h - r
                    r_safe = r if r > min_dist else min_dist
                    pterm = -0.5 * c * spiky * (p[i] + p[j]) / r_safe
                    scale = c * rho[i] * rho[j]
                    fx += (dx * pterm + (v[j, 0] - v[i, 0]) * vterm) * scale
                    fy += (dy * pterm + (v[j, 1] - v[i, 1]) * vterm) * scale
        f[i, 0] = fx
        f[i, 1] = fy


_density_pressure_jit = _maybe_njit(_density_pressure_kernel)
_forces_jit = _maybe_njit(_forces_kernel)


def _integrate_arrays(state: ParticleArrays, config: SPHConfig) -> None:
    a = state.f * config.particle_mass
    speed = a[:, 0] * a[:, 0] + a[:, 1] * a[:, 1]
    limit = config.accel_limit
    over = speed > limit * limit
    if np.any(over):
        a[over] *= (limit / np.sqrt(speed[over]))[:, None]

    x = state.x
    v = state.v
    s = config.sim_scale
    two_r = 2.0 * config.particle_radius
    k = config.boundary_stiffness
    damp = config.boundary_damping
    eps = config.boundary_epsilon
    xmin, ymin = config.domain_min
    xmax, ymax = config.domain_max

    # min-x, max-x, min-y, max-y; normal·v reduces to ±v along the wall axis
    for axis, dist, sign in (
        (0, x[:, 0] - xmin, 1.0),
        (0, xmax - x[:, 0], -1.0),
        (1, x[:, 1] - ymin, 1.0),
        (1, ymax - x[:, 1], -1.0),
    ):
        diff = two_r - dist * s
        hit = diff > eps
        if np.any(hit):
            adj = k * diff[hit] - damp * (sign * v[hit, axis])
            a[hit, axis] += sign * adj

    a += np.asarray(config.gravity, dtype=np.float64)
    v += a * config.dt
    x += v * config.dt / s


def step_arrays(
    state: ParticleArrays,
    config: SPHConfig = DEFAULT_CONFIG,
    *,
    stencil: Stencil = "offset",
    use_numba: bool = False,
) -> None:
    """Array counterpart of :func:`step`; same binning order, same arithmetic."""
    geom, nx, ny = cell_list_geometry(config)
    code = stencil_code(stencil)
    cell_start, cell_items = _build_cell_list(state.x, geom, nx, ny)
    if use_numba and numba_available():
        dens_fn, force_fn = _density_pressure_jit, _forces_jit
    else:
        dens_fn, force_fn = _density_pressure_kernel, _forces_kernel
    dens_fn(
        state.x, cell_start, cell_items, geom, nx, ny, code,
        config.sim_scale, config.smoothing_radius, config.particle_mass, config.poly6_kernel,
        config.rest_density, config.stiffness,
        state.rho, state.p,
    )
    force_fn(
        state.x, state.v, state.rho, state.p, cell_start, cell_items, geom, nx, ny, code,
        config.sim_scale, config.smoothing_radius, config.spiky_kernel,
        config.laplacian_kernel * config.viscosity, config.min_distance,
        state.f,
    )
    _integrate_arrays(state, config)


# ---------------------------
# Stateful system
# ---------------------------
@dataclass(slots=True)
class NumbaConfig:
    """Toggle Numba JIT for the array backend.
    If enabled and numba is available, the density and force passes run compiled.
    """
    enabled: bool = False


class FluidSystem2D:
    """2D SPH fluid with a particle-list or array backend."""

    def __init__(
        self,
        particles: Sequence[Particle],
        config: SPHConfig = DEFAULT_CONFIG,
        *,
        backend: Literal["particles", "arrays"] = "particles",
        stencil: Stencil = "offset",
        numba_cfg: NumbaConfig | None = None,
    ) -> None:
        if backend not in ("particles", "arrays"):
            raise ValueError(f"Unknown backend: {backend}")
        stencil_code(stencil)
        self._config = config
        self._backend: Literal["particles", "arrays"] = backend
        self._stencil: Stencil = stencil
        self._numba = numba_cfg or NumbaConfig()
        self._t = 0.0
        self._steps = 0
        self._particles: list[Particle] = list(particles)
        self._arrays: ParticleArrays | None = None
        self._index: NeighborIndex | None = None
        if backend == "arrays":
            self._arrays = ParticleArrays.from_particles(self._particles)
        else:
            self._index = NeighborIndex.for_config(config, stencil=stencil)
        if self._numba.enabled and not numba_available():
            logger.warning("Numba JIT requested but numba is not installed; running interpreted kernels.")
        nx, ny = config.grid_shape
        logger.info(
            "FluidSystem2D created: %d particles, %dx%d cells, backend=%s, stencil=%s",
            len(self._particles), nx, ny, backend, stencil,
        )

    # -------- properties --------
    @property
    def config(self) -> SPHConfig: return self._config

    @property
    def backend(self) -> str: return self._backend

    @property
    def time(self) -> float: return self._t

    @property
    def step_count(self) -> int: return self._steps

    @property
    def n_particles(self) -> int: return len(self._particles)

    @property
    def particles(self) -> list[Particle]:
        """Current particle list (synchronized from arrays for the array backend)."""
        if self._arrays is not None:
            self._arrays.write_back(self._particles)
        return self._particles

    @property
    def positions(self) -> FloatArray:
        if self._arrays is not None:
            return self._arrays.x.copy()
        return _stack_vectors([q.position for q in self._particles])

    @property
    def velocities(self) -> FloatArray:
        if self._arrays is not None:
            return self._arrays.v.copy()
        return _stack_vectors([q.velocity for q in self._particles])

    @property
    def pressures(self) -> FloatArray:
        if self._arrays is not None:
            return self._arrays.p.copy()
        return np.array([q.pressure for q in self._particles], dtype=np.float64)

    @property
    def densities(self) -> FloatArray:
        """Physical densities (inverse of the stored reciprocals; 0 where undefined)."""
        if self._arrays is not None:
            inv = self._arrays.rho
        else:
            inv = np.array([q.density for q in self._particles], dtype=np.float64)
        out = np.zeros_like(inv)
        nz = inv != 0.0
        out[nz] = 1.0 / inv[nz]
        return out

    # -------- time stepping --------
    def step(self) -> None:
        if self._arrays is not None:
            step_arrays(self._arrays, self._config, stencil=self._stencil, use_numba=self._numba.enabled)
        else:
            step(self._particles, self._config, index=self._index)
        self._t += self._config.dt
        self._steps += 1

    # --------- Utilities ---------
    def diagnostics(self) -> dict[str, Any]:
        x = self.positions
        v = self.velocities
        speed = np.linalg.norm(v, axis=1)
        dens = self.densities
        finite = bool(np.isfinite(x).all() and np.isfinite(v).all())
        if not finite:
            logger.warning("Non-finite particle state at step %d (t=%.4f)", self._steps, self._t)
        return {
            "time": self._t,
            "step": self._steps,
            "n_particles": x.shape[0],
            "kinetic_energy": float(0.5 * self._config.particle_mass * np.sum(speed * speed)),
            "max_speed": float(speed.max(initial=0.0)),
            "mean_density": float(dens[dens > 0.0].mean()) if np.any(dens > 0.0) else 0.0,
            "centroid": x.mean(axis=0) if x.shape[0] else np.zeros(2),
            "finite": finite,
        }


# ------------------------------
# Plot helpers
# ------------------------------
@dataclass(slots=True)
class AnimationConfig:
    color_by: Literal["speed", "pressure"] = "speed"
    marker_size: float = 18.0
    show_domain: bool = True
    figsize: tuple[float, float] = (5.0, 9.0)
    cmap: str = "viridis"
    cbar_label: str = "Speed [m/s]"
    steps_per_frame: int = 1


def _colors(system: FluidSystem2D, color_by: str) -> FloatArray:
    if color_by == "pressure":
        return system.pressures
    return np.linalg.norm(system.velocities, axis=1)


def _draw_domain(ax: Any, config: SPHConfig) -> None:
    xmin, ymin = config.domain_min
    xmax, ymax = config.domain_max
    ax.plot([xmin, xmax, xmax, xmin, xmin], [ymin, ymin, ymax, ymax, ymin], color="k", lw=0.8)


def plot_snapshot(
    system: FluidSystem2D,
    *,
    config: AnimationConfig | None = None,
    save_path: str | None = None,
) -> None:
    cfg = config or AnimationConfig()
    sph = system.config
    x = system.positions

    fig, ax = plt.subplots(figsize=cfg.figsize)
    sc = ax.scatter(x[:, 0], x[:, 1], s=cfg.marker_size, c=_colors(system, cfg.color_by),
                    cmap=cfg.cmap, edgecolors="k", linewidths=0.3)
    fig.colorbar(sc, ax=ax, fraction=0.046, pad=0.04).set_label(cfg.cbar_label)
    if cfg.show_domain:
        _draw_domain(ax, sph)

    pad = sph.cell_size * 0.25
    ax.set_xlim(sph.domain_min[0] - pad, sph.domain_max[0] + pad)
    ax.set_ylim(sph.domain_min[1] - pad, sph.domain_max[1] + pad)
    ax.set_aspect("equal", adjustable="box")
    ax.set_title(f"SPH snapshot, t = {system.time:.3f} s, N = {system.n_particles}")
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.grid(True, alpha=0.2)
    if save_path:
        fig.savefig(save_path, dpi=150)
        plt.close(fig)
    else:
        plt.show()


def run_animation(
    system: FluidSystem2D,
    *,
    steps: int,
    config: AnimationConfig | None = None,
    save_path: str | None = None,
    fps: int = 30,
) -> None:
    if config is None:
        config = AnimationConfig()
    sph = system.config

    fig, ax = plt.subplots(figsize=config.figsize)
    x = system.positions
    colors = _colors(system, config.color_by)
    particles_sc = ax.scatter(x[:, 0], x[:, 1], s=config.marker_size, c=colors,
                              cmap=config.cmap, edgecolors="k", linewidths=0.3)
    cax = fig.colorbar(particles_sc, ax=ax, fraction=0.046, pad=0.04)
    cax.set_label(config.cbar_label)
    if config.show_domain:
        _draw_domain(ax, sph)

    pad = sph.cell_size * 0.25
    ax.set_xlim(sph.domain_min[0] - pad, sph.domain_max[0] + pad)
    ax.set_ylim(sph.domain_min[1] - pad, sph.domain_max[1] + pad)
    ax.set_aspect("equal", adjustable="box")
    ttl = ax.set_title(f"t = {system.time:.3f} s")
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.grid(True, alpha=0.2)

    def _update(_i: int) -> list[Any]:
        for _ in range(max(config.steps_per_frame, 1)):
            system.step()
        colors = _colors(system, config.color_by)
        particles_sc.set_offsets(system.positions)
        particles_sc.set_array(colors)
        if colors.size:
            particles_sc.set_clim(float(colors.min()), float(colors.max()))
        ttl.set_text(f"t = {system.time:.3f} s")
        return [particles_sc, ttl]

    anim = animation.FuncAnimation(fig, _update, frames=steps, interval=1000 / fps, blit=False)

    if save_path:
        if save_path.lower().endswith(".mp4"):
            Writer = animation.FFMpegWriter
            writer = Writer(fps=fps, metadata={"artist": "sph2d"}, bitrate=1800)
            anim.save(save_path, writer=writer, dpi=150)
        elif save_path.lower().endswith(".gif"):
            anim.save(save_path, writer="pillow", fps=fps, dpi=100)
        else:
            raise ValueError("Unsupported extension. Use .mp4 or .gif")
        plt.close(fig)
    else:
        plt.show()
