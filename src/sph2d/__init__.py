from .vector2 import Vector2, dot, cross, cross_scalar
from .neighbors import NeighborIndex
from .sph2d import (
    SPHConfig,
    DEFAULT_CONFIG,
    Particle,
    ParticleArrays,
    FluidSystem2D,
    NumbaConfig,
    AnimationConfig,
    compute_density,
    compute_density_pressure,
    compute_forces,
    integrate,
    pair_force,
    particle_acceleration,
    poly6_term,
    step,
    step_arrays,
    plot_snapshot,
    run_animation,
)
from .plotly_viz import (
    plot_snapshot_interactive,
    run_animation_interactive,
    PlotlySnapshotConfig,
)
from .api import (
    NumericsConfig, RunConfig, load_config, make_system,
    init_lattice,
    PovExporter, write_pov_frame, render_pov,
    run_simulation,
)

__all__ = [
    "Vector2", "dot", "cross", "cross_scalar",
    "NeighborIndex",
    "SPHConfig", "DEFAULT_CONFIG",
    "Particle", "ParticleArrays",
    "FluidSystem2D", "NumbaConfig",
    "compute_density", "compute_density_pressure", "compute_forces", "integrate",
    "pair_force", "particle_acceleration", "poly6_term",
    "step", "step_arrays",
    "AnimationConfig", "plot_snapshot", "run_animation",
    "plot_snapshot_interactive", "run_animation_interactive", "PlotlySnapshotConfig",
    "NumericsConfig", "RunConfig", "load_config", "make_system",
    "init_lattice",
    "PovExporter", "write_pov_frame", "render_pov",
    "run_simulation",
]
