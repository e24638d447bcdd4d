from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Any
from collections.abc import Sequence

import json
import logging
import os
import time

from .sph2d import (
    FluidSystem2D,
    NumbaConfig,
    Particle,
    SPHConfig,
    DEFAULT_CONFIG,
)
from .vector2 import Vector2

logger = logging.getLogger(__name__)


# ----------------------
# Configuration objects
# ----------------------

@dataclass(slots=True)
class NumericsConfig:
    """Numerical options for a simulation run.

    Validates the backend and neighbor stencil names.
    """
    backend: Literal["particles", "arrays"] = "particles"
    stencil: Literal["offset", "cells"] = "offset"
    numba: NumbaConfig = field(default_factory=NumbaConfig)

    def __post_init__(self) -> None:
        if isinstance(self.numba, dict):
            self.numba = NumbaConfig(**self.numba)
        if self.backend not in {"particles", "arrays"}:
            raise ValueError(f"Unknown backend: {self.backend}")
        if self.stencil not in {"offset", "cells"}:
            raise ValueError(f"Unknown stencil: {self.stencil}")


@dataclass(slots=True)
class RunConfig:
    """Driver loop controls and export options."""
    steps: int = 100
    export_every: int = 0  # 0 -> don't export frames
    outdir: str = "."

    def __post_init__(self) -> None:
        if self.steps < 0:
            raise ValueError("steps must be non-negative.")
        if self.export_every < 0:
            raise ValueError("export_every must be non-negative.")


_SECTIONS = {"sph", "numerics", "run"}


def load_config(path: str) -> tuple[SPHConfig, NumericsConfig, RunConfig]:
    """Read a JSON file with optional ``sph``, ``numerics`` and ``run`` sections.

    Missing sections fall back to defaults; unknown sections or keys raise ValueError.
    """
    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("configuration root must be a JSON object.")
    unknown = set(data) - _SECTIONS
    if unknown:
        raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

    sph = SPHConfig.from_dict(data.get("sph", {}))
    try:
        numerics = NumericsConfig(**data.get("numerics", {}))
        run = RunConfig(**data.get("run", {}))
    except TypeError as exc:
        raise ValueError(str(exc)) from exc
    return sph, numerics, run


def make_system(
    particles: Sequence[Particle],
    config: SPHConfig = DEFAULT_CONFIG,
    numerics: NumericsConfig | None = None,
) -> FluidSystem2D:
    numerics = numerics or NumericsConfig()
    return FluidSystem2D(
        particles, config,
        backend=numerics.backend, stencil=numerics.stencil, numba_cfg=numerics.numba,
    )


# ----------------------
# Initializer
# ----------------------

def init_lattice(config: SPHConfig = DEFAULT_CONFIG) -> list[Particle]:
    """Particles on a square lattice filling ``init_min``..``init_max`` (inclusive).

    Coordinates are accumulated by repeated addition of ``lattice_spacing``,
    rows bottom to top.
    """
    d = config.lattice_spacing
    (x0, y0), (x1, y1) = config.init_min, config.init_max
    particles: list[Particle] = []
    y = y0
    while y <= y1:
        x = x0
        while x <= x1:
            particles.append(Particle(position=Vector2(x, y)))
            x += d
        y += d
    logger.info("Lattice initialized: %d particles, spacing %.4f", len(particles), d)
    return particles


# ----------------------
# POV-Ray frame export
# ----------------------

POV_PREAMBLE = (
    '#include "colors.inc"\n'
    "camera { location <10, 30, -40.0> look_at <10, 10, 0.0> }\n"
    "light_source { <0, 30, -30> color White }\n"
)


def pov_filename(index: int) -> str:
    return f"result{index:03d}.pov"


def render_pov(particles: Sequence[Particle]) -> str:
    """Scene text: fixed preamble plus one sphere per particle."""
    parts = [POV_PREAMBLE]
    for q in particles:
        parts.append("sphere {\n")
        parts.append(f"  <{float(q.position.x)!r}, {float(q.position.y)!r}, 0>, 0.5\n")
        parts.append("  texture { pigment { color Gray30 } }\n}\n")
    return "".join(parts)


def write_pov_frame(index: int, particles: Sequence[Particle], outdir: str = ".") -> str:
    """Write ``result{index:03d}.pov`` into ``outdir``; I/O errors propagate."""
    if index < 0:
        raise ValueError("frame index must be non-negative.")
    path = os.path.join(outdir, pov_filename(index))
    logger.info("processing %s ...", pov_filename(index))
    with open(path, "w") as f:
        f.write(render_pov(particles))
    return path


class PovExporter:
    """Sequentially numbered POV-Ray frames.

    The counter only advances after a successful write, so a failed frame
    aborts the run instead of leaving a gap in the sequence.
    """

    def __init__(self, outdir: str = ".", *, start: int = 0) -> None:
        os.makedirs(outdir, exist_ok=True)
        self._outdir = outdir
        self._next = int(start)
        self._paths: list[str] = []

    @property
    def n_frames(self) -> int: return len(self._paths)

    @property
    def paths(self) -> list[str]: return list(self._paths)

    def export(self, particles: Sequence[Particle]) -> str:
        path = write_pov_frame(self._next, particles, self._outdir)
        self._paths.append(path)
        self._next += 1
        return path


# ----------------------
# Driver loop
# ----------------------

def run_simulation(
    system: FluidSystem2D,
    run: RunConfig,
    exporter: PovExporter | None = None,
) -> dict[str, Any]:
    """Advance ``run.steps`` ticks, exporting the initial state and every ``export_every`` ticks."""
    do_export = exporter is not None and run.export_every > 0
    wall_start = time.perf_counter()
    if do_export:
        exporter.export(system.particles)  # type: ignore[union-attr]
    for k in range(1, run.steps + 1):
        system.step()
        if do_export and k % run.export_every == 0:
            exporter.export(system.particles)  # type: ignore[union-attr]
    wall = time.perf_counter() - wall_start
    return {
        "final": system.diagnostics(),
        "n_frames": exporter.n_frames if exporter is not None else 0,
        "wall_clock_seconds": wall,
    }
