from __future__ import annotations

import dataclasses

import pytest

from sph2d import DEFAULT_CONFIG, FluidSystem2D, NumbaConfig, SPHConfig, init_lattice


def dam_config(width: float) -> SPHConfig:
    # wider initial block, same physics
    return dataclasses.replace(
        DEFAULT_CONFIG,
        domain_max=(2.0 * width, 50.0),
        init_max=(width, 20.0),
    )


@pytest.mark.benchmark(group="sph-step")
@pytest.mark.parametrize("width", [10.0, 40.0, 80.0])
@pytest.mark.parametrize("backend,use_numba", [("particles", False), ("arrays", False), ("arrays", True)])
def test_step_benchmark(benchmark, width: float, backend: str, use_numba: bool) -> None:
    if use_numba:
        pytest.importorskip("numba")
    cfg = dam_config(width)
    particles = init_lattice(cfg)
    sys = FluidSystem2D(particles, cfg,
                        backend=backend,  # type: ignore[arg-type]
                        numba_cfg=NumbaConfig(enabled=use_numba))
    sys.step()  # warm-up (JIT compile)

    def run() -> None:
        sys.step()
        assert sys.n_particles == len(particles)
    benchmark(run)
