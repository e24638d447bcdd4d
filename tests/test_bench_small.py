from __future__ import annotations

from sph2d import FluidSystem2D, init_lattice


def test_step_benchmark(benchmark) -> None:
    system = FluidSystem2D(init_lattice())

    def run():
        system.step()

    benchmark(run)
