from __future__ import annotations

from sph2d import DEFAULT_CONFIG, AnimationConfig, FluidSystem2D, init_lattice, plot_snapshot


def main() -> None:
    sim = FluidSystem2D(init_lattice(DEFAULT_CONFIG), DEFAULT_CONFIG, backend="arrays")
    for _ in range(400):
        sim.step()

    plot_snapshot(
        sim,
        config=AnimationConfig(color_by="pressure", cbar_label="Pressure [Pa]"),
    )

if __name__ == "__main__":
    main()
