from __future__ import annotations

from sph2d import AnimationConfig, FluidSystem2D, NumbaConfig, SPHConfig, init_lattice, run_animation


def main() -> None:
    cfg = SPHConfig(viscosity=0.25)
    sim = FluidSystem2D(
        init_lattice(cfg),
        cfg,
        backend="arrays",
        numba_cfg=NumbaConfig(enabled=True),
    )

    anim_cfg = AnimationConfig(
        color_by="speed",
        marker_size=22.0,
        steps_per_frame=4,
    )
    run_animation(
        sim,
        steps=600,
        config=anim_cfg,
        save_path=None,
        fps=30,
    )

if __name__ == "__main__":
    main()
