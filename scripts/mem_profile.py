from __future__ import annotations

import argparse
import dataclasses
import tracemalloc

from sph2d import DEFAULT_CONFIG, FluidSystem2D, NumbaConfig, init_lattice


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--width", type=float, default=40.0)
    ap.add_argument("--backend", choices=["particles", "arrays"], default="arrays")
    ap.add_argument("--stencil", choices=["offset", "cells"], default="offset")
    ap.add_argument("--numba", action="store_true")
    args = ap.parse_args()

    cfg = dataclasses.replace(DEFAULT_CONFIG, domain_max=(2.0 * args.width, 50.0), init_max=(args.width, 20.0))
    sys = FluidSystem2D(init_lattice(cfg), cfg,
                        backend=args.backend, stencil=args.stencil,
                        numba_cfg=NumbaConfig(enabled=bool(args.numba)))
    sys.step()

    tracemalloc.start()
    sys.step()
    current, peak = tracemalloc.get_traced_memory()
    tracemalloc.stop()
    print(f"step(N={sys.n_particles}, backend={args.backend}, numba={args.numba}) peak={peak/1e6:.1f} MB")

if __name__ == "__main__":
    main()
