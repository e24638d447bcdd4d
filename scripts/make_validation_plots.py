from __future__ import annotations

import dataclasses
import os

import numpy as np
import matplotlib.pyplot as plt

from sph2d import DEFAULT_CONFIG, FluidSystem2D, ParticleArrays, init_lattice, step, step_arrays


ART = os.environ.get("ARTIFACTS_DIR", "artifacts")
os.makedirs(ART, exist_ok=True)


def dam_break_history_plot() -> None:
    sim = FluidSystem2D(init_lattice(DEFAULT_CONFIG), DEFAULT_CONFIG)

    n = 750
    ts, ke, rho, yc = [], [], [], []
    for k in range(n + 1):
        d = sim.diagnostics()
        ts.append(d["time"])
        ke.append(d["kinetic_energy"])
        rho.append(d["mean_density"])
        yc.append(float(d["centroid"][1]))
        if k < n:
            sim.step()

    fig, axes = plt.subplots(3, 1, figsize=(6, 8), sharex=True)
    axes[0].plot(ts, ke)
    axes[0].set_ylabel("kinetic energy [J]")
    axes[1].plot(ts, rho)
    axes[1].axhline(DEFAULT_CONFIG.rest_density, ls="--", color="k", lw=0.8, label="rest density")
    axes[1].set_ylabel("mean density [kg/m^3]")
    axes[1].legend()
    axes[2].plot(ts, yc)
    axes[2].set_ylabel("centroid y")
    axes[2].set_xlabel("t [s]")
    for ax in axes:
        ax.grid(True, alpha=0.3)
    fig.suptitle("Dam break: diagnostics over time")
    fig.tight_layout()
    fig.savefig(os.path.join(ART, "dam_break_history.png"), dpi=150)


def backend_drift_plot() -> None:
    """Max position difference between the particle and array backends."""
    cfg = dataclasses.replace(DEFAULT_CONFIG, init_max=(15.0, 25.0))
    particles = init_lattice(cfg)
    state = ParticleArrays.from_particles(particles)

    n = 500
    drift = []
    for _ in range(n):
        step(particles, cfg)
        step_arrays(state, cfg)
        ref = ParticleArrays.from_particles(particles)
        drift.append(float(np.abs(state.x - ref.x).max()))

    plt.figure()
    plt.semilogy(np.arange(1, n + 1), np.maximum(drift, 1e-300))
    plt.xlabel("step")
    plt.ylabel("max |x_arrays - x_particles|")
    plt.title("Backend agreement")
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(os.path.join(ART, "backend_drift.png"), dpi=150)


if __name__ == "__main__":
    dam_break_history_plot()
    backend_drift_plot()
