from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Any

import numpy as np

try:
    import plotly.graph_objects as go
    _PLOTLY = True
except ImportError:  # pragma: no cover
    _PLOTLY = False

from .sph2d import FluidSystem2D, SPHConfig


@dataclass(slots=True)
class PlotlySnapshotConfig:
    color_by: Literal["speed", "pressure", "density"] = "speed"
    marker_size: float = 7.0
    show_domain: bool = True
    colorscale: str = "Viridis"
    norm: Literal["linear", "log"] = "linear"
    cbar_label: str = "Speed [m/s]"


def _apply_norm(values: np.ndarray, mode: Literal["linear", "log"]) -> tuple[np.ndarray, str]:
    if mode == "linear":
        return values, "linear"
    # log
    eps = max(1e-12, float(np.abs(values).max(initial=0.0)) * 1e-6)
    return np.log10(np.abs(values) + eps), "log10"


def _field(system: FluidSystem2D, color_by: str) -> np.ndarray:
    if color_by == "pressure":
        return system.pressures
    if color_by == "density":
        return system.densities
    return np.linalg.norm(system.velocities, axis=1)


def _domain_trace(config: SPHConfig) -> Any:
    xmin, ymin = config.domain_min
    xmax, ymax = config.domain_max
    return go.Scatter(
        x=[xmin, xmax, xmax, xmin, xmin], y=[ymin, ymin, ymax, ymax, ymin],
        mode="lines", line=dict(width=1, color="black"), name="domain", hoverinfo="skip",
    )


def _particle_trace(system: FluidSystem2D, cfg: PlotlySnapshotConfig, *, with_colorbar: bool) -> Any:
    x = system.positions
    z, norm_name = _apply_norm(_field(system, cfg.color_by), cfg.norm)
    marker: dict[str, Any] = dict(
        size=cfg.marker_size, color=z, colorscale=cfg.colorscale,
        line=dict(width=0.5, color="black"),
    )
    if with_colorbar:
        marker["colorbar"] = dict(title=f"{cfg.cbar_label} ({norm_name})")
    return go.Scattergl(x=x[:, 0], y=x[:, 1], mode="markers", marker=marker, name="particles")


def _layout(fig: Any, system: FluidSystem2D) -> None:
    sph = system.config
    fig.update_layout(
        title=f"t = {system.time:.3f} s, N = {system.n_particles}",
        xaxis_title="x",
        yaxis_title="y",
        xaxis=dict(scaleanchor="y", scaleratio=1, range=[sph.domain_min[0], sph.domain_max[0]]),
        yaxis=dict(range=[sph.domain_min[1], sph.domain_max[1]]),
        template="plotly_white",
        legend=dict(x=0.01, y=0.99),
    )


def plot_snapshot_interactive(
    system: FluidSystem2D,
    *,
    config: PlotlySnapshotConfig | None = None,
    save_html: str | None = None,
) -> Any:
    """Interactive snapshot with Plotly (pan/zoom, hover). Returns the Figure."""
    if not _PLOTLY:
        raise RuntimeError("plotly is not installed. `pip install plotly`")

    cfg = config or PlotlySnapshotConfig()
    fig = go.Figure(data=[_particle_trace(system, cfg, with_colorbar=True)])
    if cfg.show_domain:
        fig.add_trace(_domain_trace(system.config))
    _layout(fig, system)

    if save_html:
        fig.write_html(save_html, include_plotlyjs="cdn")
    return fig


def run_animation_interactive(
    system: FluidSystem2D,
    *,
    steps: int,
    steps_per_frame: int = 1,
    config: PlotlySnapshotConfig | None = None,
    save_html: str | None = None,
) -> Any:
    """Interactive animation using Plotly frames. Returns the Figure with controls."""
    if not _PLOTLY:
        raise RuntimeError("plotly is not installed. `pip install plotly`")

    cfg = config or PlotlySnapshotConfig()
    base_fig = go.Figure(data=[_particle_trace(system, cfg, with_colorbar=True)])
    if cfg.show_domain:
        base_fig.add_trace(_domain_trace(system.config))
    _layout(base_fig, system)
    base_fig.update_layout(
        updatemenus=[
            dict(
                type="buttons",
                buttons=[
                    dict(label="Play", method="animate", args=[None, {"fromcurrent": True}]),
                    dict(label="Pause", method="animate", args=[[None], {"mode": "immediate"}]),
                ],
                x=0.02, y=1.07, xanchor="left", yanchor="top",
            )
        ],
    )

    frames = []
    slider_steps = []
    # Simulate and collect frames
    for k in range(steps):
        for _ in range(max(steps_per_frame, 1)):
            system.step()
        frames.append(go.Frame(data=[_particle_trace(system, cfg, with_colorbar=False)], traces=[0], name=f"{k}"))
        slider_steps.append(dict(method="animate", label=f"{system.time:.3f}", args=[[f"{k}"], {"mode": "immediate"}]))

    base_fig.frames = frames
    base_fig.update_layout(sliders=[dict(active=0, steps=slider_steps, x=0.1, xanchor="left", len=0.8)])

    if save_html:
        base_fig.write_html(save_html, include_plotlyjs="cdn")
    return base_fig
