from __future__ import annotations

import os
from pathlib import Path

import pytest

from sph2d import (
    FluidSystem2D,
    Particle,
    PovExporter,
    RunConfig,
    Vector2,
    init_lattice,
    render_pov,
    run_simulation,
    write_pov_frame,
)
from sph2d.api import POV_PREAMBLE


def test_frame_file_name_and_content(tmp_path: Path) -> None:
    particles = [Particle(position=Vector2(1.5, 2.25)), Particle(position=Vector2(0.1, 3.0))]
    path = write_pov_frame(7, particles, str(tmp_path))
    assert os.path.basename(path) == "result007.pov"
    text = Path(path).read_text()
    assert text.startswith(POV_PREAMBLE)
    assert text.count("sphere {") == 2
    assert "<1.5, 2.25, 0>, 0.5" in text
    assert "<0.1, 3.0, 0>, 0.5" in text
    assert "Gray30" in text


def test_render_without_particles_is_preamble_only() -> None:
    assert render_pov([]) == POV_PREAMBLE


def test_negative_frame_index_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        write_pov_frame(-1, [], str(tmp_path))


def test_exporter_numbers_frames_sequentially(tmp_path: Path) -> None:
    exporter = PovExporter(str(tmp_path / "frames"))
    particles = init_lattice()
    for _ in range(3):
        exporter.export(particles)
    assert exporter.n_frames == 3
    assert [os.path.basename(p) for p in exporter.paths] == ["result000.pov", "result001.pov", "result002.pov"]


def test_failed_write_propagates_without_gap(tmp_path: Path) -> None:
    outdir = tmp_path / "frames"
    exporter = PovExporter(str(outdir))
    exporter.export([])
    # a directory squatting on the next file name makes the open fail
    (outdir / "result001.pov").mkdir()
    with pytest.raises(OSError):
        exporter.export([])
    assert exporter.n_frames == 1
    (outdir / "result001.pov").rmdir()
    path = exporter.export([])
    assert os.path.basename(path) == "result001.pov"


def test_run_simulation_exports_initial_and_periodic_frames(tmp_path: Path) -> None:
    system = FluidSystem2D(init_lattice())
    exporter = PovExporter(str(tmp_path))
    result = run_simulation(system, RunConfig(steps=4, export_every=2, outdir=str(tmp_path)), exporter)
    assert result["n_frames"] == 3
    assert sorted(os.listdir(tmp_path)) == ["result000.pov", "result001.pov", "result002.pov"]
    assert result["final"]["step"] == 4
    assert result["wall_clock_seconds"] >= 0.0


def test_run_simulation_without_export() -> None:
    system = FluidSystem2D(init_lattice(), backend="arrays")
    result = run_simulation(system, RunConfig(steps=2))
    assert result["n_frames"] == 0
    assert system.step_count == 2
