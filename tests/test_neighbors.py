from __future__ import annotations

import numpy as np
import pytest

from sph2d import DEFAULT_CONFIG, NeighborIndex, Vector2, init_lattice
from sph2d.neighbors import _build_cell_list, cell_list_geometry


def random_positions(n: int, seed: int = 0) -> list[Vector2]:
    rng = np.random.default_rng(seed)
    xy = rng.uniform((0.0, 0.0), (20.0, 50.0), size=(n, 2))
    return [Vector2(float(a), float(b)) for a, b in xy]


def test_grid_shape_and_keys() -> None:
    index = NeighborIndex.for_config(DEFAULT_CONFIG)
    assert index.cell_size == pytest.approx(2.5)
    assert index.shape == (9, 21)
    assert index.cell_key(Vector2(2.6, 5.1)) == 1 + 2 * 9
    # out-of-domain positions land in edge cells
    assert index.cell_key(Vector2(-1.0, -1.0)) == 0
    assert index.cell_key(Vector2(100.0, 100.0)) == index.n_cells - 1


def test_build_is_idempotent() -> None:
    particles = init_lattice(DEFAULT_CONFIG)
    index = NeighborIndex.for_config(DEFAULT_CONFIG)
    index.build(q.position for q in particles)
    first = index.buckets()
    index.build(q.position for q in particles)
    assert index.buckets() == first
    assert index.n_items == len(particles)
    assert sorted(i for b in first for i in b) == list(range(len(particles)))


@pytest.mark.parametrize("stencil", ["offset", "cells"])
def test_query_from_cell_interior_is_superset(stencil: str) -> None:
    positions = random_positions(400, seed=2)
    index = NeighborIndex.for_config(DEFAULT_CONFIG, stencil=stencil)  # type: ignore[arg-type]
    index.build(positions)
    d = index.cell_size
    nx, ny = index.shape
    radius = DEFAULT_CONFIG.smoothing_radius / DEFAULT_CONFIG.sim_scale
    for cx in range(1, nx - 2):
        for cy in range(1, ny - 2):
            center = Vector2((cx + 0.5) * d, (cy + 0.5) * d)
            found = set(index.query(center))
            truth = {i for i, p in enumerate(positions) if (p - center).length() < radius}
            assert truth <= found, (cx, cy, truth - found)


def test_cells_stencil_has_no_duplicates() -> None:
    positions = random_positions(300, seed=5)
    index = NeighborIndex.for_config(DEFAULT_CONFIG, stencil="cells")
    index.build(positions)
    for p in positions:
        out = index.query(p)
        assert len(out) == len(set(out))


def test_empty_region_yields_nothing() -> None:
    index = NeighborIndex.for_config(DEFAULT_CONFIG)
    index.build([Vector2(1.0, 1.0), Vector2(2.0, 1.5)])
    assert index.query(Vector2(15.0, 40.0)) == []
    assert sorted(index.query(Vector2(1.2, 1.2))) == [0, 1]


def test_offset_probe_edge_asymmetry() -> None:
    # i sits inside the domain, j has drifted past max-x; both are within H of each other.
    pi = Vector2(19.0, 25.0)
    pj = Vector2(20.3, 25.0)
    offset = NeighborIndex.for_config(DEFAULT_CONFIG, stencil="offset")
    offset.build([pi, pj])
    assert 0 in offset.query(pj)
    assert 1 not in offset.query(pi)

    cells = NeighborIndex.for_config(DEFAULT_CONFIG, stencil="cells")
    cells.build([pi, pj])
    assert 0 in cells.query(pj)
    assert 1 in cells.query(pi)


def test_invalid_arguments() -> None:
    with pytest.raises(ValueError):
        NeighborIndex(0.0, (0.0, 0.0), (1.0, 1.0))
    with pytest.raises(ValueError):
        NeighborIndex(1.0, (0.0, 0.0), (0.0, 1.0))
    with pytest.raises(ValueError):
        NeighborIndex(1.0, (0.0, 0.0), (1.0, 1.0), stencil="ring")  # type: ignore[arg-type]


def test_cell_list_matches_buckets() -> None:
    positions = random_positions(250, seed=9)
    index = NeighborIndex.for_config(DEFAULT_CONFIG)
    index.build(positions)
    geom, nx, ny = cell_list_geometry(DEFAULT_CONFIG)
    x = np.array([tuple(p) for p in positions], dtype=np.float64)
    cell_start, cell_items = _build_cell_list(x, geom, nx, ny)
    for key, bucket in enumerate(index.buckets()):
        assert list(cell_items[cell_start[key]:cell_start[key + 1]]) == bucket
