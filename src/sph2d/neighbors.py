"""Uniform spatial hash used to find SPH neighbor candidates.

The domain is split into square cells of side ``d = H / sim_scale`` (world
units). Buckets are a flat list addressed by the row-major key
``cx + cy * nx``; the list is allocated once and cleared in place on every
rebuild.

Two query stencils are available:

* ``"offset"``: probe the 9 positions ``p + (i*d, j*d)`` for ``i, j`` in
  ``{-1, 0, 1}`` and gather the bucket of every probe lying inside the
  domain. Near a cell edge two probes can hit the same cell (duplicate
  indices) and a probe falling outside the domain is dropped even when the
  cell it would reach holds particles (edge miss). Callers must tolerate
  duplicates.
* ``"cells"``: gather the 3x3 block of integer cells around the particle's
  own cell. No duplicates and no edge misses.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Literal, TYPE_CHECKING

import math
import numpy as np
from numpy.typing import NDArray

from ._jit import _maybe_njit
from .vector2 import Vector2

if TYPE_CHECKING:
    from .sph2d import SPHConfig

Stencil = Literal["offset", "cells"]
_STENCILS = ("offset", "cells")

# x-offset outer, y-offset inner
_OFFSETS: tuple[tuple[int, int], ...] = tuple((i, j) for i in (-1, 0, 1) for j in (-1, 0, 1))


@_maybe_njit
def _axis_cell(v: float, vmin: float, d: float, n: int) -> int:
    # floor((v - vmin) / d) clamped to [0, n-1]; NaN lands in cell 0
    t = (v - vmin) / d
    if not t >= 0.0:
        return 0
    if t >= n:
        return n - 1
    return int(t)


def grid_shape(cell_size: float, domain_min: Sequence[float], domain_max: Sequence[float]) -> tuple[int, int]:
    """Number of cells along x and y covering the closed domain."""
    nx = int(math.floor((domain_max[0] - domain_min[0]) / cell_size)) + 1
    ny = int(math.floor((domain_max[1] - domain_min[1]) / cell_size)) + 1
    return nx, ny


class NeighborIndex:
    """Bucket particles by grid cell and answer "who is near position P"."""

    def __init__(
        self,
        cell_size: float,
        domain_min: Sequence[float],
        domain_max: Sequence[float],
        *,
        stencil: Stencil = "offset",
    ) -> None:
        if not (math.isfinite(cell_size) and cell_size > 0.0):
            raise ValueError("cell_size must be positive.")
        if not (domain_max[0] > domain_min[0] and domain_max[1] > domain_min[1]):
            raise ValueError("domain_max must exceed domain_min on both axes.")
        if stencil not in _STENCILS:
            raise ValueError(f"Unknown stencil: {stencil}")
        self._d = float(cell_size)
        self._min = (float(domain_min[0]), float(domain_min[1]))
        self._max = (float(domain_max[0]), float(domain_max[1]))
        self._nx, self._ny = grid_shape(self._d, self._min, self._max)
        self._stencil: Stencil = stencil
        self._buckets: list[list[int]] = [[] for _ in range(self._nx * self._ny)]
        self._n_items = 0

    @classmethod
    def for_config(cls, config: SPHConfig, *, stencil: Stencil = "offset") -> NeighborIndex:
        return cls(config.cell_size, config.domain_min, config.domain_max, stencil=stencil)

    # -------- properties --------
    @property
    def cell_size(self) -> float: return self._d

    @property
    def shape(self) -> tuple[int, int]: return (self._nx, self._ny)

    @property
    def n_cells(self) -> int: return self._nx * self._ny

    @property
    def n_items(self) -> int: return self._n_items

    @property
    def stencil(self) -> Stencil: return self._stencil

    # -------- cell addressing --------
    def cell_coords(self, position: Vector2) -> tuple[int, int]:
        cx = _axis_cell(position.x, self._min[0], self._d, self._nx)
        cy = _axis_cell(position.y, self._min[1], self._d, self._ny)
        return cx, cy

    def cell_key(self, position: Vector2) -> int:
        cx, cy = self.cell_coords(position)
        return cx + cy * self._nx

    def contains(self, position: Vector2) -> bool:
        return (self._min[0] <= position.x <= self._max[0]) and (self._min[1] <= position.y <= self._max[1])

    # -------- build & query --------
    def build(self, positions: Iterable[Vector2]) -> None:
        """Clear every bucket and re-bin ``positions`` by enumeration index."""
        for b in self._buckets:
            b.clear()
        n = 0
        for i, pos in enumerate(positions):
            self._buckets[self.cell_key(pos)].append(i)
            n += 1
        self._n_items = n

    def bucket(self, key: int) -> list[int]:
        return list(self._buckets[key])

    def buckets(self) -> list[list[int]]:
        return [list(b) for b in self._buckets]

    def query(self, position: Vector2) -> list[int]:
        """Candidate neighbor indices around ``position`` (may contain duplicates)."""
        if self._stencil == "cells":
            return self._query_cells(position)
        return self._query_offset(position)

    def _query_offset(self, position: Vector2) -> list[int]:
        out: list[int] = []
        d = self._d
        for i, j in _OFFSETS:
            probe = Vector2(position.x + i * d, position.y + j * d)
            if self.contains(probe):
                out.extend(self._buckets[self.cell_key(probe)])
        return out

    def _query_cells(self, position: Vector2) -> list[int]:
        out: list[int] = []
        cx, cy = self.cell_coords(position)
        for i, j in _OFFSETS:
            x = cx + i
            y = cy + j
            if 0 <= x < self._nx and 0 <= y < self._ny:
                out.extend(self._buckets[x + y * self._nx])
        return out


# ---------------------------
# Array (cell-list) variant
# ---------------------------
# Same binning as NeighborIndex, stored as a counting sort:
# particles of cell k are cell_items[cell_start[k]:cell_start[k+1]], in index order.

@_maybe_njit
def _build_cell_list(x: np.ndarray, geom: np.ndarray, nx: int, ny: int) -> tuple[np.ndarray, np.ndarray]:
    n = x.shape[0]
    xmin = geom[0]
    ymin = geom[1]
    d = geom[4]
    keys = np.empty(n, dtype=np.int64)
    cell_start = np.zeros(nx * ny + 1, dtype=np.int64)
    for i in range(n):
        k = _axis_cell(x[i, 0], xmin, d, nx) + _axis_cell(x[i, 1], ymin, d, ny) * nx
        keys[i] = k
        cell_start[k + 1] += 1
    for k in range(nx * ny):
        cell_start[k + 1] += cell_start[k]
    fill = cell_start[:-1].copy()
    cell_items = np.empty(n, dtype=np.int64)
    for i in range(n):
        k = keys[i]
        cell_items[fill[k]] = i
        fill[k] += 1
    return cell_start, cell_items


@_maybe_njit
def _probe_keys(px: float, py: float, geom: np.ndarray, nx: int, ny: int, stencil: int, keys: np.ndarray) -> int:
    # Writes up to 9 cell keys into ``keys``; returns how many are valid.
    xmin = geom[0]
    ymin = geom[1]
    xmax = geom[2]
    ymax = geom[3]
    d = geom[4]
    m = 0
    if stencil == 1:
        cx = _axis_cell(px, xmin, d, nx)
        cy = _axis_cell(py, ymin, d, ny)
        for i in range(-1, 2):
            for j in range(-1, 2):
                x = cx + i
                y = cy + j
                if 0 <= x < nx and 0 <= y < ny:
                    keys[m] = x + y * nx
                    m += 1
        return m
    for i in range(-1, 2):
        for j in range(-1, 2):
            qx = px + i * d
            qy = py + j * d
            if xmin <= qx <= xmax and ymin <= qy <= ymax:
                keys[m] = _axis_cell(qx, xmin, d, nx) + _axis_cell(qy, ymin, d, ny) * nx
                m += 1
    return m


def stencil_code(stencil: Stencil) -> int:
    if stencil not in _STENCILS:
        raise ValueError(f"Unknown stencil: {stencil}")
    return _STENCILS.index(stencil)


def cell_list_geometry(config: SPHConfig) -> tuple[NDArray[np.float64], int, int]:
    """Pack domain bounds and cell size for the array kernels."""
    geom = np.array(
        [config.domain_min[0], config.domain_min[1], config.domain_max[0], config.domain_max[1], config.cell_size],
        dtype=np.float64,
    )
    nx, ny = grid_shape(config.cell_size, config.domain_min, config.domain_max)
    return geom, nx, ny
