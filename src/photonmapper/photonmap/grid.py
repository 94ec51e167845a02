"""Uniform-grid photon map with exact radius search.

Space is divided into ``n x n x n`` cubic cells covering [-1, 1]^3. The
scene must lie within that cube; photons outside it are clamped into the
border cells. The cell count is chosen so that a cell is at least as wide
as the search radius:

    n = max(1, int(2 / radius))

so the box ``p +- radius`` overlaps at most 3 cells per axis, 27 in total.

``build_structure`` bins the photons by cell into one packed array (cells
in z, y, x order). Each cell's run of photons is padded with zero-power
entries to a multiple of ``BATCH_SIZE``. A query visits the cells row by
row: the cells of one (z, y) row are consecutive in the packed array, so
each row is a single vectorized NumPy slice.

The estimate divides the accumulated power by the disk area pi * r^2.
With the ``epanechnikov`` filter every photon is weighted by
``1 - d^2 / r^2`` and the normalization becomes pi * r^2 / 2.

Example:
    >>> from src.photonmapper.photonmap.grid import GridPhotonMap
    >>> photon_map = GridPhotonMap(search_radius=0.3, capacity=10_000)
    >>> photon_map.resolution
    6
"""

from __future__ import annotations

import logging
import math

import numpy as np

from src.photonmapper.core.ray import Spectrum, Vector
from src.photonmapper.photonmap.photon import DEFAULT_CAPACITY, PhotonMap

logger = logging.getLogger(__name__)

BATCH_SIZE = 4
FILTERS = ("flat", "epanechnikov")


class GridPhotonMap(PhotonMap):
    """Photon map backed by a uniform grid over [-1, 1]^3.

    Args:
        search_radius: Radius of the density-estimation disk.
        capacity: Maximum number of stored photons.
        filter: ``"flat"`` for a hard cutoff or ``"epanechnikov"`` for a
            smooth distance weighting.

    Raises:
        ValueError: If the radius is not positive or the filter is unknown.
    """

    def __init__(
        self,
        search_radius: float,
        capacity: int = DEFAULT_CAPACITY,
        filter: str = "flat",
    ) -> None:
        if search_radius <= 0.0:
            raise ValueError(f"search_radius must be positive, got {search_radius}")
        if filter not in FILTERS:
            raise ValueError(f"Unknown filter: {filter!r} (expected one of {FILTERS})")
        super().__init__(capacity)
        self._radius = float(search_radius)
        self._filter = filter
        self._resolution = max(1, int(2.0 / self._radius))

        self._offsets = np.zeros(self._resolution**3 + 1, dtype=np.int64)
        self._packed_positions = np.zeros((0, 3), dtype=np.float64)
        self._packed_normals = np.zeros((0, 3), dtype=np.float64)
        self._packed_powers = np.zeros((0, 3), dtype=np.float64)

    @property
    def search_radius(self) -> float:
        return self._radius

    @property
    def resolution(self) -> int:
        """Number of cells along each axis."""
        return self._resolution

    @property
    def filter(self) -> str:
        return self._filter

    def grid_coordinates(self, points) -> np.ndarray:
        """Integer cell coordinates (x, y, z) of one point or an (N, 3) array."""
        n = self._resolution
        scaled = (np.asarray(points, dtype=np.float64) + 1.0) * (0.5 * n)
        return np.clip(np.floor(scaled), 0, n - 1).astype(np.int64)

    def _cell_indices(self, points: np.ndarray) -> np.ndarray:
        n = self._resolution
        coords = self.grid_coordinates(points)
        return (coords[:, 2] * n + coords[:, 1]) * n + coords[:, 0]

    def build_structure(self) -> None:
        count = self.size
        n_cells = self._resolution**3
        positions = self._positions[:count]
        cells = self._cell_indices(positions)

        counts = np.bincount(cells, minlength=n_cells)
        padded = (counts + BATCH_SIZE - 1) // BATCH_SIZE * BATCH_SIZE
        offsets = np.zeros(n_cells + 1, dtype=np.int64)
        np.cumsum(padded, out=offsets[1:])

        # Destination of each photon: its cell's packed start plus its rank in the cell
        order = np.argsort(cells, kind="stable")
        sorted_cells = cells[order]
        unpadded_starts = np.cumsum(counts) - counts
        ranks = np.arange(count) - unpadded_starts[sorted_cells]
        destinations = offsets[sorted_cells] + ranks

        total = int(offsets[-1])
        self._packed_positions = np.zeros((total, 3), dtype=np.float64)
        self._packed_normals = np.zeros((total, 3), dtype=np.float64)
        self._packed_powers = np.zeros((total, 3), dtype=np.float64)
        self._packed_positions[destinations] = positions[order]
        self._packed_normals[destinations] = self._normals[:count][order]
        self._packed_powers[destinations] = self._powers[:count][order]
        self._offsets = offsets
        self._built = True

        logger.debug(
            "Built grid photon map: %d photons, %d cells, %d occupied, %d packed slots",
            count,
            n_cells,
            int(np.count_nonzero(counts)),
            total,
        )

    def power_density(self, position: Vector, normal: Vector) -> Spectrum:
        self._require_built()
        r = self._radius
        r2 = r * r
        n = self._resolution
        p = np.asarray(position, dtype=np.float64)
        lo = self.grid_coordinates(p - r)
        hi = self.grid_coordinates(p + r)

        offsets = self._offsets
        total = np.zeros(3, dtype=np.float64)
        for z in range(lo[2], hi[2] + 1):
            for y in range(lo[1], hi[1] + 1):
                row = (z * n + y) * n
                begin = offsets[row + lo[0]]
                end = offsets[row + hi[0] + 1]
                if begin == end:
                    continue
                delta = self._packed_positions[begin:end] - p
                d2 = np.einsum("ij,ij->i", delta, delta)
                mask = (d2 < r2) & (self._packed_normals[begin:end] @ normal >= 0.0)
                if not mask.any():
                    continue
                powers = self._packed_powers[begin:end][mask]
                if self._filter == "epanechnikov":
                    weights = 1.0 - d2[mask] / r2
                    total += weights @ powers
                else:
                    total += powers.sum(axis=0)

        if self._filter == "epanechnikov":
            return total / (0.5 * math.pi * r2)
        return total / (math.pi * r2)

    def __repr__(self) -> str:
        return (
            f"GridPhotonMap(search_radius={self._radius}, capacity={self.capacity}, "
            f"filter={self._filter!r}, size={self.size})"
        )
