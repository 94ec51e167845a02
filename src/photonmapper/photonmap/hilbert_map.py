"""Hilbert-curve photon map with approximate k-nearest-neighbor search.

Every photon position is quantized to a ``2**order`` grid per axis over
[-1, 1]^3 and encoded as a Hilbert-curve index. ``build_structure`` sorts the
photons by that index. A query then:

1. encodes the query point,
2. binary-searches the sorted indices for the closest one,
3. grows a contiguous window around it, one photon at a time toward
   whichever side has the closer index, until it holds ``neighbor_count``
   photons (or hits an end of the array),
4. sums the power of the window's photons whose normals are compatible
   with the query normal and multiplies by a fixed scale factor.

Closeness along the curve only approximates closeness in space. Near the
curve's large jumps the window can contain photons from distant regions,
so this map trades accuracy for a query cost independent of the photon
density.

Example:
    >>> from src.photonmapper.photonmap.hilbert_map import HilbertPhotonMap
    >>> photon_map = HilbertPhotonMap(neighbor_count=10, capacity=10_000)
    >>> photon_map.quantize((-1.0, 0.0, 1.0))
    (0, 512, 1023)
"""

from __future__ import annotations

import logging

import numpy as np

from src.photonmapper.core.ray import Spectrum, Vector
from src.photonmapper.photonmap import hilbert
from src.photonmapper.photonmap.photon import DEFAULT_CAPACITY, Photon, PhotonMap

logger = logging.getLogger(__name__)

ORDER_BITS = 10
DEFAULT_SCALE = 10.0


class HilbertPhotonMap(PhotonMap):
    """Photon map ordered along a Hilbert curve.

    Args:
        neighbor_count: Photons gathered per query.
        capacity: Maximum number of stored photons.
        scale: Empirical factor converting the gathered power into a density.
        order: Bits per axis of the quantization grid.

    Raises:
        ValueError: If neighbor_count or order is not positive.
    """

    def __init__(
        self,
        neighbor_count: int,
        capacity: int = DEFAULT_CAPACITY,
        scale: float = DEFAULT_SCALE,
        order: int = ORDER_BITS,
    ) -> None:
        if neighbor_count <= 0:
            raise ValueError(f"neighbor_count must be positive, got {neighbor_count}")
        if order <= 0:
            raise ValueError(f"order must be positive, got {order}")
        super().__init__(capacity)
        self._neighbor_count = neighbor_count
        self._scale = float(scale)
        self._order = order
        self._indices = np.zeros(capacity, dtype=np.int64)

        self._sorted_indices = np.zeros(0, dtype=np.int64)
        self._sorted_normals = np.zeros((0, 3), dtype=np.float64)
        self._sorted_powers = np.zeros((0, 3), dtype=np.float64)

    @property
    def neighbor_count(self) -> int:
        return self._neighbor_count

    @property
    def order(self) -> int:
        return self._order

    def quantize(self, position) -> tuple[int, int, int]:
        """Grid cell of a position, clamped to the grid."""
        side = 1 << self._order
        top = side - 1
        cell = []
        for c in position:
            q = int(np.floor((float(c) + 1.0) * 0.5 * side))
            cell.append(min(max(q, 0), top))
        return cell[0], cell[1], cell[2]

    def hilbert_index(self, position) -> int:
        return hilbert.encode(self.quantize(position), self._order)

    def _store(self, slot: int, photon: Photon) -> None:
        super()._store(slot, photon)
        self._indices[slot] = self.hilbert_index(photon.position)

    def build_structure(self) -> None:
        count = self.size
        order = np.argsort(self._indices[:count], kind="stable")
        self._sorted_indices = self._indices[:count][order]
        self._sorted_normals = self._normals[:count][order]
        self._sorted_powers = self._powers[:count][order]
        self._built = True
        logger.debug("Built Hilbert photon map: %d photons", count)

    def _window(self, key: int) -> tuple[int, int]:
        """Bounds [start, end) of the neighbor window around ``key``."""
        indices = self._sorted_indices
        size = len(indices)
        k = min(self._neighbor_count, size)

        mid = int(np.searchsorted(indices, key))
        if mid >= size:
            mid = size - 1
        elif mid > 0 and key - int(indices[mid - 1]) < int(indices[mid]) - key:
            mid -= 1

        start, end = mid, mid + 1
        while end - start < k:
            if start == 0:
                end = k
                break
            if end == size:
                start = size - k
                break
            if key - int(indices[start - 1]) <= int(indices[end]) - key:
                start -= 1
            else:
                end += 1
        return start, end

    def power_density(self, position: Vector, normal: Vector) -> Spectrum:
        self._require_built()
        if len(self._sorted_indices) == 0:
            return np.zeros(3, dtype=np.float64)

        start, end = self._window(self.hilbert_index(position))
        compatible = self._sorted_normals[start:end] @ np.asarray(normal, dtype=np.float64) >= 0.0
        return self._sorted_powers[start:end][compatible].sum(axis=0) * self._scale

    def __repr__(self) -> str:
        return (
            f"HilbertPhotonMap(neighbor_count={self._neighbor_count}, capacity={self.capacity}, "
            f"size={self.size})"
        )
