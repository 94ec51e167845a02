"""Photon records and the photon-map contract.

A photon map goes through three phases on every render:

1. ``clear()`` followed by concurrent ``add()`` calls from the photon
   tracer's worker threads
2. one serial ``build_structure()`` call once every ``add`` has returned
3. concurrent, read-only ``power_density()`` queries from the camera pass

``clear`` and ``build_structure`` must not run concurrently with anything
else. ``add`` is safe from any number of threads: each call claims a
distinct slot from a bounded counter and then writes only that slot, so the
buffer itself needs no locking. Once ``capacity`` photons are stored, further
``add`` calls return False and the photon is dropped.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from src.photonmapper.core.parallel import AtomicCounter
from src.photonmapper.core.ray import Spectrum, Vector

DEFAULT_CAPACITY = 500_000


@dataclass(frozen=True, eq=False)
class Photon:
    """A stored photon.

    Attributes:
        position: Where the photon hit a surface.
        normal: Unit normal of that surface, facing the side the photon
            arrived from.
        power: Power carried by the photon.
    """

    position: Vector
    normal: Vector
    power: Spectrum


class PhotonMap(ABC):
    """Bounded photon storage with a spatial query.

    Subclasses implement ``build_structure`` and ``power_density``; the
    buffer management lives here.

    Args:
        capacity: Maximum number of photons stored between two ``clear``
            calls.

    Raises:
        ValueError: If capacity is not positive.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._positions = np.zeros((capacity, 3), dtype=np.float64)
        self._normals = np.zeros((capacity, 3), dtype=np.float64)
        self._powers = np.zeros((capacity, 3), dtype=np.float64)
        self._counter = AtomicCounter(0)
        self._built = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def size(self) -> int:
        """Number of photons currently stored."""
        return self._counter.value

    @property
    def is_built(self) -> bool:
        return self._built

    def clear(self) -> None:
        """Drop every stored photon. Not thread-safe."""
        self._counter.store(0)
        self._built = False

    def add(self, photon: Photon) -> bool:
        """Store a photon. Thread-safe.

        Returns:
            False if the map is full; the photon is discarded.
        """
        slot = self._counter.claim_below(self._capacity)
        if slot is None:
            return False
        self._store(slot, photon)
        return True

    def _store(self, slot: int, photon: Photon) -> None:
        self._positions[slot] = photon.position
        self._normals[slot] = photon.normal
        self._powers[slot] = photon.power

    def photons(self) -> list[Photon]:
        """Copies of the stored photons, in storage order."""
        n = self.size
        return [
            Photon(self._positions[i].copy(), self._normals[i].copy(), self._powers[i].copy())
            for i in range(n)
        ]

    @abstractmethod
    def build_structure(self) -> None:
        """Organize the stored photons for querying. Not thread-safe."""

    @abstractmethod
    def power_density(self, position: Vector, normal: Vector) -> Spectrum:
        """Estimate the photon power per unit area arriving at a surface point.

        Only photons whose surface normal lies in the same hemisphere as
        ``normal`` contribute. Thread-safe once ``build_structure`` returned.

        Args:
            position: Query point.
            normal: Unit surface normal at the query point.

        Returns:
            Power density (irradiance) estimate.
        """

    def _require_built(self) -> None:
        if not self._built:
            raise RuntimeError(f"{type(self).__name__}.build_structure() must be called before querying")
