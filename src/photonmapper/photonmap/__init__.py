"""Photon storage and density estimation.

Components:
    photon: Photon record and the PhotonMap contract (bounded concurrent
        add, serial build, concurrent read-only queries)
    grid: Uniform-grid map with exact radius search
    hilbert: Hilbert-curve encoding and decoding
    hilbert_map: Hilbert-curve map with approximate k-nearest-neighbor search
"""

from .grid import GridPhotonMap
from .hilbert_map import HilbertPhotonMap
from .photon import DEFAULT_CAPACITY, Photon, PhotonMap

__all__ = [
    "DEFAULT_CAPACITY",
    "GridPhotonMap",
    "HilbertPhotonMap",
    "Photon",
    "PhotonMap",
]
