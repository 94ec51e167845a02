"""Geometric primitives and acceleration structures.

Components:
    aabb: Axis-aligned bounding boxes and ray slab tests
    sphere: Sphere with separate outside and inside materials
    triangle: Single triangle, the KD-tree's leaf primitive
    kdtree: KD-tree over triangles
    mesh: Triangle mesh traceable backed by a KD-tree
    room: Six-walled room shell at +-1
    square_light: Rectangular area light
"""

from .aabb import Aabb
from .kdtree import KdTree
from .mesh import Mesh, fit_to_bounds
from .room import RoomShell
from .sphere import Sphere
from .square_light import SquareLight
from .triangle import Triangle

__all__ = [
    "Aabb",
    "KdTree",
    "Mesh",
    "RoomShell",
    "Sphere",
    "SquareLight",
    "Triangle",
    "fit_to_bounds",
]
