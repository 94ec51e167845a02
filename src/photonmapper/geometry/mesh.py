"""Triangle mesh backed by a KD-tree.

Meshes are built from plain vertex and face arrays. Loading them from model
files is left to the caller. Optionally the vertices are uniformly rescaled
and recentered so the mesh fits inside a desired bounding box.

Example:
    >>> import numpy as np
    >>> from src.photonmapper.geometry.aabb import Aabb
    >>> from src.photonmapper.geometry.mesh import Mesh
    >>> vertices = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]], dtype=float)
    >>> faces = np.array([[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]])
    >>> mesh = Mesh(vertices, faces, desired_bounds=Aabb((-0.2, -1, -0.2), (0.2, -0.6, 0.2)))
    >>> len(mesh.triangles)
    4
"""

from __future__ import annotations

import logging

import numpy as np

from src.photonmapper.core.ray import Ray, cross
from src.photonmapper.core.traceable import HitInfo, Light, Traceable
from src.photonmapper.geometry.aabb import Aabb
from src.photonmapper.geometry.kdtree import KdTree
from src.photonmapper.geometry.triangle import Triangle
from src.photonmapper.materials.material import Material

logger = logging.getLogger(__name__)


def _default_material() -> Material:
    return Material.diffuse(0.5, 0.0, 0.5)


def fit_to_bounds(vertices: np.ndarray, desired_bounds: Aabb) -> np.ndarray:
    """Uniformly scale and translate vertices into ``desired_bounds``.

    The scale is the smallest per-axis ratio of desired to actual extent, so
    the mesh keeps its proportions. The mesh's box center is mapped onto
    the desired box's center.

    Args:
        vertices: Array of shape (N, 3).
        desired_bounds: Target box.

    Returns:
        The transformed vertices as a new array.
    """
    model_bounds = Aabb.from_points(vertices)
    extent = model_bounds.dimensions
    desired = desired_bounds.dimensions
    nonzero = extent > 0.0
    scale = float(np.min(desired[nonzero] / extent[nonzero])) if nonzero.any() else 1.0
    return (vertices - model_bounds.center) * scale + desired_bounds.center


class Mesh(Traceable):
    """An indexed triangle mesh.

    Args:
        vertices: Vertex positions, shape (N, 3).
        faces: Vertex indices per triangle, shape (M, 3), counter-clockwise
            as seen from the front.
        material: Material of every triangle.
        desired_bounds: If given, the vertices are fitted into this box.

    Raises:
        ValueError: If the arrays have the wrong shape or faces reference
            missing vertices.
    """

    def __init__(
        self,
        vertices,
        faces,
        material: Material | None = None,
        desired_bounds: Aabb | None = None,
    ) -> None:
        vertices = np.asarray(vertices, dtype=np.float64)
        faces = np.asarray(faces, dtype=np.int64)
        if vertices.ndim != 2 or vertices.shape[1] != 3:
            raise ValueError(f"vertices must have shape (N, 3), got {vertices.shape}")
        if faces.ndim != 2 or faces.shape[1] != 3:
            raise ValueError(f"faces must have shape (M, 3), got {faces.shape}")
        if faces.size and (faces.min() < 0 or faces.max() >= len(vertices)):
            raise ValueError("faces reference vertices outside the vertex array")

        if desired_bounds is not None and len(vertices) > 0:
            vertices = fit_to_bounds(vertices, desired_bounds)

        self.material = material if material is not None else _default_material()
        self.vertices = vertices
        self.faces = faces

        triangles = []
        skipped = 0
        for face in faces:
            v0, v1, v2 = vertices[face[0]], vertices[face[1]], vertices[face[2]]
            if not cross(v1 - v0, v2 - v0).any():
                skipped += 1
                continue
            triangles.append(Triangle(v0, v1, v2, self.material))
        if skipped:
            logger.debug("Skipped %d degenerate faces", skipped)

        self.triangles = triangles
        self.tree = KdTree(triangles)

    def raytrace(self, ray: Ray, hit: HitInfo) -> bool:
        return self.tree.raytrace(ray, hit)

    def raytrace_shadow(self, ray: Ray, max_distance: float, exclude_light: Light | None = None) -> bool:
        return self.tree.raytrace_shadow(ray, max_distance)

    def __repr__(self) -> str:
        return f"Mesh(vertices={len(self.vertices)}, triangles={len(self.triangles)})"
