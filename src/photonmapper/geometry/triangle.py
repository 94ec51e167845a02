"""Single-sided triangle primitive.

Triangles are the leaves of the mesh KD-tree. The intersection follows
the plane equation

    dot(o + t*d - v0, n) = 0   =>   t = -dot(o - v0, n) / dot(d, n)

and then tests the hit point's barycentric coordinates. They are computed in
the two coordinate axes where the triangle's projection is largest, using a
2x2 inverse matrix precomputed at construction.

Back faces are culled: rays travelling along the normal, or starting
behind the plane, never hit.
"""

from __future__ import annotations

import numpy as np

from src.photonmapper.core.ray import DISTANCE_EPSILON, Ray, Vector, cross, dot, length
from src.photonmapper.core.traceable import HitInfo
from src.photonmapper.geometry.aabb import Aabb
from src.photonmapper.materials.material import Material

# Slack on the barycentric range so rays hitting a shared edge don't slip through
BARYCENTRIC_EPSILON = 1e-3


class Triangle:
    """A triangle with a precomputed normal and barycentric projection.

    Args:
        v0: First vertex.
        v1: Second vertex.
        v2: Third vertex. Vertices in counter-clockwise order as seen from
            the front side.
        material: Surface material.

    Raises:
        ValueError: If the triangle is degenerate (zero area).
    """

    __slots__ = ("vertices", "normal", "material", "_projection", "_matrix")

    def __init__(self, v0, v1, v2, material: Material) -> None:
        self.vertices = np.array((v0, v1, v2), dtype=np.float64)
        edge1 = self.vertices[1] - self.vertices[0]
        edge2 = self.vertices[2] - self.vertices[0]

        normal = cross(edge1, edge2)
        norm = length(normal)
        if norm == 0.0:
            raise ValueError(f"Degenerate triangle: {self.vertices.tolist()}")
        self.normal: Vector = normal / norm
        self.material = material

        # Project onto the plane of the two axes other than the dominant one
        dominant = int(np.argmax(np.abs(self.normal)))
        px, py = [axis for axis in range(3) if axis != dominant]
        a, b = edge1[px], edge2[px]
        c, d = edge1[py], edge2[py]
        det = a * d - b * c
        self._projection = (px, py)
        self._matrix = (d / det, -b / det, -c / det, a / det)

    def bounds(self) -> Aabb:
        return Aabb(self.vertices.min(axis=0), self.vertices.max(axis=0))

    def _distance(self, ray: Ray) -> tuple[float, Vector] | None:
        """Plane distance and hit position relative to v0, or None if culled."""
        denominator = dot(ray.direction, self.normal)
        if denominator >= 0.0:
            return None
        relative_origin = ray.origin - self.vertices[0]
        numerator = -dot(relative_origin, self.normal)
        if numerator > 0.0:
            return None
        return numerator / denominator, relative_origin

    def _inside(self, relative_hit: Vector) -> bool:
        px, py = self._projection
        x = relative_hit[px]
        y = relative_hit[py]
        m = self._matrix
        u = m[0] * x + m[1] * y
        if u < -BARYCENTRIC_EPSILON or u > 1.0 + BARYCENTRIC_EPSILON:
            return False
        v = m[2] * x + m[3] * y
        return not (v < -BARYCENTRIC_EPSILON or u + v > 1.0 + BARYCENTRIC_EPSILON)

    def raytrace(self, ray: Ray, hit: HitInfo) -> bool:
        """Intersect, accepting only hits closer than ``hit.distance``."""
        plane = self._distance(ray)
        if plane is None:
            return False
        distance, relative_origin = plane
        if distance < DISTANCE_EPSILON or distance >= hit.distance:
            return False

        relative_hit = relative_origin + distance * ray.direction
        if not self._inside(relative_hit):
            return False

        hit.set_values(distance, self.vertices[0] + relative_hit, self.normal, self.material)
        return True

    def raytrace_shadow(self, ray: Ray, max_distance: float) -> bool:
        plane = self._distance(ray)
        if plane is None:
            return False
        distance, relative_origin = plane
        if distance < DISTANCE_EPSILON or distance >= max_distance:
            return False
        return self._inside(relative_origin + distance * ray.direction)

    def __repr__(self) -> str:
        return f"Triangle({self.vertices.tolist()})"
