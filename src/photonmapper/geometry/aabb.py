"""Axis-aligned bounding boxes.

Used by the KD-tree to bound its nodes and by meshes to rescale their
vertices. The ray test is the slab method of Williams et al.: the ray's
precomputed direction signs pick the near and far plane per axis, so no
min/max swapping is needed.
"""

from __future__ import annotations

import numpy as np

from src.photonmapper.core.ray import Ray, Vector


class Aabb:
    """An axis-aligned box given by its minimum and maximum corners.

    Attributes:
        minimum: Corner with the smallest coordinates.
        maximum: Corner with the largest coordinates.
    """

    __slots__ = ("minimum", "maximum")

    def __init__(self, minimum, maximum) -> None:
        self.minimum: Vector = np.array(minimum, dtype=np.float64)
        self.maximum: Vector = np.array(maximum, dtype=np.float64)

    @classmethod
    def from_points(cls, points) -> Aabb:
        """Smallest box containing every row of ``points``.

        Raises:
            ValueError: If no points are given.
        """
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if len(pts) == 0:
            raise ValueError("Cannot bound an empty point set")
        return cls(pts.min(axis=0), pts.max(axis=0))

    def copy(self) -> Aabb:
        return Aabb(self.minimum, self.maximum)

    def extend_to_fit(self, other: Aabb) -> None:
        np.minimum(self.minimum, other.minimum, out=self.minimum)
        np.maximum(self.maximum, other.maximum, out=self.maximum)

    def inflate(self, amount: float) -> None:
        """Grow the box by ``amount`` along every axis in both directions."""
        self.minimum -= amount
        self.maximum += amount

    @property
    def center(self) -> Vector:
        return 0.5 * (self.minimum + self.maximum)

    @property
    def dimensions(self) -> Vector:
        return self.maximum - self.minimum

    def intersects_ray(self, ray: Ray) -> bool:
        """Slab test against a ray.

        Zero direction components are handled explicitly: such a ray only
        overlaps the slab if its origin lies within it.

        Returns:
            True if the ray's line crosses the box and the exit point lies in
            front of the origin.
        """
        t_min = -np.inf
        t_max = np.inf
        corners = (self.minimum, self.maximum)
        origin = ray.origin
        signs = ray.signs
        inverse = ray.inverse_direction
        direction = ray.direction
        for axis in range(3):
            o = origin[axis]
            if direction[axis] == 0.0:
                if o < self.minimum[axis] or o > self.maximum[axis]:
                    return False
                continue
            near = (corners[signs[axis]][axis] - o) * inverse[axis]
            far = (corners[1 - signs[axis]][axis] - o) * inverse[axis]
            if near > t_min:
                t_min = near
            if far < t_max:
                t_max = far
            if t_min > t_max:
                return False
        return t_max > 0.0

    def __repr__(self) -> str:
        return f"Aabb(minimum={self.minimum.tolist()}, maximum={self.maximum.tolist()})"
