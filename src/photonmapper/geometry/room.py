"""Room shell: the inside walls of the [-1, 1]^3 cube.

The shell bounds the scene, so it is always hit by rays starting inside it
and never casts shadows. Wall normals face the interior. The two walls
perpendicular to the x axis get their own materials so the classic
colored-wall look needs no extra geometry.
"""

from __future__ import annotations

import numpy as np

from src.photonmapper.core.ray import DISTANCE_EPSILON, Ray
from src.photonmapper.core.traceable import HitInfo, Light, Traceable
from src.photonmapper.materials.material import Material

_NEIGHBORS = ((1, 2), (0, 2), (0, 1))


class RoomShell(Traceable):
    """Axis-aligned walls at +-1 on every axis.

    Args:
        material: Material of the floor, ceiling, front and back walls.
        left_material: Material of the wall at x = -1.
        right_material: Material of the wall at x = +1.
    """

    def __init__(
        self,
        material: Material | None = None,
        left_material: Material | None = None,
        right_material: Material | None = None,
    ) -> None:
        self.material = material if material is not None else Material.diffuse(0.3)
        self.left_material = left_material if left_material is not None else Material.diffuse(0.9, 0.1, 0.0)
        self.right_material = right_material if right_material is not None else Material.diffuse(0.1, 0.9, 0.0)

    def raytrace(self, ray: Ray, hit: HitInfo) -> bool:
        p = ray.origin
        d = ray.direction
        inverse = ray.inverse_direction
        signs = ray.signs
        limit = 1.0 + DISTANCE_EPSILON

        for axis in range(3):
            if d[axis] == 0.0:
                continue
            # +1 when travelling toward the wall at -1, -1 toward the wall at +1
            sign = 2.0 * signs[axis] - 1.0
            t = -(p[axis] + sign) * inverse[axis]
            if t < DISTANCE_EPSILON or t >= hit.distance:
                continue

            j, k = _NEIGHBORS[axis]
            hj = p[j] + d[j] * t
            hk = p[k] + d[k] * t
            if hj * hj > limit or hk * hk > limit:
                continue

            position = np.empty(3, dtype=np.float64)
            position[axis] = -sign
            position[j] = hj
            position[k] = hk
            normal = np.zeros(3, dtype=np.float64)
            normal[axis] = sign

            material = self.material
            if axis == 0:
                material = self.left_material if sign > 0.0 else self.right_material
            hit.set_values(t, position, normal, material)
            return True

        return False

    def raytrace_shadow(self, ray: Ray, max_distance: float, exclude_light: Light | None = None) -> bool:
        # The shell encloses the scene and never blocks a light
        return False

    def __repr__(self) -> str:
        return "RoomShell()"
