"""Sphere primitive with robust ray-sphere intersection.

The intersection solves |o + t*d - c|^2 = r^2 for a unit direction d:

    t^2 + 2*h*t + c' = 0,   h = dot(d, o - c),   c' = |o - c|^2 - r^2

using the numerically stable form of the quadratic formula (Ray Tracing
Gems, chapter 7), which avoids catastrophic cancellation when h^2 is close
to c':

    q = -(h + sign(h) * sqrt(h^2 - c')),   roots q and c' / q

A ray starting outside hits the near root with an outward normal and the
outside material. A ray starting inside (or a near root closer than the
distance epsilon) hits the far root with an inward normal and the inside
material, so the normal always faces the incoming ray.

Example:
    >>> from src.photonmapper.core.ray import Ray, vec3
    >>> from src.photonmapper.geometry.sphere import Sphere
    >>> from src.photonmapper.materials.material import Material
    >>> sphere = Sphere(vec3(0.0, 0.0, 0.0), 1.0, Material.diffuse(0.5))
    >>> hit = sphere.intersect(Ray(vec3(0.0, 0.0, 5.0), vec3(0.0, 0.0, -1.0)))
    >>> hit.distance
    4.0
"""

from __future__ import annotations

import math

import numpy as np

from src.photonmapper.core.ray import DISTANCE_EPSILON, Ray, Vector, dot
from src.photonmapper.core.traceable import HitInfo, Light, Traceable
from src.photonmapper.materials.material import Material, MaterialType


class Sphere(Traceable):
    """A sphere defined by center point and radius.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere (positive).
        material: Material seen from outside.
        inside_material: Material seen from inside. Defaults to the outside
            material, except for dielectrics, where it is a dielectric of
            index 1.0: a ray leaving the sphere enters the surrounding air.

    Raises:
        ValueError: If radius is not positive.
    """

    def __init__(
        self,
        center,
        radius: float,
        material: Material,
        inside_material: Material | None = None,
    ) -> None:
        if radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        self.center: Vector = np.array(center, dtype=np.float64)
        self.radius = float(radius)
        self.material = material
        if inside_material is None:
            if material.type is MaterialType.DIELECTRIC:
                inside_material = Material.dielectric(1.0)
            else:
                inside_material = material
        self.inside_material = inside_material

    def _roots(self, ray: Ray) -> tuple[float, float] | None:
        oc = ray.origin - self.center
        h = dot(ray.direction, oc)
        c = dot(oc, oc) - self.radius * self.radius
        discriminant = h * h - c
        if discriminant < 0.0:
            return None
        q = -(h + math.copysign(math.sqrt(discriminant), h))
        if q == 0.0:
            # Origin on the surface with a tangent direction
            return 0.0, 0.0
        t0 = q
        t1 = c / q
        if t0 > t1:
            t0, t1 = t1, t0
        return t0, t1

    def raytrace(self, ray: Ray, hit: HitInfo) -> bool:
        roots = self._roots(ray)
        if roots is None:
            return False
        t0, t1 = roots

        if t0 >= DISTANCE_EPSILON:
            if t0 >= hit.distance:
                return False
            position = ray.at(t0)
            normal = (position - self.center) / self.radius
            hit.set_values(t0, position, normal, self.material)
            return True

        if DISTANCE_EPSILON <= t1 < hit.distance:
            position = ray.at(t1)
            normal = (self.center - position) / self.radius
            hit.set_values(t1, position, normal, self.inside_material)
            return True

        return False

    def raytrace_shadow(self, ray: Ray, max_distance: float, exclude_light: Light | None = None) -> bool:
        roots = self._roots(ray)
        if roots is None:
            return False
        t0, t1 = roots
        if DISTANCE_EPSILON <= t0 < max_distance:
            return True
        return DISTANCE_EPSILON <= t1 < max_distance

    def __repr__(self) -> str:
        return f"Sphere(center={self.center.tolist()}, radius={self.radius}, material={self.material!r})"
