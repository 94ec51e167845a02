"""Intersection contracts shared by every scene primitive.

Two capabilities are defined here:

- ``Traceable``: nearest-hit queries (``raytrace``) and existence-only
  shadow queries (``raytrace_shadow``).
- ``Light``: a traceable that also emits light. It can report its power,
  estimate direct irradiance at a surface point with shadow rays, and emit
  photons.

Nearest-hit queries write into a caller-owned ``HitInfo`` scratch record.
This mirrors the way the tracers reuse one record per stack frame instead of
allocating a result per candidate primitive. ``Traceable.intersect`` wraps
that for callers who prefer an optional return value.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np

from src.photonmapper.core.ray import Ray, Spectrum, Vector

if TYPE_CHECKING:
    from src.photonmapper.materials.material import Material


class HitInfo:
    """Mutable scratch record describing a ray hit.

    All four fields are written together by :meth:`set_values`; no method
    updates a subset of them.

    Attributes:
        distance: Distance from the ray origin to the hit point.
        position: World-space hit position.
        normal: Unit surface normal, facing the incoming ray for two-sided
            surfaces.
        material: Surface material at the hit point.
    """

    __slots__ = ("distance", "position", "normal", "material")

    def __init__(self) -> None:
        self.distance = float("inf")
        self.position: Vector = np.zeros(3, dtype=np.float64)
        self.normal: Vector = np.zeros(3, dtype=np.float64)
        self.material: Material | None = None

    def set_values(self, distance: float, position: Vector, normal: Vector, material: Material) -> None:
        self.distance = distance
        self.position = position
        self.normal = normal
        self.material = material

    def __repr__(self) -> str:
        return (
            f"HitInfo(distance={self.distance}, position={self.position.tolist()}, "
            f"normal={self.normal.tolist()}, material={self.material!r})"
        )


class Traceable(ABC):
    """An object rays can be intersected with."""

    @abstractmethod
    def raytrace(self, ray: Ray, hit: HitInfo) -> bool:
        """Find the nearest intersection in front of the ray origin.

        Only intersections closer than ``hit.distance`` are accepted, so a
        record shared across several objects ends up holding the nearest
        hit. Callers must pass a fresh record for a fresh query.

        Args:
            ray: The query ray.
            hit: Scratch record receiving the intersection.

        Returns:
            True if ``hit`` was updated.
        """

    @abstractmethod
    def raytrace_shadow(self, ray: Ray, max_distance: float, exclude_light: Light | None = None) -> bool:
        """Report whether anything blocks the ray before ``max_distance``.

        Args:
            ray: The shadow ray.
            max_distance: Distance beyond which hits are ignored.
            exclude_light: A light that must not occlude itself.

        Returns:
            True if any qualifying intersection exists.
        """

    def intersect(self, ray: Ray) -> HitInfo | None:
        """Convenience form of :meth:`raytrace` returning a new record or None."""
        hit = HitInfo()
        if self.raytrace(ray, hit):
            return hit
        return None


class Light(Traceable):
    """An emitter that is also visible to rays and occludes them."""

    @abstractmethod
    def power(self) -> Spectrum:
        """Total emitted power."""

    @abstractmethod
    def sample_irradiance(self, position: Vector, normal: Vector, scene: Traceable) -> Spectrum:
        """Estimate direct irradiance at a surface point.

        Args:
            position: The receiving surface point.
            normal: The receiving surface normal.
            scene: Occluders queried with shadow rays.

        Returns:
            The irradiance arriving at ``position``.
        """

    @abstractmethod
    def sample_photon(
        self,
        position_param: tuple[float, float],
        direction_param: tuple[float, float],
    ) -> tuple[Ray, Spectrum]:
        """Emit one photon.

        Args:
            position_param: Point of the unit square selecting the emission
                position on the light.
            direction_param: Point of the unit square selecting the emission
                direction.

        Returns:
            The emission ray and the photon power.
        """
