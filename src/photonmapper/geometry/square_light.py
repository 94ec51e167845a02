"""Rectangular one-sided area light.

The light is a parallelogram centered at ``position`` and spanned by two
orthogonal half-extent vectors:

    P(u, v) = position + basis1 * (2u - 1) + basis2 * (2v - 1),   u, v in [0, 1]

It emits from its front side only, the side of ``normal = cross(basis1,
basis2)``, as a diffuse emitter:

    radiance = power / (area * pi)

Direct irradiance at a surface point is estimated with stratified shadow
rays in the area formulation of the irradiance integral:

    E = L * integral over the light of  V(x, y) * cos_x * cos_y / r^2  dA_y

Example:
    >>> from src.photonmapper.core.ray import spectrum, vec3
    >>> from src.photonmapper.geometry.square_light import SquareLight
    >>> light = SquareLight(
    ...     position=vec3(0.0, 0.99, 0.0),
    ...     basis1=vec3(0.25, 0.0, 0.0),
    ...     basis2=vec3(0.0, 0.0, 0.25),
    ...     power=spectrum(10.0),
    ... )
    >>> light.normal
    array([ 0., -1.,  0.])
    >>> light.area
    0.25
"""

from __future__ import annotations

import math

import numpy as np

from src.photonmapper.core.ray import (
    DISTANCE_EPSILON,
    Ray,
    Spectrum,
    Vector,
    cross,
    dot,
    length,
    normalize,
    sample_cosine_hemisphere,
    zero_spectrum,
)
from src.photonmapper.core.sampling import EvenlySpacedSequence, VanDerCorput, thread_rng
from src.photonmapper.core.traceable import HitInfo, Light, Traceable
from src.photonmapper.materials.material import Material

DEFAULT_SAMPLE_COUNT = 32


class SquareLight(Light):
    """A one-sided rectangular area light.

    Args:
        position: Center of the light.
        basis1: First half-extent vector.
        basis2: Second half-extent vector, orthogonal to basis1.
        power: Total emitted power.
        sample_count: Shadow rays per irradiance estimate.

    Raises:
        ValueError: If the basis vectors are parallel or zero, or
            sample_count is not positive.
    """

    def __init__(
        self,
        position,
        basis1,
        basis2,
        power,
        sample_count: int = DEFAULT_SAMPLE_COUNT,
    ) -> None:
        if sample_count <= 0:
            raise ValueError(f"sample_count must be positive, got {sample_count}")
        self.position: Vector = np.array(position, dtype=np.float64)
        self.basis1: Vector = np.array(basis1, dtype=np.float64)
        self.basis2: Vector = np.array(basis2, dtype=np.float64)
        self.sample_count = sample_count
        self._power: Spectrum = np.array(power, dtype=np.float64)

        self._basis1_sq = dot(self.basis1, self.basis1)
        self._basis2_sq = dot(self.basis2, self.basis2)
        self.area = 4.0 * math.sqrt(self._basis1_sq * self._basis2_sq)
        if self.area == 0.0:
            raise ValueError("SquareLight basis vectors must be non-zero")
        try:
            self.normal = normalize(cross(self.basis1, self.basis2))
        except ValueError:
            raise ValueError("SquareLight basis vectors must not be parallel") from None

        self.radiance: Spectrum = self._power / (self.area * math.pi)
        self._front_material = Material.emitting(*self.radiance.tolist())
        self._back_material = Material.black()

    def relative_position(self, u: float, v: float) -> Vector:
        """Offset from the center of the point with parameters (u, v)."""
        return self.basis1 * (2.0 * u - 1.0) + self.basis2 * (2.0 * v - 1.0)

    def _plane_hit(self, ray: Ray) -> tuple[float, Vector, Vector] | None:
        relative_origin = ray.origin - self.position
        denominator = dot(self.normal, ray.direction)
        if denominator == 0.0:
            return None
        t = -dot(self.normal, relative_origin) / denominator
        if t < DISTANCE_EPSILON:
            return None
        relative_hit = relative_origin + ray.direction * t
        if abs(dot(relative_hit, self.basis1)) > self._basis1_sq:
            return None
        if abs(dot(relative_hit, self.basis2)) > self._basis2_sq:
            return None
        return t, relative_origin, relative_hit

    # -------------------------------------------------------------------------
    # Traceable
    # -------------------------------------------------------------------------

    def raytrace(self, ray: Ray, hit: HitInfo) -> bool:
        plane = self._plane_hit(ray)
        if plane is None:
            return False
        t, relative_origin, relative_hit = plane
        if t >= hit.distance:
            return False
        position = relative_hit + self.position
        if dot(relative_origin, self.normal) < 0.0:
            hit.set_values(t, position, -self.normal, self._back_material)
        else:
            hit.set_values(t, position, self.normal, self._front_material)
        return True

    def raytrace_shadow(self, ray: Ray, max_distance: float, exclude_light: Light | None = None) -> bool:
        if exclude_light is self:
            # A convex light cannot shadow itself
            return False
        plane = self._plane_hit(ray)
        return plane is not None and plane[0] < max_distance

    # -------------------------------------------------------------------------
    # Light
    # -------------------------------------------------------------------------

    def power(self) -> Spectrum:
        return self._power

    def sample_irradiance(self, position: Vector, normal: Vector, scene: Traceable) -> Spectrum:
        relative_position = position - self.position
        if dot(self.normal, relative_position) <= 0.0:
            return zero_spectrum()

        rng = thread_rng()
        n = self.sample_count
        param1 = EvenlySpacedSequence(n, float(rng.random()))
        param2 = VanDerCorput()
        seed = int(rng.integers(0, 2**31))
        param1.set_seed(seed)
        param2.set_seed(seed)

        us = np.array([param1.next() for _ in range(n)])
        vs = np.array([param2.next() for _ in range(n)])
        light_points = (
            np.outer(2.0 * us - 1.0, self.basis1)
            + np.outer(2.0 * vs - 1.0, self.basis2)
            - relative_position
        )

        score = 0.0
        for direction in light_points:
            cos_surface = dot(normal, direction)
            if cos_surface < 0.0:
                continue
            cos_light = -dot(self.normal, direction)
            distance = length(direction)
            if distance == 0.0:
                continue
            inv_distance = 1.0 / distance
            ray = Ray(position, direction * inv_distance, normalized=True)
            if scene.raytrace_shadow(ray, distance - DISTANCE_EPSILON, self):
                continue
            score += cos_surface * cos_light * inv_distance**4

        # Monte Carlo estimate of the area integral: times area over sample count
        return self.radiance * (score * self.area / n)

    def sample_photon(
        self,
        position_param: tuple[float, float],
        direction_param: tuple[float, float],
    ) -> tuple[Ray, Spectrum]:
        origin = self.position + self.relative_position(position_param[0], position_param[1])
        direction = sample_cosine_hemisphere(self.normal, direction_param[0], direction_param[1])
        return Ray(origin, direction, normalized=True), self._power.copy()

    def __repr__(self) -> str:
        return (
            f"SquareLight(position={self.position.tolist()}, basis1={self.basis1.tolist()}, "
            f"basis2={self.basis2.tolist()}, power={self._power.tolist()})"
        )
