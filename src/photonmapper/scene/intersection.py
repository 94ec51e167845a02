"""Composite aggregates for scene-level intersection.

A scene is a flat list of primitives queried by linear scan:

- ``CompositeTraceable``: nearest hit over all objects; the shadow query
  returns as soon as any object blocks the ray.
- ``CompositeLight``: the same over a list of lights, and additionally a
  Light itself. Irradiance and power are summed, and photons are emitted by
  one light chosen with probability proportional to its power.

Children are shared references. A light is typically held both by the
composite light and, as an occluder, by the composite traceable.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from src.photonmapper.core.ray import Ray, Spectrum, Vector, average, vec3, zero_spectrum
from src.photonmapper.core.sampling import thread_rng
from src.photonmapper.core.traceable import HitInfo, Light, Traceable


def _nearest_hit(objects: Iterable[Traceable], ray: Ray, hit: HitInfo) -> bool:
    # Each child only accepts hits closer than the best one found so far
    found = False
    for obj in objects:
        if obj.raytrace(ray, hit):
            found = True
    return found


def _any_hit(objects: Iterable[Traceable], ray: Ray, max_distance: float, exclude_light: Light | None) -> bool:
    for obj in objects:
        if obj.raytrace_shadow(ray, max_distance, exclude_light):
            return True
    return False


class CompositeTraceable(Traceable):
    """A list of traceables queried by linear scan.

    Args:
        objects: The child objects.
    """

    def __init__(self, objects: Iterable[Traceable] = ()) -> None:
        self.objects: list[Traceable] = list(objects)

    def add(self, obj: Traceable) -> None:
        self.objects.append(obj)

    def raytrace(self, ray: Ray, hit: HitInfo) -> bool:
        return _nearest_hit(self.objects, ray, hit)

    def raytrace_shadow(self, ray: Ray, max_distance: float, exclude_light: Light | None = None) -> bool:
        return _any_hit(self.objects, ray, max_distance, exclude_light)

    def __len__(self) -> int:
        return len(self.objects)

    def __repr__(self) -> str:
        return f"CompositeTraceable({self.objects!r})"


class CompositeLight(Light):
    """A list of lights acting as a single light.

    Args:
        lights: The child lights.
    """

    def __init__(self, lights: Iterable[Light] = ()) -> None:
        self.lights: list[Light] = list(lights)

    def add(self, light: Light) -> None:
        self.lights.append(light)

    def raytrace(self, ray: Ray, hit: HitInfo) -> bool:
        return _nearest_hit(self.lights, ray, hit)

    def raytrace_shadow(self, ray: Ray, max_distance: float, exclude_light: Light | None = None) -> bool:
        return _any_hit(self.lights, ray, max_distance, exclude_light)

    def power(self) -> Spectrum:
        total = zero_spectrum()
        for light in self.lights:
            total += light.power()
        return total

    def sample_irradiance(self, position: Vector, normal: Vector, scene: Traceable) -> Spectrum:
        irradiance = zero_spectrum()
        for light in self.lights:
            irradiance += light.sample_irradiance(position, normal, scene)
        return irradiance

    def sample_photon(
        self,
        position_param: tuple[float, float],
        direction_param: tuple[float, float],
    ) -> tuple[Ray, Spectrum]:
        """Emit a photon from one light picked in proportion to its power.

        The returned power is divided by the selection probability, so the
        estimate stays unbiased. Without lights, a zero-power photon is
        returned.
        """
        if not self.lights:
            d = math.sqrt(1.0 / 3.0)
            return Ray(vec3(0.0, 0.0, 0.0), vec3(d, d, d), normalized=True), zero_spectrum()
        if len(self.lights) == 1:
            return self.lights[0].sample_photon(position_param, direction_param)

        powers = [average(light.power()) for light in self.lights]
        total = sum(powers)
        if total <= 0.0:
            ray, _ = self.lights[0].sample_photon(position_param, direction_param)
            return ray, zero_spectrum()

        cutoff = total * float(thread_rng().random())
        running = 0.0
        chosen = len(self.lights) - 1
        for i, local in enumerate(powers):
            running += local
            if local > 0.0 and running >= cutoff:
                chosen = i
                break
        # Rounding can leave the cutoff above the running sum; use the last powered light
        while powers[chosen] <= 0.0:
            chosen -= 1

        ray, power = self.lights[chosen].sample_photon(position_param, direction_param)
        return ray, power * (total / powers[chosen])

    def __len__(self) -> int:
        return len(self.lights)

    def __repr__(self) -> str:
        return f"CompositeLight({self.lights!r})"
