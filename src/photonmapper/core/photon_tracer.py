"""Photon emission and random walks.

``PhotonTracer.trace_photons`` fills a photon map with ``photon_count``
independent photon paths, distributed over the parallelizer. Each path:

1. Emits a photon from the light. The emission position comes from the
   pseudo-random generator. The direction comes from the first two
   dimensions of a 4-D Halton-Hammersley point: photon i uses point i.
   The emitted power is divided by the photon count.
2. Follows the photon through the scene. At every surface hit except the
   first, the photon is deposited in the map. The first hit is lit
   directly by the light, and the ray tracer's shadow-ray term already
   accounts for that; storing it would count direct light twice.
3. Continues by Russian roulette. A diffuse or specular surface survives
   with probability equal to its average reflectance, and the power is
   rescaled by reflectance / average so the estimate stays unbiased. Diffuse
   bounces draw a cosine-weighted direction from the remaining quasi-random
   dimensions (pseudo-random once they run out). Specular bounces mirror.
   A dielectric refracts with probability 1 - F and reflects otherwise.

Each worker thread owns its quasi-random point set; sets are never shared
between threads.

Example:
    >>> tracer = PhotonTracer(scene.traceable(), scene.light(), parallelizer)
    >>> photon_map.clear()
    >>> tracer.trace_photons(photon_map, 10_000)
    >>> photon_map.build_structure()
"""

from __future__ import annotations

import logging
import threading

from src.photonmapper.core.parallel import AtomicCounter, Parallelizer
from src.photonmapper.core.ray import Ray, reflect
from src.photonmapper.core.sampling import HaltonHammersleySet, thread_rng
from src.photonmapper.core.traceable import HitInfo, Light, Traceable
from src.photonmapper.materials.dielectric import compute_refraction, fresnel_coefficient
from src.photonmapper.materials.lambertian import scatter_lambertian
from src.photonmapper.materials.material import MaterialType
from src.photonmapper.photonmap.photon import Photon, PhotonMap

logger = logging.getLogger(__name__)

RANDOM_DIMENSION = 4
MAX_BOUNCES = 64


class PhotonTracer:
    """Traces photons from a light into a photon map.

    Args:
        scene: Everything photons can hit.
        light: The emitter.
        parallelizer: Executor for the per-photon loop.
        max_bounces: Hard cap on the path length. Russian roulette ends
            almost every path long before it; the cap only matters for
            lossless dielectric paths.
    """

    def __init__(
        self,
        scene: Traceable,
        light: Light,
        parallelizer: Parallelizer,
        max_bounces: int = MAX_BOUNCES,
    ) -> None:
        self.scene = scene
        self.light = light
        self.parallelizer = parallelizer
        self.max_bounces = max_bounces

    def trace_photons(self, photon_map: PhotonMap, photon_count: int) -> int:
        """Trace ``photon_count`` photon paths into ``photon_map``.

        The map is neither cleared nor built here.

        Args:
            photon_map: Destination map.
            photon_count: Number of paths to trace.

        Returns:
            The number of photons stored.

        Raises:
            ValueError: If photon_count is negative.
        """
        if photon_count < 0:
            raise ValueError(f"photon_count must be non-negative, got {photon_count}")
        if photon_count == 0:
            return 0

        stored = AtomicCounter(0)
        dropped = AtomicCounter(0)
        local = threading.local()

        def trace(index: int) -> None:
            point_set = getattr(local, "point_set", None)
            if point_set is None:
                point_set = HaltonHammersleySet(RANDOM_DIMENSION, photon_count)
                local.point_set = point_set
            point_set.set_seed(index)
            added, lost = self.trace_photon(photon_map, photon_count, point_set.next())
            if added:
                stored.fetch_add(added)
            if lost:
                dropped.fetch_add(lost)

        self.parallelizer.loop(trace, 0, photon_count)

        if dropped.value:
            logger.warning(
                "Photon map full (capacity %d); dropped %d photons",
                photon_map.capacity,
                dropped.value,
            )
        logger.debug("Traced %d photon paths, stored %d photons", photon_count, stored.value)
        return stored.value

    def trace_photon(self, photon_map: PhotonMap, photon_count: int, random_vector: list[float]) -> tuple[int, int]:
        """Trace one photon path.

        Args:
            photon_map: Destination map.
            photon_count: Total number of paths; the emitted power is split
                evenly between them.
            random_vector: Quasi-random point of this path.

        Returns:
            (photons stored, photons dropped because the map was full).
        """
        rng = thread_rng()

        def random_at(i: int) -> float:
            return random_vector[i] if i < len(random_vector) else float(rng.random())

        ray, power = self.light.sample_photon(
            (float(rng.random()), float(rng.random())),
            (random_at(0), random_at(1)),
        )
        power = power / photon_count

        stored = 0
        dropped = 0
        refractive_index = 1.0
        bounce = 0
        while bounce < self.max_bounces:
            hit = HitInfo()
            if not self.scene.raytrace(ray, hit):
                break

            # Direct light at the first hit is the ray tracer's job
            if bounce > 0:
                if photon_map.add(Photon(hit.position, hit.normal, power)):
                    stored += 1
                else:
                    dropped += 1

            material = hit.material
            kind = material.type

            if kind is MaterialType.DIFFUSE or kind is MaterialType.SPECULAR:
                survival = material.average_reflectance
                if rng.random() >= survival:
                    break
                power = power * (material.reflectance / survival)
                if kind is MaterialType.DIFFUSE:
                    direction = scatter_lambertian(hit.normal, random_at(2 + 2 * bounce), random_at(3 + 2 * bounce))
                else:
                    direction = reflect(ray.direction, hit.normal)
                ray = Ray(hit.position, direction)

            elif kind is MaterialType.DIELECTRIC:
                n2 = material.refractive_index
                fresnel = fresnel_coefficient(hit.normal, ray.direction, refractive_index, n2)
                direction = None
                if rng.random() < 1.0 - fresnel:
                    direction = compute_refraction(hit.normal, ray.direction, refractive_index, n2)
                    if direction is not None:
                        refractive_index = n2
                if direction is None:
                    direction = reflect(ray.direction, hit.normal)
                ray = Ray(hit.position, direction)

            else:
                break

            bounce += 1

        return stored, dropped
