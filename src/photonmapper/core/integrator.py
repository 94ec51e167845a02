"""Recursive radiance estimation (the ray tracer).

``RayTracer.sample_incident_radiance`` returns the radiance arriving along
a ray, dispatching on the material of the nearest surface:

    Emitting:   the material's radiance
    Diffuse:    direct + indirect, both times reflectance / pi
                  direct   = light.sample_irradiance(...)   (shadow rays)
                  indirect = photon_map.power_density(...)  (photon density)
    Specular:   reflectance * radiance along the mirror direction
    Dielectric: F * reflected + (1 - F) * refracted, F from Schlick's
                approximation; only the reflected term on total internal
                reflection
    Black:      zero

Recursion is cut off after ``MAX_DEPTH`` specular or dielectric bounces.
Without a photon map the indirect term is exactly zero, which leaves plain
direct lighting (Whitted-style ray tracing with soft shadows).

Example:
    >>> tracer = RayTracer(scene.traceable(), scene.light(), photon_map)
    >>> radiance = tracer.sample_incident_radiance(camera.get_eye_ray(0.5, 0.5))
"""

from __future__ import annotations

import math

from src.photonmapper.core.ray import Ray, Spectrum, reflect, zero_spectrum
from src.photonmapper.core.traceable import HitInfo, Light, Traceable
from src.photonmapper.materials.dielectric import compute_refraction, fresnel_coefficient
from src.photonmapper.materials.lambertian import eval_lambertian
from src.photonmapper.materials.material import MaterialType
from src.photonmapper.photonmap.photon import PhotonMap

# Maximum recursion depth for specular and dielectric bounces
MAX_DEPTH = 3


class RayTracer:
    """Shades camera rays from the scene, its lights and a photon map.

    Args:
        scene: Everything rays can hit, lights included.
        light: The light used for direct lighting.
        photon_map: Built photon map for indirect lighting, or None to
            disable indirect lighting.
        max_depth: Recursion limit.
    """

    def __init__(
        self,
        scene: Traceable,
        light: Light,
        photon_map: PhotonMap | None = None,
        max_depth: int = MAX_DEPTH,
    ) -> None:
        self.scene = scene
        self.light = light
        self.photon_map = photon_map
        self.max_depth = max_depth

    def sample_incident_radiance(self, ray: Ray, refractive_index: float = 1.0, depth: int = 0) -> Spectrum:
        """Radiance arriving at the ray origin from its direction.

        Args:
            ray: The query ray.
            refractive_index: Index of the medium the ray travels through.
            depth: Current recursion depth.

        Returns:
            Incident radiance.
        """
        if depth > self.max_depth:
            return zero_spectrum()

        hit = HitInfo()
        if not self.scene.raytrace(ray, hit):
            return zero_spectrum()

        material = hit.material
        kind = material.type

        if kind is MaterialType.EMITTING:
            return material.radiance.copy()

        if kind is MaterialType.DIFFUSE:
            return self.direct_radiance(hit) + self.indirect_radiance(hit)

        if kind is MaterialType.SPECULAR:
            mirrored = Ray(hit.position, reflect(ray.direction, hit.normal))
            return self.sample_incident_radiance(mirrored, refractive_index, depth + 1) * material.reflectance

        if kind is MaterialType.DIELECTRIC:
            return self._dielectric_radiance(ray, hit, refractive_index, depth)

        return zero_spectrum()

    def direct_radiance(self, hit: HitInfo) -> Spectrum:
        """Radiance reflected from a diffuse hit due to direct lighting."""
        irradiance = self.light.sample_irradiance(hit.position, hit.normal, self.scene)
        return irradiance * eval_lambertian(hit.material.reflectance)

    def indirect_radiance(self, hit: HitInfo) -> Spectrum:
        """Radiance reflected from a diffuse hit due to photon-mapped light."""
        if self.photon_map is None:
            return zero_spectrum()
        density = self.photon_map.power_density(hit.position, hit.normal)
        return density * (hit.material.reflectance / math.pi)

    def _dielectric_radiance(self, ray: Ray, hit: HitInfo, refractive_index: float, depth: int) -> Spectrum:
        n1 = refractive_index
        n2 = hit.material.refractive_index

        reflected_ray = Ray(hit.position, reflect(ray.direction, hit.normal))
        reflected = self.sample_incident_radiance(reflected_ray, n1, depth + 1)

        refracted_direction = compute_refraction(hit.normal, ray.direction, n1, n2)
        if refracted_direction is None:
            # Total internal reflection
            return reflected

        fresnel = fresnel_coefficient(hit.normal, ray.direction, n1, n2)
        refracted_ray = Ray(hit.position, refracted_direction)
        refracted = self.sample_incident_radiance(refracted_ray, n2, depth + 1)
        return reflected * fresnel + refracted * (1.0 - fresnel)
