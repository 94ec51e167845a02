"""Dielectric (glass/water) interface model.

This module implements the two pieces of physics a dielectric surface needs:

    - Schlick's approximation of the Fresnel reflectance
    - Snell's law refraction, including total internal reflection

Refractive indices are passed explicitly as (n1, n2): n1 is the medium the
incident ray travels in and n2 the medium on the other side of the surface.
The normal always faces the incident ray (cos_i = -dot(d, n) >= 0).

Example:
    >>> from src.photonmapper.core.ray import vec3
    >>> from src.photonmapper.materials.dielectric import fresnel_coefficient
    >>> n = vec3(0.0, 0.0, 1.0)
    >>> d = vec3(0.0, 0.0, -1.0)
    >>> round(fresnel_coefficient(n, d, 1.0, 1.5), 4)
    0.04
"""

from __future__ import annotations

import math

from src.photonmapper.core.ray import Vector, dot


def fresnel_coefficient(normal: Vector, incident: Vector, n1: float, n2: float) -> float:
    """Fraction of light reflected at a dielectric interface.

    Uses Schlick's approximation ``f0 + (1 - f0) * (1 - cos)^5`` with
    ``f0 = ((n1 - n2) / (n1 + n2))^2``.

    Args:
        normal: Unit surface normal facing the incident ray.
        incident: Unit incident direction.
        n1: Refractive index on the incident side.
        n2: Refractive index on the far side.

    Returns:
        Reflectance in [0, 1].
    """
    r0 = (n1 - n2) / (n1 + n2)
    r0 = r0 * r0
    cosine = min(1.0, max(0.0, -dot(incident, normal)))
    return r0 + (1.0 - r0) * (1.0 - cosine) ** 5


def compute_refraction(normal: Vector, incident: Vector, n1: float, n2: float) -> Vector | None:
    """Refract an incident direction through the interface.

    Args:
        normal: Unit surface normal facing the incident ray.
        incident: Unit incident direction.
        n1: Refractive index on the incident side.
        n2: Refractive index on the far side.

    Returns:
        The unit refracted direction, or None on total internal reflection.
    """
    eta = n1 / n2
    cos_i = -dot(incident, normal)
    k = 1.0 - eta * eta * (1.0 - cos_i * cos_i)
    if k < 0.0:
        return None
    refracted = eta * incident + (eta * cos_i - math.sqrt(k)) * normal
    return refracted / math.sqrt(dot(refracted, refracted))
