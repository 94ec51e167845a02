"""Lambertian (diffuse) reflection.

A Lambertian surface scatters light equally in all directions, so its BRDF
is the constant ``reflectance / pi``. Scattered directions are drawn from the
cosine-weighted hemisphere, which matches the BRDF times the cosine term.
"""

from __future__ import annotations

import math

from src.photonmapper.core.ray import Spectrum, Vector, sample_cosine_hemisphere


def eval_lambertian(reflectance: Spectrum) -> Spectrum:
    """Evaluate the Lambertian BRDF.

    Args:
        reflectance: The surface reflectance (albedo).

    Returns:
        reflectance / pi.
    """
    return reflectance / math.pi


def scatter_lambertian(normal: Vector, u: float, v: float) -> Vector:
    """Draw a cosine-weighted scatter direction around ``normal``."""
    return sample_cosine_hemisphere(normal, u, v)
