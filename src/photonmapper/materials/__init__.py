"""Materials module for surface appearance.

Components:
    material: Immutable tagged material variant (black, emitting, diffuse,
        specular, dielectric)
    lambertian: Diffuse BRDF evaluation and cosine-weighted scattering
    dielectric: Schlick Fresnel reflectance and Snell refraction

Shading code dispatches on ``Material.type``; the helper functions here are
stateless and safe to call from any thread.
"""

from .dielectric import compute_refraction, fresnel_coefficient
from .lambertian import eval_lambertian, scatter_lambertian
from .material import Material, MaterialType

__all__ = [
    "Material",
    "MaterialType",
    "compute_refraction",
    "fresnel_coefficient",
    "eval_lambertian",
    "scatter_lambertian",
]
