"""Surface material variant.

Materials are immutable tagged values. Shading code dispatches on
``Material.type`` instead of calling methods on material subclasses:

- BLACK: absorbs everything
- EMITTING: constant emitted radiance
- DIFFUSE: Lambertian reflector with an RGB reflectance
- SPECULAR: perfect mirror with an RGB reflectance
- DIELECTRIC: refracting interface with a refractive index

Example:
    >>> from src.photonmapper.materials.material import Material, MaterialType
    >>> red = Material.diffuse(0.9, 0.1, 0.0)
    >>> red.type is MaterialType.DIFFUSE
    True
    >>> round(red.average_reflectance, 3)
    0.333
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

import numpy as np

from src.photonmapper.core.ray import Spectrum, average


class MaterialType(IntEnum):
    """Material type identifiers."""

    BLACK = 0
    EMITTING = 1
    DIFFUSE = 2
    SPECULAR = 3
    DIELECTRIC = 4


def _as_spectrum(r: float, g: float | None, b: float | None) -> Spectrum:
    if g is None and b is None:
        values = (r, r, r)
    elif g is None or b is None:
        raise ValueError("Material colors take either one or three components")
    else:
        values = (r, g, b)
    s = np.array(values, dtype=np.float64)
    s.flags.writeable = False
    return s


@dataclass(frozen=True, eq=False)
class Material:
    """An immutable surface material.

    Attributes:
        type: Which variant this material is.
        spectrum: Emitted radiance (EMITTING) or reflectance (DIFFUSE,
            SPECULAR). Zero for the other variants.
        refractive_index: Index of refraction (DIELECTRIC only, 1.0
            otherwise).
    """

    type: MaterialType
    spectrum: Spectrum = field(default_factory=lambda: _as_spectrum(0.0, None, None))
    refractive_index: float = 1.0

    def __post_init__(self) -> None:
        if self.refractive_index <= 0.0:
            raise ValueError(f"refractive_index must be positive, got {self.refractive_index}")

    # -------------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------------

    @classmethod
    def black(cls) -> Material:
        return cls(MaterialType.BLACK)

    @classmethod
    def emitting(cls, r: float, g: float | None = None, b: float | None = None) -> Material:
        return cls(MaterialType.EMITTING, _as_spectrum(r, g, b))

    @classmethod
    def diffuse(cls, r: float, g: float | None = None, b: float | None = None) -> Material:
        return cls(MaterialType.DIFFUSE, _as_spectrum(r, g, b))

    @classmethod
    def specular(cls, r: float, g: float | None = None, b: float | None = None) -> Material:
        return cls(MaterialType.SPECULAR, _as_spectrum(r, g, b))

    @classmethod
    def dielectric(cls, refractive_index: float) -> Material:
        return cls(MaterialType.DIELECTRIC, refractive_index=refractive_index)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def radiance(self) -> Spectrum:
        return self.spectrum

    @property
    def reflectance(self) -> Spectrum:
        return self.spectrum

    @property
    def average_reflectance(self) -> float:
        """Mean reflectance, used as the Russian-roulette survival probability."""
        return average(self.spectrum)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Material):
            return NotImplemented
        return (
            self.type == other.type
            and self.refractive_index == other.refractive_index
            and bool(np.array_equal(self.spectrum, other.spectrum))
        )

    def __hash__(self) -> int:
        return hash((int(self.type), tuple(self.spectrum.tolist()), self.refractive_index))

    def __repr__(self) -> str:
        if self.type is MaterialType.DIELECTRIC:
            return f"Material.dielectric({self.refractive_index})"
        if self.type is MaterialType.BLACK:
            return "Material.black()"
        name = self.type.name.lower()
        r, g, b = self.spectrum.tolist()
        return f"Material.{name}({r}, {g}, {b})"
