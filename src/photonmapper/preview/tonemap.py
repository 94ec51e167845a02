"""Tone mapping: radiance to display color.

The renderer hands every pixel's irradiation to a ``ToneMapper`` and stores
the returned color. Any object with a ``tone_map(radiance)`` method works;
the mappers here accept a single spectrum of shape (3,) or a whole image of
shape (..., 3) and return float32 values in [0, 1].

Example:
    >>> from src.photonmapper.preview.tonemap import ExponentialToneMapper
    >>> mapper = ExponentialToneMapper(strength=1.0)
    >>> mapper.tone_map(np.zeros(3))
    array([0., 0., 0.], dtype=float32)
"""

from __future__ import annotations

from typing import Protocol

import numpy as np
import numpy.typing as npt

# Exponent of the rational approximation of exp(-x): (1 + x/n)^-n
APPROXIMATION_EXPONENT = 16


class ToneMapper(Protocol):
    """Maps a radiance value to a display color."""

    def tone_map(self, radiance: npt.ArrayLike) -> npt.NDArray[np.float32]: ...


class ExponentialToneMapper:
    """Exposure-style mapping: 1 - exp(-x * strength).

    Args:
        strength: Exposure multiplier. Higher values brighten the image.
        approximate: Use 1 - (1 + x * strength / 16)^-16 instead of the
            exponential. It converges to the same curve and stays below it.
    """

    def __init__(self, strength: float = 1.0, approximate: bool = False) -> None:
        if strength <= 0.0:
            raise ValueError(f"strength must be positive, got {strength}")
        self.strength = float(strength)
        self.approximate = approximate

    def tone_map(self, radiance: npt.ArrayLike) -> npt.NDArray[np.float32]:
        x = np.maximum(np.asarray(radiance, dtype=np.float64), 0.0) * self.strength
        if self.approximate:
            result = 1.0 - np.power(1.0 + x / APPROXIMATION_EXPONENT, -APPROXIMATION_EXPONENT)
        else:
            result = 1.0 - np.exp(-x)
        return result.astype(np.float32)

    def __repr__(self) -> str:
        return f"ExponentialToneMapper(strength={self.strength}, approximate={self.approximate})"


class ReinhardToneMapper:
    """Reinhard's global operator: x / (1 + x), after an exposure scale."""

    def __init__(self, exposure: float = 1.0) -> None:
        if exposure <= 0.0:
            raise ValueError(f"exposure must be positive, got {exposure}")
        self.exposure = float(exposure)

    def tone_map(self, radiance: npt.ArrayLike) -> npt.NDArray[np.float32]:
        x = np.maximum(np.asarray(radiance, dtype=np.float64), 0.0) * self.exposure
        return (x / (1.0 + x)).astype(np.float32)

    def __repr__(self) -> str:
        return f"ReinhardToneMapper(exposure={self.exposure})"


def apply_gamma(
    image: npt.NDArray[np.floating],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Apply gamma encoding for display.

    Args:
        image: Tone mapped values in [0, 1]. Values outside are clamped.
        gamma: Display gamma (2.2 approximates sRGB). 1.0 only clamps.

    Returns:
        ``image ** (1 / gamma)`` as float32.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")
    clamped = np.clip(np.asarray(image, dtype=np.float64), 0.0, 1.0)
    if gamma == 1.0:
        return clamped.astype(np.float32)
    return np.power(clamped, 1.0 / gamma).astype(np.float32)
