"""Ray data structure and vector utilities.

This module provides the immutable Ray value type used by every intersection
query, plus the small set of vector and spectrum helpers the tracers share.
Vectors and spectra are NumPy float64 arrays of shape (3,).

A Ray always carries a unit direction. Its per-axis direction signs and
reciprocal direction are computed once at construction for the slab tests
in the bounding-box code and are never modified afterwards.

Example:
    >>> from src.photonmapper.core.ray import Ray, vec3
    >>> ray = Ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -2.0))
    >>> ray.direction
    array([ 0.,  0., -1.])
    >>> ray.at(5.0)  # Point 5 units along the ray
    array([ 0.,  0., -5.])
"""

from __future__ import annotations

import math

import numpy as np
import numpy.typing as npt

# Minimum accepted hit distance; also pads bounds and cutoff distances
DISTANCE_EPSILON = 1e-3

Vector = npt.NDArray[np.float64]
Spectrum = npt.NDArray[np.float64]


def vec3(x: float, y: float, z: float) -> Vector:
    """Create a 3D vector."""
    return np.array((x, y, z), dtype=np.float64)


def spectrum(r: float, g: float | None = None, b: float | None = None) -> Spectrum:
    """Create an RGB spectrum.

    Args:
        r: Red component, or the value of all three components when g and b
            are omitted.
        g: Green component.
        b: Blue component.

    Returns:
        An RGB triple.
    """
    if g is None and b is None:
        return np.array((r, r, r), dtype=np.float64)
    if g is None or b is None:
        raise ValueError("spectrum() takes either one or three components")
    return np.array((r, g, b), dtype=np.float64)


def zero_spectrum() -> Spectrum:
    return np.zeros(3, dtype=np.float64)


def average(s: Spectrum) -> float:
    """Mean of the three spectrum channels."""
    return float(s[0] + s[1] + s[2]) / 3.0


# =============================================================================
# Ray
# =============================================================================


class Ray:
    """A ray with an origin point and a unit direction.

    The direction is normalized on construction unless the caller states it
    already is. Instances are immutable: the stored arrays are read-only and
    the derived caches are tuples.

    Attributes:
        origin: The starting point of the ray.
        direction: The unit direction of the ray.
        signs: Per-axis flag, 1 where the direction component is negative.
        inverse_direction: Per-axis reciprocal of the direction, infinite
            (positive) for a zero component.
    """

    __slots__ = ("_origin", "_direction", "_signs", "_inverse_direction")

    def __init__(self, origin, direction, *, normalized: bool = False) -> None:
        o = np.array(origin, dtype=np.float64)
        d = np.array(direction, dtype=np.float64)
        if o.shape != (3,) or d.shape != (3,):
            raise ValueError(f"Ray origin and direction must be 3-vectors, got {o.shape} and {d.shape}")
        if not normalized:
            norm = math.sqrt(float(d[0] * d[0] + d[1] * d[1] + d[2] * d[2]))
            if norm == 0.0:
                raise ValueError("Ray direction must be non-zero")
            d /= norm
        o.flags.writeable = False
        d.flags.writeable = False

        self._origin = o
        self._direction = d
        self._signs = tuple(1 if c < 0.0 else 0 for c in d)
        self._inverse_direction = tuple(1.0 / float(c) if c != 0.0 else math.inf for c in d)

    @property
    def origin(self) -> Vector:
        return self._origin

    @property
    def direction(self) -> Vector:
        return self._direction

    @property
    def signs(self) -> tuple[int, int, int]:
        return self._signs

    @property
    def inverse_direction(self) -> tuple[float, float, float]:
        return self._inverse_direction

    def at(self, t: float) -> Vector:
        """Compute the point along the ray at distance t.

        Args:
            t: The distance from the origin. Positive values are in front of
                the origin.

        Returns:
            The point origin + t * direction.
        """
        return self._origin + t * self._direction

    def __repr__(self) -> str:
        return f"Ray(origin={self._origin.tolist()}, direction={self._direction.tolist()})"


# =============================================================================
# Vector Utility Functions
# =============================================================================


def dot(a: Vector, b: Vector) -> float:
    """Dot product of two 3-vectors as a Python float."""
    return float(a[0] * b[0] + a[1] * b[1] + a[2] * b[2])


def cross(a: Vector, b: Vector) -> Vector:
    """Cross product of two 3-vectors."""
    return np.array(
        (
            a[1] * b[2] - a[2] * b[1],
            a[2] * b[0] - a[0] * b[2],
            a[0] * b[1] - a[1] * b[0],
        ),
        dtype=np.float64,
    )


def length_squared(v: Vector) -> float:
    """Squared Euclidean length, avoiding the square root."""
    return dot(v, v)


def length(v: Vector) -> float:
    return math.sqrt(length_squared(v))


def normalize(v: Vector) -> Vector:
    """Normalize a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v.

    Raises:
        ValueError: If v has zero length.
    """
    n = length(v)
    if n == 0.0:
        raise ValueError("Cannot normalize a zero-length vector")
    return np.asarray(v, dtype=np.float64) / n


def reflect(incident: Vector, normal: Vector) -> Vector:
    """Mirror an incident direction about a surface normal.

    Args:
        incident: The incoming direction (pointing toward the surface).
        normal: The unit surface normal.

    Returns:
        The reflected direction d - 2 * dot(d, n) * n.
    """
    return incident - (2.0 * dot(incident, normal)) * normal


def build_onb_from_normal(normal: Vector) -> tuple[Vector, Vector, Vector]:
    """Build an orthonormal basis from a normal vector.

    Creates a local coordinate frame where the normal is the z-axis.

    Args:
        normal: The unit surface normal.

    Returns:
        A tuple (tangent, bitangent, normal) forming an orthonormal basis.
    """
    # Choose a vector not parallel to normal
    a = vec3(1.0, 0.0, 0.0)
    if abs(normal[0]) > 0.9:
        a = vec3(0.0, 1.0, 0.0)
    tangent = normalize(cross(a, normal))
    bitangent = cross(normal, tangent)
    return tangent, bitangent, normal


def sample_cosine_hemisphere(normal: Vector, u: float, v: float) -> Vector:
    """Map a point of the unit square to a cosine-weighted direction.

    The returned direction lies in the hemisphere around ``normal`` with a
    density proportional to cos(theta), the importance distribution for
    Lambertian surfaces. Deterministic in (u, v) so callers can feed it
    quasi-random samples.

    Args:
        normal: The unit normal defining the hemisphere.
        u: Sample in [0, 1) selecting the azimuth.
        v: Sample in [0, 1) selecting the elevation.

    Returns:
        A unit direction in world space.
    """
    phi = 2.0 * math.pi * u
    sin_theta = math.sqrt(max(0.0, 1.0 - v))
    cos_theta = math.sqrt(max(0.0, v))
    tangent, bitangent, n = build_onb_from_normal(normal)
    direction = (
        (math.cos(phi) * sin_theta) * tangent
        + (math.sin(phi) * sin_theta) * bitangent
        + cos_theta * n
    )
    return direction / length(direction)
