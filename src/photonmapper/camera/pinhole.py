"""Pinhole camera model for perspective projection ray generation.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

and places a virtual image plane at unit distance in front of the camera.
Eye rays start at ``lookfrom`` and pass through the image plane point with
normalized coordinates (s, t):
- s = 0: left edge, s = 1: right edge
- t = 0: bottom edge, t = 1: top edge

Example:
    >>> from src.photonmapper.camera.pinhole import PinholeCamera
    >>>
    >>> # Camera looking at the origin from z=3
    >>> camera = PinholeCamera(
    ...     lookfrom=(0.0, 0.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=60.0,
    ...     aspect_ratio=16.0 / 9.0,
    ... )
    >>> ray = camera.get_eye_ray(0.5, 0.5)  # Ray through image center, along -z
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from functools import cached_property

import numpy as np

from src.photonmapper.core.ray import Ray, Vector, cross, normalize


@dataclass(frozen=True)
class PinholeCamera:
    """A pinhole (perspective) camera.

    A pinhole camera produces perfect perspective projection with no
    depth of field effects.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees.
        aspect_ratio: Width divided by height of the output image.
        shutter_time: Exposure time; radiance times shutter time gives the
            energy the renderer tone maps.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 60.0
    aspect_ratio: float = 4.0 / 3.0
    shutter_time: float = 1.0

    def __post_init__(self) -> None:
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.shutter_time <= 0.0:
            raise ValueError(f"shutter_time must be positive, got {self.shutter_time}")
        if np.allclose(self.lookfrom, self.lookat):
            raise ValueError("lookfrom and lookat must differ")

    @cached_property
    def _viewport(self) -> tuple[Vector, Vector, Vector, Vector]:
        """Origin, lower-left corner, horizontal and vertical span."""
        h = math.tan(math.radians(self.vfov) / 2.0)
        viewport_height = 2.0 * h
        viewport_width = self.aspect_ratio * viewport_height

        origin = np.array(self.lookfrom, dtype=np.float64)
        w = normalize(origin - np.array(self.lookat, dtype=np.float64))
        u = normalize(cross(np.array(self.vup, dtype=np.float64), w))
        v = cross(w, u)

        horizontal = viewport_width * u
        vertical = viewport_height * v
        lower_left = origin - w - horizontal / 2.0 - vertical / 2.0
        return origin, lower_left, horizontal, vertical

    def basis(self) -> tuple[Vector, Vector, Vector]:
        """The camera's (right, up, backward) unit vectors."""
        _, _, horizontal, vertical = self._viewport
        u = normalize(horizontal)
        v = normalize(vertical)
        return u, v, cross(u, v)

    def get_eye_ray(self, s: float, t: float) -> Ray:
        """Generate the eye ray through normalized image coordinates (s, t).

        Args:
            s: Horizontal coordinate in [0, 1] (left to right).
            t: Vertical coordinate in [0, 1] (bottom to top).

        Returns:
            A ray from the camera position through the image plane point.
        """
        origin, lower_left, horizontal, vertical = self._viewport
        return Ray(origin, lower_left + s * horizontal + t * vertical - origin)

    def get_eye_rays(self, s_values: Sequence[float], t: float) -> list[Ray]:
        """Eye rays for several horizontal positions on one image row."""
        origin, lower_left, horizontal, vertical = self._viewport
        row = lower_left + t * vertical - origin
        directions = row + np.outer(np.asarray(s_values, dtype=np.float64), horizontal)
        return [Ray(origin, d) for d in directions]
