"""Render orchestration: photon pass, camera pass, pixel buffer.

This module ties the pieces together. ``Renderer.render()`` produces one
frame:

1. Photon pass (only when ``photon_count > 0``): clear the photon map,
   trace ``photon_count`` photon paths through the parallelizer, then build
   the map's search structure once.
2. Camera pass: the parallelizer hands out image rows ``row_stride`` at a
   time. Each row shoots its eye rays in batches of four, shades them with
   the ray tracer, and tone maps the irradiation ``L * shutter_time * 2pi``
   into the pixel buffer.

The buffer is returned as a (height, width, 3) float32 array, row 0 at the
top. Displaying or saving it is up to the caller.

Example:
    >>> from src.photonmapper.core.renderer import RenderConfig, Renderer
    >>> from src.photonmapper.scene.cornell_box import create_cornell_box_scene
    >>>
    >>> config = RenderConfig(width=160, height=120, photon_count=20_000)
    >>> scene, camera = create_cornell_box_scene(aspect_ratio=160 / 120)
    >>> with Renderer(config, scene.traceable(), scene.light(), camera) as renderer:
    ...     image = renderer.render()
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

import numpy as np
import numpy.typing as npt

from src.photonmapper.camera.pinhole import PinholeCamera
from src.photonmapper.core.integrator import RayTracer
from src.photonmapper.core.parallel import Parallelizer, create_parallelizer
from src.photonmapper.core.photon_tracer import PhotonTracer
from src.photonmapper.core.sampling import reseed
from src.photonmapper.core.traceable import Light, Traceable
from src.photonmapper.photonmap.grid import FILTERS, GridPhotonMap
from src.photonmapper.photonmap.hilbert_map import HilbertPhotonMap
from src.photonmapper.photonmap.photon import DEFAULT_CAPACITY, PhotonMap
from src.photonmapper.preview.tonemap import ExponentialToneMapper, ToneMapper

logger = logging.getLogger(__name__)

# Eye rays generated and shaded together along a row
PIXEL_BATCH = 4

PHOTON_MAP_TYPES = ("grid", "hilbert")


@dataclass
class RenderConfig:
    """Settings for a render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        photon_count: Photon paths traced per frame. 0 disables photon
            mapping, leaving direct lighting only.
        photon_map: Photon map backend, "grid" (exact radius search) or
            "hilbert" (approximate nearest neighbors).
        search_radius: Query radius of the grid backend.
        neighbor_count: Neighbors gathered by the hilbert backend.
        photon_capacity: Maximum photons stored per frame.
        filter: Grid backend weighting, "flat" or "epanechnikov".
        row_stride: Rows a worker claims at a time in the camera pass.
        use_multithreading: Use a thread pool instead of a plain loop.
        seed: Seed for the per-thread random generators, or None for
            fresh entropy.
    """

    width: int = 160
    height: int = 120
    photon_count: int = 0
    photon_map: str = "grid"
    search_radius: float = 0.3
    neighbor_count: int = 10
    photon_capacity: int = DEFAULT_CAPACITY
    filter: str = "flat"
    row_stride: int = 4
    use_multithreading: bool = True
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        if self.photon_count < 0:
            raise ValueError(f"photon_count must be non-negative, got {self.photon_count}")
        if self.photon_map not in PHOTON_MAP_TYPES:
            raise ValueError(f"Unknown photon map type {self.photon_map!r}, expected one of {PHOTON_MAP_TYPES}")
        if self.search_radius <= 0.0:
            raise ValueError(f"search_radius must be positive, got {self.search_radius}")
        if self.neighbor_count <= 0:
            raise ValueError(f"neighbor_count must be positive, got {self.neighbor_count}")
        if self.photon_capacity <= 0:
            raise ValueError(f"photon_capacity must be positive, got {self.photon_capacity}")
        if self.filter not in FILTERS:
            raise ValueError(f"Unknown filter {self.filter!r}, expected one of {FILTERS}")
        if self.row_stride <= 0:
            raise ValueError(f"row_stride must be positive, got {self.row_stride}")

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> RenderConfig:
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in values.items() if key in known})

    def create_photon_map(self) -> PhotonMap:
        """Create an empty photon map of the configured backend."""
        if self.photon_map == "hilbert":
            return HilbertPhotonMap(self.neighbor_count, capacity=self.photon_capacity)
        return GridPhotonMap(self.search_radius, capacity=self.photon_capacity, filter=self.filter)


class Renderer:
    """Renders frames of a scene into tone mapped pixel buffers.

    The scene, light and camera may be supplied later through the
    attributes of the same name; ``render()`` refuses to run until all three
    are set.

    Args:
        config: Render settings.
        scene: Everything rays and photons can hit, lights included.
        light: Light(s) used for direct lighting and photon emission.
        camera: Eye ray generator.
        tone_mapper: Radiance to display color mapping. Defaults to
            ``ExponentialToneMapper()``.
        photon_map: Photon map to fill each frame. Defaults to
            ``config.create_photon_map()`` when photon mapping is enabled.
    """

    def __init__(
        self,
        config: RenderConfig | None = None,
        scene: Traceable | None = None,
        light: Light | None = None,
        camera: PinholeCamera | None = None,
        tone_mapper: ToneMapper | None = None,
        photon_map: PhotonMap | None = None,
    ) -> None:
        self._config = config if config is not None else RenderConfig()
        self.scene = scene
        self.light = light
        self.camera = camera
        self.tone_mapper: ToneMapper = tone_mapper if tone_mapper is not None else ExponentialToneMapper()

        if self._config.photon_count > 0 and photon_map is None:
            photon_map = self._config.create_photon_map()
        self._photon_map = photon_map

        self._use_multithreading = self._config.use_multithreading
        self._parallelizer: Parallelizer = create_parallelizer(self._use_multithreading)
        self._last_photon_count = 0

    @property
    def config(self) -> RenderConfig:
        return self._config

    @property
    def photon_map(self) -> PhotonMap | None:
        return self._photon_map

    @property
    def last_photon_count(self) -> int:
        """Photons stored by the most recent photon pass."""
        return self._last_photon_count

    @property
    def parallelizer(self) -> Parallelizer:
        return self._parallelizer

    @property
    def use_multithreading(self) -> bool:
        return self._use_multithreading

    @use_multithreading.setter
    def use_multithreading(self, value: bool) -> None:
        """Switch between pooled and single-threaded execution.

        The previous executor is closed.
        """
        value = bool(value)
        if value == self._use_multithreading:
            return
        old = self._parallelizer
        self._parallelizer = create_parallelizer(value)
        self._use_multithreading = value
        old.close()
        logger.info("Multithreading %s", "enabled" if value else "disabled")

    def render(self) -> npt.NDArray[np.float32] | None:
        """Render one frame.

        Returns:
            The tone mapped image of shape (height, width, 3), or None if the
            scene, light or camera is missing.
        """
        if self.scene is None or self.light is None or self.camera is None:
            missing = [
                name
                for name, value in (("scene", self.scene), ("light", self.light), ("camera", self.camera))
                if value is None
            ]
            logger.warning("Cannot render: missing %s", ", ".join(missing))
            return None

        config = self._config
        if config.seed is not None:
            reseed(config.seed)

        photon_map = None
        if config.photon_count > 0 and self._photon_map is not None:
            photon_map = self._photon_map
            self._trace_photons(photon_map)

        tracer = RayTracer(self.scene, self.light, photon_map)
        return self._render_image(tracer)

    def _trace_photons(self, photon_map: PhotonMap) -> None:
        config = self._config
        photon_tracer = PhotonTracer(self.scene, self.light, self._parallelizer)

        start = time.perf_counter()
        photon_map.clear()
        self._last_photon_count = photon_tracer.trace_photons(photon_map, config.photon_count)
        traced = time.perf_counter()
        photon_map.build_structure()
        built = time.perf_counter()

        logger.info(
            "Traced %d photon paths (%d stored) in %.3fs",
            config.photon_count,
            self._last_photon_count,
            traced - start,
        )
        logger.info("Built photon map structure in %.3fs", built - traced)

    def _render_image(self, tracer: RayTracer) -> npt.NDArray[np.float32]:
        config = self._config
        width, height = config.width, config.height
        camera = self.camera
        tone_mapper = self.tone_mapper
        exposure = camera.shutter_time * 2.0 * math.pi
        pixels = np.zeros((height, width, 3), dtype=np.float32)
        s_offsets = (np.arange(width, dtype=np.float64) + 0.5) / width

        def render_row(y: int) -> None:
            t = 1.0 - (y + 0.5) / height
            for x_start in range(0, width, PIXEL_BATCH):
                x_end = min(x_start + PIXEL_BATCH, width)
                eye_rays = camera.get_eye_rays(s_offsets[x_start:x_end], t)
                for x, eye_ray in zip(range(x_start, x_end), eye_rays):
                    radiance = tracer.sample_incident_radiance(eye_ray)
                    # Pinhole camera: radiance times the hemisphere's solid angle
                    pixels[y, x] = tone_mapper.tone_map(radiance * exposure)

        start = time.perf_counter()
        self._parallelizer.loop(render_row, 0, height, config.row_stride)
        logger.info("Rendered %dx%d image in %.3fs", width, height, time.perf_counter() - start)
        return pixels

    def close(self) -> None:
        """Release the worker threads."""
        self._parallelizer.close()

    def __enter__(self) -> Renderer:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"Renderer({self._config.width}x{self._config.height}, "
            f"photon_count={self._config.photon_count}, parallelizer={self._parallelizer!r})"
        )
