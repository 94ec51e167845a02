"""Tests for render orchestration.

Tests cover:
- RenderConfig validation, construction from mappings and photon map choice
- Refusing to render without scene, light or camera
- End-to-end frames: shape, dtype, range, reproducibility, shadows
- Switching between pooled and single-threaded execution
"""

import logging

import numpy as np
import pytest


class TestRenderConfig:
    """Tests for render settings."""

    def test_defaults(self):
        """Test the default settings."""
        from src.photonmapper.core.renderer import RenderConfig

        config = RenderConfig()

        assert (config.width, config.height) == (160, 120)
        assert config.photon_count == 0
        assert abs(config.aspect_ratio - 4.0 / 3.0) < 1e-12

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"width": 0}, "dimensions"),
            ({"height": -4}, "dimensions"),
            ({"photon_count": -1}, "photon_count"),
            ({"photon_map": "kdtree"}, "photon map"),
            ({"search_radius": 0.0}, "search_radius"),
            ({"neighbor_count": 0}, "neighbor_count"),
            ({"photon_capacity": 0}, "photon_capacity"),
            ({"filter": "box"}, "filter"),
            ({"row_stride": 0}, "row_stride"),
        ],
    )
    def test_validation(self, overrides, message):
        """Test that invalid settings raise ValueError."""
        from src.photonmapper.core.renderer import RenderConfig

        with pytest.raises(ValueError, match=message):
            RenderConfig(**overrides)

    def test_from_dict_ignores_unknown_keys(self):
        """Test building a config from a loose mapping."""
        from src.photonmapper.core.renderer import RenderConfig

        config = RenderConfig.from_dict({"width": 32, "photon_count": 100, "samples_per_pixel": 4})

        assert config.width == 32
        assert config.photon_count == 100
        assert config.height == 120

    def test_create_photon_map(self):
        """Test the configured photon map backend."""
        from src.photonmapper.core.renderer import RenderConfig
        from src.photonmapper.photonmap.grid import GridPhotonMap
        from src.photonmapper.photonmap.hilbert_map import HilbertPhotonMap

        grid = RenderConfig(search_radius=0.5, photon_capacity=100, filter="epanechnikov").create_photon_map()
        hilbert = RenderConfig(photon_map="hilbert", neighbor_count=7, photon_capacity=50).create_photon_map()

        assert isinstance(grid, GridPhotonMap)
        assert grid.search_radius == 0.5
        assert grid.capacity == 100
        assert grid.filter == "epanechnikov"
        assert isinstance(hilbert, HilbertPhotonMap)
        assert hilbert.neighbor_count == 7
        assert hilbert.capacity == 50


class TestRenderer:
    """Tests for Renderer."""

    def test_missing_inputs_return_none(self, caplog):
        """Test that render() warns and returns None without a scene."""
        from src.photonmapper.core.renderer import Renderer

        with Renderer() as renderer, caplog.at_level(logging.WARNING):
            result = renderer.render()

        assert result is None
        assert "missing scene, light, camera" in caplog.text

    def test_photon_map_only_when_enabled(self):
        """Test that a photon map is created only for photon_count > 0."""
        from src.photonmapper.core.renderer import RenderConfig, Renderer

        with Renderer(RenderConfig(use_multithreading=False)) as direct_only:
            assert direct_only.photon_map is None
        with Renderer(RenderConfig(photon_count=10, use_multithreading=False)) as mapped:
            assert mapped.photon_map is not None

    def test_render_frame(self):
        """Test a small photon-mapped frame of the demo room."""
        from src.photonmapper.core.renderer import RenderConfig, Renderer
        from src.photonmapper.scene.cornell_box import create_cornell_box_scene

        config = RenderConfig(width=8, height=6, photon_count=300, use_multithreading=False, seed=1)
        scene, camera = create_cornell_box_scene(aspect_ratio=config.aspect_ratio)

        with Renderer(config, scene.traceable(), scene.light(), camera) as renderer:
            image = renderer.render()
            stored = renderer.last_photon_count
            map_size = renderer.photon_map.size

        assert image.shape == (6, 8, 3)
        assert image.dtype == np.float32
        assert np.all(np.isfinite(image))
        assert np.all((image >= 0.0) & (image <= 1.0))
        assert image.max() > 0.0
        assert stored == map_size

    def test_fixed_seed_is_reproducible(self):
        """Test that single-threaded renders with one seed match exactly."""
        from src.photonmapper.core.renderer import RenderConfig, Renderer
        from src.photonmapper.scene.cornell_box import create_cornell_box_scene

        config = RenderConfig(
            width=6, height=4, photon_count=200, photon_map="hilbert", use_multithreading=False, seed=7
        )
        scene, camera = create_cornell_box_scene(aspect_ratio=config.aspect_ratio)

        with Renderer(config, scene.traceable(), scene.light(), camera) as renderer:
            first = renderer.render()
            second = renderer.render()

        assert np.array_equal(first, second)

    def test_shadowed_floor_darker_than_lit_floor(self, room_scene):
        """Test a 1x1 frame aimed at a lit and at a shadowed floor point."""
        from src.photonmapper.camera.pinhole import PinholeCamera
        from src.photonmapper.core.renderer import RenderConfig, Renderer

        config = RenderConfig(width=1, height=1, use_multithreading=False)
        values = []
        for target in [(0.7, -1.0, 0.7), (0.0, -1.0, 0.05)]:
            camera = PinholeCamera((0.0, -0.9, 0.9), target, vfov=5.0, aspect_ratio=1.0)
            with Renderer(config, room_scene.traceable(), room_scene.light(), camera) as renderer:
                values.append(renderer.render()[0, 0])

        lit, shadowed = values
        assert np.all(lit > 0.05)
        assert np.allclose(shadowed, 0.0)

    @pytest.mark.parametrize("photon_map", ["grid", "hilbert"])
    def test_shadowed_floor_darker_with_photons(self, room_scene, photon_map):
        """Test the lit and shadowed floor points once indirect light is gathered."""
        from src.photonmapper.camera.pinhole import PinholeCamera
        from src.photonmapper.core.renderer import RenderConfig, Renderer

        config = RenderConfig(
            width=1, height=1, photon_count=5000, photon_map=photon_map, use_multithreading=False, seed=5
        )
        values = []
        for target in [(0.7, -1.0, 0.7), (0.0, -1.0, 0.05)]:
            camera = PinholeCamera((0.0, -0.9, 0.9), target, vfov=5.0, aspect_ratio=1.0)
            with Renderer(config, room_scene.traceable(), room_scene.light(), camera) as renderer:
                values.append(renderer.render()[0, 0])
                stored = renderer.last_photon_count

        lit, shadowed = values
        assert stored > 0
        # Photons bounced off the walls reach under the sphere
        assert shadowed.mean() > 0.0
        assert lit.mean() > shadowed.mean()

    def test_multithreaded_render(self, room_scene):
        """Test that the pooled camera pass fills every row."""
        from src.photonmapper.camera.pinhole import PinholeCamera
        from src.photonmapper.core.renderer import RenderConfig, Renderer

        config = RenderConfig(width=10, height=9, row_stride=2, use_multithreading=True)
        camera = PinholeCamera((0.0, 0.0, 0.95), (0.0, 0.0, -1.0), vfov=53.13, aspect_ratio=config.aspect_ratio)

        with Renderer(config, room_scene.traceable(), room_scene.light(), camera) as renderer:
            image = renderer.render()

        assert image.shape == (9, 10, 3)
        # The ceiling light is visible in the top rows; the floor in the bottom ones
        assert np.all(image.max(axis=(1, 2)) > 0.0)

    def test_toggle_multithreading(self):
        """Test switching executors at runtime."""
        from src.photonmapper.core.parallel import SingleThreadedParallelizer
        from src.photonmapper.core.renderer import RenderConfig, Renderer

        with Renderer(RenderConfig(use_multithreading=False)) as renderer:
            assert isinstance(renderer.parallelizer, SingleThreadedParallelizer)
            renderer.use_multithreading = True
            assert renderer.use_multithreading
            pooled = renderer.parallelizer
            renderer.use_multithreading = True
            assert renderer.parallelizer is pooled
            renderer.use_multithreading = False
            assert isinstance(renderer.parallelizer, SingleThreadedParallelizer)

    def test_custom_tone_mapper(self, room_scene):
        """Test that the configured tone mapper produces the pixels."""
        from src.photonmapper.camera.pinhole import PinholeCamera
        from src.photonmapper.core.renderer import RenderConfig, Renderer

        class Constant:
            def tone_map(self, radiance):
                return np.array([0.25, 0.5, 0.75], dtype=np.float32)

        config = RenderConfig(width=3, height=2, use_multithreading=False)
        camera = PinholeCamera((0.0, 0.0, 0.5), (0.0, 0.0, -1.0), aspect_ratio=1.5)

        with Renderer(config, room_scene.traceable(), room_scene.light(), camera, tone_mapper=Constant()) as renderer:
            image = renderer.render()

        assert np.allclose(image, [0.25, 0.5, 0.75])
