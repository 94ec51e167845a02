"""Tests for photon emission and random walks."""

import logging

import numpy as np
import pytest


def _grey_room(reflectance, light_power=10.0):
    from src.photonmapper.geometry.room import RoomShell
    from src.photonmapper.geometry.square_light import SquareLight
    from src.photonmapper.materials.material import Material
    from src.photonmapper.scene.manager import Scene

    if reflectance is None:
        wall = Material.black()
    else:
        wall = Material.diffuse(reflectance)
    scene = Scene()
    scene.add_object(RoomShell(wall, wall, wall))
    scene.add_light(
        SquareLight((0.0, 0.98, 0.0), (0.25, 0.0, 0.0), (0.0, 0.0, 0.25), (light_power,) * 3)
    )
    return scene


class TestPhotonTracer:
    """Tests for PhotonTracer.trace_photons."""

    def test_negative_count_raises(self, room_scene, single_threaded):
        """Test that a negative photon count is rejected."""
        from src.photonmapper.core.photon_tracer import PhotonTracer
        from src.photonmapper.photonmap.grid import GridPhotonMap

        tracer = PhotonTracer(room_scene.traceable(), room_scene.light(), single_threaded)

        with pytest.raises(ValueError, match="photon_count"):
            tracer.trace_photons(GridPhotonMap(0.3, capacity=10), -1)

    def test_zero_count_stores_nothing(self, room_scene, single_threaded):
        """Test that no paths means no photons."""
        from src.photonmapper.core.photon_tracer import PhotonTracer
        from src.photonmapper.photonmap.grid import GridPhotonMap

        photon_map = GridPhotonMap(0.3, capacity=10)
        tracer = PhotonTracer(room_scene.traceable(), room_scene.light(), single_threaded)

        assert tracer.trace_photons(photon_map, 0) == 0
        assert photon_map.size == 0

    def test_first_hit_is_not_stored(self, single_threaded):
        """Test that photons absorbed at their first hit leave no record."""
        from src.photonmapper.core.photon_tracer import PhotonTracer
        from src.photonmapper.photonmap.grid import GridPhotonMap

        scene = _grey_room(None)
        photon_map = GridPhotonMap(0.3, capacity=1000)
        tracer = PhotonTracer(scene.traceable(), scene.light(), single_threaded)

        assert tracer.trace_photons(photon_map, 500) == 0
        assert photon_map.size == 0

    def test_stored_power_is_split_evenly(self, single_threaded):
        """Test that grey walls keep the per-photon power at P / N."""
        from src.photonmapper.core.photon_tracer import PhotonTracer
        from src.photonmapper.photonmap.grid import GridPhotonMap

        scene = _grey_room(0.5)
        count = 400
        photon_map = GridPhotonMap(0.3, capacity=10_000)
        tracer = PhotonTracer(scene.traceable(), scene.light(), single_threaded)

        stored = tracer.trace_photons(photon_map, count)

        assert stored == photon_map.size
        assert stored > 0
        for photon in photon_map.photons():
            assert np.allclose(photon.power, 10.0 / count)

    def test_photons_lie_on_surfaces(self, single_threaded):
        """Test that stored photons sit on the walls or the light."""
        from src.photonmapper.core.photon_tracer import PhotonTracer
        from src.photonmapper.photonmap.grid import GridPhotonMap

        scene = _grey_room(0.8)
        photon_map = GridPhotonMap(0.3, capacity=10_000)
        PhotonTracer(scene.traceable(), scene.light(), single_threaded).trace_photons(photon_map, 300)

        for photon in photon_map.photons():
            on_wall = abs(np.max(np.abs(photon.position)) - 1.0) < 1e-6
            on_light = abs(photon.position[1] - 0.98) < 1e-6
            assert on_wall or on_light
            assert abs(np.linalg.norm(photon.normal) - 1.0) < 1e-9

    def test_roulette_survival_matches_reflectance(self, single_threaded):
        """Test that more reflective walls store more photons per path."""
        from src.photonmapper.core.photon_tracer import PhotonTracer
        from src.photonmapper.photonmap.grid import GridPhotonMap

        counts = []
        for reflectance in (0.2, 0.8):
            scene = _grey_room(reflectance)
            photon_map = GridPhotonMap(0.3, capacity=50_000)
            tracer = PhotonTracer(scene.traceable(), scene.light(), single_threaded)
            counts.append(tracer.trace_photons(photon_map, 2000))

        # Expected bounces per path: r / (1 - r), i.e. 0.25 and 4 (less the light's black back)
        assert counts[1] > 5 * counts[0]

    def test_full_map_logs_warning(self, single_threaded, caplog):
        """Test that photons past capacity are dropped with a warning."""
        from src.photonmapper.core.photon_tracer import PhotonTracer
        from src.photonmapper.photonmap.grid import GridPhotonMap

        scene = _grey_room(0.8)
        photon_map = GridPhotonMap(0.3, capacity=5)
        tracer = PhotonTracer(scene.traceable(), scene.light(), single_threaded)

        with caplog.at_level(logging.WARNING, logger="src.photonmapper.core.photon_tracer"):
            stored = tracer.trace_photons(photon_map, 1000)

        assert stored == 5
        assert photon_map.size == 5
        assert "Photon map full" in caplog.text

    def test_thread_pool_fills_map(self):
        """Test tracing through worker threads."""
        from src.photonmapper.core.parallel import ThreadPoolParallelizer
        from src.photonmapper.core.photon_tracer import PhotonTracer
        from src.photonmapper.photonmap.grid import GridPhotonMap

        scene = _grey_room(0.6)
        photon_map = GridPhotonMap(0.3, capacity=20_000)
        with ThreadPoolParallelizer(4) as pool:
            stored = PhotonTracer(scene.traceable(), scene.light(), pool).trace_photons(photon_map, 1000)

        assert stored == photon_map.size
        assert stored > 0
