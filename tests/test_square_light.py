"""Tests for the square area light.

Tests cover:
- Geometry (area, normal, radiance)
- Front and back faces seen by rays, and self-exclusion in shadow queries
- Direct irradiance estimates, occlusion and back-side points
- Photon emission
"""

import math

import numpy as np
import pytest


def _ceiling_light(power=10.0, sample_count=32):
    from src.photonmapper.geometry.square_light import SquareLight

    return SquareLight(
        position=(0.0, 0.98, 0.0),
        basis1=(0.25, 0.0, 0.0),
        basis2=(0.0, 0.0, 0.25),
        power=(power, power, power),
        sample_count=sample_count,
    )


class TestSquareLightGeometry:
    """Tests for derived light quantities."""

    def test_area_normal_radiance(self):
        """Test area 4|b1||b2|, downward normal and L = P / (A pi)."""
        light = _ceiling_light()

        assert abs(light.area - 0.25) < 1e-12
        assert np.allclose(light.normal, (0.0, -1.0, 0.0))
        assert np.allclose(light.radiance, 10.0 / (0.25 * math.pi))
        assert np.allclose(light.power(), 10.0)

    def test_parallel_basis_rejected(self):
        """Test that a degenerate parallelogram raises."""
        from src.photonmapper.geometry.square_light import SquareLight

        with pytest.raises(ValueError, match="parallel"):
            SquareLight((0, 0, 0), (1.0, 0.0, 0.0), (2.0, 0.0, 0.0), (1.0, 1.0, 1.0))
        with pytest.raises(ValueError, match="sample_count"):
            SquareLight((0, 0, 0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (1.0, 1.0, 1.0), sample_count=0)


class TestSquareLightTracing:
    """Tests for rays hitting the light."""

    def test_front_face_is_emitting(self):
        """Test that the lit side returns the emitting material."""
        from src.photonmapper.core.ray import Ray
        from src.photonmapper.materials.material import MaterialType

        light = _ceiling_light()
        hit = light.intersect(Ray((0.1, 0.0, 0.1), (0.0, 1.0, 0.0)))

        assert abs(hit.distance - 0.98) < 1e-12
        assert hit.material.type is MaterialType.EMITTING
        assert np.allclose(hit.material.radiance, light.radiance)
        assert np.allclose(hit.normal, (0.0, -1.0, 0.0))

    def test_back_face_is_black(self):
        """Test that the dark side is black with a flipped normal."""
        from src.photonmapper.core.ray import Ray
        from src.photonmapper.materials.material import MaterialType

        hit = _ceiling_light().intersect(Ray((0.0, 1.5, 0.0), (0.0, -1.0, 0.0)))

        assert hit.material.type is MaterialType.BLACK
        assert np.allclose(hit.normal, (0.0, 1.0, 0.0))

    def test_miss_outside_square(self):
        """Test a ray crossing the plane beside the light."""
        from src.photonmapper.core.ray import Ray

        assert _ceiling_light().intersect(Ray((0.5, 0.0, 0.0), (0.0, 1.0, 0.0))) is None

    def test_keeps_closer_recorded_hit(self):
        """Test that the light plane beyond the record's distance is rejected."""
        from src.photonmapper.core.ray import Ray
        from src.photonmapper.core.traceable import HitInfo

        hit = HitInfo()
        hit.distance = 0.5

        assert not _ceiling_light().raytrace(Ray((0.1, 0.0, 0.1), (0.0, 1.0, 0.0)), hit)
        assert hit.distance == 0.5
        assert hit.material is None

    def test_shadow_excludes_self(self):
        """Test that the light occludes others but never itself."""
        from src.photonmapper.core.ray import Ray

        light = _ceiling_light()
        ray = Ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0))

        assert light.raytrace_shadow(ray, 2.0)
        assert not light.raytrace_shadow(ray, 2.0, light)
        assert not light.raytrace_shadow(ray, 0.5)


class TestSquareLightIrradiance:
    """Tests for direct irradiance estimation."""

    def test_unoccluded_irradiance_near_analytic(self):
        """Test E close to P cos^2 / (pi d^2) far below a small light."""
        from src.photonmapper.core.ray import vec3
        from src.photonmapper.scene.intersection import CompositeTraceable

        light = _ceiling_light()
        position = vec3(0.0, -1.0, 0.0)
        irradiance = light.sample_irradiance(position, vec3(0.0, 1.0, 0.0), CompositeTraceable())

        d = 1.98
        point_source = 10.0 / (math.pi * d * d)
        assert np.allclose(irradiance, irradiance[0])
        assert abs(irradiance[0] - point_source) / point_source < 0.05

    def test_occluded_point_is_dark(self):
        """Test that a blocker between point and light zeroes the estimate."""
        from src.photonmapper.core.ray import vec3
        from src.photonmapper.geometry.sphere import Sphere
        from src.photonmapper.materials.material import Material
        from src.photonmapper.scene.intersection import CompositeTraceable

        light = _ceiling_light()
        blocker = CompositeTraceable([Sphere((0.0, 0.0, 0.0), 0.6, Material.diffuse(0.5))])
        irradiance = light.sample_irradiance(vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), blocker)

        assert np.allclose(irradiance, 0.0)

    def test_behind_light_is_dark(self):
        """Test that points on the back side receive nothing."""
        from src.photonmapper.core.ray import vec3
        from src.photonmapper.scene.intersection import CompositeTraceable

        light = _ceiling_light()
        irradiance = light.sample_irradiance(vec3(0.0, 1.5, 0.0), vec3(0.0, -1.0, 0.0), CompositeTraceable())

        assert np.allclose(irradiance, 0.0)

    def test_surface_facing_away_is_dark(self):
        """Test that a surface whose normal points away from the light gets nothing."""
        from src.photonmapper.core.ray import vec3
        from src.photonmapper.scene.intersection import CompositeTraceable

        light = _ceiling_light()
        irradiance = light.sample_irradiance(vec3(0.0, -1.0, 0.0), vec3(0.0, -1.0, 0.0), CompositeTraceable())

        assert np.allclose(irradiance, 0.0)


class TestSquareLightPhotons:
    """Tests for photon emission."""

    def test_photon_starts_on_light_and_heads_down(self):
        """Test emission position, direction and power."""
        from src.photonmapper.core.ray import dot

        light = _ceiling_light()
        rng = np.random.default_rng(5)
        for _ in range(50):
            ray, power = light.sample_photon(tuple(rng.random(2)), tuple(rng.random(2)))
            assert abs(ray.origin[1] - 0.98) < 1e-12
            assert abs(ray.origin[0]) <= 0.25 + 1e-12
            assert abs(ray.origin[2]) <= 0.25 + 1e-12
            assert dot(ray.direction, light.normal) >= 0.0
            assert np.allclose(power, 10.0)

    def test_position_parameters_map_to_corners(self):
        """Test that (0, 0) and (1, 1) map to opposite corners."""
        light = _ceiling_light()

        ray0, _ = light.sample_photon((0.0, 0.0), (0.5, 0.5))
        ray1, _ = light.sample_photon((1.0, 1.0), (0.5, 0.5))

        assert np.allclose(ray0.origin, (-0.25, 0.98, -0.25))
        assert np.allclose(ray1.origin, (0.25, 0.98, 0.25))
