"""Tests for the preview module.

This module tests tone mapping, gamma encoding and PNG export.
"""

import math
import os
import tempfile

import numpy as np
import pytest
from PIL import Image as PILImage


class TestExponentialToneMapper:
    """Test exposure-style tone mapping."""

    def test_preserves_black(self):
        """Test that zero maps to zero."""
        from src.photonmapper.preview.tonemap import ExponentialToneMapper

        result = ExponentialToneMapper().tone_map(np.zeros(3))

        assert result.dtype == np.float32
        assert np.allclose(result, 0.0)

    def test_known_value(self):
        """Test 1 - exp(-x * strength)."""
        from src.photonmapper.preview.tonemap import ExponentialToneMapper

        result = ExponentialToneMapper(strength=2.0).tone_map(np.array([0.5, 1.0, 2.0]))

        assert np.allclose(result, 1.0 - np.exp(-np.array([1.0, 2.0, 4.0])), atol=1e-6)

    def test_monotonic_and_bounded(self):
        """Test that brighter input never maps darker and stays below one."""
        from src.photonmapper.preview.tonemap import ExponentialToneMapper

        values = np.linspace(0.0, 50.0, 200)
        result = ExponentialToneMapper().tone_map(np.stack([values] * 3, axis=-1))

        assert np.all(np.diff(result[:, 0]) >= 0.0)
        assert np.all(result <= 1.0)

    def test_negative_input_clamped(self):
        """Test that negative radiance maps to black."""
        from src.photonmapper.preview.tonemap import ExponentialToneMapper

        assert np.allclose(ExponentialToneMapper().tone_map(np.full(3, -2.0)), 0.0)

    def test_approximation_close_and_below(self):
        """Test the rational approximation of the exponential."""
        from src.photonmapper.preview.tonemap import ExponentialToneMapper

        values = np.linspace(0.01, 5.0, 50)
        exact = ExponentialToneMapper().tone_map(values)
        approx = ExponentialToneMapper(approximate=True).tone_map(values)

        assert np.all(approx <= exact + 1e-6)
        assert np.max(exact - approx) < 0.02

    def test_image_shape_preserved(self):
        """Test that whole images map elementwise."""
        from src.photonmapper.preview.tonemap import ExponentialToneMapper

        image = np.ones((4, 5, 3))

        assert ExponentialToneMapper().tone_map(image).shape == (4, 5, 3)

    def test_invalid_strength(self):
        """Test that a non-positive strength raises."""
        from src.photonmapper.preview.tonemap import ExponentialToneMapper

        with pytest.raises(ValueError, match="strength"):
            ExponentialToneMapper(strength=0.0)


class TestReinhardToneMapper:
    """Test Reinhard tone mapping."""

    def test_compresses_bright_values(self):
        """Test that 10 maps to 10 / 11."""
        from src.photonmapper.preview.tonemap import ReinhardToneMapper

        result = ReinhardToneMapper().tone_map(np.full(3, 10.0))

        assert np.allclose(result, 10.0 / 11.0, atol=1e-6)

    def test_exposure_scales_input(self):
        """Test that exposure multiplies before compression."""
        from src.photonmapper.preview.tonemap import ReinhardToneMapper

        result = ReinhardToneMapper(exposure=4.0).tone_map(np.full(3, 0.25))

        assert np.allclose(result, 0.5, atol=1e-6)


class TestGamma:
    """Test gamma encoding."""

    def test_gamma_brightens_midtones(self):
        """Test 0.5 ** (1 / 2.2)."""
        from src.photonmapper.preview.tonemap import apply_gamma

        result = apply_gamma(np.full((1, 1, 3), 0.5))

        assert np.allclose(result, 0.5 ** (1.0 / 2.2), atol=1e-6)

    def test_gamma_one_only_clamps(self):
        """Test that gamma 1.0 clamps into [0, 1] without other changes."""
        from src.photonmapper.preview.tonemap import apply_gamma

        result = apply_gamma(np.array([-0.5, 0.3, 1.7]), gamma=1.0)

        assert np.allclose(result, [0.0, 0.3, 1.0])

    def test_invalid_gamma(self):
        """Test that a non-positive gamma raises."""
        from src.photonmapper.preview.tonemap import apply_gamma

        with pytest.raises(ValueError, match="gamma"):
            apply_gamma(np.zeros(3), gamma=0.0)


class TestExport:
    """Test 8-bit conversion and PNG export."""

    def test_image_to_uint8(self):
        """Test quantization of black, white and mid grey."""
        from src.photonmapper.preview.export import image_to_uint8

        image = np.array([[[0.0, 1.0, 0.5]]], dtype=np.float32)
        result = image_to_uint8(image, gamma=1.0)

        assert result.dtype == np.uint8
        assert result[0, 0].tolist() == [0, 255, 128]

    def test_image_to_uint8_rejects_bad_shape(self):
        """Test that non-RGB arrays raise."""
        from src.photonmapper.preview.export import image_to_uint8

        with pytest.raises(ValueError, match="shape"):
            image_to_uint8(np.zeros((4, 4)))

    def test_save_png(self):
        """Test that a saved PNG reads back with the same pixels."""
        from src.photonmapper.preview.export import image_to_uint8, save_png_from_array

        rng = np.random.default_rng(0)
        image = rng.random((6, 9, 3)).astype(np.float32)

        with tempfile.TemporaryDirectory() as tmpdir:
            filepath = os.path.join(tmpdir, "frame.png")
            save_png_from_array(image, filepath)

            assert os.path.exists(filepath)
            with PILImage.open(filepath) as loaded:
                assert loaded.size == (9, 6)
                assert loaded.mode == "RGB"
                assert np.array_equal(np.asarray(loaded), image_to_uint8(image))

    def test_renderer_output_round_trip(self):
        """Test exporting a tone mapped constant image."""
        from src.photonmapper.preview.export import save_png_from_array
        from src.photonmapper.preview.tonemap import ExponentialToneMapper

        image = ExponentialToneMapper().tone_map(np.full((2, 2, 3), math.log(2.0)))

        with tempfile.TemporaryDirectory() as tmpdir:
            filepath = os.path.join(tmpdir, "half.png")
            save_png_from_array(image, filepath, gamma=1.0)
            with PILImage.open(filepath) as loaded:
                assert np.all(np.abs(np.asarray(loaded).astype(int) - 128) <= 1)
