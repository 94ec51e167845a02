"""Integration tests for the end-to-end rendering pipeline.

These run the command-line example from scene creation through the saved
PNG. They are kept fast (tiny images, few photons) while still exercising
the photon pass, the camera pass and export together.
"""

from __future__ import annotations

import os
import tempfile

import numpy as np
import pytest
from PIL import Image as PILImage


class TestRenderCornellBoxScript:
    """Integration tests for examples/render_cornell_box.py."""

    @pytest.mark.parametrize(
        "extra_args",
        [
            [],
            ["--photon-map", "hilbert", "--sphere", "glass"],
            ["--filter", "epanechnikov", "--sphere", "mirror", "--photons", "0"],
        ],
    )
    def test_renders_and_saves_png(self, extra_args):
        """Test that the script writes an image of the requested size."""
        from examples.render_cornell_box import main

        with tempfile.TemporaryDirectory() as tmpdir:
            output = os.path.join(tmpdir, "box.png")
            argv = [
                "--width", "8",
                "--height", "6",
                "--photons", "300",
                "--single-threaded",
                "--seed", "3",
                "--output", output,
                "--log-level", "WARNING",
            ] + extra_args

            assert main(argv) == 0

            with PILImage.open(output) as image:
                assert image.size == (8, 6)
                pixels = np.asarray(image)
            assert pixels.max() > 0

    def test_invalid_settings_return_error(self, caplog):
        """Test that bad settings are reported instead of raised."""
        from examples.render_cornell_box import main

        with tempfile.TemporaryDirectory() as tmpdir:
            output = os.path.join(tmpdir, "box.png")
            result = main(["--width", "8", "--height", "6", "--photons", "-5", "--output", output])

            assert result == 1
            assert not os.path.exists(output)
        assert "Invalid settings" in caplog.text
