"""PNG export of rendered pixel buffers.

The renderer's output is already tone mapped into [0, 1]; export only gamma
encodes, quantizes to 8 bits and writes the file with Pillow.

Example:
    >>> from src.photonmapper.preview.export import save_png_from_array
    >>> image = renderer.render()
    >>> save_png_from_array(image, "cornell_box.png")
"""

from __future__ import annotations

import logging
from os import PathLike

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from src.photonmapper.preview.tonemap import apply_gamma

logger = logging.getLogger(__name__)


def image_to_uint8(
    image: npt.NDArray[np.floating],
    *,
    gamma: float = 2.2,
) -> npt.NDArray[np.uint8]:
    """Convert a tone mapped float image to 8-bit.

    Args:
        image: Array of shape (H, W, 3) with values in [0, 1].
        gamma: Display gamma applied before quantization.

    Returns:
        Array of shape (H, W, 3) with dtype uint8.

    Raises:
        ValueError: If the image is not (H, W, 3).
    """
    image = np.asarray(image)
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")
    encoded = apply_gamma(image, gamma)
    return np.round(encoded * 255.0).astype(np.uint8)


def save_png_from_array(
    image: npt.NDArray[np.floating],
    filepath: str | PathLike[str],
    *,
    gamma: float = 2.2,
) -> None:
    """Save a tone mapped float image as an 8-bit RGB PNG."""
    pil_image = PILImage.fromarray(image_to_uint8(image, gamma=gamma), mode="RGB")
    pil_image.save(filepath)
    logger.info("Saved %dx%d image to %s", pil_image.width, pil_image.height, filepath)
