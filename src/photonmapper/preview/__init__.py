"""Tone mapping and image export.

Components:
    tonemap: ToneMapper protocol, exponential and Reinhard mappers, gamma
    export: 8-bit conversion and PNG writing via Pillow
"""

from .export import image_to_uint8, save_png_from_array
from .tonemap import ExponentialToneMapper, ReinhardToneMapper, ToneMapper, apply_gamma

__all__ = [
    "ExponentialToneMapper",
    "ReinhardToneMapper",
    "ToneMapper",
    "apply_gamma",
    "image_to_uint8",
    "save_png_from_array",
]
