"""Camera models for eye ray generation."""

from .pinhole import PinholeCamera

__all__ = ["PinholeCamera"]
