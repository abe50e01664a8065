"""Pixel geometry helpers."""

from .pixel_codec import PixelCoordinateCodec, GatingWindow

__all__ = [
    "PixelCoordinateCodec",
    "GatingWindow",
]
