"""Color buffer rendering."""

from .painter import ColorPainter, to_bgr_image, draw_contours

__all__ = [
    "ColorPainter",
    "to_bgr_image",
    "draw_contours",
]
