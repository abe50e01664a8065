"""
Classification Painter

Turns a classification grid into a BGRA-packed uint32 color buffer and,
for preview, into an OpenCV BGR image with contour overlays.

Usage:
    from handtrace.render.painter import ColorPainter, to_bgr_image

    painter = ColorPainter(codec, config.display)
    buffer = painter.paint(grid)
    image = to_bgr_image(buffer)
"""

import cv2
import numpy as np
from typing import Iterable, Optional, Tuple

from ..geometry.pixel_codec import PixelCoordinateCodec
from ..segmentation.classifier import HandCategory, boundary_mask
from ..segmentation.outline import TraceResult
from ..utils.config import DisplayConfig


class ColorPainter:
    """Maps HandCategory values to packed 0xAARRGGBB colors."""

    def __init__(
        self,
        codec: PixelCoordinateCodec,
        display: Optional[DisplayConfig] = None
    ):
        """
        Args:
            codec: Frame geometry
            display: Per-category colors; defaults when None
        """
        self.codec = codec
        self.display = display or DisplayConfig()
        self.palette = np.array([
            self.display.none_color,
            self.display.left_palm_color,
            self.display.left_bend_color,
            self.display.right_palm_color,
            self.display.right_bend_color,
        ], dtype=np.uint32)

    def new_buffer(self) -> np.ndarray:
        return np.full(self.codec.shape, self.display.none_color, dtype=np.uint32)

    def paint(self, grid: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Paint the grid.

        Args:
            grid: (H, W) classification grid
            out: Optional (H, W) uint32 buffer written in place

        Returns:
            The painted buffer (``out`` when given)
        """
        grid = self.codec.validate_buffer(grid, 'classification')
        colors = self.palette[grid]

        if self.display.mark_outline:
            for category in HandCategory:
                if category == HandCategory.NONE:
                    continue
                colors[boundary_mask(grid, category)] = self.display.outline_color

        if out is None:
            return colors
        np.copyto(out, colors)
        return out

    def paint_contours(
        self,
        buffer: np.ndarray,
        contours: Iterable[TraceResult],
        color: Optional[int] = None
    ) -> np.ndarray:
        """Overwrite every contour pixel in ``buffer`` with ``color``."""
        color = self.display.outline_color if color is None else color
        flat = buffer.reshape(-1)
        for result in contours:
            indices = result.indices()
            if indices:
                flat[np.asarray(indices, dtype=np.intp)] = color
        return buffer


def to_bgr_image(buffer: np.ndarray) -> np.ndarray:
    """(H, W) packed 0xAARRGGBB buffer -> (H, W, 3) uint8 BGR image."""
    packed = np.ascontiguousarray(buffer, dtype='<u4')
    bgra = packed.view(np.uint8).reshape(packed.shape[0], packed.shape[1], 4)
    return cv2.cvtColor(bgra, cv2.COLOR_BGRA2BGR)


def draw_contours(
    image: np.ndarray,
    contours: Iterable[TraceResult],
    color: Tuple[int, int, int] = (0, 255, 255),
    thickness: int = 1
) -> np.ndarray:
    """Draw closed contours as polylines on a BGR image (in place)."""
    for result in contours:
        if len(result) < 2:
            continue
        points = result.to_array().reshape(-1, 1, 2)
        cv2.polylines(image, [points], result.closed, color, thickness)
    return image
