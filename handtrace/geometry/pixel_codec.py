"""
Pixel Coordinate Codec

Maps between linear pixel indices of a row-major depth frame and
(x, y) pixel coordinates, and validates raw sensor buffers against
the frame size before anything indexes into them.

Usage:
    from handtrace.geometry.pixel_codec import PixelCoordinateCodec

    codec = PixelCoordinateCodec(512, 424)
    idx = codec.to_index(10, 3)   # 3 * 512 + 10
    x, y = codec.to_coord(idx)
"""

import numpy as np
from typing import Tuple, Optional
from dataclasses import dataclass


@dataclass(frozen=True)
class GatingWindow:
    """Inclusive pixel rectangle [x0, x1] x [y0, y1]."""
    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def top_left(self) -> Tuple[int, int]:
        return (self.x0, self.y0)

    @property
    def width(self) -> int:
        return max(0, self.x1 - self.x0 + 1)

    @property
    def height(self) -> int:
        return max(0, self.y1 - self.y0 + 1)

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def contains(self, x: int, y: int) -> bool:
        return self.x0 <= x <= self.x1 and self.y0 <= y <= self.y1

    def slices(self) -> Tuple[slice, slice]:
        """(row_slice, col_slice) for indexing an (H, W) array."""
        return (slice(self.y0, self.y1 + 1), slice(self.x0, self.x1 + 1))

    def to_mask(self, width: int, height: int) -> np.ndarray:
        mask = np.zeros((height, width), dtype=bool)
        if not self.is_empty:
            mask[self.slices()] = True
        return mask


class PixelCoordinateCodec:
    """
    Row-major index <-> (x, y) conversion for a W x H frame.

    ``index = y * W + x``. This is the only convention used anywhere in
    the package; the depth array, the player mask and the classification
    grid are all laid out this way.
    """

    def __init__(self, width: int = 512, height: int = 424):
        if width <= 0 or height <= 0:
            raise ValueError(f"Frame size must be positive, got {width}x{height}")
        self.width = width
        self.height = height

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def shape(self) -> Tuple[int, int]:
        """numpy shape (H, W)."""
        return (self.height, self.width)

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def to_index(self, x: int, y: int) -> int:
        """Convert (x, y) to a linear pixel index."""
        if not self.contains(x, y):
            raise ValueError(
                f"Pixel ({x}, {y}) outside {self.width}x{self.height} frame"
            )
        return y * self.width + x

    def to_coord(self, index: int) -> Tuple[int, int]:
        """Convert a linear pixel index to (x, y)."""
        if not 0 <= index < self.pixel_count:
            raise ValueError(
                f"Pixel index {index} outside [0, {self.pixel_count})"
            )
        return (index % self.width, index // self.width)

    def window(
        self,
        center: Optional[Tuple[int, int]],
        half_width: int,
        half_height: int
    ) -> Optional[GatingWindow]:
        """
        Rectangle of half extents (hw, hh) around ``center``, clipped to
        the frame.

        Returns None when there is no center or the rectangle lies
        entirely outside the frame.
        """
        if center is None:
            return None

        cx, cy = int(round(center[0])), int(round(center[1]))
        x0 = max(0, cx - half_width)
        y0 = max(0, cy - half_height)
        x1 = min(self.width - 1, cx + half_width)
        y1 = min(self.height - 1, cy + half_height)

        if x0 > x1 or y0 > y1:
            return None

        return GatingWindow(x0, y0, x1, y1)

    def full_window(self) -> GatingWindow:
        return GatingWindow(0, 0, self.width - 1, self.height - 1)

    def validate_buffer(
        self,
        buffer: Optional[np.ndarray],
        name: str = 'buffer',
        dtype=None
    ) -> np.ndarray:
        """
        Check a sensor buffer against the frame size and return it as an
        (H, W) array.

        Accepts a flat W*H buffer or an already-shaped (H, W) array.

        Raises:
            ValueError: if the buffer is missing or its size does not match
        """
        if buffer is None:
            raise ValueError(f"{name} is missing")

        array = np.asarray(buffer)
        if dtype is not None:
            array = array.astype(dtype, copy=False)

        if array.ndim == 2:
            if array.shape != self.shape:
                raise ValueError(
                    f"{name} has shape {array.shape}, expected {self.shape}"
                )
            return array

        if array.size != self.pixel_count:
            raise ValueError(
                f"{name} has {array.size} pixels, expected {self.pixel_count}"
            )
        return array.reshape(self.shape)
