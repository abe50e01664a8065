"""
Depth Band Classifier

Labels every pixel of a depth frame as one of the hand-region categories
using depth bands anchored on the two wrist depths.

Bands, by decreasing depth (D = dominant wrist depth, O = other wrist
depth, delta = bend threshold):

    (D - delta, D]      dominant hand, palm
    (O, D - delta]      dominant hand, bent fingers
    (O - delta, O]      other hand, palm
    (0, O - delta]      other hand, bent fingers

Usage:
    from handtrace.segmentation.classifier import DepthBandClassifier

    classifier = DepthBandClassifier(codec, bend_threshold_mm=60)
    grid = classifier.classify(depth, player_mask, refs)
"""

import numpy as np
from enum import IntEnum
from typing import Dict, Optional

from ..geometry.pixel_codec import PixelCoordinateCodec
from ..hand.reference import HandReferencePair, HAND_TYPES
from ..utils.logging_utils import get_logger

logger = get_logger(__name__)


class HandCategory(IntEnum):
    """Per-pixel hand region label."""
    NONE = 0
    LEFT_PALM = 1
    LEFT_BEND = 2
    RIGHT_PALM = 3
    RIGHT_BEND = 4

    @property
    def hand_type(self) -> Optional[str]:
        if self in (HandCategory.LEFT_PALM, HandCategory.LEFT_BEND):
            return 'left'
        if self in (HandCategory.RIGHT_PALM, HandCategory.RIGHT_BEND):
            return 'right'
        return None

    @classmethod
    def palm(cls, hand_type: str) -> 'HandCategory':
        return cls.LEFT_PALM if hand_type == 'left' else cls.RIGHT_PALM

    @classmethod
    def bend(cls, hand_type: str) -> 'HandCategory':
        return cls.LEFT_BEND if hand_type == 'left' else cls.RIGHT_BEND


class DepthBandClassifier:
    """
    Pixel classifier over depth, player mask and hand references.

    ``classify`` is a pure function of its arguments and the constructor
    settings; the returned grid is a new array every call.
    """

    def __init__(
        self,
        codec: PixelCoordinateCodec,
        bend_threshold_mm: float = 60.0,
        both_hands_enabled: bool = True,
        gate_windows: bool = True,
        no_player_value: int = 255
    ):
        """
        Args:
            codec: Frame geometry
            bend_threshold_mm: Depth margin separating palm from bend bands
            both_hands_enabled: Keep labels for the non-dominant hand
            gate_windows: Drop labels outside the owning hand's window
            no_player_value: Player mask value meaning "no tracked player"
        """
        self.codec = codec
        self.bend_threshold_mm = bend_threshold_mm
        self.both_hands_enabled = both_hands_enabled
        self.gate_windows = gate_windows
        self.no_player_value = no_player_value

    def empty_grid(self) -> np.ndarray:
        return np.zeros(self.codec.shape, dtype=np.uint8)

    def classify(
        self,
        depth: np.ndarray,
        player_mask: np.ndarray,
        refs: HandReferencePair
    ) -> np.ndarray:
        """
        Classify every pixel.

        Args:
            depth: (H, W) or flat uint16 depth in mm, 0 = invalid
            player_mask: (H, W) or flat uint8 body index
            refs: Hand references for this tick

        Returns:
            (H, W) uint8 grid of HandCategory values. All NONE when the
            references are degenerate.
        """
        depth = self.codec.validate_buffer(depth, 'depth')
        player_mask = self.codec.validate_buffer(player_mask, 'player_mask')

        if refs.degenerate or refs.dominant_max_depth <= 0:
            logger.debug("Degenerate hand references, returning empty grid")
            return self.empty_grid()

        dominant = refs.dominant_hand
        other = refs.other_hand
        d_max = float(refs.dominant_max_depth)
        o_depth = float(refs.other.wrist_depth_mm)
        delta = float(self.bend_threshold_mm)

        depth_f = depth.astype(np.float64)
        tracked = player_mask != self.no_player_value
        in_range = tracked & (depth_f > 0) & (depth_f <= d_max)

        # First match wins, so the bands never overlap
        labels = np.select(
            [depth_f > d_max - delta,
             depth_f > o_depth,
             depth_f > o_depth - delta],
            [int(HandCategory.palm(dominant)),
             int(HandCategory.bend(dominant)),
             int(HandCategory.palm(other))],
            default=int(HandCategory.bend(other))
        )
        grid = np.where(in_range, labels, int(HandCategory.NONE)).astype(np.uint8)

        if not self.both_hands_enabled:
            grid[self._hand_pixels(grid, other)] = HandCategory.NONE

        if self.gate_windows:
            for hand_type in HAND_TYPES:
                ref = refs.get(hand_type)
                hand_pixels = self._hand_pixels(grid, hand_type)
                if not ref.valid or ref.window is None:
                    grid[hand_pixels] = HandCategory.NONE
                    continue
                outside = ~ref.window.to_mask(self.codec.width, self.codec.height)
                grid[hand_pixels & outside] = HandCategory.NONE

        return grid

    @staticmethod
    def _hand_pixels(grid: np.ndarray, hand_type: str) -> np.ndarray:
        return ((grid == HandCategory.palm(hand_type))
                | (grid == HandCategory.bend(hand_type)))


def count_categories(grid: np.ndarray) -> Dict[HandCategory, int]:
    """Pixel count per category."""
    counts = np.bincount(grid.ravel(), minlength=len(HandCategory))
    return {category: int(counts[category]) for category in HandCategory}


def boundary_mask(grid: np.ndarray, category: int) -> np.ndarray:
    """
    Pixels of ``category`` with at least one 4-neighbor of another
    category. Pixels on the frame edge count as boundary.
    """
    region = grid == category
    padded = np.pad(region, 1, mode='constant', constant_values=False)
    interior = (padded[:-2, 1:-1] & padded[2:, 1:-1]
                & padded[1:-1, :-2] & padded[1:-1, 2:])
    return region & ~interior
