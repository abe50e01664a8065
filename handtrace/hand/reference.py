"""
Hand Reference Resolver

Derives per-hand depth references from skeletal joint data:

    - wrist depth in millimeters (joint Z scaled from meters)
    - the dominant hand (wrist farther from the sensor)
    - the projected hand center and its gating window in the depth image

Usage:
    from handtrace.hand.reference import HandReferenceResolver

    resolver = HandReferenceResolver(codec)
    refs = resolver.resolve(left_wrist_mm=700.0, right_wrist_mm=500.0,
                            left_center=(200, 180), right_center=(320, 190))
    refs.dominant_hand        # 'left'
    refs.dominant_max_depth   # 700.0
"""

import numpy as np
from typing import Optional, Sequence, Tuple
from dataclasses import dataclass

from ..geometry.pixel_codec import PixelCoordinateCodec, GatingWindow

HAND_TYPES = ('left', 'right')


def is_equal(a: float, b: float, tol: float = 1.0e-5) -> bool:
    """Float equality within an absolute tolerance."""
    return abs(a - b) < tol


@dataclass
class HandReference:
    """Depth reference for one hand in the current tick."""
    hand_type: str  # 'left' or 'right'
    wrist_depth_mm: float = 0.0
    center_pixel: Optional[Tuple[int, int]] = None
    window: Optional[GatingWindow] = None
    valid: bool = False


@dataclass
class HandReferencePair:
    """Both hands plus the dominant-hand selection for one tick."""
    left: HandReference
    right: HandReference
    dominant_hand: Optional[str]  # None when degenerate
    dominant_max_depth: float

    @property
    def degenerate(self) -> bool:
        return self.dominant_hand is None

    @property
    def other_hand(self) -> Optional[str]:
        if self.dominant_hand is None:
            return None
        return 'right' if self.dominant_hand == 'left' else 'left'

    def get(self, hand_type: str) -> HandReference:
        if hand_type == 'left':
            return self.left
        if hand_type == 'right':
            return self.right
        raise ValueError(f"Unknown hand type: {hand_type}")

    @property
    def dominant(self) -> Optional[HandReference]:
        return self.get(self.dominant_hand) if self.dominant_hand else None

    @property
    def other(self) -> Optional[HandReference]:
        return self.get(self.other_hand) if self.other_hand else None


class HandReferenceResolver:
    """
    Computes HandReferencePair from wrist depths and projected hand centers.

    Pure: nothing is cached between calls, so a hand that drops out of
    tracking is invalid on the very next tick.
    """

    def __init__(
        self,
        codec: PixelCoordinateCodec,
        window_half_width: int = 60,
        window_half_height: int = 60,
        tolerance: float = 1e-5,
        wrist_depth_scale: float = 1000.0
    ):
        """
        Args:
            codec: Frame geometry used to clip gating windows
            window_half_width: Gating window half extent along x (pixels)
            window_half_height: Gating window half extent along y (pixels)
            tolerance: Depth equality tolerance (mm)
            wrist_depth_scale: Joint Z units to millimeters
        """
        self.codec = codec
        self.window_half_width = window_half_width
        self.window_half_height = window_half_height
        self.tolerance = tolerance
        self.wrist_depth_scale = wrist_depth_scale

    def wrist_depth_from_joint(self, position: Optional[Sequence[float]]) -> float:
        """
        Wrist depth in mm from a 3D joint position (x, y, z) in meters.

        Missing or non-finite joints give 0, the "no hand" depth.
        """
        if position is None or len(position) < 3:
            return 0.0
        z = float(position[2])
        if not np.isfinite(z) or z <= 0:
            return 0.0
        return z * self.wrist_depth_scale

    def resolve_joints(
        self,
        left_wrist: Optional[Sequence[float]],
        right_wrist: Optional[Sequence[float]],
        left_center: Optional[Tuple[int, int]] = None,
        right_center: Optional[Tuple[int, int]] = None
    ) -> HandReferencePair:
        """Resolve from 3D wrist joint positions (meters)."""
        return self.resolve(
            self.wrist_depth_from_joint(left_wrist),
            self.wrist_depth_from_joint(right_wrist),
            left_center,
            right_center
        )

    def resolve(
        self,
        left_wrist_mm: float,
        right_wrist_mm: float,
        left_center: Optional[Tuple[int, int]] = None,
        right_center: Optional[Tuple[int, int]] = None
    ) -> HandReferencePair:
        """
        Resolve hand references from wrist depths already in mm.

        Args:
            left_wrist_mm: Left wrist depth (0 = not tracked)
            right_wrist_mm: Right wrist depth (0 = not tracked)
            left_center: Projected left hand pixel (x, y), or None
            right_center: Projected right hand pixel (x, y), or None

        Returns:
            HandReferencePair; ``dominant_hand`` is None when both depths
            are ~0 or equal within tolerance.
        """
        left_mm = _sanitize_depth(left_wrist_mm)
        right_mm = _sanitize_depth(right_wrist_mm)

        left = self._hand_reference('left', left_mm, left_center)
        right = self._hand_reference('right', right_mm, right_center)

        max_depth = max(left_mm, right_mm)

        both_zero = (is_equal(left_mm, 0.0, self.tolerance)
                     and is_equal(right_mm, 0.0, self.tolerance))
        if both_zero or is_equal(left_mm, right_mm, self.tolerance):
            dominant = None
        elif is_equal(left_mm, max_depth, self.tolerance):
            dominant = 'left'
        else:
            dominant = 'right'

        return HandReferencePair(
            left=left,
            right=right,
            dominant_hand=dominant,
            dominant_max_depth=max_depth
        )

    def _hand_reference(
        self,
        hand_type: str,
        depth_mm: float,
        center: Optional[Tuple[int, int]]
    ) -> HandReference:
        center = _sanitize_center(center)
        window = self.codec.window(
            center, self.window_half_width, self.window_half_height
        )
        valid = depth_mm > self.tolerance and window is not None

        return HandReference(
            hand_type=hand_type,
            wrist_depth_mm=depth_mm,
            center_pixel=center,
            window=window,
            valid=valid
        )


def _sanitize_depth(value: Optional[float]) -> float:
    if value is None:
        return 0.0
    value = float(value)
    if not np.isfinite(value) or value < 0:
        return 0.0
    return value


def _sanitize_center(center) -> Optional[Tuple[int, int]]:
    """Negative or non-finite centers mean the mapper had no projection."""
    if center is None:
        return None
    x, y = float(center[0]), float(center[1])
    if not (np.isfinite(x) and np.isfinite(y)) or x < 0 or y < 0:
        return None
    return (int(round(x)), int(round(y)))
