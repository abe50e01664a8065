"""
Per-tick sensor input.

One FrameInput carries everything the pipeline consumes for a single
tick: the depth frame, the player (body index) mask and the hand joint
data resolved by the skeleton tracker.
"""

import numpy as np
from typing import Optional, Tuple
from dataclasses import dataclass


@dataclass
class FrameInput:
    """Sensor data for one frame tick."""
    depth: Optional[np.ndarray]  # uint16 mm, (H, W) or flat W*H; 0 = invalid
    player_mask: Optional[np.ndarray]  # uint8, same size; sentinel = no player
    left_wrist_depth_mm: float = 0.0
    right_wrist_depth_mm: float = 0.0
    left_hand_center_px: Optional[Tuple[int, int]] = None
    right_hand_center_px: Optional[Tuple[int, int]] = None
    skeleton_tracked: bool = False
    frame_idx: int = 0

    @property
    def has_buffers(self) -> bool:
        return self.depth is not None and self.player_mask is not None
