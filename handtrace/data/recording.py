"""
Recording Loader

Replays recorded sensor ticks from a numpy ``.npz`` archive so the
pipeline can run without a live depth camera.

Archive layout (T = number of ticks):
    depth          (T, H, W) uint16
    player_mask    (T, H, W) uint8
    left_wrist_mm  (T,) float
    right_wrist_mm (T,) float
    left_center    (T, 2) float, negative = no projection
    right_center   (T, 2) float, negative = no projection
    tracked        (T,) bool

Usage:
    from handtrace.data.recording import RecordingLoader

    loader = RecordingLoader("session.npz")
    for frame in loader:
        pipeline.process(frame)
"""

import numpy as np
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

from .frame_data import FrameInput
from ..utils.logging_utils import get_logger

logger = get_logger(__name__)


class RecordingLoader:
    """Loads FrameInput ticks from an .npz recording."""

    REQUIRED_KEYS = ('depth', 'player_mask', 'left_wrist_mm', 'right_wrist_mm')

    def __init__(self, path: Union[str, Path]):
        """
        Args:
            path: Path to the .npz recording
        """
        self.path = Path(path)

        if not self.path.exists():
            raise FileNotFoundError(f"Recording not found: {self.path}")

        with np.load(self.path) as archive:
            missing = [k for k in self.REQUIRED_KEYS if k not in archive.files]
            if missing:
                raise ValueError(f"Recording {self.path} is missing arrays: {missing}")

            self.depth = archive['depth']
            self.player_mask = archive['player_mask']
            self.left_wrist_mm = archive['left_wrist_mm']
            self.right_wrist_mm = archive['right_wrist_mm']

            num_ticks = len(self.depth)
            self.left_center = (archive['left_center'] if 'left_center' in archive.files
                                else np.full((num_ticks, 2), -1.0))
            self.right_center = (archive['right_center'] if 'right_center' in archive.files
                                 else np.full((num_ticks, 2), -1.0))
            self.tracked = (archive['tracked'] if 'tracked' in archive.files
                            else np.ones(num_ticks, dtype=bool))

        lengths = {len(a) for a in (self.depth, self.player_mask, self.left_wrist_mm,
                                    self.right_wrist_mm, self.left_center,
                                    self.right_center, self.tracked)}
        if len(lengths) != 1:
            raise ValueError(f"Recording {self.path} has arrays of differing length")

        logger.info(f"Loaded {len(self)} ticks from {self.path}")

    def __len__(self) -> int:
        return len(self.depth)

    @property
    def frame_shape(self) -> Tuple[int, int]:
        """(H, W) of the recorded frames."""
        return tuple(self.depth.shape[1:3])

    def __getitem__(self, idx: int) -> FrameInput:
        return FrameInput(
            depth=self.depth[idx],
            player_mask=self.player_mask[idx],
            left_wrist_depth_mm=float(self.left_wrist_mm[idx]),
            right_wrist_depth_mm=float(self.right_wrist_mm[idx]),
            left_hand_center_px=_center(self.left_center[idx]),
            right_hand_center_px=_center(self.right_center[idx]),
            skeleton_tracked=bool(self.tracked[idx]),
            frame_idx=idx
        )

    def __iter__(self) -> Iterator[FrameInput]:
        for idx in range(len(self)):
            yield self[idx]


def _center(values: np.ndarray) -> Optional[Tuple[int, int]]:
    x, y = float(values[0]), float(values[1])
    if not (np.isfinite(x) and np.isfinite(y)) or x < 0 or y < 0:
        return None
    return (int(round(x)), int(round(y)))


def save_recording(path: Union[str, Path], frames) -> None:
    """Write a sequence of FrameInput ticks in the layout RecordingLoader reads."""
    frames = list(frames)
    if not frames:
        raise ValueError("No frames to save")

    def center_or_missing(center):
        return (-1.0, -1.0) if center is None else center

    np.savez_compressed(
        path,
        depth=np.stack([np.asarray(f.depth, dtype=np.uint16) for f in frames]),
        player_mask=np.stack([np.asarray(f.player_mask, dtype=np.uint8) for f in frames]),
        left_wrist_mm=np.array([f.left_wrist_depth_mm for f in frames], dtype=np.float64),
        right_wrist_mm=np.array([f.right_wrist_depth_mm for f in frames], dtype=np.float64),
        left_center=np.array([center_or_missing(f.left_hand_center_px) for f in frames],
                             dtype=np.float64),
        right_center=np.array([center_or_missing(f.right_hand_center_px) for f in frames],
                              dtype=np.float64),
        tracked=np.array([f.skeleton_tracked for f in frames], dtype=bool)
    )
