#!/usr/bin/env python
"""
Synthetic Recording Generator

Writes a recorded session of two hands in front of a depth sensor, for
trying the pipeline without hardware:
1. Left hand farther from the sensor, right hand closer
2. Both hands drift sideways over the session
3. A bent finger block appears inside the left hand every few ticks
4. Occasional ticks without a tracked skeleton

Usage:
    python scripts/make_synthetic_recording.py --output session.npz --ticks 120
    python -m handtrace.pipeline --input session.npz
"""

import argparse
from pathlib import Path
import numpy as np
from tqdm import tqdm
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from handtrace.data.frame_data import FrameInput
from handtrace.data.recording import save_recording
from handtrace.utils.config import load_config, Config
from handtrace.utils.logging_utils import setup_logging, get_logger

logger = get_logger(__name__)


def synthetic_frame(
    tick: int,
    config: Config,
    rng: np.random.Generator,
    left_wrist_mm: float = 700.0,
    right_wrist_mm: float = 500.0
) -> FrameInput:
    """Build one tick of synthetic sensor data."""
    width, height = config.frame.width, config.frame.height
    no_player = config.frame.no_player_value

    depth = np.zeros((height, width), dtype=np.uint16)
    mask = np.full((height, width), no_player, dtype=np.uint8)

    # Body behind the hands, outside both depth bands
    depth[120:424, 180:330] = 1400
    mask[120:424, 180:330] = 0

    drift = int(20 * np.sin(tick / 15.0))
    left_center = (150 + drift, 200)
    right_center = (360 + drift, 210)

    palm_offset = config.hand.bend_threshold_mm / 2
    for (cx, cy), wrist in ((left_center, left_wrist_mm), (right_center, right_wrist_mm)):
        hand = (slice(cy - 25, cy + 25), slice(cx - 15, cx + 15))
        depth[hand] = int(wrist - palm_offset)
        mask[hand] = 0

    if tick % 4 == 0:
        cx, cy = left_center
        depth[cy - 10:cy + 10, cx - 5:cx + 5] = int(left_wrist_mm - 1.5 * config.hand.bend_threshold_mm)

    noise = rng.integers(-2, 3, size=depth.shape)
    depth = np.where(depth > 0, depth + noise, 0).astype(np.uint16)

    return FrameInput(
        depth=depth,
        player_mask=mask,
        left_wrist_depth_mm=left_wrist_mm,
        right_wrist_depth_mm=right_wrist_mm,
        left_hand_center_px=left_center,
        right_hand_center_px=right_center,
        skeleton_tracked=tick % 25 != 24,
        frame_idx=tick
    )


def main():
    parser = argparse.ArgumentParser(description="Write a synthetic recorded session")
    parser.add_argument("--config", type=str, default="configs/default.yaml")
    parser.add_argument("--output", type=str, default="session.npz")
    parser.add_argument("--ticks", type=int, default=120)
    parser.add_argument("--seed", type=int, default=0)

    args = parser.parse_args()

    setup_logging()

    config = load_config(args.config)
    rng = np.random.default_rng(args.seed)

    frames = [
        synthetic_frame(tick, config, rng)
        for tick in tqdm(range(args.ticks), desc="Generating")
    ]
    save_recording(args.output, frames)

    logger.info(f"Wrote {len(frames)} ticks to {args.output}")


if __name__ == "__main__":
    main()
