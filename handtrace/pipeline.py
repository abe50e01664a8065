"""
Hand Outline Pipeline

Main entry point for running the per-frame hand outline pipeline.

Usage:
    python -m handtrace.pipeline --config configs/default.yaml --input session.npz
"""

import argparse
import logging
from collections import Counter
from typing import Dict, List, Optional

import cv2
import numpy as np
from dataclasses import dataclass, field
from tqdm import tqdm

from .data.frame_data import FrameInput
from .data.recording import RecordingLoader
from .errors import (
    TickError,
    SkeletonUnavailable,
    SubFrameUnavailable,
    DegenerateHandDistances,
    ContourNotFound,
    OpenContour,
)
from .geometry.pixel_codec import PixelCoordinateCodec
from .hand.reference import HandReferenceResolver, HandReferencePair
from .render.painter import ColorPainter, to_bgr_image, draw_contours
from .segmentation.classifier import DepthBandClassifier, HandCategory
from .segmentation.outline import OutlineTracer, TraceResult, TraceStatus
from .utils.config import load_config, Config
from .utils.logging_utils import setup_logging, get_logger, TickTimer, ProgressLogger

logger = get_logger(__name__)


@dataclass
class TickContext:
    """Everything one tick produces, owned by that tick only."""
    frame: FrameInput
    depth: Optional[np.ndarray] = None
    player_mask: Optional[np.ndarray] = None
    refs: Optional[HandReferencePair] = None
    classification: Optional[np.ndarray] = None
    contours: Dict[HandCategory, TraceResult] = field(default_factory=dict)


@dataclass
class TickResult:
    """Outcome of one tick."""
    frame_idx: int
    success: bool
    error: Optional[TickError] = None
    refs: Optional[HandReferencePair] = None
    classification: Optional[np.ndarray] = None
    contours: Dict[HandCategory, TraceResult] = field(default_factory=dict)

    @property
    def status(self) -> str:
        return 'ok' if self.success else type(self.error).__name__


class HandOutlinePipeline:
    """
    Per-tick hand segmentation and outline tracing.

    Stages:
    1. Ingest - check skeleton tracking and sensor buffer sizes
    2. Hand references - wrist depths, dominant hand, gating windows
    3. Classification - depth bands per pixel
    4. Outline tracing - closed contour per traced category
    5. Render + publish - paint the back buffer, then swap it to the front

    A tick that fails at any stage publishes nothing; the front buffer
    keeps the last good frame.
    """

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize pipeline with configuration.

        Args:
            config: Configuration object; defaults when None
        """
        self.config = config or Config()
        cfg = self.config

        self.codec = PixelCoordinateCodec(cfg.frame.width, cfg.frame.height)
        self.resolver = HandReferenceResolver(
            self.codec,
            window_half_width=cfg.hand.window_half_width,
            window_half_height=cfg.hand.window_half_height,
            tolerance=cfg.hand.tolerance,
            wrist_depth_scale=cfg.hand.wrist_depth_scale
        )
        self.classifier = DepthBandClassifier(
            self.codec,
            bend_threshold_mm=cfg.hand.bend_threshold_mm,
            both_hands_enabled=cfg.hand.both_hands_enabled,
            gate_windows=cfg.hand.gate_windows,
            no_player_value=cfg.frame.no_player_value
        )
        self.tracer = OutlineTracer(
            self.codec,
            step_bound_factor=cfg.outline.step_bound_factor
        )
        self.painter = ColorPainter(self.codec, cfg.display)

        self._back = self.painter.new_buffer()
        self._front = self.painter.new_buffer()

        self.timer = TickTimer(__name__) if cfg.profile else None
        self.stats: Counter = Counter()

        logger.info(
            f"Pipeline initialized ({cfg.frame.width}x{cfg.frame.height}, "
            f"bend threshold {cfg.hand.bend_threshold_mm} mm, "
            f"both hands {'on' if cfg.hand.both_hands_enabled else 'off'})"
        )

    @property
    def published_buffer(self) -> np.ndarray:
        """
        Read-only view of the last successfully rendered color buffer.

        The view aliases the front buffer. It stays valid until the next
        successful process() call, after which that memory becomes the back
        buffer and is repainted; copy it to keep a frame.
        """
        view = self._front.view()
        view.flags.writeable = False
        return view

    def process(self, frame: FrameInput) -> TickResult:
        """
        Run one tick.

        Args:
            frame: Sensor input for this tick

        Returns:
            TickResult; ``success`` is False when the tick was abandoned
        """
        ctx = TickContext(frame=frame)
        if self.timer:
            self.timer.start()

        try:
            self._run(ctx)
        except TickError as e:
            self.stats[type(e).__name__] += 1
            if isinstance(e, OpenContour):
                logger.warning(f"Tick {frame.frame_idx}: {e}")
            else:
                logger.debug(f"Tick {frame.frame_idx} skipped: {type(e).__name__}: {e}")
            return TickResult(
                frame_idx=frame.frame_idx,
                success=False,
                error=e,
                refs=ctx.refs,
                classification=ctx.classification,
                contours=ctx.contours
            )

        # Publish only after the whole tick has completed
        self._front, self._back = self._back, self._front
        self.stats['ok'] += 1

        if self.timer:
            self.timer.mark('publish')
            self.timer.report()

        return TickResult(
            frame_idx=frame.frame_idx,
            success=True,
            refs=ctx.refs,
            classification=ctx.classification,
            contours=ctx.contours
        )

    def _run(self, ctx: TickContext):
        frame = ctx.frame

        # Stage 1: Ingest
        if not frame.skeleton_tracked:
            raise SkeletonUnavailable("No tracked body")

        try:
            ctx.depth = self.codec.validate_buffer(frame.depth, 'depth')
            ctx.player_mask = self.codec.validate_buffer(frame.player_mask, 'player_mask')
        except ValueError as e:
            raise SubFrameUnavailable(str(e)) from e
        self._mark('ingest')

        # Stage 2: Hand references
        ctx.refs = self.resolver.resolve(
            frame.left_wrist_depth_mm,
            frame.right_wrist_depth_mm,
            frame.left_hand_center_px,
            frame.right_hand_center_px
        )
        self._mark('resolve')

        # Stage 3: Classification
        ctx.classification = self.classifier.classify(ctx.depth, ctx.player_mask, ctx.refs)
        self._mark('classify')

        if ctx.refs.degenerate:
            raise DegenerateHandDistances(
                f"Wrist depths left={ctx.refs.left.wrist_depth_mm:.1f} mm, "
                f"right={ctx.refs.right.wrist_depth_mm:.1f} mm"
            )

        # Stage 4: Outline tracing
        for category in self.trace_categories(ctx.refs):
            ref = ctx.refs.get(category.hand_type)
            if ref.window is None:
                raise ContourNotFound(f"No gating window for {category.name}")

            result = self.tracer.trace(
                ctx.classification, category, window=ref.window, depth=ctx.depth
            )
            ctx.contours[category] = result

            if result.status == TraceStatus.NOT_FOUND:
                raise ContourNotFound(f"No {category.name} boundary in {ref.window}")
            if result.status == TraceStatus.OPEN:
                raise OpenContour(
                    f"{category.name} contour did not close within "
                    f"{result.step_bound} steps ({len(result)} points)"
                )
        self._mark('trace')

        # Stage 5: Render into the back buffer
        self.painter.paint(ctx.classification, out=self._back)
        self.painter.paint_contours(self._back, ctx.contours.values())
        self._mark('render')

    def trace_categories(self, refs: HandReferencePair) -> List[HandCategory]:
        """Categories traced this tick, dominant hand first."""
        hands = [refs.dominant_hand]
        if self.config.hand.both_hands_enabled and refs.other.valid:
            hands.append(refs.other_hand)

        categories = []
        for hand_type in hands:
            categories.append(HandCategory.palm(hand_type))
            if self.config.outline.trace_bend:
                categories.append(HandCategory.bend(hand_type))
        return categories

    def _mark(self, stage: str):
        if self.timer:
            self.timer.mark(stage)

    def preview_image(self, result: Optional[TickResult] = None) -> np.ndarray:
        """BGR image of the published buffer, with contours drawn when given."""
        image = to_bgr_image(self._front)
        if result is not None and result.success:
            draw_contours(image, result.contours.values())
        return image


def main():
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Depth-band hand outline pipeline"
    )
    parser.add_argument(
        "--config",
        type=str,
        default="configs/default.yaml",
        help="Configuration file"
    )
    parser.add_argument(
        "--input",
        type=str,
        required=True,
        help="Recorded session (.npz)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Show the published buffer in an OpenCV window"
    )

    args = parser.parse_args()

    config = load_config(args.config)
    setup_logging(
        level=logging.DEBUG if args.verbose else config.log_level,
        log_file=config.log_file
    )

    logger.info("Hand Outline Pipeline")
    logger.info(f"Config: {args.config}")

    recording = RecordingLoader(args.input)
    if recording.frame_shape != (config.frame.height, config.frame.width):
        logger.warning(
            f"Recording frames are {recording.frame_shape}, config expects "
            f"{(config.frame.height, config.frame.width)}; every tick will be skipped"
        )

    pipeline = HandOutlinePipeline(config)
    progress = ProgressLogger(__name__, total=len(recording))

    progress.start()
    for frame in tqdm(recording, total=len(recording), desc="Ticks"):
        result = pipeline.process(frame)
        progress.update()
        if args.show:
            cv2.imshow("handtrace", pipeline.preview_image(result))
            cv2.waitKey(1)

    progress.finish()

    if args.show:
        cv2.destroyAllWindows()

    logger.info("Tick summary:")
    for status, count in sorted(pipeline.stats.items()):
        logger.info(f"  {status}: {count}")


if __name__ == "__main__":
    main()
