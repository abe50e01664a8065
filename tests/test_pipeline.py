"""Tests for the per-tick pipeline."""

import pytest
import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from handtrace.data.frame_data import FrameInput
from handtrace.errors import (
    SkeletonUnavailable,
    SubFrameUnavailable,
    DegenerateHandDistances,
    ContourNotFound,
    OpenContour,
)
from handtrace.data.recording import save_recording
from handtrace.pipeline import HandOutlinePipeline, main
from handtrace.segmentation.classifier import HandCategory
from handtrace.utils.config import Config, save_config

W, H = 512, 424
LEFT_CENTER = (150, 200)
RIGHT_CENTER = (350, 200)


def make_frame(
    left_wrist=700.0,
    right_wrist=500.0,
    left_depth=650,
    right_depth=480,
    tracked=True,
    frame_idx=0
) -> FrameInput:
    """Two rectangular hands: 20x30 at the left center, 16x24 at the right center."""
    depth = np.zeros((H, W), dtype=np.uint16)
    mask = np.full((H, W), 255, dtype=np.uint8)

    depth[185:215, 140:160] = left_depth
    mask[185:215, 140:160] = 0
    depth[188:212, 342:358] = right_depth
    mask[188:212, 342:358] = 0

    return FrameInput(
        depth=depth,
        player_mask=mask,
        left_wrist_depth_mm=left_wrist,
        right_wrist_depth_mm=right_wrist,
        left_hand_center_px=LEFT_CENTER,
        right_hand_center_px=RIGHT_CENTER,
        skeleton_tracked=tracked,
        frame_idx=frame_idx
    )


class TestHandOutlinePipeline:
    """Tests for HandOutlinePipeline class."""

    @pytest.fixture
    def pipeline(self):
        return HandOutlinePipeline(Config())

    def test_init_default(self):
        """Test default initialization."""
        pipeline = HandOutlinePipeline()
        assert pipeline.codec.width == 512
        assert pipeline.codec.height == 424
        assert pipeline.published_buffer.shape == (424, 512)
        assert not pipeline.published_buffer.any()

    def test_successful_tick(self, pipeline):
        """Test a good frame classifies, traces both palms and publishes."""
        result = pipeline.process(make_frame())

        assert result.success
        assert result.status == 'ok'
        assert result.refs.dominant_hand == 'left'

        grid = result.classification
        assert np.all(grid[185:215, 140:160] == HandCategory.LEFT_PALM)
        assert np.all(grid[188:212, 342:358] == HandCategory.RIGHT_PALM)

        left = result.contours[HandCategory.LEFT_PALM]
        right = result.contours[HandCategory.RIGHT_PALM]
        assert left.closed and right.closed
        assert len(left) == 2 * 20 + 2 * 30 - 4
        assert len(right) == 2 * 16 + 2 * 24 - 4
        assert all(p.depth_mm == 650.0 for p in left.points)

    def test_published_buffer_painted(self, pipeline):
        """Test the published buffer carries category and outline colors."""
        pipeline.process(make_frame())
        display = pipeline.config.display
        buffer = pipeline.published_buffer

        assert buffer[200, 150] == display.left_palm_color
        assert buffer[200, 350] == display.right_palm_color
        assert buffer[185, 140] == display.outline_color
        assert buffer[0, 0] == display.none_color

    def test_published_buffer_read_only(self, pipeline):
        """Test readers cannot write into the published buffer."""
        pipeline.process(make_frame())
        with pytest.raises(ValueError):
            pipeline.published_buffer[0, 0] = 1

    def test_skeleton_unavailable(self, pipeline):
        """Test an untracked skeleton skips the tick."""
        result = pipeline.process(make_frame(tracked=False))

        assert not result.success
        assert isinstance(result.error, SkeletonUnavailable)
        assert result.status == 'SkeletonUnavailable'
        assert result.classification is None

    def test_subframe_size_mismatch(self, pipeline):
        """Test a wrongly sized depth buffer skips the tick."""
        frame = make_frame()
        frame.depth = np.zeros(1000, dtype=np.uint16)

        result = pipeline.process(frame)

        assert isinstance(result.error, SubFrameUnavailable)

    def test_subframe_missing(self, pipeline):
        """Test a missing player mask skips the tick."""
        frame = make_frame()
        frame.player_mask = None

        result = pipeline.process(frame)

        assert isinstance(result.error, SubFrameUnavailable)

    def test_degenerate_holds_last_frame(self, pipeline):
        """Test zero wrist depths give an empty grid and keep the published buffer."""
        assert pipeline.process(make_frame()).success
        before = pipeline.published_buffer.copy()

        result = pipeline.process(make_frame(left_wrist=0.0, right_wrist=0.0, frame_idx=1))

        assert isinstance(result.error, DegenerateHandDistances)
        assert result.classification is not None
        assert not result.classification.any()
        assert np.array_equal(pipeline.published_buffer, before)

    def test_contour_not_found(self, pipeline):
        """Test a dominant window without hand pixels fails the tick."""
        frame = make_frame()
        frame.left_hand_center_px = (450, 60)

        result = pipeline.process(frame)

        assert isinstance(result.error, ContourNotFound)

    def test_open_contour(self):
        """Test a thin strip exceeds the default step bound and is reported."""
        config = Config()
        config.hand.both_hands_enabled = False
        pipeline = HandOutlinePipeline(config)

        frame = make_frame()
        frame.depth[:] = 0
        frame.player_mask[:] = 255
        frame.depth[200, 148:152] = 650
        frame.player_mask[200, 148:152] = 0

        result = pipeline.process(frame)

        assert isinstance(result.error, OpenContour)
        assert result.contours[HandCategory.LEFT_PALM].steps > 4

    def test_failure_keeps_previous_frame(self, pipeline):
        """Test every failure kind leaves the published buffer as it was."""
        pipeline.process(make_frame())
        before = pipeline.published_buffer.copy()

        bad_center = make_frame()
        bad_center.left_hand_center_px = (450, 60)
        for frame in (make_frame(tracked=False), bad_center):
            assert not pipeline.process(frame).success
            assert np.array_equal(pipeline.published_buffer, before)

    def test_published_view_reused_after_two_ticks(self, pipeline):
        """Test a held view is repainted two ticks later while a copy is kept."""
        pipeline.process(make_frame())
        view = pipeline.published_buffer
        snapshot = view.copy()

        pipeline.process(make_frame(frame_idx=1))
        moved = make_frame(frame_idx=2)
        moved.depth[185:215, 140:160] = 0
        moved.player_mask[185:215, 140:160] = 255
        moved.depth[190:210, 152:168] = 650
        moved.player_mask[190:210, 152:168] = 0
        assert pipeline.process(moved).success

        assert not view.flags.writeable
        assert not np.array_equal(view, snapshot)
        assert np.array_equal(view, pipeline.published_buffer)
        assert snapshot[200, 145] == pipeline.config.display.left_palm_color

    def test_next_tick_is_independent(self, pipeline):
        """Test a failed tick does not affect the following one."""
        pipeline.process(make_frame(tracked=False))
        result = pipeline.process(make_frame(left_depth=655, frame_idx=1))

        assert result.success
        assert pipeline.published_buffer[200, 150] == pipeline.config.display.left_palm_color

    def test_single_hand_mode(self):
        """Test only the dominant hand is traced with both hands disabled."""
        config = Config()
        config.hand.both_hands_enabled = False
        pipeline = HandOutlinePipeline(config)

        result = pipeline.process(make_frame())

        assert result.success
        assert list(result.contours) == [HandCategory.LEFT_PALM]
        assert not np.any(result.classification == HandCategory.RIGHT_PALM)

    def test_other_hand_not_tracked(self, pipeline):
        """Test a missing other hand is skipped rather than failing the tick."""
        frame = make_frame(right_wrist=0.0)
        frame.right_hand_center_px = None

        result = pipeline.process(frame)

        assert result.success
        assert list(result.contours) == [HandCategory.LEFT_PALM]

    def test_trace_bend(self):
        """Test bend categories are traced when enabled."""
        config = Config()
        config.outline.trace_bend = True
        config.hand.both_hands_enabled = False
        pipeline = HandOutlinePipeline(config)

        frame = make_frame()
        frame.depth[195:205, 145:150] = 600  # bent fingers inside the left hand

        result = pipeline.process(frame)

        assert result.success
        assert result.contours[HandCategory.LEFT_BEND].closed
        assert len(result.contours[HandCategory.LEFT_BEND]) == 2 * 5 + 2 * 10 - 4

    def test_stats(self, pipeline):
        """Test per-status counters."""
        pipeline.process(make_frame())
        pipeline.process(make_frame(tracked=False))
        pipeline.process(make_frame(left_wrist=0.0, right_wrist=0.0))

        assert pipeline.stats['ok'] == 1
        assert pipeline.stats['SkeletonUnavailable'] == 1
        assert pipeline.stats['DegenerateHandDistances'] == 1

    def test_profile_timer(self):
        """Test profiling records every stage of a good tick."""
        config = Config()
        config.profile = True
        pipeline = HandOutlinePipeline(config)

        pipeline.process(make_frame())
        stages = [name for name, _ in pipeline.timer.durations_ms()]

        assert stages == ['ingest', 'resolve', 'classify', 'trace', 'render', 'publish']

    def test_preview_image(self, pipeline):
        """Test the preview is a BGR image of the frame size."""
        result = pipeline.process(make_frame())
        image = pipeline.preview_image(result)

        assert image.shape == (424, 512, 3)
        assert image.dtype == np.uint8


def test_main_logs_replay_progress(tmp_path, monkeypatch):
    """Test the CLI replays a recording and logs progress to the log file."""
    recording = tmp_path / "session.npz"
    save_recording(recording, [make_frame(frame_idx=i) for i in range(3)])

    log_file = tmp_path / "run.log"
    config = Config()
    config.log_file = str(log_file)
    config_path = tmp_path / "config.yaml"
    save_config(config, str(config_path))

    monkeypatch.setattr(
        sys, "argv",
        ["handtrace", "--config", str(config_path), "--input", str(recording)]
    )
    main()

    text = log_file.read_text()
    assert "Starting processing of 3 ticks" in text
    assert "Progress: 3/3" in text
    assert "Completed 3 ticks" in text
    assert "ok: 3" in text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
