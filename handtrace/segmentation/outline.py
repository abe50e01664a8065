"""
Outline Tracer

Traces the ordered boundary of one classified hand region with
Moore-neighbor (8-connected) boundary following.

Direction table, clockwise in image coordinates (y grows downward):

    7 0 1        NW N NE
    6 . 2        W  .  E
    5 4 3        SW S SE

Usage:
    from handtrace.segmentation.outline import OutlineTracer

    tracer = OutlineTracer(codec)
    result = tracer.trace(grid, HandCategory.LEFT_PALM, window=refs.left.window)
    if result.closed:
        xy = result.to_array()
"""

import numpy as np
from enum import Enum
from typing import List, Optional
from dataclasses import dataclass, field

from ..geometry.pixel_codec import PixelCoordinateCodec, GatingWindow
from .classifier import boundary_mask
from ..utils.logging_utils import get_logger

logger = get_logger(__name__)

DIRECTION_NAMES = ('N', 'NE', 'E', 'SE', 'S', 'SW', 'W', 'NW')

# (dx, dy) per direction index
DIRECTION_STEPS = (
    (0, -1), (1, -1), (1, 0), (1, 1),
    (0, 1), (-1, 1), (-1, 0), (-1, -1),
)

WEST = 6

# Offsets that would wrap into the neighboring row
LEFT_EDGE_EXCLUDED = frozenset({5, 6, 7})
RIGHT_EDGE_EXCLUDED = frozenset({1, 2, 3})


class TraceStatus(Enum):
    CLOSED = 'closed'
    NOT_FOUND = 'not_found'
    OPEN = 'open'


@dataclass
class ContourPoint:
    """One pixel of a traced contour."""
    pixel_index: int
    x: int
    y: int
    depth_mm: float
    category: int
    is_boundary: bool = True


@dataclass
class TraceResult:
    """Outcome of tracing one category."""
    status: TraceStatus
    category: int
    points: List[ContourPoint] = field(default_factory=list)
    seed_index: Optional[int] = None
    steps: int = 0
    step_bound: int = 0

    @property
    def closed(self) -> bool:
        return self.status == TraceStatus.CLOSED

    def __len__(self) -> int:
        return len(self.points)

    def indices(self) -> List[int]:
        return [p.pixel_index for p in self.points]

    def to_array(self) -> np.ndarray:
        """(N, 2) int array of (x, y) in walk order."""
        if not self.points:
            return np.zeros((0, 2), dtype=np.int32)
        return np.array([(p.x, p.y) for p in self.points], dtype=np.int32)


class OutlineTracer:
    """
    Boundary follower over a classification grid.

    The seed is the first boundary pixel of the target category in
    row-major order inside the scan window. From each contour pixel the
    eight neighbors are examined clockwise, starting one position past
    the direction back to the previous contour pixel; the first pixel of
    the target category becomes the next contour pixel. The walk ends when
    it returns to the seed.
    """

    def __init__(self, codec: PixelCoordinateCodec, step_bound_factor: int = 1):
        """
        Args:
            codec: Frame geometry; the row stride comes from its width
            step_bound_factor: Walk length limit, in multiples of the
                region's pixel count
        """
        self.codec = codec
        self.step_bound_factor = step_bound_factor

        width = codec.width
        self.offsets = tuple(dy * width + dx for dx, dy in DIRECTION_STEPS)

    def neighbor(self, index: int, direction: int) -> Optional[int]:
        """
        Index of the neighbor in ``direction``, or None when that neighbor
        is outside the frame or would wrap across a row edge.
        """
        x = index % self.codec.width
        if x == 0 and direction in LEFT_EDGE_EXCLUDED:
            return None
        if x == self.codec.width - 1 and direction in RIGHT_EDGE_EXCLUDED:
            return None

        candidate = index + self.offsets[direction]
        if not 0 <= candidate < self.codec.pixel_count:
            return None
        return candidate

    def find_seed(
        self,
        grid: np.ndarray,
        category: int,
        window: Optional[GatingWindow] = None
    ) -> Optional[int]:
        """
        First boundary pixel of ``category`` in row-major order within
        ``window``, or None.
        """
        grid = self.codec.validate_buffer(grid, 'classification')
        window = window or self.codec.full_window()
        if window.is_empty:
            return None

        edges = boundary_mask(grid, category)[window.slices()]
        hits = np.flatnonzero(edges)
        if hits.size == 0:
            return None

        row, col = divmod(int(hits[0]), window.width)
        return self.codec.to_index(window.x0 + col, window.y0 + row)

    def trace(
        self,
        grid: np.ndarray,
        category: int,
        window: Optional[GatingWindow] = None,
        depth: Optional[np.ndarray] = None
    ) -> TraceResult:
        """
        Trace the boundary of ``category`` starting inside ``window``.

        Args:
            grid: (H, W) classification grid
            category: HandCategory value to trace
            window: Scan window; whole frame when None
            depth: Optional depth frame used to fill ContourPoint.depth_mm

        Returns:
            TraceResult with status CLOSED, NOT_FOUND or OPEN
        """
        grid = self.codec.validate_buffer(grid, 'classification')
        window = window or self.codec.full_window()
        category = int(category)

        seed = self.find_seed(grid, category, window)
        if seed is None:
            return TraceResult(status=TraceStatus.NOT_FOUND, category=category)

        flat = grid.ravel()
        region_size = int(np.count_nonzero(grid[window.slices()] == category))
        step_bound = region_size * self.step_bound_factor

        ring = [seed]
        current = seed
        back = WEST
        steps = 0
        status = TraceStatus.CLOSED

        while True:
            found = None
            for turn in range(1, 9):
                direction = (back + turn) % 8
                candidate = self.neighbor(current, direction)
                if candidate is not None and flat[candidate] == category:
                    found = candidate
                    break

            # Isolated pixel
            if found is None:
                break

            steps += 1
            if found == seed:
                break
            if steps > step_bound:
                status = TraceStatus.OPEN
                break

            ring.append(found)
            current = found
            back = (direction + 4) % 8

        if status == TraceStatus.OPEN:
            logger.debug(
                f"Trace of category {category} exceeded {step_bound} steps "
                f"from seed {seed}"
            )

        return TraceResult(
            status=status,
            category=category,
            points=self._to_points(ring, category, depth),
            seed_index=seed,
            steps=steps,
            step_bound=step_bound
        )

    def _to_points(
        self,
        ring: List[int],
        category: int,
        depth: Optional[np.ndarray]
    ) -> List[ContourPoint]:
        depth_flat = None
        if depth is not None:
            depth_flat = self.codec.validate_buffer(depth, 'depth').ravel()

        points = []
        for index in ring:
            x, y = self.codec.to_coord(index)
            points.append(ContourPoint(
                pixel_index=index,
                x=x,
                y=y,
                depth_mm=float(depth_flat[index]) if depth_flat is not None else 0.0,
                category=category
            ))
        return points
