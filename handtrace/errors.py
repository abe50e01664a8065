"""Per-tick failure types. Each one abandons the current tick only."""


class TickError(Exception):
    """Base class for recoverable failures of a single frame tick."""


class SkeletonUnavailable(TickError):
    """No tracked body this tick."""


class SubFrameUnavailable(TickError):
    """Depth or player-mask buffer missing, or its size does not match the frame."""


class DegenerateHandDistances(TickError):
    """Both wrist depths are ~0 or too close to pick a dominant hand."""


class ContourNotFound(TickError):
    """No boundary seed in the scanned window."""


class OpenContour(TickError):
    """The boundary walk hit its step bound without returning to the seed."""
